# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
.NET projects shipped inside the module.

Each project is published into <build>/bin. The sources that decide whether a
rebuild is needed are the project's C# files and project files, excluding
its own bin/ and obj/ folders.
"""

import logging
from pathlib import Path

from psforge.logging.logger import get_logger
from psforge.tools.process import ProcessRunner

_logger: logging.Logger = get_logger(__name__)

_SOURCE_SUFFIXES = {".cs", ".csproj", ".props", ".targets", ".json"}
_BUILD_FOLDERS = {"bin", "obj"}


def project_sources(project_dir: Path) -> list[Path]:
    if not project_dir.is_dir():
        return []
    return sorted(
        path
        for path in project_dir.rglob("*")
        if path.is_file()
        and path.suffix.lower() in _SOURCE_SUFFIXES
        and not _BUILD_FOLDERS.intersection(path.relative_to(project_dir).parts[:-1])
    )


def project_assembly(project_dir: Path, output_dir: Path) -> Path:
    """The assembly `dotnet publish` produces for a project named like its folder."""
    projects = sorted(project_dir.glob("*.csproj"))
    name = projects[0].stem if projects else project_dir.name
    return output_dir / f"{name}.dll"


def publish_project(
    runner: ProcessRunner,
    project_dir: Path,
    output_dir: Path,
    executable: str = "dotnet",
    configuration: str = "Release",
) -> Path:
    runner.run(
        [executable, "publish", str(project_dir), "--configuration", configuration, "--output", str(output_dir)],
        cwd=project_dir,
    )
    assembly = project_assembly(project_dir, output_dir)
    _logger.info("Published .NET project", extra={"project": str(project_dir), "assembly": str(assembly)})
    return assembly
