# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The build context: the one object every task body receives.

Configuration is frozen; everything a task computes for later tasks (the
parsed manifest, the version being built, the build directory, produced
artifacts) is written to a field here. There is no other channel between
tasks.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from psforge.config.schema import PsforgeConfig
from psforge.manifest.parser import ManifestDocument
from psforge.manifest.version import Version
from psforge.tasks.exceptions import MissingState
from psforge.tools.process import ProcessRunner


@dataclass
class BuildContext:
    config: PsforgeConfig
    project_root: Path
    runner: ProcessRunner = field(default_factory=ProcessRunner)

    manifest: Optional[ManifestDocument] = None
    version: Optional[Version] = None
    build_dir: Optional[Path] = None
    artifacts: dict[str, Path] = field(default_factory=dict)

    @property
    def module_name(self) -> str:
        name = self.config.build.module_name
        return name if name else self.project_root.name

    @property
    def manifest_source(self) -> Path:
        manifest_path = self.config.build.manifest_path or f"{self.module_name}.psd1"
        return self.project_root / manifest_path

    @property
    def source_root(self) -> Path:
        """Directory holding the manifest; script folders are relative to it."""
        return self.manifest_source.parent

    @property
    def output_dir(self) -> Path:
        return self.project_root / self.config.build.output_folder

    def require_manifest(self) -> ManifestDocument:
        if self.manifest is None:
            raise MissingState("manifest", "LoadManifest")
        return self.manifest

    def require_version(self) -> Version:
        if self.version is None:
            raise MissingState("version", "LoadManifest")
        return self.version

    def require_build_dir(self) -> Path:
        if self.build_dir is None:
            raise MissingState("build_dir", "LoadManifest")
        return self.build_dir

    def require_artifact(self, name: str) -> Path:
        if name not in self.artifacts:
            raise MissingState(f"artifacts[{name!r}]", "Package")
        return self.artifacts[name]
