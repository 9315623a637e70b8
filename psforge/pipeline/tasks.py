# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The standard task graph.

    .                 Clean, Build, Test
    Clean             remove the output folder
    LoadManifest      read the source manifest; sets version and build_dir
    UpdateVersion     bump ModuleVersion in the source manifest
    BuildDotnet       dotnet publish each project into <build>/bin   (incremental)
    BuildModule       assemble the .psm1, write the manifest, copy includes (incremental)
    Build             BuildDotnet + BuildModule
    Lint              PSScriptAnalyzer over the sources
    Test              Pester against the built module
    Package           <Module>.<Version>.zip and .nupkg
    Tag               commit the manifest if changed, tag v<Version>
    Push              push HEAD and the tag
    PublishGithub     GitHub release with the zip and nupkg attached
    PublishPSGallery  Publish-Module to the registry
    Publish           PublishGithub + PublishPSGallery

Script folders, includes and the root module are resolved relative to the
directory holding the source manifest; test paths and the output folder
relative to the project root.
"""

import logging
from pathlib import Path
from typing import Optional

from psforge.assembler.core import assemble, enumerate_fragments, write_assembled_module
from psforge.logging.logger import get_logger
from psforge.manifest.parser import read_manifest
from psforge.manifest.updater import render_string_array, set_manifest_value, update_manifest_version
from psforge.manifest.version import Version, compute_next_version
from psforge.tasks.context import BuildContext
from psforge.tasks.registry import TaskRegistry
from psforge.tools.dotnet import project_assembly, project_sources, publish_project
from psforge.tools.exceptions import AlreadyReleased, AlreadyTagged
from psforge.tools.git import GitClient
from psforge.tools.github import ReleaseClient
from psforge.tools.lint import run_lint
from psforge.tools.publisher import create_archive, create_nupkg, publish_module, resolve_api_key
from psforge.tools.pwsh import PowerShell
from psforge.tools.tester import PesterMode, run_tests
from psforge.utils.filesystem import atomic_write_bytes, copy_file, remove_tree
from psforge.utils.paths import expand_globs, validate_path_within_project

_logger: logging.Logger = get_logger(__name__)

DEFAULT_TASK = "."
EXPORTED_FUNCTIONS_FIELD = "FunctionsToExport"
LINT_SUFFIXES = {".ps1", ".psm1", ".psd1"}
LINT_SETTINGS_FILE = "PSScriptAnalyzerSettings.psd1"


def _git(ctx: BuildContext) -> GitClient:
    return GitClient(ctx.runner, ctx.project_root, ctx.config.tools.git)


def _pwsh(ctx: BuildContext) -> PowerShell:
    return PowerShell(ctx.runner, ctx.config.tools.pwsh, ctx.project_root)


def _tag_name(ctx: BuildContext) -> str:
    return f"v{ctx.require_version()}"


def _fragment_dirs(ctx: BuildContext) -> list[Path]:
    return [ctx.source_root / folder for folder in ctx.config.build.script_folders]


def _root_module(ctx: BuildContext) -> Path:
    return ctx.source_root / ctx.require_manifest().entry_point


def _include_files(ctx: BuildContext) -> list[Path]:
    output_dir = ctx.output_dir.resolve()
    return [
        path
        for path in expand_globs(ctx.source_root, ctx.config.build.include)
        if output_dir not in path.resolve().parents
    ]


def _built_manifest(ctx: BuildContext) -> Path:
    return ctx.require_build_dir() / ctx.manifest_source.name


def _built_module(ctx: BuildContext) -> Path:
    return ctx.require_build_dir() / Path(ctx.require_manifest().entry_point).name


# --- Clean / manifest -------------------------------------------------------


def clean(ctx: BuildContext) -> None:
    """Remove the output folder."""
    output_dir = validate_path_within_project(ctx.output_dir, ctx.project_root)
    removed = remove_tree(output_dir)
    _logger.info("Cleaned output folder", extra={"path": str(output_dir), "removed": removed})


def load_manifest(ctx: BuildContext) -> None:
    """Read the source manifest into the context."""
    document = read_manifest(ctx.manifest_source)
    ctx.manifest = document
    ctx.version = document.version
    ctx.build_dir = ctx.output_dir / ctx.module_name / str(document.version)
    _logger.info(
        "Loaded manifest",
        extra={"manifest": str(ctx.manifest_source), "version": str(document.version)},
    )


def update_version(ctx: BuildContext) -> None:
    """Bump ModuleVersion in the source manifest."""
    release = ctx.config.release
    if release.new_version is None and release.release is None:
        _logger.info("No version bump requested", extra={"version": str(ctx.require_version())})
        return

    _git(ctx).fetch(release.remote, release.branch)

    document = ctx.require_manifest()
    explicit = Version.parse(release.new_version) if release.new_version else None
    new_version = compute_next_version(document.version, explicit, release.release)
    if update_manifest_version(document, new_version):
        load_manifest(ctx)


# --- Build ------------------------------------------------------------------


def _dotnet_inputs(ctx: BuildContext) -> list[Path]:
    return [
        source
        for project in ctx.config.build.dotnet_projects
        for source in project_sources(ctx.project_root / project)
    ]


def _dotnet_outputs(ctx: BuildContext) -> list[Path]:
    bin_dir = ctx.require_build_dir() / "bin"
    return [project_assembly(ctx.project_root / p, bin_dir) for p in ctx.config.build.dotnet_projects]


def build_dotnet(ctx: BuildContext) -> None:
    """Publish .NET projects into <build>/bin."""
    bin_dir = ctx.require_build_dir() / "bin"
    for project in ctx.config.build.dotnet_projects:
        publish_project(ctx.runner, ctx.project_root / project, bin_dir, ctx.config.tools.dotnet)


def _module_inputs(ctx: BuildContext) -> list[Path]:
    inputs = [ctx.manifest_source, _root_module(ctx)]
    for directory in _fragment_dirs(ctx):
        inputs.extend(enumerate_fragments(directory))
    inputs.extend(_include_files(ctx))
    return inputs


def _module_outputs(ctx: BuildContext) -> list[Path]:
    return [_built_manifest(ctx), _built_module(ctx)]


def _exported_functions(ctx: BuildContext) -> Optional[list[str]]:
    """
    Fragment names of the export folder, or None to keep the source manifest's
    FunctionsToExport: no export folder configured, the folder isn't one of
    the assembled script folders, or it holds no fragments.
    """
    folder = ctx.config.build.export_folder
    if not folder:
        return None
    assembled = {name.casefold() for name in ctx.config.build.script_folders}
    if folder.casefold() not in assembled:
        return None
    names = [path.stem for path in enumerate_fragments(ctx.source_root / folder)]
    return names or None


def build_module(ctx: BuildContext) -> None:
    """Assemble the module file, write the manifest and copy includes."""
    document = ctx.require_manifest()
    build_dir = ctx.require_build_dir()

    module = assemble(
        _root_module(ctx),
        _fragment_dirs(ctx),
        source_root=ctx.source_root,
        inline_label=ctx.config.build.inline_region,
    )
    write_assembled_module(module, _built_module(ctx))

    manifest_text = document.full_text
    exported = _exported_functions(ctx)
    if exported is not None:
        manifest_text = set_manifest_value(
            document, EXPORTED_FUNCTIONS_FIELD, render_string_array(exported)
        )
    atomic_write_bytes(_built_manifest(ctx), manifest_text.encode("utf-8"))

    includes = _include_files(ctx)
    for source in includes:
        copy_file(source, build_dir / source.relative_to(ctx.source_root))

    _logger.info(
        "Built module",
        extra={"build_dir": str(build_dir), "fragments": module.fragment_count, "includes": len(includes)},
    )


# --- Verification -------------------------------------------------------------


def _lint_paths(ctx: BuildContext) -> list[Path]:
    paths = [_root_module(ctx), *_fragment_dirs(ctx)]
    paths.extend(p for p in _include_files(ctx) if p.suffix.lower() in LINT_SUFFIXES)
    return paths


def lint(ctx: BuildContext) -> None:
    """Run PSScriptAnalyzer; fail on warnings and above."""
    settings = ctx.project_root / LINT_SETTINGS_FILE
    run_lint(_pwsh(ctx), _lint_paths(ctx), settings if settings.is_file() else None)


def invoke_tests(ctx: BuildContext) -> None:
    """Run Pester against the built module."""
    test_paths = [ctx.project_root / p for p in ctx.config.build.test_path]
    existing = [p for p in test_paths if p.exists()]
    if not existing:
        _logger.warning("No tests found", extra={"paths": [str(p) for p in test_paths]})
        return

    mode = PesterMode.ISOLATED if ctx.config.build.dotnet_projects else PesterMode.INLINE
    run_tests(
        _pwsh(ctx),
        module_root=ctx.output_dir,
        manifest=_built_manifest(ctx),
        test_paths=existing,
        result_file=ctx.output_dir / "testResults.xml",
        mode=mode,
    )


# --- Release ------------------------------------------------------------------


def package(ctx: BuildContext) -> None:
    """Create the zip archive and the nupkg."""
    build_dir = ctx.require_build_dir()
    version = str(ctx.require_version())
    ctx.artifacts["zip"] = create_archive(build_dir, ctx.output_dir, ctx.module_name, version)
    ctx.artifacts["nupkg"] = create_nupkg(_pwsh(ctx), build_dir, ctx.output_dir, ctx.module_name, version)


def tag(ctx: BuildContext) -> None:
    """Commit the manifest if it changed, then tag the release."""
    git = _git(ctx)
    tag_name = _tag_name(ctx)

    if git.diff(ctx.manifest_source):
        git.commit([ctx.manifest_source], f"Release {tag_name}")

    if git.tag_exists(tag_name):
        tagged = git.rev_parse(tag_name)
        head = git.rev_parse("HEAD")
        if tagged != head:
            raise AlreadyTagged(tag_name, tagged, head)
        _logger.info("Tag already points at HEAD", extra={"tag": tag_name})
        return

    git.tag(tag_name, f"Release {tag_name}")


def push(ctx: BuildContext) -> None:
    """Push HEAD and the release tag."""
    git = _git(ctx)
    remote = ctx.config.release.remote
    git.push(remote, "HEAD")
    git.push(remote, _tag_name(ctx))


def publish_github(ctx: BuildContext) -> None:
    """Create the GitHub release."""
    tag_name = _tag_name(ctx)
    client = ReleaseClient(ctx.runner, ctx.project_root, ctx.config.tools.gh)

    if client.release_exists(tag_name):
        git = _git(ctx)
        if git.rev_parse(tag_name) != git.rev_parse("HEAD"):
            raise AlreadyReleased(tag_name)
        _logger.info("Release already exists for HEAD", extra={"tag": tag_name})
        return

    assets = [ctx.require_artifact("zip"), ctx.require_artifact("nupkg")]
    client.create_release(tag_name, assets)


def publish_psgallery(ctx: BuildContext) -> None:
    """Publish the built module to the registry."""
    release = ctx.config.release
    pwsh = _pwsh(ctx)
    api_key = resolve_api_key(pwsh, release.psgallery_api_key, release.api_key_env, release.api_key_secret)
    publish_module(pwsh, ctx.require_build_dir(), api_key, release.repository)


def build_registry() -> TaskRegistry:
    registry = TaskRegistry()
    registry.task("Clean")(clean)
    registry.task("LoadManifest")(load_manifest)
    registry.task("UpdateVersion", ["LoadManifest"])(update_version)
    registry.task(
        "BuildDotnet", ["LoadManifest"], inputs=_dotnet_inputs, outputs=_dotnet_outputs
    )(build_dotnet)
    registry.task(
        "BuildModule", ["LoadManifest"], inputs=_module_inputs, outputs=_module_outputs
    )(build_module)
    registry.register("Build", ["LoadManifest", "BuildDotnet", "BuildModule"], description="Build everything")
    registry.task("Lint", ["LoadManifest"])(lint)
    registry.task("Test", ["Build", "Lint"])(invoke_tests)
    registry.task("Package", ["Build"])(package)
    registry.task("Tag", ["LoadManifest"])(tag)
    registry.task("Push", ["Tag"])(push)
    registry.task("PublishGithub", ["Package", "Push"])(publish_github)
    registry.task("PublishPSGallery", ["Package"])(publish_psgallery)
    registry.register("Publish", ["PublishGithub", "PublishPSGallery"], description="Publish everywhere")
    registry.register(DEFAULT_TASK, ["Clean", "Build", "Test"], description="Clean, build and test")
    return registry
