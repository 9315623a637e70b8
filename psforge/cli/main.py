# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for psforge.

One command, positional task names. With no task the default task `.` runs
(Clean, Build, Test). Task names may be given space- or comma-separated and
are matched case-insensitively.

The global options (--config, --log-level, --dry-run) come from a parent
parser so they read the same as in every other psforge tool.

Usage:
    psforge
    psforge Build Test
    psforge Build,Test --output-folder out
    psforge UpdateVersion Publish --release minor
    psforge --bootstrap --ci
"""

import argparse
import sys

from psforge.cli.commands import handle_bootstrap, handle_run
from psforge.manifest.version import BUMP_KINDS
from psforge.pipeline.tasks import DEFAULT_TASK


def _build_global_parser() -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    --log-level defaults to None so that a level set in the config file is
    only overridden when the flag is actually given.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level.",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Print the execution plan without running any task.",
    )
    return parent


def _add_build_options(parser: argparse.ArgumentParser) -> None:
    """Options that override the `build`, `release` and `tools` config sections."""
    parser.add_argument(
        "tasks",
        nargs="*",
        default=[DEFAULT_TASK],
        metavar="TASK",
        help=f"Tasks to run (default: '{DEFAULT_TASK}' = Clean, Build, Test).",
    )
    parser.add_argument(
        "--bootstrap",
        action="store_true",
        default=False,
        help="Install the build-tool PowerShell modules, then exit.",
    )

    version = parser.add_argument_group("versioning")
    version.add_argument("--new-version", dest="new_version", default=None, metavar="X.Y.Z")
    version.add_argument("--release", choices=list(BUMP_KINDS), default=None)
    version.add_argument(
        "--release-labels",
        dest="release_labels",
        default=None,
        metavar="JSON",
        help="Pull-request labels as JSON; a single release-<kind> label overrides --release.",
    )
    version.add_argument(
        "--require-release-label",
        dest="require_release_label",
        action="store_true",
        default=False,
        help="Fail unless the labels carry exactly one release-<kind> label.",
    )

    build = parser.add_argument_group("build")
    build.add_argument("--module-name", dest="module_name", default=None)
    build.add_argument("--manifest-path", dest="manifest_path", default=None)
    build.add_argument("--include", nargs="+", default=None, metavar="GLOB")
    build.add_argument("--script-folders", dest="script_folders", nargs="+", default=None, metavar="DIR")
    build.add_argument("--dotnet-projects", dest="dotnet_projects", nargs="+", default=None, metavar="DIR")
    build.add_argument("--test-path", dest="test_path", nargs="+", default=None, metavar="PATH")
    build.add_argument("--output-folder", dest="output_folder", default=None)

    publish = parser.add_argument_group("publishing")
    publish.add_argument(
        "--ci",
        action="store_true",
        default=None,
        help="Non-interactive mode; --bootstrap installs without asking.",
    )
    publish.add_argument("--psgallery-api-key", dest="psgallery_api_key", default=None)


def split_task_names(values: list[str]) -> list[str]:
    """Accept both `Build Test` and `Build,Test`."""
    names = [name.strip() for value in values for name in value.split(",")]
    names = [name for name in names if name]
    return names or [DEFAULT_TASK]


def build_parser() -> argparse.ArgumentParser:
    parent = _build_global_parser()
    parser = argparse.ArgumentParser(
        prog="psforge",
        description="psforge: build, test and release PowerShell script modules.",
        parents=[parent],
    )
    _add_build_options(parser)
    return parser


def main() -> None:
    """
    Main CLI entrypoint. This is what pyproject.toml's [project.scripts] points to.

      1. Parse the command line
      2. Either install build dependencies (--bootstrap) or run the tasks
      3. Exit with the handler's return code
    """
    args = build_parser().parse_args()
    args.tasks = split_task_names(args.tasks)

    handler = handle_bootstrap if args.bootstrap else handle_run
    sys.exit(handler(args))


if __name__ == "__main__":
    main()
