# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Command handlers for the psforge CLI.

There are two: running tasks (the normal case) and --bootstrap. Both share the
same setup (labels, config, logging) and the same failure reporting: every
psforge error is logged once with its structured details and turned into one
of the exit codes in psforge.cli.exit_codes.

No print() calls. Everything goes through the structured logger.
"""

import argparse
import logging
from pathlib import Path
from typing import Any, Optional

from psforge.assembler.exceptions import AssemblyError
from psforge.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, USER_ERROR, VALIDATION_ERROR
from psforge.config.exceptions import ConfigError
from psforge.config.loader import build_config
from psforge.config.schema import PsforgeConfig
from psforge.exceptions import PsforgeError
from psforge.logging.logger import get_logger
from psforge.manifest.exceptions import ManifestError
from psforge.pipeline.labels import ReleaseLabelError, choose_release_kind, parse_labels_json
from psforge.pipeline.tasks import build_registry
from psforge.runtime.bootstrap import bootstrap
from psforge.tasks.context import BuildContext
from psforge.tasks.exceptions import CyclicDependency, UnknownTask
from psforge.tasks.executor import Executor
from psforge.tools.dependencies import install_dependencies
from psforge.tools.exceptions import ConfirmationDeclined, ExternalProcessFailure, LintFailure
from psforge.tools.process import ProcessRunner
from psforge.tools.pwsh import PowerShell
from psforge.utils.paths import resolve_project_root

# First match wins, so subclasses come before their bases.
_EXIT_CODES: tuple[tuple[type[BaseException], int], ...] = (
    (UnknownTask, USER_ERROR),
    (ConfirmationDeclined, USER_ERROR),
    (ReleaseLabelError, USER_ERROR),
    (CyclicDependency, CONFIG_ERROR),
    (ConfigError, CONFIG_ERROR),
    (ManifestError, VALIDATION_ERROR),
    (AssemblyError, VALIDATION_ERROR),
    (LintFailure, VALIDATION_ERROR),
)


def exit_code_for(err: BaseException) -> int:
    for error_type, code in _EXIT_CODES:
        if isinstance(err, error_type):
            return code
    return RUNTIME_ERROR


def _error_details(err: PsforgeError) -> dict[str, Any]:
    details: dict[str, Any] = {"error": str(err), "error_type": type(err).__name__}
    if isinstance(err, ExternalProcessFailure):
        details["tool"] = err.tool
        details["argv"] = list(err.argv)
        details["returncode"] = err.returncode
        details["output"] = err.output
    elif isinstance(err, LintFailure):
        details["findings"] = len(err.findings)
    elif isinstance(err, CyclicDependency):
        details["cycle"] = list(err.cycle)
    return details


def report_failure(logger: logging.Logger, err: PsforgeError, command_name: str) -> int:
    """Log a psforge error with its structured details; return the exit code."""
    logger.error("Command failed", extra={"command": command_name, **_error_details(err)})
    return exit_code_for(err)


def _config_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Shape command-line values like the config file. None means 'not given'."""
    return {
        "global": {"log_level": args.log_level},
        "build": {
            "module_name": args.module_name,
            "manifest_path": args.manifest_path,
            "include": args.include,
            "script_folders": args.script_folders,
            "dotnet_projects": args.dotnet_projects,
            "test_path": args.test_path,
            "output_folder": args.output_folder,
        },
        "release": {
            "new_version": args.new_version,
            "release": args.release,
            "psgallery_api_key": args.psgallery_api_key,
        },
        "tools": {"ci": args.ci},
    }


def _apply_release_labels(args: argparse.Namespace, overrides: dict[str, Any]) -> None:
    """A release label wins over --release; --require-release-label makes one mandatory."""
    if args.release_labels is None and not args.require_release_label:
        return
    labels = parse_labels_json(args.release_labels) if args.release_labels is not None else []
    overrides["release"]["release"] = choose_release_kind(labels, args.release, require=args.require_release_label)


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, Optional[PsforgeConfig], Path, logging.Logger]:
    """
    The shared setup both commands need: labels, config, bootstrap.

    Returns (exit_code, config, project_root, logger). If exit_code is not
    SUCCESS, the caller should return it immediately.
    """
    logger = get_logger(f"psforge.cli.{command_name}", log_level=args.log_level or "INFO")

    config_path = Path(args.config) if args.config is not None else None
    project_root = resolve_project_root(config_path.resolve().parent if config_path else None)

    overrides = _config_overrides(args)
    try:
        _apply_release_labels(args, overrides)
        config = build_config(config_path, overrides, project_root)
    except (ConfigError, ReleaseLabelError) as err:
        return report_failure(logger, err, command_name), None, project_root, logger

    bootstrap(config.global_config, project_root)
    return SUCCESS, config, project_root, logger


def handle_run(args: argparse.Namespace) -> int:
    """Resolve the requested tasks and run them against a fresh build context."""
    exit_code, config, project_root, logger = _load_and_bootstrap(args, "run")
    if exit_code != SUCCESS or config is None:
        return exit_code

    logger.info(
        "Command started",
        extra={"command": "run", "tasks": args.tasks, "dry_run": args.dry_run, "project_root": str(project_root)},
    )

    context = BuildContext(config=config, project_root=project_root)
    try:
        result = Executor(build_registry(), context).run(*args.tasks, dry_run=args.dry_run)
    except PsforgeError as err:
        return report_failure(logger, err, "run")
    except Exception as err:
        logger.error(
            "Runtime error",
            extra={"command": "run", "error": str(err)},
            exc_info=True,
        )
        return RUNTIME_ERROR

    logger.info(
        "Command completed",
        extra={"command": "run", "plan": list(result.plan), "executed": result.executed, "skipped": result.skipped},
    )
    return SUCCESS


def handle_bootstrap(args: argparse.Namespace) -> int:
    """Install the PowerShell modules the build needs for the current user."""
    exit_code, config, project_root, logger = _load_and_bootstrap(args, "bootstrap")
    if exit_code != SUCCESS or config is None:
        return exit_code

    tools = config.tools
    if args.dry_run:
        logger.info(
            "Dry run, would check build dependencies",
            extra={"command": "bootstrap", "dependencies": dict(tools.dependencies)},
        )
        return SUCCESS

    pwsh = PowerShell(ProcessRunner(), tools.pwsh, project_root)
    try:
        installed = install_dependencies(pwsh, tools.dependencies, ci=tools.ci)
    except PsforgeError as err:
        return report_failure(logger, err, "bootstrap")

    logger.info(
        "Command completed",
        extra={"command": "bootstrap", "installed": [requirement.name for requirement in installed]},
    )
    return SUCCESS
