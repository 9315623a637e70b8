# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for psforge.

The one-time setup that happens before any task runs:
  1. Validate the environment (Python version)
  2. Apply the configured log level and log file to every psforge logger
  3. Log what we're running on

This is not `psforge --bootstrap`, which installs the PowerShell modules the
build needs; see psforge.tools.dependencies.
"""

from pathlib import Path

from psforge.config.schema import GlobalConfig
from psforge.logging.logger import configure_logging, get_logger
from psforge.runtime.environment import check_minimum_python, get_system_info, is_linux


def bootstrap(config: GlobalConfig, project_root: Path) -> None:
    """
    Run the bootstrap sequence.

    Args:
        config: The validated global configuration.
        project_root: Base for a relative log file path.
    """
    check_minimum_python()

    log_file = None
    if config.log_file is not None:
        log_file = project_root / config.log_file

    logger = get_logger("psforge.runtime", log_level=config.log_level, log_file=log_file)
    configure_logging(config.log_level, log_file)

    system_info = get_system_info()
    logger.debug(
        "psforge bootstrap complete",
        extra={
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "linux": is_linux(),
            "project_root": str(project_root),
        },
    )
