# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Environment validation for psforge.

Checks that the machine meets the minimum requirements before any task runs,
and answers the one platform question the build cares about: is this Linux.
That decides where per-user PowerShell modules live, which is also the
directory CI caches between runs.
"""

import platform
import sys
from pathlib import Path
from typing import NamedTuple

MINIMUM_PYTHON = (3, 11)


class SystemInfo(NamedTuple):
    python_version: str
    platform: str
    architecture: str


def get_python_version() -> tuple[int, int, int]:
    return sys.version_info[:3]


def check_minimum_python() -> None:
    """
    Raises:
        RuntimeError: On an interpreter older than MINIMUM_PYTHON.
    """
    running = get_python_version()
    if running[:2] < MINIMUM_PYTHON:
        required = ".".join(map(str, MINIMUM_PYTHON))
        raise RuntimeError(
            f"psforge requires Python >= {required}, but you're running {running[0]}.{running[1]}."
        )


def is_linux() -> bool:
    return platform.system() == "Linux"


def user_module_path() -> Path:
    """
    Where `Install-Module -Scope CurrentUser` puts modules on this host.

    On Linux (and macOS) PowerShell follows the XDG layout; on Windows it
    uses the Documents folder.
    """
    home = Path.home()
    if platform.system() in ("Linux", "Darwin"):
        return home / ".local" / "share" / "powershell" / "Modules"
    return home / "Documents" / "PowerShell" / "Modules"


def get_system_info() -> SystemInfo:
    """What the bootstrap log line reports about the host."""
    return SystemInfo(
        python_version=platform.python_version(),
        platform=platform.system(),
        architecture=platform.machine(),
    )
