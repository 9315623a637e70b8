# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

from pathlib import Path

from psforge.exceptions import PsforgeError


class AssemblyError(PsforgeError):
    """The root module or a fragment cannot be assembled."""

    def __init__(self, message: str, path: Path) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")
