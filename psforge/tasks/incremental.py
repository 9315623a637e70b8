# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Timestamp-based staleness check for incremental tasks.

A task is stale when any of its outputs is missing, or when the newest input
is newer than the oldest output. This is a conservative local check, not a
content hash: touching a file without changing it triggers a rebuild, and
that is fine for a single-host build.

If the inputs evaluate to nothing there is nothing to compare against, so the
task runs.
"""

from pathlib import Path
from typing import Iterable, NamedTuple, Optional


class StalenessReport(NamedTuple):
    """Why a task is (or isn't) stale; logged alongside the run/skip decision."""

    stale: bool
    reason: str
    newest_input: Optional[Path] = None
    oldest_output: Optional[Path] = None


def _mtimes(paths: Iterable[Path]) -> list[tuple[float, Path]]:
    found = []
    for path in paths:
        try:
            found.append((path.stat().st_mtime, path))
        except FileNotFoundError:
            continue
    return found


def check_staleness(inputs: Iterable[Path], outputs: Iterable[Path]) -> StalenessReport:
    input_list = list(inputs)
    output_list = list(outputs)

    input_times = _mtimes(input_list)
    if not input_times:
        return StalenessReport(True, "no inputs")

    if not output_list:
        return StalenessReport(True, "no outputs declared")

    output_times = _mtimes(output_list)
    if len(output_times) < len(output_list):
        existing = {path for _, path in output_times}
        missing = next(path for path in output_list if path not in existing)
        return StalenessReport(True, f"missing output {missing}")

    newest_mtime, newest_input = max(input_times, key=lambda item: item[0])
    oldest_mtime, oldest_output = min(output_times, key=lambda item: item[0])
    if newest_mtime > oldest_mtime:
        return StalenessReport(True, "input newer than output", newest_input, oldest_output)
    return StalenessReport(False, "up to date", newest_input, oldest_output)


def is_stale(inputs: Iterable[Path], outputs: Iterable[Path]) -> bool:
    return check_staleness(inputs, outputs).stale
