# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Execution engine: runs a resolved plan against one BuildContext.

The whole plan is resolved before the first task body runs, so an unknown
task or a dependency cycle never leaves half a build behind. After that,
execution is strictly sequential and fail-fast:

  - each task runs at most once per run
  - incremental tasks are checked for staleness first and skipped when
    their outputs are current
  - the first exception from any action aborts the run and propagates to
    the caller unchanged; nothing already written is rolled back and
    nothing is retried
"""

import logging
import time
from dataclasses import dataclass, field

from psforge.logging.logger import get_logger
from psforge.tasks.context import BuildContext
from psforge.tasks.incremental import check_staleness
from psforge.tasks.registry import Task, TaskRegistry

_logger: logging.Logger = get_logger(__name__)


@dataclass
class RunResult:
    """What happened during one run, in plan order."""

    plan: tuple[str, ...]
    executed: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    durations: dict[str, float] = field(default_factory=dict)


class Executor:
    def __init__(self, registry: TaskRegistry, context: BuildContext) -> None:
        self.registry = registry
        self.context = context

    def run(self, *names: str, dry_run: bool = False) -> RunResult:
        """
        Resolve `names` into a plan and execute it.

        With dry_run the plan is resolved and logged, but no task body and no
        staleness check runs.

        Raises:
            UnknownTask, CyclicDependency: before anything executes.
            Any exception raised by a task action, unchanged.
        """
        plan = self.registry.resolve(*names)
        result = RunResult(plan=plan)

        _logger.info("Resolved plan", extra={"requested": list(names), "plan": list(plan)})
        if dry_run:
            return result

        run_started = time.monotonic()
        for name in plan:
            task = self.registry.get(name)
            if self._is_current(task):
                result.skipped.append(task.name)
                continue

            started = time.monotonic()
            _logger.info("Task started", extra={"task": task.name})
            try:
                for action in task.actions:
                    action(self.context)
            except Exception:
                _logger.error(
                    "Task failed",
                    extra={"task": task.name, "elapsed_s": round(time.monotonic() - started, 3)},
                )
                raise

            elapsed = time.monotonic() - started
            result.executed.append(task.name)
            result.durations[task.name] = elapsed
            _logger.info("Task completed", extra={"task": task.name, "elapsed_s": round(elapsed, 3)})

        _logger.info(
            "Build succeeded",
            extra={
                "executed": len(result.executed),
                "skipped": len(result.skipped),
                "elapsed_s": round(time.monotonic() - run_started, 3),
            },
        )
        return result

    def _is_current(self, task: Task) -> bool:
        if task.inputs is None or task.outputs is None:
            return False
        report = check_staleness(task.inputs(self.context), task.outputs(self.context))
        if report.stale:
            _logger.debug("Task is stale", extra={"task": task.name, "reason": report.reason})
            return False
        _logger.info("Task skipped, outputs are up to date", extra={"task": task.name})
        return True
