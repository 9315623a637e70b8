# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Errors raised while resolving a task graph."""

from typing import Sequence

from psforge.exceptions import PsforgeError


class TaskGraphError(PsforgeError):
    """Base for task graph problems detected before any task body runs."""


class UnknownTask(TaskGraphError):
    """A requested task, or a dependency of one, is not registered."""

    def __init__(self, name: str, required_by: str | None = None) -> None:
        self.name = name
        self.required_by = required_by
        if required_by is None:
            message = f"Unknown task '{name}'"
        else:
            message = f"Unknown task '{name}' (dependency of '{required_by}')"
        super().__init__(message)


class CyclicDependency(TaskGraphError):
    """The dependency graph loops back on itself."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = tuple(cycle)
        super().__init__("Cyclic task dependency: " + " -> ".join(self.cycle))


class MissingState(PsforgeError):
    """A task read a context field that no earlier task in the plan has set."""

    def __init__(self, field: str, producer: str) -> None:
        self.field = field
        self.producer = producer
        super().__init__(f"Build context has no '{field}' yet; run '{producer}' first")
