# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Task registry and plan resolution.

A Task is a name, an ordered list of dependency names, an optional pair of
lazily evaluated input/output file sets, and a body: a sequence of actions,
each a plain callable taking the BuildContext.

Resolution is a depth-first walk from the requested task. A task that has
already been fully visited is skipped, so every task appears in the plan
exactly once, after all of its dependencies. A task met again while it is
still on the active recursion stack means a cycle, reported with the full
path. Task names are matched case-insensitively, as build scripts are
usually invoked by hand (`psforge build test`).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, Iterator, Optional, Sequence

from psforge.tasks.exceptions import CyclicDependency, UnknownTask

if TYPE_CHECKING:
    from psforge.tasks.context import BuildContext

Action = Callable[["BuildContext"], None]
FileSet = Callable[["BuildContext"], Iterable[Path]]


@dataclass(frozen=True)
class Task:
    name: str
    dependencies: tuple[str, ...] = ()
    actions: tuple[Action, ...] = ()
    inputs: Optional[FileSet] = None
    outputs: Optional[FileSet] = None
    description: str = ""

    @property
    def is_incremental(self) -> bool:
        return self.inputs is not None and self.outputs is not None


def _key(name: str) -> str:
    return name.casefold()


class TaskRegistry:
    """Named tasks plus the dependency resolution over them."""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}

    def register(
        self,
        name: str,
        dependencies: Sequence[str] = (),
        body: Sequence[Action] = (),
        inputs: Optional[FileSet] = None,
        outputs: Optional[FileSet] = None,
        description: str = "",
    ) -> Task:
        """
        Add a task, replacing any task already registered under the same name.

        `inputs` and `outputs` must be given together; a task with only one of
        them has nothing to compare and would silently always run.
        """
        if (inputs is None) != (outputs is None):
            raise ValueError(f"Task '{name}' must declare both inputs and outputs, or neither")
        task = Task(
            name=name,
            dependencies=tuple(dependencies),
            actions=tuple(body),
            inputs=inputs,
            outputs=outputs,
            description=description,
        )
        self._tasks[_key(name)] = task
        return task

    def task(
        self,
        name: str,
        dependencies: Sequence[str] = (),
        inputs: Optional[FileSet] = None,
        outputs: Optional[FileSet] = None,
    ) -> Callable[[Action], Action]:
        """Decorator form of `register` for a task whose body is one function."""

        def decorator(action: Action) -> Action:
            description = (action.__doc__ or "").strip().splitlines()
            self.register(
                name,
                dependencies=dependencies,
                body=[action],
                inputs=inputs,
                outputs=outputs,
                description=description[0] if description else "",
            )
            return action

        return decorator

    def get(self, name: str) -> Task:
        try:
            return self._tasks[_key(name)]
        except KeyError:
            raise UnknownTask(name) from None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and _key(name) in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    def resolve(self, *names: str) -> tuple[str, ...]:
        """
        Turn requested task names into an execution plan.

        Several names share one traversal, so a dependency common to two
        requested tasks is still planned once.

        Raises:
            UnknownTask: A requested name or a dependency is not registered.
            CyclicDependency: A dependency chain leads back to a task on it.
        """
        plan: list[str] = []
        done: set[str] = set()
        stack: list[str] = []

        def visit(name: str, required_by: Optional[str]) -> None:
            key = _key(name)
            if key in done:
                return
            if key in stack:
                start = stack.index(key)
                cycle = [self._tasks[k].name for k in stack[start:]]
                raise CyclicDependency(cycle + [self._tasks[key].name])
            task = self._tasks.get(key)
            if task is None:
                raise UnknownTask(name, required_by)

            stack.append(key)
            for dependency in task.dependencies:
                visit(dependency, task.name)
            stack.pop()

            done.add(key)
            plan.append(task.name)

        for name in names:
            visit(name, None)
        return tuple(plan)

    def validate(self) -> None:
        """Check the whole graph for unknown dependencies and cycles."""
        for task in self._tasks.values():
            self.resolve(task.name)
