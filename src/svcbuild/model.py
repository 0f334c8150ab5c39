# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .ui.console import Console, get_console


# ----------------------------------------------------------------------
# Outcomes
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class Completed:
    """The task ran and produced `provides`."""
    provides: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Skipped:
    """Cached results are valid; no new work was performed."""
    provides: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Failed:
    error: BaseException


@dataclass(frozen=True)
class Blocked:
    """Never ran because a producer of one of its requirements did not succeed."""
    failed_requirements: List[str] = field(default_factory=list)


TaskResult = Union[Completed, Skipped, Failed, Blocked]


def is_success(result: TaskResult) -> bool:
    return isinstance(result, (Completed, Skipped))


def status_of(result: TaskResult) -> str:
    if isinstance(result, Completed):
        return "succeeded"
    if isinstance(result, Skipped):
        return "skipped"
    if isinstance(result, Failed):
        return "failed"
    return "blocked"


# ----------------------------------------------------------------------
# Side channel handed to Task.run
# ----------------------------------------------------------------------

class TaskUtils:
    """
    Progress and skip signaling for a running task.

    `step()` never fails; `skip()` builds the value a task returns when it
    did no work but still supplies its provides.
    """

    def __init__(self, title: str, console: Optional[Console] = None):
        self.title = title
        self.console = console or get_console()
        self.steps: List[str] = []

    def step(self, title: str) -> None:
        self.steps.append(title)
        self.console.print_step(title)

    def skip(self, provides: Optional[Mapping[str, Any]] = None) -> Skipped:
        return Skipped(provides=dict(provides or {}))


# ----------------------------------------------------------------------
# Task
# ----------------------------------------------------------------------

RunFn = Callable[[Dict[str, Any], TaskUtils], Any]


@dataclass
class Task:
    """
    A unit of work in the build graph.

    title:    unique, human readable; the node identity in the graph
    requires: keys some other task must provide before this one runs
    provides: keys this task contributes to the shared namespace
    run:      run(requirements, utils) -> mapping | utils.skip(mapping) | None
    """
    title: str
    run: RunFn
    requires: List[str] = field(default_factory=list)
    provides: List[str] = field(default_factory=list)


def ensure_task(tasks: List[Task], task: Task) -> Task:
    """
    Add `task` to `tasks` only if no task with the same title is there yet.

    Returns whichever task ends up in the collection (the first one wins).
    """
    for existing in tasks:
        if existing.title == task.title:
            return existing
    tasks.append(task)
    return task
