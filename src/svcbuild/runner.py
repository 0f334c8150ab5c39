# runner.py
from __future__ import annotations

import os
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Any, Dict, List, Optional

from .dag import TaskGraph, build_graph, topo_levels
from .errors import TaskContractError
from .model import Blocked, Completed, Failed, Skipped, Task, TaskResult, TaskUtils, is_success
from .ui.console import Console, get_console


# ----------------------------------------------------------------------
# Execution primitives
# ----------------------------------------------------------------------

def _normalize(task: Task, value: Any) -> TaskResult:
    """Turn whatever run() returned into Completed/Skipped, checking the provides contract."""
    if isinstance(value, Skipped):
        result: TaskResult = value
        provided = value.provides
    elif value is None:
        provided = {}
        result = Completed({})
    elif isinstance(value, dict):
        provided = value
        result = Completed(dict(value))
    else:
        raise TaskContractError(
            f"run() returned {type(value).__name__}, expected a mapping or utils.skip(...)",
            task=task.title,
        )

    if set(provided) != set(task.provides):
        raise TaskContractError(
            f"task provided {sorted(provided)} but declared {sorted(task.provides)}",
            task=task.title,
        )
    return result


def _run_task(task: Task, requirements: Dict[str, Any], console: Console) -> TaskResult:
    """
    Returns Completed or Skipped.
    Raises on failures (the scheduler turns them into Failed).
    """
    console.print_task_start(task.title)
    utils = TaskUtils(task.title, console)
    return _normalize(task, task.run(requirements, utils))


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def plan(tasks: List[Task]) -> List[List[str]]:
    """Topological levels of `tasks`; raises GraphError on a broken graph."""
    return topo_levels(build_graph(tasks))


def run_tasks(
    tasks: List[Task],
    *,
    max_workers: int | None = None,
    fail_fast: bool = True,
    console: Optional[Console] = None,
) -> Dict[str, TaskResult]:
    """
    Scheduler + orchestrator:

    - Resolves requires against provides (GraphError before anything runs).
    - Runs every task whose producers all succeeded, in parallel.
    - Hands each task exactly the values it requires; values are write-once.
    - A failed task blocks its dependents; with fail_fast nothing new is
      scheduled after the first failure.

    Returns title -> outcome, in task order.
    """
    console = console or get_console()
    graph: TaskGraph = build_graph(tasks)
    topo_levels(graph)  # reject cycles up front

    indeg = dict(graph.indeg)
    ready: List[str] = [t.title for t in tasks if indeg[t.title] == 0]
    values: Dict[str, Any] = {}
    results: Dict[str, TaskResult] = {}
    failed = False

    if max_workers is None:
        c = os.cpu_count() or 2
        max_workers = max(1, c - 1)

    in_flight: Dict[Future, str] = {}

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        while ready or in_flight:
            # schedule all currently ready
            while ready and not (fail_fast and failed):
                title = ready.pop(0)
                task = graph.by_title[title]
                requirements = {key: values[key] for key in task.requires}
                fut = pool.submit(_run_task, task, requirements, console)
                in_flight[fut] = title

            if not in_flight:
                break

            # wait for one completion, then loop to schedule newly-ready tasks
            fut = next(as_completed(list(in_flight.keys())))
            title = in_flight.pop(fut)

            try:
                result = fut.result()
            except Exception as e:
                result = Failed(e)
            results[title] = result

            if isinstance(result, Failed):
                failed = True
                console.print_task_failed(title, result.error)
                blocked = graph.dependents(title)
                if blocked:
                    console.print_debug(f"{title} blocks: {', '.join(sorted(blocked))}")
                continue

            if isinstance(result, Skipped):
                console.print_task_skipped(title)
            else:
                console.print_task_done(title)

            for key, value in result.provides.items():
                if key not in values:
                    values[key] = value

            # unlock dependents only on success or skip
            for nxt in sorted(graph.adj[title]):
                indeg[nxt] -= 1
                if indeg[nxt] == 0:
                    ready.append(nxt)

    ordered: Dict[str, TaskResult] = {}
    for task in tasks:
        if task.title in results:
            ordered[task.title] = results[task.title]
        else:
            missing = [
                key for key in task.requires
                if not (graph.producers[key] in results and is_success(results[graph.producers[key]]))
            ]
            ordered[task.title] = Blocked(missing)
    return ordered
