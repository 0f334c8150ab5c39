# dag.py
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from .errors import GraphError
from .model import Task


@dataclass
class TaskGraph:
    """
    Explicit dependency graph of a task collection.

    by_title:  title -> task (node identity)
    producers: provided key -> title of the one task providing it
    edges:     (producer title, consumer title), producer runs first
    adj:       producer -> consumers
    indeg:     number of distinct producers per task
    """
    by_title: Dict[str, Task]
    producers: Dict[str, str]
    edges: List[Tuple[str, str]] = field(default_factory=list)
    adj: Dict[str, Set[str]] = field(default_factory=dict)
    indeg: Dict[str, int] = field(default_factory=dict)

    def dependents(self, title: str) -> Set[str]:
        """All direct and transitive consumers of `title`."""
        seen: Set[str] = set()
        q = deque([title])
        while q:
            for child in self.adj[q.popleft()]:
                if child not in seen:
                    seen.add(child)
                    q.append(child)
        return seen


def build_graph(tasks: List[Task]) -> TaskGraph:
    """
    Build a DAG from Task objects by matching requires against provides.

    Fails before anything runs when:
      - two tasks share a title
      - a key is provided twice
      - a required key has no provider
    """
    titles = [t.title for t in tasks]
    if len(set(titles)) != len(titles):
        dupes = sorted({n for n in titles if titles.count(n) > 1})
        raise GraphError(f"Duplicate task titles found: {dupes}")

    by_title = {t.title: t for t in tasks}

    producers: Dict[str, str] = {}
    for task in tasks:
        for key in task.provides:
            if key in producers:
                raise GraphError(
                    f"Key '{key}' is provided by both '{producers[key]}' and '{task.title}'",
                    details={"key": key},
                )
            producers[key] = task.title

    adj: Dict[str, Set[str]] = {n: set() for n in by_title}
    indeg: Dict[str, int] = {n: 0 for n in by_title}
    edges: List[Tuple[str, str]] = []

    for task in tasks:
        for key in task.requires:
            if key not in producers:
                raise GraphError(
                    f"Task '{task.title}' requires '{key}', which no task provides",
                    details={"key": key},
                )
            producer = producers[key]
            # Edge producer -> task (producer must run before task)
            if task.title not in adj[producer]:
                adj[producer].add(task.title)
                indeg[task.title] += 1
                edges.append((producer, task.title))

    return TaskGraph(by_title=by_title, producers=producers, edges=edges, adj=adj, indeg=indeg)


def topo_levels(graph: TaskGraph) -> List[List[str]]:
    """
    Convert the graph into topological "levels" (stages).
    Tasks within a level are independent and can run in parallel.
    """
    indeg = dict(graph.indeg)  # copy (we mutate it)
    q = deque(sorted([n for n, d in indeg.items() if d == 0]))

    levels: List[List[str]] = []
    processed = 0

    while q:
        level_size = len(q)
        level: List[str] = []

        for _ in range(level_size):
            node = q.popleft()
            level.append(node)
            processed += 1

            for child in sorted(graph.adj.get(node, set())):
                indeg[child] -= 1
                if indeg[child] == 0:
                    q.append(child)

        levels.append(level)

    if processed != len(indeg):
        remaining = sorted([n for n, d in indeg.items() if d > 0])
        raise GraphError(f"Task graph has a cycle. Stuck tasks: {remaining}")

    return levels
