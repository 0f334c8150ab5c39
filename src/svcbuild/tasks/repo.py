# tasks/repo.py
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional

from ..buildspec import BuildSpec
from ..cache import remove_dir
from ..model import Task, TaskUtils, ensure_task

if TYPE_CHECKING:
    from . import BuildTools


def clone_task(
    title: str,
    source: str,
    repo_dir: Path,
    *,
    dir_key: str,
    source_key: Optional[str] = None,
    tools: "BuildTools",
) -> Task:
    """
    A task that checks out `source` ("url#ref") into `repo_dir`.

    The checkout is stamped with its exact source, so a second run against
    the same revision does nothing.
    """
    provides_keys = [dir_key] + ([source_key] if source_key else [])

    def run(requirements: Dict[str, object], utils: TaskUtils):
        utils.step("Resolve Revision")
        exact = tools.git.exact_source(source)

        provides: Dict[str, object] = {dir_key: str(repo_dir)}
        if source_key:
            provides[source_key] = exact

        if tools.stamps.is_stamped(repo_dir, exact):
            return utils.skip(provides)
        remove_dir(repo_dir)

        utils.step(f"Clone {exact}")
        tools.git.clone_repository(exact, repo_dir)

        tools.stamps.stamp(repo_dir, exact)
        return provides

    return Task(title=title, run=run, requires=[], provides=provides_keys)


def generate_repo_tasks(
    tasks: List[Task],
    *,
    base_dir: str | Path,
    spec: BuildSpec,
    name: str,
    tools: Optional["BuildTools"] = None,
) -> List[Task]:
    """Register the checkout of repository `name` (provides repo-<name>-dir / -exact-source)."""
    from . import BuildTools

    tools = tools or BuildTools()
    repository = spec.repository(name)

    ensure_task(tasks, clone_task(
        f"Clone {name}",
        repository.source,
        Path(base_dir) / f"repo-{name}",
        dir_key=f"repo-{name}-dir",
        source_key=f"repo-{name}-exact-source",
        tools=tools,
    ))
    return tasks
