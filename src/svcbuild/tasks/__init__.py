# tasks/__init__.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..cache import StampStore
from ..git_facts import git as git_cli
from ..probe import ArtifactProbe
from ..tools.docker import DockerClient


@dataclass
class BuildTools:
    """The collaborators task bodies delegate to. Tests swap in fakes."""
    docker: Any = field(default_factory=DockerClient)
    git: Any = field(default_factory=lambda: git_cli)
    stamps: StampStore = field(default_factory=StampStore)

    @property
    def probe(self) -> ArtifactProbe:
        return ArtifactProbe(self.docker)


from .repo import clone_task, generate_repo_tasks  # noqa: E402
from .service import generate_service_tasks  # noqa: E402

__all__ = ["BuildTools", "clone_task", "generate_repo_tasks", "generate_service_tasks"]
