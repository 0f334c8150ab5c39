# probe.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class ImageTool(Protocol):
    def local_tags(self) -> list[str]: ...
    def registry_check(self, tag: str) -> bool: ...


LOCAL = "local"
REMOTE = "remote"
MISSING = "missing"


@dataclass(frozen=True)
class ImageLocation:
    """
    Where an image tag can be had from, in priority order:
      local   -> reuse as is
      remote  -> pull, then reuse
      missing -> build
    `on_registry` is what the registry said, whichever location wins.
    """
    where: str
    on_registry: bool


class ArtifactProbe:
    """Answers whether an image tag already exists locally and/or on the registry."""

    def __init__(self, docker: ImageTool):
        self.docker = docker

    def exists_locally(self, tag: str) -> bool:
        return tag in self.docker.local_tags()

    def exists_on_registry(self, tag: str) -> bool:
        return bool(self.docker.registry_check(tag))

    def locate(self, tag: str) -> ImageLocation:
        local = self.exists_locally(tag)
        on_registry = self.exists_on_registry(tag)
        if local:
            return ImageLocation(LOCAL, on_registry)
        if on_registry:
            return ImageLocation(REMOTE, on_registry)
        return ImageLocation(MISSING, on_registry)
