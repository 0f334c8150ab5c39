# buildspec.py
from __future__ import annotations

import re
from pathlib import Path
from typing import Any, List, Optional
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError

SUPPORTED_BUILDTYPES = ("heroku-buildpack",)
HEROKU_BUILDPACK_PREFIX = "https://github.com/heroku/"


# -------------------- Schemas --------------------

class ServiceConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    buildtype: str
    stack: str
    buildpack: str


class Repository(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    source: str
    service: Optional[ServiceConfig] = None


class BuildSection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    repositories: List[Repository] = Field(default_factory=list)


class BuildSpec(BaseModel):
    model_config = ConfigDict(extra="allow")

    build: BuildSection = Field(default_factory=BuildSection)

    def repository(self, name: str) -> Repository:
        for repo in self.build.repositories:
            if repo.name == name:
                return repo
        known = sorted(r.name for r in self.build.repositories)
        raise ConfigError(f"no repository named {name!r}", service=name, details={"known": known})

    def service_names(self) -> List[str]:
        return [r.name for r in self.build.repositories if r.service is not None]


class DockerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    repository_prefix: str = Field(default="", alias="repositoryPrefix")


class UserConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    docker: DockerSettings = Field(default_factory=DockerSettings)


# -------------------- Loading --------------------

def _load_yaml(path: str | Path) -> Any:
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {p}", details={"error": str(e)}) from e


def _validate(model: type[BaseModel], data: Any, origin: str) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid {origin}", details={"errors": e.errors(include_url=False)}) from e


def load_build_spec(path: str | Path) -> BuildSpec:
    return _validate(BuildSpec, _load_yaml(path), f"build specification {path}")


def load_user_config(path: str | Path | None) -> UserConfig:
    if path is None:
        return UserConfig()
    return _validate(UserConfig, _load_yaml(path), f"configuration {path}")


# -------------------- Derivations --------------------

def stack_image(stack: str) -> str:
    """heroku-18 -> heroku/heroku:18"""
    return "heroku/" + stack.replace("-", ":", 1)


def build_image(stack: str) -> str:
    return stack_image(stack) + "-build"


def buildpack_name(url: str) -> str:
    """
    A filesystem-safe name for a buildpack URL.

    Official heroku buildpacks use the repository name, e.g.
    https://github.com/heroku/heroku-buildpack-nodejs -> heroku-buildpack-nodejs
    """
    if url.startswith(HEROKU_BUILDPACK_PREFIX):
        parts = url.split("/")
        if len(parts) > 4 and parts[4]:
            return parts[4].split("#")[0]
    return re.sub(r"[^A-Za-z0-9._-]", "_", url)


def check_buildpack_url(url: str, *, service: str | None = None) -> None:
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ConfigError(f"malformed buildpack URL: {url!r}", service=service)


def revision_of(exact_source: str) -> str:
    """The revision part of an exact-source identifier "url#rev"."""
    _url, sep, rev = exact_source.partition("#")
    if not sep or not rev:
        raise ConfigError(f"exact source has no revision: {exact_source!r}")
    return rev


def image_tag(prefix: str, name: str, exact_source: str) -> str:
    return f"{prefix}{name}:{revision_of(exact_source)}"
