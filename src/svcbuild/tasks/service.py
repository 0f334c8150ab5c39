# tasks/service.py
from __future__ import annotations

import tarfile
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from ..buildspec import (
    SUPPORTED_BUILDTYPES,
    BuildSpec,
    UserConfig,
    build_image,
    buildpack_name,
    check_buildpack_url,
    image_tag,
    stack_image,
)
from ..cache import STAMP_FILENAME, copy_tree, ensure_dir, remove_dir
from ..errors import ConfigError, PushPolicyError
from ..model import Task, TaskUtils, ensure_task
from ..probe import LOCAL, REMOTE
from ..procfile import read_procfile
from ..templates import write_dockerfile, write_entrypoint
from .repo import clone_task

if TYPE_CHECKING:
    from . import BuildTools

# never copied into the app directory or the image build context
SOURCE_EXCLUDES = [".git", STAMP_FILENAME]


def _pull_task(image: str, tools: "BuildTools") -> Task:
    key = f"docker-image-{image}"

    def run(requirements, utils: TaskUtils):
        utils.step(f"Pull {image}")
        tools.docker.pull(image)
        return {key: image}

    return Task(title=f"Pull Docker Image {image}", run=run, requires=[], provides=[key])


def _make_build_context(work_dir: Path, tarball: Path) -> Path:
    """Pack app/ (minus .git and the stamp) and Dockerfile into a tar archive."""

    def _filter(info: tarfile.TarInfo) -> Optional[tarfile.TarInfo]:
        parts = Path(info.name).parts
        if len(parts) > 1 and parts[0] == "app" and parts[1] in SOURCE_EXCLUDES:
            return None
        return info

    with tarfile.open(tarball, "w") as tar:
        tar.add(work_dir / "app", arcname="app", filter=_filter)
        tar.add(work_dir / "Dockerfile", arcname="Dockerfile")
    return tarball


def generate_service_tasks(
    tasks: List[Task],
    *,
    base_dir: str | Path,
    spec: BuildSpec,
    config: UserConfig,
    name: str,
    push: bool = False,
    tools: Optional["BuildTools"] = None,
) -> List[Task]:
    """
    Append the build pipeline of service `name` to `tasks`.

    Shared prerequisites (image pulls, buildpack clone) are deduplicated by
    title so several services converge on one node. The per-service stages
    are always appended: their titles are unique per service name.

    Expects `repo-<name>-dir` and `repo-<name>-exact-source` to be provided by
    another task (see generate_repo_tasks).
    """
    from . import BuildTools

    tools = tools or BuildTools()
    base_dir = Path(base_dir).resolve()

    repository = spec.repository(name)
    service = repository.service
    if service is None:
        raise ConfigError(f"repository {name} has no service configuration", service=name)
    if service.buildtype not in SUPPORTED_BUILDTYPES:
        raise ConfigError(
            f"unsupported buildtype {service.buildtype!r}",
            service=name,
            details={"supported": ", ".join(SUPPORTED_BUILDTYPES)},
        )
    check_buildpack_url(service.buildpack, service=name)

    work_dir = base_dir / f"service-{name}"

    stack = stack_image(service.stack)
    builder = build_image(service.stack)
    bp_url = service.buildpack
    bp_name = buildpack_name(bp_url)
    prefix = config.docker.repository_prefix

    dir_key = f"repo-{name}-dir"
    source_key = f"repo-{name}-exact-source"
    app_key = f"service-{name}-built-app-dir"
    image_key = f"service-{name}-docker-image"
    on_registry_key = f"service-{name}-image-on-registry"
    docs_key = f"docs-{name}-dir"
    bp_key = f"buildpack-{bp_name}"

    # ---- shared prerequisites ----

    ensure_task(tasks, _pull_task(stack, tools))
    ensure_task(tasks, _pull_task(builder, tools))
    ensure_task(tasks, clone_task(
        f"Clone buildpack {bp_name}",
        bp_url,
        base_dir / f"buildpack-{bp_name}",
        dir_key=bp_key,
        tools=tools,
    ))

    # ---- compile ----

    def compile_run(requirements, utils: TaskUtils):
        repo_dir = Path(requirements[dir_key])
        exact = requirements[source_key]
        bp_dir = requirements[bp_key]
        app_dir = work_dir / "app"
        provides = {app_key: str(app_dir)}

        # already built from this exact revision
        if tools.stamps.is_stamped(app_dir, exact):
            return utils.skip(provides)
        remove_dir(app_dir)
        ensure_dir(work_dir)

        utils.step("Copy Source Repository")
        copy_tree(repo_dir, app_dir, exclude=SOURCE_EXCLUDES)

        utils.step("Buildpack Detect")
        tools.docker.run(
            builder,
            ["/buildpack/bin/detect", "/app"],
            binds=[f"{bp_dir}:/buildpack", f"{app_dir}:/app"],
            logfile=work_dir / "detect.log",
        )

        utils.step("Buildpack Compile")
        env_dir = work_dir / "env"
        cache_dir = work_dir / "cache"
        remove_dir(env_dir)
        ensure_dir(env_dir)
        ensure_dir(cache_dir)
        tools.docker.run(
            builder,
            ["/buildpack/bin/compile", "/app", "/cache", "/env"],
            binds=[
                f"{bp_dir}:/buildpack",
                f"{app_dir}:/app",
                f"{env_dir}:/env",
                f"{cache_dir}:/cache",
            ],
            logfile=work_dir / "compile.log",
        )

        utils.step("Create Entrypoint Script")
        procs = read_procfile(app_dir, service=name)
        write_entrypoint(app_dir / "entrypoint", procs)

        tools.stamps.stamp(app_dir, exact)
        return provides

    tasks.append(Task(
        title=f"Service {name} - Compile",
        run=compile_run,
        requires=[dir_key, source_key, f"docker-image-{builder}", bp_key],
        provides=[app_key],
    ))

    # ---- build image ----

    def build_image_run(requirements, utils: TaskUtils):
        tag = image_tag(prefix, name, requirements[source_key])

        utils.step("Check for Existing Images")
        location = tools.probe.locate(tag)
        provides = {image_key: tag, on_registry_key: location.on_registry}

        if location.where == LOCAL:
            return utils.skip(provides)
        if location.where == REMOTE:
            utils.step(f"Pull {tag}")
            tools.docker.pull(tag)
            return utils.skip(provides)

        utils.step("Create Docker-Build Tarball")
        ensure_dir(work_dir)
        write_dockerfile(work_dir / "Dockerfile", stack)
        tarball = _make_build_context(work_dir, work_dir / "docker-build.tar")

        utils.step(f"Build {tag}")
        tools.docker.build(tarball, tag, logfile=work_dir / "docker-build.log")
        return provides

    tasks.append(Task(
        title=f"Service {name} - Build Image",
        run=build_image_run,
        requires=[source_key, app_key, f"docker-image-{stack}"],
        provides=[image_key, on_registry_key],
    ))

    # ---- docs ----

    def docs_run(requirements, utils: TaskUtils):
        app_dir = requirements[app_key]
        exact = requirements[source_key]
        # docs directories must live at <base>/docs/<name>; <base> is mounted as /basedir
        docs_dir = base_dir / "docs" / name
        provides = {docs_key: str(docs_dir)}

        if tools.stamps.is_stamped(docs_dir, exact):
            return utils.skip(provides)
        remove_dir(docs_dir)
        ensure_dir(docs_dir.parent)

        utils.step("Generate Docs")
        tools.docker.run(
            stack,
            ["/app/entrypoint", "write-docs"],
            binds=[f"{app_dir}:/app", f"{base_dir}:/basedir"],
            env=[f"DOCS_OUTPUT_DIR=/basedir/docs/{name}"],
            logfile=work_dir / "generate-docs.log",
        )

        ensure_dir(docs_dir)
        tools.stamps.stamp(docs_dir, exact)
        return provides

    tasks.append(Task(
        title=f"Service {name} - Generate Docs",
        run=docs_run,
        requires=[source_key, app_key, image_key, f"docker-image-{stack}"],
        provides=[docs_key],
    ))

    # ---- push ----

    def push_run(requirements, utils: TaskUtils):
        tag = requirements[image_key]

        if not push:
            return utils.skip({})

        if requirements[on_registry_key]:
            raise PushPolicyError(
                f"Image {tag} already exists on the registry; not pushing",
                service=name,
                tag=tag,
            )

        utils.step(f"Push {tag}")
        tools.docker.push(tag, logfile=work_dir / "docker-push.log")
        return {}

    tasks.append(Task(
        title=f"Service {name} - Push Image",
        run=push_run,
        requires=[image_key, on_registry_key],
        provides=[],
    ))

    return tasks
