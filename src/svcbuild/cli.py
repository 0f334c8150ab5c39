# cli.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click

from svcbuild.buildspec import BuildSpec, UserConfig, load_build_spec, load_user_config
from svcbuild.errors import BuildError, ConfigError
from svcbuild.model import Task, is_success
from svcbuild.runner import plan as plan_tasks, run_tasks
from svcbuild.tasks import BuildTools, generate_repo_tasks, generate_service_tasks
from svcbuild.ui.console import Console, get_console, set_console


def generate_tasks(
    services: Tuple[str, ...],
    *,
    spec: BuildSpec,
    config: UserConfig,
    base_dir: Path,
    push: bool,
    tools: Optional[BuildTools] = None,
) -> List[Task]:
    """Generate checkout + pipeline tasks for every requested service."""
    tools = tools or BuildTools()
    tasks: List[Task] = []
    for name in services:
        generate_repo_tasks(tasks, base_dir=base_dir, spec=spec, name=name, tools=tools)
        generate_service_tasks(
            tasks,
            base_dir=base_dir,
            spec=spec,
            config=config,
            name=name,
            push=push,
            tools=tools,
        )
    return tasks


def _load(
    spec_path: str,
    config_path: Optional[str],
    repository_prefix: Optional[str],
    services: Tuple[str, ...],
) -> Tuple[BuildSpec, UserConfig, Tuple[str, ...]]:
    spec = load_build_spec(spec_path)
    config = load_user_config(config_path)
    if repository_prefix is not None:
        config.docker.repository_prefix = repository_prefix

    if not services:
        services = tuple(spec.service_names())
        if not services:
            raise ConfigError(f"no services defined in {spec_path}")
    return spec, config, services


def _report_error(ctx: click.Context, e: BaseException) -> None:
    console = get_console()
    if isinstance(e, BuildError):
        console.print_error(e.kind, e.message, details=[line for line in str(e).split("\n")[1:]])
    else:
        console.print_exception(e)
    if ctx.obj.get("debug", False):
        import traceback
        traceback.print_exc()


def _common_options(fn):
    fn = click.option(
        "--spec", "spec_path", required=True, type=click.Path(dir_okay=False),
        envvar="SVCBUILD_SPEC", help="Build specification (YAML)",
    )(fn)
    fn = click.option(
        "--config", "config_path", default=None, type=click.Path(dir_okay=False),
        envvar="SVCBUILD_CONFIG", help="User configuration (YAML)",
    )(fn)
    fn = click.option(
        "--base-dir", default=".svcbuild", show_default=True, type=click.Path(file_okay=False),
        envvar="SVCBUILD_BASE_DIR", help="Directory holding checkouts, work dirs and docs",
    )(fn)
    fn = click.option(
        "--repository-prefix", default=None,
        help="Image repository prefix (overrides docker.repositoryPrefix)",
    )(fn)
    fn = click.option(
        "--push/--no-push", default=False, show_default=True,
        help="Publish built images to the registry",
    )(fn)
    return fn


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """svcbuild: build service images from source with a heroku buildpack."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.argument("services", nargs=-1)
@_common_options
@click.option("--workers", default=None, type=int, help="Number of parallel workers")
@click.option("--fail-fast/--no-fail-fast", default=True, help="Stop scheduling new tasks after first failure")
@click.pass_context
def build(ctx, services, spec_path, config_path, base_dir, repository_prefix, push, workers, fail_fast):
    """Build (and optionally push) SERVICES; all services in the spec by default."""
    console = get_console()

    try:
        spec, config, services = _load(spec_path, config_path, repository_prefix, services)
        base = Path(base_dir).resolve()
        base.mkdir(parents=True, exist_ok=True)
        tasks = generate_tasks(services, spec=spec, config=config, base_dir=base, push=push)

        console.print_build_started(services, str(base), len(tasks))
        results = run_tasks(tasks, max_workers=workers, fail_fast=fail_fast, console=console)
        console.print_results(results)

        if not all(is_success(r) for r in results.values()):
            sys.exit(1)

    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except (BuildError, OSError) as e:
        _report_error(ctx, e)
        sys.exit(1)


@cli.command()
@click.argument("services", nargs=-1)
@_common_options
@click.pass_context
def plan(ctx, services, spec_path, config_path, base_dir, repository_prefix, push):
    """Print the task graph for SERVICES as stages, without running anything."""
    console = get_console()

    try:
        spec, config, services = _load(spec_path, config_path, repository_prefix, services)
        tasks = generate_tasks(
            services, spec=spec, config=config, base_dir=Path(base_dir).resolve(), push=push,
        )
        console.print_plan(plan_tasks(tasks))
    except (BuildError, OSError) as e:
        _report_error(ctx, e)
        sys.exit(1)


if __name__ == "__main__":
    cli()
