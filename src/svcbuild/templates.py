"""
templates.py

Responsibility: render the two generated text files of a service build.

- entrypoint: a bash script dispatching on a Procfile process name
- Dockerfile: the image-build descriptor based on the stack image

Rendering uses Jinja2 with StrictUndefined so a missing variable is an error,
not an empty string.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Sequence

from jinja2 import Environment, StrictUndefined

from .procfile import Process

ENTRYPOINT_TEMPLATE = """\
#! /bin/bash
# generated from Procfile; do not edit

set -e

if [ -z "$1" ]; then
  echo "usage: $0 <process> [args..]" >&2
  echo "processes:"{% for proc in procs %} {{ proc.quoted_name }}{% endfor %} >&2
  exit 1
fi

export HOME=/app
cd /app
for f in /app/.profile.d/*.sh; do
  [ -r "$f" ] && . "$f"
done

process="$1"
shift

case "$process" in
{%- for proc in procs %}
  {{ proc.quoted_name }}) exec bash -c {{ proc.quoted_command }} "$process" "$@" ;;
{%- endfor %}
  *) exec "$process" "$@" ;;
esac
"""

DOCKERFILE_TEMPLATE = """\
FROM {{ stack_image }}

COPY app /app
ENV HOME=/app PORT=5000
WORKDIR /app

ENTRYPOINT ["/app/entrypoint"]
"""

_env = Environment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def _render(source: str, context: dict[str, Any]) -> str:
    return _env.from_string(source).render(**context)


def render_entrypoint(procs: Sequence[Process]) -> str:
    return _render(ENTRYPOINT_TEMPLATE, {"procs": list(procs)})


def render_dockerfile(stack_image: str) -> str:
    return _render(DOCKERFILE_TEMPLATE, {"stack_image": stack_image})


def write_entrypoint(path: str | Path, procs: Sequence[Process]) -> Path:
    """Write the entrypoint script and make it executable."""
    p = Path(path)
    p.write_text(render_entrypoint(procs), encoding="utf-8")
    os.chmod(p, 0o755)
    return p


def write_dockerfile(path: str | Path, stack_image: str) -> Path:
    p = Path(path)
    p.write_text(render_dockerfile(stack_image), encoding="utf-8")
    return p
