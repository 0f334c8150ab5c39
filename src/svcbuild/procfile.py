# procfile.py
from __future__ import annotations

import re
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .errors import MissingArtifactError, ProcfileError

# "name: command"; names are limited to what a Procfile process may be called
_LINE_RE = re.compile(r"^([A-Za-z0-9_-]+)\s*:\s*(\S.*)$")


@dataclass(frozen=True)
class Process:
    """One Procfile record."""
    name: str
    command: str

    @property
    def quoted_name(self) -> str:
        return shlex.quote(self.name)

    @property
    def quoted_command(self) -> str:
        """The command as a single shell token, safe to embed in a script."""
        return shlex.quote(self.command)


def parse_procfile(text: str) -> List[Process]:
    """
    Parse Procfile text into ordered (name, command) records.

    Blank lines and lines starting with '#' are ignored. Any other line that
    is not `name: command`, or whose name is not made of letters, digits,
    `_` and `-`, fails the whole parse.
    """
    procs: List[Process] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        m = _LINE_RE.match(line)
        if not m:
            raise ProcfileError(f"unexpected line in Procfile: {raw}", line=raw)
        procs.append(Process(name=m.group(1), command=m.group(2).strip()))
    return procs


def read_procfile(app_dir: str | Path, *, service: str | None = None) -> List[Process]:
    path = Path(app_dir) / "Procfile"
    if not path.is_file():
        raise MissingArtifactError(
            f"Service {service} has no Procfile" if service else "no Procfile found",
            service=service,
            details={"path": str(path)},
        )
    try:
        return parse_procfile(path.read_text(encoding="utf-8"))
    except ProcfileError as e:
        e.service = service
        raise
