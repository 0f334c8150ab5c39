# tools/docker.py
from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import IO, Dict, List, Optional, Sequence

from ..errors import ToolFailure

DOCKER_HINT = "Install Docker and ensure the daemon is running."

# `docker manifest inspect` stderr fragments meaning "this tag is not there"
_MISSING_MANIFEST_MARKERS = ("no such manifest", "manifest unknown", "not found")


# ---------------------------------------------------------------------
# Docker CLI wrapper
# ---------------------------------------------------------------------

class DockerClient:
    """
    Container image lifecycle primitives, delegated to the docker CLI.

    Every operation that does real work writes the tool's combined output to
    `logfile` when one is given, so a failed build can be inspected later.
    """

    def __init__(self, executable: str = "docker"):
        self.executable = executable

    def _run(
        self,
        args: Sequence[str],
        *,
        logfile: str | Path | None = None,
        stdin: Optional[IO[bytes]] = None,
        what: str,
    ) -> str:
        cmd = [self.executable, *args]
        try:
            if logfile is not None:
                Path(logfile).parent.mkdir(parents=True, exist_ok=True)
                with open(logfile, "wb") as log:
                    proc = subprocess.run(cmd, stdin=stdin, stdout=log, stderr=subprocess.STDOUT)
                output = ""
            else:
                proc = subprocess.run(cmd, stdin=stdin, capture_output=True)
                output = proc.stdout.decode("utf-8", errors="replace")
        except FileNotFoundError as e:
            raise ToolFailure(
                f"{self.executable} not found",
                tool="docker",
                command=cmd,
                details={"hint": DOCKER_HINT},
            ) from e

        if proc.returncode != 0:
            details: Dict[str, object] = {}
            if logfile is None and proc.stderr:
                details["stderr"] = proc.stderr.decode("utf-8", errors="replace").strip()[-4000:]
            raise ToolFailure(
                f"{what} failed",
                tool="docker",
                command=cmd,
                exit_code=proc.returncode,
                logfile=str(logfile) if logfile is not None else None,
                details=details,
            )
        return output

    # ---- images ----

    def pull(self, image: str, *, logfile: str | Path | None = None) -> None:
        self._run(["pull", image], logfile=logfile, what=f"docker pull {image}")

    def images(self) -> List[Dict[str, str]]:
        """List local images as dicts with at least Repository and Tag."""
        out = self._run(["images", "--format", "{{json .}}"], what="docker images")
        return [json.loads(line) for line in out.splitlines() if line.strip()]

    def local_tags(self) -> List[str]:
        return [
            f"{img.get('Repository')}:{img.get('Tag')}"
            for img in self.images()
            if img.get("Repository") not in (None, "<none>") and img.get("Tag") not in (None, "<none>")
        ]

    def registry_check(self, tag: str) -> bool:
        """True if `tag` exists on its registry."""
        cmd = [self.executable, "manifest", "inspect", tag]
        try:
            proc = subprocess.run(cmd, capture_output=True)
        except FileNotFoundError as e:
            raise ToolFailure(
                f"{self.executable} not found",
                tool="docker",
                command=cmd,
                details={"hint": DOCKER_HINT},
            ) from e
        if proc.returncode == 0:
            return True
        stderr = proc.stderr.decode("utf-8", errors="replace")
        if any(marker in stderr.lower() for marker in _MISSING_MANIFEST_MARKERS):
            return False
        raise ToolFailure(
            f"registry check for {tag} failed",
            tool="docker",
            command=cmd,
            exit_code=proc.returncode,
            details={"stderr": stderr.strip()[-4000:]},
        )

    def build(self, tarball: str | Path, tag: str, *, logfile: str | Path | None = None) -> None:
        """Build `tag` from a tar archive holding the build context."""
        with open(tarball, "rb") as context:
            self._run(["build", "--tag", tag, "-"], stdin=context, logfile=logfile, what=f"docker build {tag}")

    def push(self, tag: str, *, logfile: str | Path | None = None) -> None:
        self._run(["push", tag], logfile=logfile, what=f"docker push {tag}")

    # ---- containers ----

    def run(
        self,
        image: str,
        command: Sequence[str],
        *,
        binds: Sequence[str] = (),
        env: Sequence[str] = (),
        logfile: str | Path | None = None,
    ) -> None:
        """Run `command` in an ephemeral container; non-zero exit raises ToolFailure."""
        args = ["run", "--rm"]
        for bind in binds:
            args.extend(["--volume", bind])
        for var in env:
            args.extend(["--env", var])
        args.append(image)
        args.extend(command)
        self._run(args, logfile=logfile, what=f"docker run {image} {' '.join(command)}")
