# git.py
# Small, focused wrapper around the Git CLI.
# This module centralizes all Git interactions so the rest of the codebase
# never needs to call subprocess("git ...") directly.

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import Optional, Tuple

from ..errors import ToolFailure

_SHA_RE = re.compile(r"^[0-9a-f]{40}$")


def _git(args: list[str], cwd: Optional[str] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    This is the single low-level entry point for all Git operations in this file.
    A non-zero exit is turned into a ToolFailure carrying git's stderr, so
    callers see network / authentication / bad revision errors verbatim.

    Args:
        args: List of git arguments (e.g. ["ls-remote", url, "main"])
        cwd: Optional working directory in which to run the git command.

    Returns:
        Stdout from the git command with surrounding whitespace removed.
    """
    cmd = ["git", *args]
    try:
        out = subprocess.run(
            cmd,
            cwd=cwd,
            check=True,
            capture_output=True,
            text=True,   # return output as str instead of bytes
        ).stdout
    except FileNotFoundError as e:
        raise ToolFailure("git not found", tool="git", command=cmd,
                          details={"hint": "Install Git or fix PATH."}) from e
    except subprocess.CalledProcessError as e:
        raise ToolFailure(
            f"git {args[0]} failed",
            tool="git",
            command=cmd,
            exit_code=e.returncode,
            details={"stderr": (e.stderr or "").strip()[-4000:]},
        ) from e

    # Strip trailing newlines so callers can do clean string comparisons
    return out.strip()


def split_source(source: str) -> Tuple[str, str]:
    """
    Split "url#ref" into (url, ref). A source without '#' means HEAD.

    Only the first '#' separates; everything after it is the ref.
    """
    url, sep, ref = source.partition("#")
    return url, (ref if sep and ref else "HEAD")


def is_full_sha(ref: str) -> bool:
    return bool(_SHA_RE.match(ref))


def resolve_revision(url: str, ref: str = "HEAD") -> str:
    """
    Resolve `ref` on the remote `url` to a full commit SHA without cloning.

    A ref that already is a full SHA is returned unchanged.
    """
    if is_full_sha(ref):
        return ref

    # `git ls-remote <url> <ref>` prints "<sha>\t<refname>" per match
    out = _git(["ls-remote", url, ref])
    lines = [line.split("\t") for line in out.splitlines() if line.strip()]
    if not lines:
        raise ToolFailure(
            f"revision {ref!r} not found in {url}",
            tool="git",
            command=["git", "ls-remote", url, ref],
        )

    # Prefer an exact match, then peeled tags ("^{}") so tags resolve to commits
    for wanted in (ref, f"refs/heads/{ref}", f"refs/tags/{ref}^{{}}", f"refs/tags/{ref}"):
        for sha, name in lines:
            if name == wanted:
                return sha
    return lines[0][0]


def exact_source(source: str) -> str:
    """
    Turn "url#ref" into the exact-source identifier "url#<sha>".

    This is the cache key used for stamping checkouts and everything built
    from them.
    """
    url, ref = split_source(source)
    return f"{url}#{resolve_revision(url, ref)}"


def clone_repository(source: str, dest: str | Path) -> str:
    """
    Materialize a working copy of `source` ("url#ref") at `dest`.

    `dest` must not exist. Returns the exact-source identifier of the checkout.
    """
    url, ref = split_source(source)
    dest = Path(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)

    _git(["clone", "--quiet", url, str(dest)])
    if ref != "HEAD":
        _git(["checkout", "--quiet", "--detach", _checkout_target(dest, ref)], cwd=str(dest))
    return f"{url}#{head_sha(str(dest))}"


def _checkout_target(repo: Path, ref: str) -> str:
    # a branch name only exists as origin/<ref> in a fresh clone
    if is_full_sha(ref):
        return ref
    try:
        return _git(["rev-parse", "--verify", "--quiet", f"origin/{ref}^{{commit}}"], cwd=str(repo))
    except ToolFailure:
        return ref


def head_sha(cwd: Optional[str] = None) -> str:
    """
    Return the full SHA hash of the current HEAD commit.

    Returns:
        Full commit SHA as a string.
    """
    # `git rev-parse HEAD` resolves HEAD to its commit hash
    return _git(["rev-parse", "HEAD"], cwd=cwd)
