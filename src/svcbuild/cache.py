# cache.py
from __future__ import annotations

import shutil
from pathlib import Path

# ---------------------------------------------------------------------
# Core idea
# ---------------------------------------------------------------------
# Directory stamping:
#   an output directory carries a small record file holding the exact-source
#   identifier (e.g. "https://github.com/org/repo#<sha>") that produced it.
#
# Call discipline for a task that owns an output directory:
#   store = StampStore()
#   if store.is_stamped(out_dir, exact_source):
#       return utils.skip(provides)          # do not touch out_dir
#   remove_dir(out_dir)                      # never rebuild on top of stale output
#   ... regenerate out_dir ...
#   store.stamp(out_dir, exact_source)       # last action, only after success
#
# A crash between the remove and the stamp leaves an unstamped directory,
# which the next run treats as stale.
# ---------------------------------------------------------------------


STAMP_FILENAME = ".exact-source"


class StampStore:
    """
    File-based stamp store:
      <dir>/
        .exact-source     # exactly the identifier string, nothing else
    """

    def __init__(self, filename: str = STAMP_FILENAME):
        self.filename = filename

    def stamp_path(self, directory: str | Path) -> Path:
        return Path(directory) / self.filename

    def read(self, directory: str | Path) -> str | None:
        path = self.stamp_path(directory)
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def is_stamped(self, directory: str | Path, source_id: str) -> bool:
        """True iff `directory` exists and its stamp equals `source_id` exactly."""
        if not Path(directory).is_dir():
            return False
        return self.read(directory) == source_id

    def stamp(self, directory: str | Path, source_id: str) -> None:
        path = self.stamp_path(directory)
        # write-then-rename so a crash never leaves a half written stamp
        tmp = path.with_name(path.name + ".tmp")
        tmp.write_text(source_id, encoding="utf-8")
        tmp.replace(path)


# ---------------------------------------------------------------------
# Directory helpers
# ---------------------------------------------------------------------

def remove_dir(path: str | Path) -> None:
    """Remove a directory tree; a missing directory is fine."""
    p = Path(path)
    if p.is_dir() and not p.is_symlink():
        shutil.rmtree(p)
    elif p.exists() or p.is_symlink():
        p.unlink()


def ensure_dir(path: str | Path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def ensure_clean_dir(path: str | Path) -> Path:
    remove_dir(path)
    return ensure_dir(path)


def copy_tree(src: str | Path, dst: str | Path, *, exclude: list[str] | None = None) -> None:
    """Recursively copy `src` to `dst` (which must not exist), skipping `exclude` names."""
    ignore = shutil.ignore_patterns(*exclude) if exclude else None
    shutil.copytree(src, dst, symlinks=True, ignore=ignore)
