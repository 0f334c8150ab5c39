"""Console output formatting utilities for svcbuild."""

from __future__ import annotations

import sys
import threading
from typing import TYPE_CHECKING, Mapping, Optional, Sequence

if TYPE_CHECKING:
    from ..model import TaskResult


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
        """
        self.debug = debug
        # tasks report from worker threads
        self._lock = threading.Lock()

    def _out(self, text: str, *, err: bool = False) -> None:
        with self._lock:
            print(text, file=sys.stderr if err else sys.stdout)

    def print_header(self, title: str) -> None:
        """Print a section header."""
        self._out(f"\n{title}\n" + "-" * len(title))

    def print_build_started(self, services: Sequence[str], base_dir: str, task_count: int) -> None:
        """Print build start information."""
        self._out(
            "\nBUILD STARTED\n"
            f"Services: {', '.join(services)}\n"
            f"Base directory: {base_dir}\n"
            f"Tasks: {task_count}\n"
        )

    def print_task_start(self, title: str) -> None:
        self._out(f"TASK STARTED: {title}")

    def print_step(self, title: str) -> None:
        self._out(f"  STEP: {title}")

    def print_task_done(self, title: str) -> None:
        self._out(f"TASK DONE: {title}")

    def print_task_skipped(self, title: str) -> None:
        self._out(f"TASK SKIPPED: {title} (up to date)")

    def print_task_failed(self, title: str, error: BaseException) -> None:
        """Print failure message; full details only in debug mode."""
        lines = [f"TASK FAILED: {title}"]
        reason = str(error)
        if self.debug:
            lines.append(f"Error details: {reason}")
        else:
            # first line plus any log pointer is enough to find out more
            head = reason.split("\n")
            lines.append(f"Error: {head[0] if head and head[0] else 'Unknown error'}")
            lines.extend(f"  {line}" for line in head[1:] if line.startswith("log="))
        self._out("\n".join(lines), err=True)
        if self.debug:
            import traceback
            with self._lock:
                traceback.print_exception(type(error), error, error.__traceback__)

    def print_plan(self, levels: Sequence[Sequence[str]]) -> None:
        """Print the execution plan, one stage per level."""
        for idx, level in enumerate(levels):
            self._out(f"=== Stage {idx + 1} ===")
            for title in level:
                self._out(f"  {title}")

    def print_results(self, results: Mapping[str, "TaskResult"]) -> None:
        """Print final results summary."""
        from ..model import status_of

        lines = ["", "=" * 40, "RESULTS", "=" * 40]
        for title, result in results.items():
            lines.append(f"  {title}: {status_of(result).upper()}")
        self._out("\n".join(lines))

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        lines = [f"\nERROR: {title}", message]
        if details:
            lines.extend(f"  {detail}" for detail in details)
        if suggestion:
            lines.append(f"\n{suggestion}")
        self._out("\n".join(lines), err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            with self._lock:
                traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            self._out(f"Error: {exc}", err=True)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self._out(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self._out(f"[DEBUG] {message}", err=True)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
