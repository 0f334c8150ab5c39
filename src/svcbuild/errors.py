# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


# ----------------------------------------------------------------------
# Base error
# ----------------------------------------------------------------------

@dataclass
class BuildError(Exception):
    """
    Structured build error with enough context for:
      - clean CLI output
      - operator triage (which service, which kind of failure)
      - debugging without full tracebacks
    """
    message: str
    kind: str = "build"
    service: Optional[str] = None
    details: Dict[str, object] = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        if self.service:
            lines.append(f"service={self.service}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


# ----------------------------------------------------------------------
# Taxonomy
# ----------------------------------------------------------------------

@dataclass
class ConfigError(BuildError):
    """Bad build specification or configuration. Raised before any tool runs."""
    kind: str = "config"


@dataclass
class MissingArtifactError(BuildError):
    """A stage finished but an artifact it must produce is not there."""
    kind: str = "missing-artifact"


@dataclass
class ProcfileError(BuildError):
    kind: str = "parse"
    line: Optional[str] = None

    def __str__(self) -> str:
        text = super().__str__()
        if self.line is not None:
            text += f"\nline={self.line!r}"
        return text


@dataclass
class ToolFailure(BuildError):
    """A delegated tool (git, docker) exited non-zero."""
    kind: str = "tool"
    tool: str = ""
    command: List[str] = field(default_factory=list)
    exit_code: Optional[int] = None
    logfile: Optional[str] = None

    def __str__(self) -> str:
        lines = [f"{self.kind}: {self.message}"]
        if self.service:
            lines.append(f"service={self.service}")
        if self.command:
            lines.append(f"command={' '.join(self.command)}")
        if self.exit_code is not None:
            lines.append(f"exit_code={self.exit_code}")
        if self.logfile:
            lines.append(f"log={self.logfile}")
        for k, v in self.details.items():
            lines.append(f"{k}={v}")
        return "\n".join(lines)


@dataclass
class PushPolicyError(BuildError):
    """Refusing to publish over a tag that already exists on the registry."""
    kind: str = "policy"
    tag: Optional[str] = None


@dataclass
class GraphError(BuildError):
    kind: str = "graph"


@dataclass
class TaskContractError(BuildError):
    """A task returned values that do not match what it declared to provide."""
    kind: str = "contract"
    task: Optional[str] = None
