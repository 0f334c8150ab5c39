from .model import Task, TaskUtils, Completed, Skipped, Failed, Blocked, ensure_task
from .cache import StampStore
from .probe import ArtifactProbe
from .procfile import Process, parse_procfile
from .dag import build_graph, topo_levels
from .runner import run_tasks, plan
from .tasks import BuildTools, generate_repo_tasks, generate_service_tasks

__all__ = [
    "Task", "TaskUtils", "Completed", "Skipped", "Failed", "Blocked", "ensure_task",
    "StampStore", "ArtifactProbe", "Process", "parse_procfile",
    "build_graph", "topo_levels", "run_tasks", "plan",
    "BuildTools", "generate_repo_tasks", "generate_service_tasks",
]
