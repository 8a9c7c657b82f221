"""Agent components: planner, executor, orchestrator."""

from .planner import Planner
from .executor import TaskExecutor
from .orchestrator import Orchestrator

__all__ = ["Planner", "TaskExecutor", "Orchestrator"]
