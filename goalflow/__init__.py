"""goalflow: decompose natural-language goals into tasks and run them on a fixed agent pool."""

from .agent import Orchestrator, Planner, TaskExecutor
from .models import (
    Agent,
    AgentStatus,
    EventType,
    Goal,
    GoalStatus,
    OrchestratorEvent,
    PlannerResult,
    SystemMetrics,
    Task,
    TaskStatus,
    TaskType,
    ToolName,
)

__all__ = [
    "Orchestrator",
    "Planner",
    "TaskExecutor",
    "Agent",
    "AgentStatus",
    "EventType",
    "Goal",
    "GoalStatus",
    "OrchestratorEvent",
    "PlannerResult",
    "SystemMetrics",
    "Task",
    "TaskStatus",
    "TaskType",
    "ToolName",
]
