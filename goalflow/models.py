"""Pydantic models for goalflow."""

from __future__ import annotations
from enum import Enum
from typing import Any
from uuid import uuid4
from pydantic import BaseModel, Field
from datetime import datetime


def generate_id() -> str:
    """Generate a unique identifier for goals and tasks."""
    return uuid4().hex


# =============================================================================
# Enumerations
# =============================================================================

class TaskType(str, Enum):
    """Kinds of work the planner can emit."""
    GITHUB_ANALYSIS = "github_analysis"
    CRYPTO_PRICE = "crypto_price"
    DATA_PROCESSING = "data_processing"
    API_CALL = "api_call"
    COMPUTATION = "computation"


class ToolName(str, Enum):
    """Tool categories the executor can route to."""
    GITHUB = "github_tools"
    TRADING = "trading_tools"
    DATA = "data_tools"
    API = "api_tools"


class GoalStatus(str, Enum):
    PLANNING = "planning"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatus(str, Enum):
    PENDING = "pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"


class AgentStatus(str, Enum):
    IDLE = "idle"
    BUSY = "busy"


class EventType(str, Enum):
    """Lifecycle events published by the orchestrator."""
    GOAL_CREATED = "goal-created"
    GOAL_PLANNED = "goal-planned"
    GOAL_FAILED = "goal-failed"
    GOAL_COMPLETED = "goal-completed"
    TASK_STARTED = "task-started"
    TASK_COMPLETED = "task-completed"
    TASK_FAILED = "task-failed"


TERMINAL_TASK_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED})


# =============================================================================
# Core Models
# =============================================================================

class Task(BaseModel):
    """A single unit of executable work derived from a goal."""
    id: str = Field(default_factory=generate_id, description="Unique task identifier")
    goal_id: str = Field(default="", description="ID of the owning goal (backfilled by the orchestrator)")
    type: TaskType = Field(..., description="Kind of work")
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    tool: str = Field(..., description="Tool category name")
    function: str = Field(..., description="Function within the tool category")
    params: dict[str, Any] = Field(default_factory=dict, description="Function arguments")
    result: Any = Field(default=None, description="Result data once completed")
    error: str | None = Field(default=None, description="Error message if failed")
    execution_time: float | None = Field(default=None, description="completed_at - started_at in milliseconds")
    created_at: datetime = Field(default_factory=datetime.now)
    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TASK_STATUSES


class Goal(BaseModel):
    """A user-submitted objective and the tasks it was decomposed into."""
    id: str = Field(default_factory=generate_id, description="Unique goal identifier")
    description: str = Field(..., description="Original goal text")
    status: GoalStatus = Field(default=GoalStatus.PLANNING)
    created_at: datetime = Field(default_factory=datetime.now)
    completed_at: datetime | None = Field(default=None)
    tasks: list[Task] = Field(default_factory=list, description="Tasks in planner emission order")
    results: dict[str, Any] = Field(default_factory=dict, description="Task id -> result")

    def get_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    @property
    def progress(self) -> int:
        """Percentage of tasks that reached a terminal state."""
        if not self.tasks:
            return 0
        done = sum(1 for task in self.tasks if task.is_terminal)
        return round(done / len(self.tasks) * 100)


class Agent(BaseModel):
    """A named execution slot. Bounds how many tasks run at once."""
    id: str = Field(..., description="Agent identifier (e.g., 'github-agent')")
    name: str = Field(..., description="Display name")
    status: AgentStatus = Field(default=AgentStatus.IDLE)
    current_task: str | None = Field(default=None, description="ID of the assigned task")
    tasks_completed: int = Field(default=0)
    last_activity: datetime = Field(default_factory=datetime.now)


class PlannerResult(BaseModel):
    """Output of the planner for a single goal description."""
    success: bool = Field(..., description="Whether planning succeeded")
    tasks: list[Task] = Field(default_factory=list)
    estimated_duration: int = Field(default=0, description="Estimated total duration in milliseconds")
    required_tools: list[str] = Field(default_factory=list)


class SystemMetrics(BaseModel):
    """Snapshot of orchestrator state, recomputed on every request."""
    total_goals: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    failed_tasks: int = 0
    active_agents: int = 0
    average_execution_time: float = Field(default=0, description="Mean over completed tasks, milliseconds")
    system_uptime: int = Field(default=0, description="Seconds since the orchestrator started")


class OrchestratorEvent(BaseModel):
    """Payload delivered to subscribers on every lifecycle transition."""
    type: EventType
    goal: Goal | None = None
    task: Task | None = None
    agent: Agent | None = None
    estimated_duration: int | None = None
    error: str | None = None
    timestamp: datetime = Field(default_factory=datetime.now)
