"""Orchestrator: owns goals, the agent pool and the pending-task queue."""

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

from ..config import config
from ..models import (
    Agent,
    AgentStatus,
    EventType,
    Goal,
    GoalStatus,
    OrchestratorEvent,
    SystemMetrics,
    Task,
    TaskStatus,
)
from .executor import TaskExecutor
from .planner import Planner

logger = logging.getLogger(__name__)

Listener = Callable[[OrchestratorEvent], Any]


@dataclass
class _Settlement:
    """Outcome of one task execution, posted to the scheduling loop's inbox."""
    task: Task
    agent: Agent
    execution: asyncio.Task
    finished_at: datetime = field(default_factory=datetime.now)


# Posted to the inbox to make the loop re-check the queue
_WAKE = object()


class Orchestrator:
    """
    Schedules planned tasks onto a fixed pool of agents.

    A single coordinating coroutine (the scheduling loop) pairs idle agents
    with queued tasks in FIFO order and launches each execution as its own
    asyncio task. Executions never touch shared state: when one finishes,
    its outcome is posted to the loop's inbox and the loop applies it. New
    submissions post a wake-up to the same inbox, so the loop sleeps until
    there is something to do instead of polling.

    All state changes run on the event loop thread without an ``await``
    between reading and writing, so goals, agents and the queue are never
    updated concurrently.
    """

    def __init__(
        self,
        planner: Planner | None = None,
        executor: TaskExecutor | None = None,
        agents: list[tuple[str, str]] | None = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the orchestrator.

        Args:
            planner: Goal planner. Defaults to the keyword planner.
            executor: Task executor. Defaults to one wired to the real backends.
            agents: (id, name) pairs for the agent pool. Defaults to config.
            clock: Monotonic clock in seconds, used for uptime.
        """
        self.planner = planner or Planner()
        self.executor = executor or TaskExecutor()

        specs = agents if agents is not None else config.agent_specs
        if not specs:
            raise ValueError("Agent pool cannot be empty")

        self._agents: dict[str, Agent] = {}
        for agent_id, name in specs:
            if agent_id in self._agents:
                raise ValueError(f"Duplicate agent id: {agent_id}")
            self._agents[agent_id] = Agent(id=agent_id, name=name)

        self._goals: dict[str, Goal] = {}
        self._queue: deque[Task] = deque()
        self._listeners: list[Listener] = []

        self._running = False
        self._loop_task: asyncio.Task | None = None
        self._inbox: asyncio.Queue | None = None
        self._in_flight: dict[str, asyncio.Task] = {}

        self._clock = clock
        self._started = clock()

    # =========================================================================
    # Goal submission
    # =========================================================================

    async def submit_goal(self, description: str) -> str:
        """
        Plan a goal and queue its tasks.

        Returns the goal id as soon as the tasks are queued; execution
        happens in the background.
        """
        goal = Goal(description=description)
        self._goals[goal.id] = goal
        logger.info(f"Goal {goal.id} created: {description[:80]!r}")
        self._publish(OrchestratorEvent(type=EventType.GOAL_CREATED, goal=goal))

        plan = self.planner.plan(description)

        if not plan.success:
            goal.status = GoalStatus.FAILED
            goal.completed_at = datetime.now()
            logger.warning(f"Goal {goal.id} failed during planning")
            self._publish(OrchestratorEvent(type=EventType.GOAL_FAILED, goal=goal))
            return goal.id

        for task in plan.tasks:
            task.goal_id = goal.id
        goal.tasks = list(plan.tasks)
        goal.status = GoalStatus.EXECUTING
        self._queue.extend(goal.tasks)

        logger.info(
            f"Goal {goal.id} planned: {len(goal.tasks)} task(s), "
            f"~{plan.estimated_duration}ms using {plan.required_tools}"
        )
        self._publish(OrchestratorEvent(
            type=EventType.GOAL_PLANNED,
            goal=goal,
            estimated_duration=plan.estimated_duration,
        ))

        if goal.tasks:
            self._ensure_running()
        else:
            # Nothing to run, so the goal is already complete
            self._check_goal_completion(goal.id)

        return goal.id

    # =========================================================================
    # Scheduling loop
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def _ensure_running(self) -> None:
        self._running = True
        if self.is_running:
            self._inbox.put_nowait(_WAKE)
            return

        self._inbox = asyncio.Queue()
        self._loop_task = asyncio.get_running_loop().create_task(self._run(), name="goalflow-scheduler")

    async def _run(self) -> None:
        logger.info("Scheduling loop started")
        try:
            while True:
                if self._running:
                    self._assign_pending()

                if not self._in_flight and (not self._running or not self._queue):
                    break

                message = await self._inbox.get()
                if isinstance(message, _Settlement):
                    self._settle(message)
        finally:
            self._running = False
            logger.info("Scheduling loop stopped")

    def _assign_pending(self) -> None:
        """Pair idle agents with queued tasks, oldest task first."""
        idle = deque(agent for agent in self._agents.values() if agent.status == AgentStatus.IDLE)

        while self._running and self._queue and idle:
            task = self._queue.popleft()
            agent = idle.popleft()
            now = datetime.now()

            agent.status = AgentStatus.BUSY
            agent.current_task = task.id
            agent.last_activity = now

            task.status = TaskStatus.EXECUTING
            task.started_at = now
            self._update_task_in_goal(task)

            logger.info(f"Task {task.id} ({task.type.value}) assigned to {agent.name}")
            self._publish(OrchestratorEvent(type=EventType.TASK_STARTED, task=task, agent=agent))

            self._dispatch(task, agent)

    def _dispatch(self, task: Task, agent: Agent) -> None:
        inbox = self._inbox
        execution = asyncio.get_running_loop().create_task(
            self.executor.execute(task),
            name=f"goalflow-task-{task.id}",
        )
        self._in_flight[task.id] = execution

        def deliver(done: asyncio.Task) -> None:
            inbox.put_nowait(_Settlement(task=task, agent=agent, execution=done))

        execution.add_done_callback(deliver)

    def _settle(self, settlement: _Settlement) -> None:
        """Fold a finished execution back into task, agent and goal state."""
        task, agent, execution = settlement.task, settlement.agent, settlement.execution
        self._in_flight.pop(task.id, None)

        error: str | None = None
        result: Any = None
        if execution.cancelled():
            error = "Task execution was cancelled"
        else:
            exc = execution.exception()
            if exc is not None:
                error = str(exc) or type(exc).__name__
                logger.warning(f"Task {task.id} failed: {error}")
            else:
                result = execution.result()

        task.completed_at = settlement.finished_at
        if task.started_at is not None:
            task.execution_time = (task.completed_at - task.started_at).total_seconds() * 1000

        if error is None:
            task.status = TaskStatus.COMPLETED
            task.result = result
            task.error = None
        else:
            task.status = TaskStatus.FAILED
            task.result = None
            task.error = error

        agent.status = AgentStatus.IDLE
        agent.current_task = None
        agent.last_activity = datetime.now()
        if error is None:
            agent.tasks_completed += 1

        self._update_task_in_goal(task)
        self._check_goal_completion(task.goal_id)

        if error is None:
            logger.info(f"Task {task.id} completed in {task.execution_time:.0f}ms")
            self._publish(OrchestratorEvent(type=EventType.TASK_COMPLETED, task=task, agent=agent))
        else:
            self._publish(OrchestratorEvent(type=EventType.TASK_FAILED, task=task, agent=agent, error=error))

    def _update_task_in_goal(self, task: Task) -> None:
        goal = self._goals.get(task.goal_id)
        if goal is None:
            return
        existing = goal.get_task(task.id)
        if existing is not None and existing is not task:
            goal.tasks[goal.tasks.index(existing)] = task

    def _check_goal_completion(self, goal_id: str) -> None:
        goal = self._goals.get(goal_id)
        if goal is None or goal.status != GoalStatus.EXECUTING:
            return
        if not all(task.is_terminal for task in goal.tasks):
            return

        failed = any(task.status == TaskStatus.FAILED for task in goal.tasks)
        goal.status = GoalStatus.FAILED if failed else GoalStatus.COMPLETED
        goal.completed_at = datetime.now()
        goal.results = {
            task.id: task.result
            for task in goal.tasks
            if task.status == TaskStatus.COMPLETED
        }

        logger.info(f"Goal {goal.id} {goal.status.value} ({len(goal.results)}/{len(goal.tasks)} tasks succeeded)")
        self._publish(OrchestratorEvent(type=EventType.GOAL_COMPLETED, goal=goal))

    def stop(self) -> None:
        """
        Stop assigning new tasks.

        Executions already in flight still settle; the next submit_goal
        starts the loop again.
        """
        self._running = False
        if self.is_running:
            self._inbox.put_nowait(_WAKE)
        logger.info("Orchestrator stop requested")

    async def join(self) -> None:
        """Wait until the scheduling loop has run out of work."""
        while self._loop_task is not None and not self._loop_task.done():
            await self._loop_task

    # =========================================================================
    # Events
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        if listener not in self._listeners:
            self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self, event: OrchestratorEvent) -> None:
        if not self._listeners:
            return

        # Listeners get snapshots so they can't mutate orchestrator state
        snapshot = event.model_copy(update={
            "goal": event.goal.model_copy(deep=True) if event.goal else None,
            "task": event.task.model_copy(deep=True) if event.task else None,
            "agent": event.agent.model_copy(deep=True) if event.agent else None,
        })

        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"Listener {listener!r} failed on {event.type.value}")

    # =========================================================================
    # Queries
    # =========================================================================

    def get_goals(self) -> list[Goal]:
        """All goals, newest first."""
        newest_first = sorted(
            reversed(list(self._goals.values())),
            key=lambda goal: goal.created_at,
            reverse=True,
        )
        return [goal.model_copy(deep=True) for goal in newest_first]

    def get_goal(self, goal_id: str) -> Goal | None:
        goal = self._goals.get(goal_id)
        return goal.model_copy(deep=True) if goal else None

    def get_agents(self) -> list[Agent]:
        return [agent.model_copy() for agent in self._agents.values()]

    def compute_metrics(self) -> SystemMetrics:
        """Recompute aggregate metrics from current state."""
        tasks = [task for goal in self._goals.values() for task in goal.tasks]
        completed = [task for task in tasks if task.status == TaskStatus.COMPLETED]
        failed = [task for task in tasks if task.status == TaskStatus.FAILED]

        times = [task.execution_time for task in completed if task.execution_time is not None]
        average = sum(times) / len(times) if times else 0

        return SystemMetrics(
            total_goals=len(self._goals),
            total_tasks=len(tasks),
            completed_tasks=len(completed),
            failed_tasks=len(failed),
            active_agents=sum(1 for agent in self._agents.values() if agent.status == AgentStatus.BUSY),
            average_execution_time=average,
            system_uptime=int(self._clock() - self._started),
        )
