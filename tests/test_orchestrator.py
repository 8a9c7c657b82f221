"""Tests for the orchestrator: lifecycle, scheduling and events."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from conftest import FakeClock, StubExecutor
from goalflow.agent.executor import TaskExecutor
from goalflow.agent.orchestrator import Orchestrator
from goalflow.errors import ToolError
from goalflow.models import (
    AgentStatus,
    EventType,
    GoalStatus,
    PlannerResult,
    Task,
    TaskStatus,
    TaskType,
)

AGENTS = [("agent-1", "Agent 1"), ("agent-2", "Agent 2"), ("agent-3", "Agent 3"), ("agent-4", "Agent 4")]

REPO_AND_PRICE = "Analyze the repo 'octocat/Hello-World' and check the price of BTC-USD"


def make_orchestrator(executor=None, agents=AGENTS, **kwargs) -> Orchestrator:
    return Orchestrator(executor=executor or StubExecutor(), agents=agents, **kwargs)


class StaticPlanner:
    """Planner double returning a fixed result."""

    def __init__(self, result: PlannerResult):
        self.result = result

    def plan(self, description: str) -> PlannerResult:
        return self.result.model_copy(deep=True)


class TestConstruction:

    def test_agent_pool(self):
        orchestrator = make_orchestrator()

        agents = orchestrator.get_agents()
        assert [agent.id for agent in agents] == [agent_id for agent_id, _ in AGENTS]
        assert all(agent.status == AgentStatus.IDLE for agent in agents)
        assert all(agent.tasks_completed == 0 for agent in agents)

    def test_default_pool_from_config(self):
        orchestrator = Orchestrator(executor=StubExecutor())

        assert [agent.name for agent in orchestrator.get_agents()] == [
            "GitHub Agent", "Trading Agent", "Data Agent", "API Agent"
        ]
        assert orchestrator.get_agents()[0].id == "github-agent"

    def test_empty_pool_rejected(self):
        with pytest.raises(ValueError):
            make_orchestrator(agents=[])

    def test_not_running_initially(self):
        assert not make_orchestrator().is_running


class TestGoalLifecycle:

    def test_repo_and_price_goal(self):
        async def scenario():
            orchestrator = make_orchestrator()
            goal_id = await orchestrator.submit_goal(REPO_AND_PRICE)
            await orchestrator.join()
            return orchestrator.get_goal(goal_id)

        goal = asyncio.run(scenario())

        assert goal.status == GoalStatus.COMPLETED
        assert [task.type for task in goal.tasks] == [TaskType.GITHUB_ANALYSIS, TaskType.CRYPTO_PRICE]
        assert goal.tasks[0].params == {"owner": "octocat", "repo": "Hello-World"}
        assert goal.tasks[1].params == {"symbol": "BTC-USD"}
        assert all(task.goal_id == goal.id for task in goal.tasks)
        assert set(goal.results) == {task.id for task in goal.tasks}
        assert goal.completed_at is not None

    def test_empty_plan_completes_immediately(self):
        async def scenario():
            orchestrator = make_orchestrator()
            goal_id = await orchestrator.submit_goal("hello world")
            # No join: the goal must already be terminal
            return orchestrator, orchestrator.get_goal(goal_id)

        orchestrator, goal = asyncio.run(scenario())

        assert goal.status == GoalStatus.COMPLETED
        assert goal.tasks == []
        assert goal.results == {}
        assert goal.completed_at is not None
        assert not orchestrator.is_running

    def test_submit_returns_before_execution(self):
        async def scenario():
            executor = StubExecutor()
            orchestrator = make_orchestrator(executor)
            goal_id = await orchestrator.submit_goal(REPO_AND_PRICE)
            goal = orchestrator.get_goal(goal_id)
            started = list(executor.started)
            await orchestrator.join()
            return goal, started

        goal, started = asyncio.run(scenario())

        assert goal.status == GoalStatus.EXECUTING
        assert all(task.status == TaskStatus.PENDING for task in goal.tasks)
        assert started == []

    def test_backend_failure_fails_goal_but_not_siblings(self):
        async def scenario():
            orchestrator = make_orchestrator(StubExecutor(fail_tools=("trading_tools",)))
            goal_id = await orchestrator.submit_goal(REPO_AND_PRICE)
            await orchestrator.join()
            return orchestrator.get_goal(goal_id)

        goal = asyncio.run(scenario())
        repo_task, price_task = goal.tasks

        assert goal.status == GoalStatus.FAILED
        assert repo_task.status == TaskStatus.COMPLETED
        assert repo_task.result is not None and repo_task.error is None
        assert price_task.status == TaskStatus.FAILED
        assert price_task.error == "trading_tools backend unavailable"
        assert price_task.result is None
        assert goal.results == {repo_task.id: repo_task.result}

    def test_two_goals_back_to_back(self):
        async def scenario():
            gate = asyncio.Event()
            orchestrator = make_orchestrator(StubExecutor(gate=gate))
            first = await orchestrator.submit_goal(REPO_AND_PRICE)
            second = await orchestrator.submit_goal("price of ethereum and cardano")
            before = (orchestrator.get_goal(first), orchestrator.get_goal(second))
            gate.set()
            await orchestrator.join()
            after = (orchestrator.get_goal(first), orchestrator.get_goal(second))
            return before, after

        (first, second), (first_done, second_done) = asyncio.run(scenario())

        assert first.status == GoalStatus.EXECUTING
        assert second.status == GoalStatus.EXECUTING
        assert all(task.goal_id == first.id for task in first.tasks)
        assert all(task.goal_id == second.id for task in second.tasks)
        assert not {task.id for task in first.tasks} & {task.id for task in second.tasks}
        assert first_done.status == GoalStatus.COMPLETED
        assert second_done.status == GoalStatus.COMPLETED
        assert set(second_done.results) == {task.id for task in second.tasks}

    def test_planning_failure(self):
        async def scenario():
            planner = StaticPlanner(PlannerResult(success=False))
            orchestrator = Orchestrator(planner=planner, executor=StubExecutor(), agents=AGENTS)
            events = []
            orchestrator.subscribe(events.append)
            goal_id = await orchestrator.submit_goal("anything")
            return orchestrator.get_goal(goal_id), events

        goal, events = asyncio.run(scenario())

        assert goal.status == GoalStatus.FAILED
        assert goal.tasks == []
        assert [event.type for event in events] == [EventType.GOAL_CREATED, EventType.GOAL_FAILED]

    def test_unsupported_operation_fails_task(self):
        async def scenario():
            task = Task(type=TaskType.COMPUTATION, tool="quantum_tools", function="factor")
            planner = StaticPlanner(PlannerResult(success=True, tasks=[task], estimated_duration=3500))
            orchestrator = Orchestrator(planner=planner, executor=TaskExecutor(), agents=AGENTS)
            goal_id = await orchestrator.submit_goal("factor a number")
            await orchestrator.join()
            return orchestrator.get_goal(goal_id)

        goal = asyncio.run(scenario())

        assert goal.status == GoalStatus.FAILED
        assert "quantum_tools" in goal.tasks[0].error
        assert goal.results == {}

    def test_with_task_executor_and_mocked_backends(self):
        github = AsyncMock()
        github.analyze_repository.return_value = {"repository": "octocat/Hello-World"}
        trading = AsyncMock()
        trading.get_crypto_price.side_effect = ToolError("rate limited")

        async def scenario():
            executor = TaskExecutor(github=github, trading=trading, data=AsyncMock(), http=AsyncMock())
            orchestrator = make_orchestrator(executor)
            goal_id = await orchestrator.submit_goal(REPO_AND_PRICE)
            await orchestrator.join()
            return orchestrator.get_goal(goal_id)

        goal = asyncio.run(scenario())

        github.analyze_repository.assert_awaited_once_with("octocat", "Hello-World")
        assert goal.status == GoalStatus.FAILED
        assert list(goal.results.values()) == [{"repository": "octocat/Hello-World"}]
        assert goal.tasks[1].error == "rate limited"

    def test_everyday_fetch_wording_completes(self):
        trading = AsyncMock()
        trading.get_crypto_price.return_value = {"symbol": "BTC-USD", "price": 50000.0}
        http = AsyncMock()

        async def scenario():
            executor = TaskExecutor(github=AsyncMock(), trading=trading, data=AsyncMock(), http=http)
            orchestrator = make_orchestrator(executor)
            goal_id = await orchestrator.submit_goal("Fetch the price of bitcoin")
            await orchestrator.join()
            return orchestrator.get_goal(goal_id)

        goal = asyncio.run(scenario())

        assert [task.type for task in goal.tasks] == [TaskType.CRYPTO_PRICE]
        assert goal.status == GoalStatus.COMPLETED
        http.request.assert_not_called()


class TestTaskState:

    def test_execution_time_matches_timestamps(self):
        async def scenario():
            orchestrator = make_orchestrator(StubExecutor(fail_tools=("trading_tools",)))
            goal_id = await orchestrator.submit_goal(REPO_AND_PRICE)
            await orchestrator.join()
            return orchestrator.get_goal(goal_id)

        goal = asyncio.run(scenario())

        for task in goal.tasks:
            assert task.started_at is not None and task.completed_at is not None
            expected = (task.completed_at - task.started_at).total_seconds() * 1000
            assert task.execution_time == expected

    def test_agents_freed_and_counted(self):
        async def scenario():
            orchestrator = make_orchestrator(StubExecutor(fail_tools=("trading_tools",)))
            await orchestrator.submit_goal(REPO_AND_PRICE)
            await orchestrator.join()
            return orchestrator.get_agents()

        agents = asyncio.run(scenario())

        assert all(agent.status == AgentStatus.IDLE for agent in agents)
        assert all(agent.current_task is None for agent in agents)
        # Only the successful task counts
        assert sum(agent.tasks_completed for agent in agents) == 1


class TestScheduling:

    def test_concurrency_bounded_by_pool(self):
        async def scenario():
            executor = StubExecutor()
            orchestrator = make_orchestrator(executor, agents=AGENTS[:2])
            executing_counts = []

            def on_event(event):
                executing = sum(
                    1
                    for goal in orchestrator.get_goals()
                    for task in goal.tasks
                    if task.status == TaskStatus.EXECUTING
                )
                executing_counts.append(executing)

            orchestrator.subscribe(on_event)
            await orchestrator.submit_goal("prices of bitcoin, ethereum, cardano and polkadot")
            await orchestrator.submit_goal("price of LINK-USD and UNI-USD")
            await orchestrator.join()
            return executor, executing_counts, orchestrator

        executor, executing_counts, orchestrator = asyncio.run(scenario())

        assert len(executor.started) == 6
        assert executor.max_active == 2
        assert max(executing_counts) <= 2
        assert orchestrator.compute_metrics().completed_tasks == 6

    def test_fifo_across_goals(self):
        async def scenario():
            orchestrator = make_orchestrator(StubExecutor(), agents=AGENTS[:1])
            started = []
            orchestrator.subscribe(
                lambda event: started.append(event.task.params["symbol"])
                if event.type == EventType.TASK_STARTED else None
            )
            await orchestrator.submit_goal("price of bitcoin and ethereum")
            await orchestrator.submit_goal("price of cardano")
            await orchestrator.submit_goal("price of polkadot")
            await orchestrator.join()
            return started

        assert asyncio.run(scenario()) == ["BTC-USD", "ETH-USD", "ADA-USD", "DOT-USD"]

    def test_fifo_with_idle_agents(self):
        async def scenario():
            executor = StubExecutor()
            orchestrator = make_orchestrator(executor)
            first = await orchestrator.submit_goal("price of bitcoin")
            second = await orchestrator.submit_goal("price of ethereum")
            await orchestrator.join()
            return executor.started, orchestrator.get_goal(first), orchestrator.get_goal(second)

        started, first, second = asyncio.run(scenario())

        assert started == [first.tasks[0].id, second.tasks[0].id]

    def test_stop_then_restart(self):
        async def scenario():
            orchestrator = make_orchestrator(StubExecutor(), agents=AGENTS[:1])

            def stop_on_first_start(event):
                if event.type == EventType.TASK_STARTED:
                    orchestrator.stop()
                    orchestrator.unsubscribe(stop_on_first_start)

            orchestrator.subscribe(stop_on_first_start)
            goal_id = await orchestrator.submit_goal("price of bitcoin and ethereum")
            await orchestrator.join()
            stopped = orchestrator.get_goal(goal_id)

            await orchestrator.submit_goal("price of cardano")
            await orchestrator.join()
            return stopped, orchestrator.get_goal(goal_id)

        stopped, resumed = asyncio.run(scenario())

        # In-flight task settled, queued one left alone
        assert [task.status for task in stopped.tasks] == [TaskStatus.COMPLETED, TaskStatus.PENDING]
        assert stopped.status == GoalStatus.EXECUTING
        assert resumed.status == GoalStatus.COMPLETED


class TestEvents:

    def test_event_sequence(self):
        async def scenario():
            orchestrator = make_orchestrator()
            events = []
            orchestrator.subscribe(events.append)
            await orchestrator.submit_goal("price of bitcoin")
            await orchestrator.join()
            return events

        events = asyncio.run(scenario())

        assert [event.type for event in events] == [
            EventType.GOAL_CREATED,
            EventType.GOAL_PLANNED,
            EventType.TASK_STARTED,
            EventType.GOAL_COMPLETED,
            EventType.TASK_COMPLETED,
        ]
        assert events[1].estimated_duration == 3000
        assert events[2].agent.status == AgentStatus.BUSY
        assert events[2].agent.current_task == events[2].task.id
        assert events[4].agent.status == AgentStatus.IDLE

    def test_task_failed_event_carries_error(self):
        async def scenario():
            orchestrator = make_orchestrator(StubExecutor(fail_tools=("trading_tools",)))
            events = []
            orchestrator.subscribe(events.append)
            await orchestrator.submit_goal("price of bitcoin")
            await orchestrator.join()
            return events

        failed = [event for event in asyncio.run(scenario()) if event.type == EventType.TASK_FAILED]

        assert len(failed) == 1
        assert failed[0].error == "trading_tools backend unavailable"
        assert failed[0].task.status == TaskStatus.FAILED

    def test_listener_errors_are_isolated(self):
        async def scenario():
            orchestrator = make_orchestrator()
            received = []

            def broken(event):
                raise RuntimeError("listener bug")

            orchestrator.subscribe(broken)
            orchestrator.subscribe(received.append)
            goal_id = await orchestrator.submit_goal("price of bitcoin")
            await orchestrator.join()
            return received, orchestrator.get_goal(goal_id)

        received, goal = asyncio.run(scenario())

        assert len(received) == 5
        assert goal.status == GoalStatus.COMPLETED

    def test_unsubscribe(self):
        async def scenario():
            orchestrator = make_orchestrator()
            received = []
            unsubscribe = orchestrator.subscribe(received.append)
            await orchestrator.submit_goal("hello world")
            unsubscribe()
            await orchestrator.submit_goal("hello again")
            return received

        assert [event.type for event in asyncio.run(scenario())] == [
            EventType.GOAL_CREATED, EventType.GOAL_PLANNED, EventType.GOAL_COMPLETED
        ]

    def test_events_are_snapshots(self):
        async def scenario():
            orchestrator = make_orchestrator()
            events = []
            orchestrator.subscribe(events.append)
            goal_id = await orchestrator.submit_goal("hello world")
            events[0].goal.description = "tampered"
            return orchestrator.get_goal(goal_id), events

        goal, events = asyncio.run(scenario())

        assert goal.description == "hello world"
        # The created event reflects state at publication time
        assert events[0].goal.status == GoalStatus.PLANNING


class TestQueries:

    def test_goals_newest_first(self):
        async def scenario():
            orchestrator = make_orchestrator()
            ids = [await orchestrator.submit_goal(f"goal number {n}") for n in range(3)]
            return ids, [goal.id for goal in orchestrator.get_goals()]

        ids, listed = asyncio.run(scenario())

        assert listed == list(reversed(ids))

    def test_unknown_goal(self):
        assert make_orchestrator().get_goal("missing") is None

    def test_metrics(self):
        clock = FakeClock(100.0)

        async def scenario():
            orchestrator = make_orchestrator(StubExecutor(fail_tools=("trading_tools",)), clock=clock)
            goal_id = await orchestrator.submit_goal(REPO_AND_PRICE)
            await orchestrator.submit_goal("hello world")
            await orchestrator.join()
            return orchestrator, orchestrator.get_goal(goal_id)

        orchestrator, goal = asyncio.run(scenario())
        clock.now = 142.7

        metrics = orchestrator.compute_metrics()

        assert metrics.total_goals == 2
        assert metrics.total_tasks == 2
        assert metrics.completed_tasks == 1
        assert metrics.failed_tasks == 1
        assert metrics.active_agents == 0
        # Average covers completed tasks only
        assert metrics.average_execution_time == goal.tasks[0].execution_time
        assert metrics.system_uptime == 42

    def test_metrics_are_idempotent(self):
        async def scenario():
            orchestrator = make_orchestrator(clock=FakeClock())
            await orchestrator.submit_goal(REPO_AND_PRICE)
            await orchestrator.join()
            return orchestrator

        orchestrator = asyncio.run(scenario())

        assert orchestrator.compute_metrics() == orchestrator.compute_metrics()

    def test_metrics_with_no_tasks(self):
        metrics = make_orchestrator().compute_metrics()

        assert metrics.total_goals == 0
        assert metrics.average_execution_time == 0
