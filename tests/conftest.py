"""Shared fixtures and test doubles."""

import asyncio

import pytest

from goalflow.errors import ToolError
from goalflow.models import Task


class StubExecutor:
    """
    Executor double that records what ran and how many ran at once.

    Tasks whose tool is listed in ``fail_tools`` raise a ToolError. When a
    ``gate`` is given every execution waits on it before finishing.
    """

    def __init__(self, fail_tools: tuple[str, ...] = (), gate: asyncio.Event | None = None):
        self.fail_tools = fail_tools
        self.gate = gate
        self.started: list[str] = []
        self.active = 0
        self.max_active = 0

    async def execute(self, task: Task):
        self.started.append(task.id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0.01)
            if task.tool in self.fail_tools:
                raise ToolError(f"{task.tool} backend unavailable")
            return {"function": task.function, "params": dict(task.params)}
        finally:
            self.active -= 1


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def stub_executor():
    return StubExecutor()


@pytest.fixture
def clock():
    return FakeClock()
