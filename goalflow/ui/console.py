"""
Rich-based terminal UI for goalflow.

Minimal and clean: muted palette, no emojis.
"""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.status import Status
from rich.theme import Theme

from ..models import Agent, EventType, Goal, OrchestratorEvent, SystemMetrics

# Muted palette with blue/cyan accents
THEME = Theme({
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "muted": "dim",
    "accent": "cyan",
    "highlight": "bold white",
    "panel.border": "dim blue",
})

# Status -> style
STATUS_STYLES = {
    "completed": "success",
    "executing": "accent",
    "busy": "accent",
    "planning": "warning",
    "failed": "error",
    "pending": "muted",
    "idle": "muted",
}

# Create the main console instance
console = Console(theme=THEME, highlight=False)


def format_duration(ms: float | None) -> str:
    """Human readable duration: 850ms, 12s, 3m, 2h."""
    if ms is None:
        return "-"
    if ms < 1000:
        return f"{ms:.0f}ms"
    if ms < 60_000:
        return f"{ms / 1000:.1f}s"
    if ms < 3_600_000:
        return f"{ms / 60_000:.0f}m"
    return f"{ms / 3_600_000:.0f}h"


def styled_status(status: str) -> str:
    style = STATUS_STYLES.get(status, "muted")
    return f"[{style}]{status}[/{style}]"


def print_header(agent_count: int, goal_count: int = 0) -> None:
    """Print the application header."""
    panel = Panel(
        f"Agents: {agent_count}    Goals: {goal_count}",
        title="goalflow",
        title_align="left",
        border_style="dim blue",
        padding=(0, 1),
    )
    console.print(panel)
    console.print()


def print_goal(goal: Goal, show_results: bool = True) -> None:
    """Print a goal with its task table and, optionally, its results."""
    table = Table(show_header=True, box=None, padding=(0, 2))
    table.add_column("Task", style="muted")
    table.add_column("Type")
    table.add_column("Call", style="muted")
    table.add_column("Status")
    table.add_column("Time", justify="right")

    for task in goal.tasks:
        table.add_row(
            task.id[:8],
            task.type.value,
            f"{task.tool}.{task.function}",
            styled_status(task.status.value),
            format_duration(task.execution_time),
        )

    console.print(Panel(
        table if goal.tasks else "[muted]No tasks[/muted]",
        title=f"{goal.description[:60]}  {styled_status(goal.status.value)}  [muted]{goal.progress}%[/muted]",
        title_align="left",
        border_style="dim blue",
        padding=(0, 1),
    ))

    for task in goal.tasks:
        if task.error:
            console.print(f"  [error]{task.id[:8]}[/error] {task.error}")

    if show_results and goal.results:
        console.print_json(json.dumps(goal.results, default=str))
    console.print()


def print_agents_table(agents: list[Agent]) -> None:
    """Print the agent pool."""
    table = Table(show_header=True, box=None, padding=(0, 2))
    table.add_column("Agent", style="highlight")
    table.add_column("Status")
    table.add_column("Current Task", style="muted")
    table.add_column("Completed", justify="right")

    for agent in agents:
        table.add_row(
            agent.name,
            styled_status(agent.status.value),
            (agent.current_task or "-")[:8],
            str(agent.tasks_completed),
        )

    console.print(table)
    console.print()


def print_metrics(metrics: SystemMetrics) -> None:
    """Print system metrics as a formatted table."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="muted")
    table.add_column("Value", style="highlight")

    table.add_row("Goals", str(metrics.total_goals))
    table.add_row("Tasks", str(metrics.total_tasks))
    table.add_row("  Completed", str(metrics.completed_tasks))
    table.add_row("  Failed", str(metrics.failed_tasks))
    table.add_row("Active Agents", str(metrics.active_agents))
    table.add_row("Avg Execution", format_duration(metrics.average_execution_time))
    table.add_row("Uptime", f"{metrics.system_uptime}s")

    console.print(table)
    console.print()


def describe_event(event: OrchestratorEvent) -> str:
    """One-line description of a lifecycle event."""
    if event.type in (EventType.GOAL_CREATED, EventType.GOAL_FAILED, EventType.GOAL_COMPLETED):
        goal = event.goal
        return f"{event.type.value} {goal.id[:8]} {styled_status(goal.status.value)}"
    if event.type == EventType.GOAL_PLANNED:
        goal = event.goal
        return (
            f"{event.type.value} {goal.id[:8]} {len(goal.tasks)} task(s), "
            f"est. {format_duration(event.estimated_duration)}"
        )

    task, agent = event.task, event.agent
    line = f"{event.type.value} {task.id[:8]} {task.tool}.{task.function}"
    if agent:
        line += f" [muted]on {agent.name}[/muted]"
    if event.error:
        line += f" [error]{event.error}[/error]"
    return line


def print_event(event: OrchestratorEvent) -> None:
    console.print(f"  [muted]{event.timestamp:%H:%M:%S}[/muted] {describe_event(event)}")


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[error]Error:[/error] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[warning]Warning:[/warning] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/success]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/info]")


def create_status(message: str) -> Status:
    """Create a status spinner for long operations."""
    return console.status(message, spinner="dots")
