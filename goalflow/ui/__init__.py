"""Rich-based terminal UI components for the goalflow CLI."""

from .console import (
    console,
    format_duration,
    describe_event,
    print_header,
    print_goal,
    print_agents_table,
    print_metrics,
    print_event,
    print_json,
    print_error,
    print_warning,
    print_success,
    print_info,
    create_status,
)

__all__ = [
    "console",
    "format_duration",
    "describe_event",
    "print_header",
    "print_goal",
    "print_agents_table",
    "print_metrics",
    "print_event",
    "print_json",
    "print_error",
    "print_warning",
    "print_success",
    "print_info",
    "create_status",
]
