#!/usr/bin/env python3
"""CLI script for submitting goals to the orchestrator."""

import sys
import asyncio
import argparse
import json
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env first
from goalflow.config import config
from goalflow.agent import Orchestrator, Planner
from goalflow.ui import (
    console,
    print_header,
    print_goal,
    print_agents_table,
    print_metrics,
    print_event,
    print_json,
    print_error,
    print_warning,
    print_info,
    print_success,
    create_status,
)

MAX_GOAL_LENGTH = 2000

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler()]
    )
    # Silence noisy loggers
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)


def validate_goal_input(goal: str) -> tuple[bool, str]:
    """
    Validate a goal description.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not goal or not goal.strip():
        return False, "Goal cannot be empty"

    if len(goal) > MAX_GOAL_LENGTH:
        return False, f"Goal too long ({len(goal)} chars). Maximum: {MAX_GOAL_LENGTH}"

    return True, ""


def parse_args(argv: list[str] | None = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Decompose goals into tasks and run them on the agent pool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                              # Interactive mode
  %(prog)s "Analyze the repo 'octocat/Hello-World'"     # Single goal
  %(prog)s -g "price of bitcoin" -g "price of ETH-USD"  # Several goals at once
  %(prog)s --plan-only "check the price of ethereum"    # Show the plan, don't run it
  %(prog)s -w -o goals.json "price of BTC-USD"          # Stream events, export JSON

Environment Variables:
  GITHUB_TOKEN          GitHub token (raises API rate limits)
  GOALFLOW_AGENTS       Comma-separated agent names
  GOALFLOW_LOG_LEVEL    Logging level (default: INFO)
"""
    )

    parser.add_argument(
        "goal",
        nargs="*",
        help="Goal to run (omit for interactive mode)"
    )

    parser.add_argument(
        "-g", "--goals",
        action="append",
        default=[],
        help="Additional goal, may be repeated; all goals are submitted together"
    )

    parser.add_argument(
        "-w", "--watch",
        action="store_true",
        help="Print lifecycle events as they happen"
    )

    parser.add_argument(
        "--plan-only",
        action="store_true",
        help="Print the plan for each goal without executing it"
    )

    parser.add_argument(
        "-o", "--output",
        type=Path,
        help="Export goals to a JSON file"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging"
    )

    return parser.parse_args(argv)


def collect_goals(args) -> list[str]:
    goals = []
    if args.goal:
        goals.append(" ".join(args.goal))
    goals.extend(args.goals)
    return goals


def export_to_json(output_path: Path, orchestrator: Orchestrator) -> None:
    """Export all goals, agents and metrics to a JSON file."""
    payload = {
        "goals": [goal.model_dump(mode="json") for goal in orchestrator.get_goals()],
        "agents": [agent.model_dump(mode="json") for agent in orchestrator.get_agents()],
        "metrics": orchestrator.compute_metrics().model_dump(mode="json"),
    }
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    print_success(f"Results exported to: {output_path}")


def show_plans(goals: list[str]) -> None:
    planner = Planner()
    for goal in goals:
        result = planner.plan(goal)
        console.print(f"[highlight]{goal}[/highlight]")
        print_json(result.model_dump(mode="json"))


async def run_goals(orchestrator: Orchestrator, goals: list[str]) -> list[str]:
    """Submit every goal, then wait for the scheduling loop to drain."""
    goal_ids = []
    for goal in goals:
        is_valid, error_msg = validate_goal_input(goal)
        if not is_valid:
            print_warning(f"Skipping goal: {error_msg}")
            continue
        goal_ids.append(await orchestrator.submit_goal(goal))

    with create_status(f"Running {len(goal_ids)} goal(s)..."):
        await orchestrator.join()

    for goal_id in goal_ids:
        print_goal(orchestrator.get_goal(goal_id))
    return goal_ids


async def interactive_mode(orchestrator: Orchestrator):
    """Run in interactive mode."""
    print_info("Commands: 'quit', 'goals', 'agents', 'metrics'")
    console.print("-" * 50)

    while True:
        try:
            line = (await asyncio.to_thread(input, "\nGoal: ")).strip()
        except (EOFError, KeyboardInterrupt):
            console.print("\nGoodbye!")
            break

        if not line:
            continue

        command = line.lower()
        if command in ('quit', 'exit', 'q'):
            console.print("Goodbye!")
            break
        if command == 'goals':
            for goal in orchestrator.get_goals():
                print_goal(goal, show_results=False)
            continue
        if command == 'agents':
            print_agents_table(orchestrator.get_agents())
            continue
        if command == 'metrics':
            print_metrics(orchestrator.compute_metrics())
            continue

        try:
            await run_goals(orchestrator, [line])
        except Exception as e:
            logger.exception("Goal run failed")
            print_error(str(e))

    orchestrator.stop()
    await orchestrator.join()


async def main(argv: list[str] | None = None):
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    goals = collect_goals(args)

    if args.plan_only:
        if not goals:
            print_error("--plan-only needs at least one goal")
            return
        show_plans(goals)
        return

    orchestrator = Orchestrator()
    if args.watch:
        orchestrator.subscribe(print_event)

    print_header(agent_count=len(orchestrator.get_agents()))

    if goals:
        await run_goals(orchestrator, goals)
        print_agents_table(orchestrator.get_agents())
        print_metrics(orchestrator.compute_metrics())
    else:
        await interactive_mode(orchestrator)

    if args.output:
        export_to_json(args.output, orchestrator)


if __name__ == "__main__":
    asyncio.run(main())
