#!/usr/bin/env python3
"""
Challenge Tracker operator CLI.

Inspect and repair challenges directly in the configured store.

Usage:
    challenge-tracker list [--status active] [--limit N]
    challenge-tracker show ID
    challenge-tracker recalculate ID
    challenge-tracker delete ID --yes
    challenge-tracker set-email ID user@example.com
    challenge-tracker health
"""

import argparse
import sys
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .db.repositories.challenge_repository import (
    ChallengeRepository,
    get_challenge_repository,
)
from .metrics import calculate_current_day

console = Console()


def get_status_color(status: str) -> str:
    """Get rich color for a challenge status."""
    colors = {
        "active": "green",
        "completed": "blue",
        "abandoned": "red",
    }
    return colors.get(status, "white")


def cmd_list(args, repo: ChallengeRepository) -> int:
    """List challenges newest first, optionally filtered by status."""
    filters = {"status": args.status} if args.status else {}
    challenges = repo.get_all(limit=args.limit, **filters)
    if not challenges:
        console.print("No challenges found.")
        return 0

    total = repo.count(**filters)
    table = Table(title=f"Challenges ({len(challenges)} of {total})", box=box.ROUNDED)
    table.add_column("ID", style="cyan")
    table.add_column("Status")
    table.add_column("Start", style="white")
    table.add_column("Day", justify="right")
    table.add_column("Activities", style="white")
    table.add_column("Email", style="dim")

    today = repo.today()
    for challenge in challenges:
        color = get_status_color(challenge.status.value)
        table.add_row(
            challenge.id,
            f"[{color}]{challenge.status.value}[/{color}]",
            challenge.start_date,
            f"{calculate_current_day(challenge, today)}/{challenge.duration}",
            ", ".join(challenge.activities),
            challenge.email or "-",
        )

    console.print(table)
    return 0


def cmd_show(args, repo: ChallengeRepository) -> int:
    """Show one challenge with its metrics and recent logs."""
    challenge = repo.get(args.id)
    if challenge is None:
        console.print(f"[red]Challenge {args.id} not found[/red]")
        return 1

    color = get_status_color(challenge.status.value)
    details = f"""
[cyan]ID:[/cyan]         {challenge.id}
[cyan]Status:[/cyan]     [{color}]{challenge.status.value}[/{color}]
[cyan]Start:[/cyan]      {challenge.start_date}
[cyan]Duration:[/cyan]   {challenge.duration} days
[cyan]Timezone:[/cyan]   {challenge.timezone}
[cyan]Email:[/cyan]      {challenge.email or '-'}
"""
    console.print(Panel(details, title="Challenge", box=box.ROUNDED))

    metrics = repo.get_all_activity_metrics(args.id) or {}
    table = Table(title="Metrics", box=box.ROUNDED)
    table.add_column("Activity", style="cyan")
    table.add_column("Unit")
    table.add_column("Day", justify="right")
    table.add_column("Streak", justify="right")
    table.add_column("Best", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Logged", justify="right")
    table.add_column("Missed", justify="right")
    table.add_column("Rate", justify="right")
    for activity, m in metrics.items():
        table.add_row(
            activity,
            challenge.unit_for(activity).value,
            str(m.current_day),
            str(m.streak),
            str(m.personal_best),
            str(m.total_reps),
            str(m.days_logged),
            str(m.days_missed),
            f"{m.completion_rate}%",
        )
    console.print(table)

    logs = repo.get_all_logs(args.id)
    if logs:
        log_table = Table(title=f"Last {min(args.limit, len(logs))} logs", box=box.SIMPLE)
        log_table.add_column("Date", style="cyan")
        log_table.add_column("Activity")
        log_table.add_column("Value", justify="right")
        log_table.add_column("Timestamp", style="dim")
        for log in logs[-args.limit:]:
            log_table.add_row(log.date, log.activity, str(log.reps), str(log.timestamp))
        console.print(log_table)
    else:
        console.print("No logs yet.")
    return 0


def cmd_recalculate(args, repo: ChallengeRepository) -> int:
    """Recompute and cache metrics for every activity."""
    metrics = repo.recalculate_metrics(args.id)
    if metrics is None:
        console.print(f"[red]Challenge {args.id} not found[/red]")
        return 1
    for activity, m in metrics.items():
        console.print(
            f"[green]{activity}[/green]: streak {m.streak}, best {m.personal_best}, "
            f"total {m.total_reps}, {m.completion_rate}% complete"
        )
    return 0


def cmd_delete(args, repo: ChallengeRepository) -> int:
    """Delete a challenge and all its data."""
    if not args.yes:
        console.print("[yellow]Refusing to delete without --yes[/yellow]")
        return 1
    if not repo.delete(args.id):
        console.print(f"[red]Challenge {args.id} not found[/red]")
        return 1
    console.print(f"[green]Deleted challenge {args.id}[/green]")
    return 0


def cmd_set_email(args, repo: ChallengeRepository) -> int:
    """Attach (or replace) the email address of a challenge."""
    challenge = repo.update_challenge(args.id, email=args.email)
    if challenge is None:
        console.print(f"[red]Challenge {args.id} not found[/red]")
        return 1
    console.print(f"[green]Email updated for challenge {args.id}[/green]")
    return 0


def cmd_health(args, repo: ChallengeRepository) -> int:
    """Check store connectivity."""
    health = repo.store.health_check()
    color = "green" if health["healthy"] else "red"
    console.print(
        f"[{color}]{health['backend']} store "
        f"{'healthy' if health['healthy'] else 'unhealthy'}[/{color}] "
        f"(version {health['version']}, {health['latency_ms']} ms)"
    )
    for key, value in health.get("details", {}).items():
        console.print(f"  [cyan]{key}:[/cyan] {value}")
    return 0 if health["healthy"] else 1


COMMANDS = {
    "list": cmd_list,
    "show": cmd_show,
    "recalculate": cmd_recalculate,
    "delete": cmd_delete,
    "set-email": cmd_set_email,
    "health": cmd_health,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="challenge-tracker",
        description="Challenge Tracker - operator tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  challenge-tracker list --status completed
  challenge-tracker show 2f6c0d3e-... --limit 20
  challenge-tracker recalculate 2f6c0d3e-...
  challenge-tracker delete 2f6c0d3e-... --yes
  challenge-tracker set-email 2f6c0d3e-... user@example.com
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    list_p = subparsers.add_parser("list", help="List challenges")
    list_p.add_argument(
        "--status", "-s",
        choices=["active", "completed", "abandoned"],
        help="Only challenges with this status",
    )
    list_p.add_argument("--limit", "-n", type=int, default=50, help="Maximum rows to show")

    show_p = subparsers.add_parser("show", help="Show a challenge with metrics and logs")
    show_p.add_argument("id", help="Challenge ID")
    show_p.add_argument("--limit", "-n", type=int, default=10, help="Number of logs to show")

    recalc_p = subparsers.add_parser("recalculate", help="Recompute cached metrics")
    recalc_p.add_argument("id", help="Challenge ID")

    delete_p = subparsers.add_parser("delete", help="Delete a challenge and its logs")
    delete_p.add_argument("id", help="Challenge ID")
    delete_p.add_argument("--yes", action="store_true", help="Confirm deletion")

    email_p = subparsers.add_parser("set-email", help="Set the email of a challenge")
    email_p.add_argument("id", help="Challenge ID")
    email_p.add_argument("email", help="Email address")

    subparsers.add_parser("health", help="Check store connectivity")

    return parser


def main(argv: Optional[List[str]] = None, repo: Optional[ChallengeRepository] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    repo = repo or get_challenge_repository()
    return COMMANDS[args.command](args, repo)


if __name__ == "__main__":
    sys.exit(main())
