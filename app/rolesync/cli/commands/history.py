"""History command for viewing past runs.

This module provides the `rolesync history` command for viewing the
changes recorded by previous sync runs.
"""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from rolesync.core.state import StateManager
from rolesync.models.action import ActionKind
from rolesync.models.history import HistoryEntry
from rolesync.utils.formatting import console, print_error, print_info

app = typer.Typer(
    name="history",
    help="View history of reconciliation runs.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            min=1,
            help="Maximum number of entries to show.",
        ),
    ] = 20,
    since: Annotated[
        str | None,
        typer.Option(
            "--since",
            help="Show entries since date (YYYY-MM-DD).",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show history of reconciliation runs.

    Only runs that changed at least one host are recorded; simulated
    runs never are.

    Examples:
        rolesync history              # Show last 20 runs
        rolesync history -n 50        # Show last 50 runs
        rolesync history --since 2026-01-01
        rolesync history --json       # JSON output for scripting
        rolesync history show abc123  # Changes of one run
    """
    if ctx.invoked_subcommand is not None:
        return

    entries = StateManager().get_history(limit=limit)

    if since:
        try:
            entries = _filter_since(entries, since)
        except ValueError:
            print_error(f"Invalid date format: {since}. Use YYYY-MM-DD.")
            raise typer.Exit(code=1) from None

    if not entries:
        print_info("No history entries found.")
        return

    if json_output:
        typer.echo(json.dumps([entry.to_dict() for entry in entries], indent=2))
    else:
        _print_table(entries)


def _filter_since(entries: list[HistoryEntry], since: str) -> list[HistoryEntry]:
    """Keep entries at or after a date or timestamp.

    A bare date compares on the calendar day of the stored UTC timestamp.

    Raises:
        ValueError: If since is not an ISO date or timestamp.
    """
    since_parsed = datetime.fromisoformat(since)
    if since_parsed.tzinfo is None:
        since_date = since_parsed.strftime("%Y-%m-%d")
        return [e for e in entries if e.timestamp[:10] >= since_date]
    return [
        e for e in entries if datetime.fromisoformat(e.timestamp.replace("Z", "+00:00")) >= since_parsed
    ]


def _print_table(entries: list[HistoryEntry]) -> None:
    table = Table(title="Run History", header_style="bold_header", border_style="border")
    table.add_column("ID", style="dim")
    table.add_column("Timestamp", style="info")
    table.add_column("Source", style="host")
    table.add_column("Changes", style="text")
    table.add_column("Failed", style="error")

    for entry in entries:
        installs = sum(1 for item in entry.items if item.action is ActionKind.INSTALLED)
        removals = len(entry.items) - installs
        changes = f"[added]+{installs}[/] [removed]-{removals}[/] on {len(entry.hosts)} host(s)"

        table.add_row(
            entry.id[:8],
            _format_timestamp(entry.timestamp),
            entry.source,
            changes,
            ", ".join(entry.failed_hosts) or "-",
        )

    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format an ISO timestamp as YYYY-MM-DD HH:MM."""
    dt = datetime.fromisoformat(iso_timestamp.replace("Z", "+00:00"))
    return dt.strftime("%Y-%m-%d %H:%M")


@app.command()
def show(
    entry_id: Annotated[
        str,
        typer.Argument(help="History entry ID or a unique prefix of it."),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show every feature change of one recorded run."""
    entry = StateManager().get_entry_by_id(entry_id)
    if entry is None:
        print_error(f"No unique history entry matches '{entry_id}'.")
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(json.dumps(entry.to_dict(), indent=2))
        return

    table = Table(
        title=f"Run {entry.id} ({_format_timestamp(entry.timestamp)})",
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Host", style="host")
    table.add_column("Action")
    table.add_column("Feature", style="text")
    for item in entry.items:
        style, sign = ("added", "+") if item.action is ActionKind.INSTALLED else ("removed", "-")
        table.add_row(item.host, f"[{style}]{sign}{item.action.value.lower()}[/]", item.feature)

    console.print(table)
    print_info(f"Source: {entry.source}")
    if entry.failed_hosts:
        print_error(f"Failed hosts: {', '.join(entry.failed_hosts)}")
