"""Shared Rich display functions for reconciliation results.

Provides table builders and summary printers used by the sync command.
"""

from rich.table import Table

from rolesync.models.action import ActionRecord, HostFailure, ReconciliationResult
from rolesync.utils.formatting import console, print_success


def create_actions_table(actions: list[ActionRecord], simulate: bool = False) -> Table:
    """Create a Rich table listing actions per host.

    Args:
        actions: Actions to display, in the order they were taken.
        simulate: Whether the actions were simulated (changes table title).

    Returns:
        Rich Table configured for action display.
    """
    title = "Actions (Simulated)" if simulate else "Actions"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Host", style="host", no_wrap=True)
    table.add_column("Action", width=10, justify="center")
    table.add_column("Feature", no_wrap=True)

    for record in actions:
        style = "added" if record.is_install else "removed"
        sign = "+" if record.is_install else "-"
        table.add_row(
            record.host,
            f"[{style}]{sign}{record.action.value.lower()}[/{style}]",
            f"[{style}]{record.feature}[/{style}]",
        )

    return table


def create_failures_table(failures: list[HostFailure]) -> Table:
    """Create a Rich table listing hosts whose reconciliation was aborted."""
    table = Table(
        title="Failed Hosts",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Host", style="host", no_wrap=True)
    table.add_column("Error", style="error")
    table.add_column("Message", style="muted")

    for failure in failures:
        table.add_row(failure.host, failure.error_type, failure.message)

    return table


def print_result_summary(result: ReconciliationResult, target_count: int) -> None:
    """Print a one-line summary of a fleet run.

    Args:
        result: The finished run.
        target_count: Number of distinct target hosts in the run.
    """
    verb_install = "to install" if result.simulate else "installed"
    verb_remove = "to remove" if result.simulate else "removed"

    parts: list[str] = []
    if result.install_count:
        parts.append(f"[added]{result.install_count} {verb_install}[/added]")
    if result.remove_count:
        parts.append(f"[removed]{result.remove_count} {verb_remove}[/removed]")
    if parts:
        console.print(f"\nSummary: {', '.join(parts)}")

    ok_count = target_count - len(result.failures)
    if result.succeeded:
        print_success(f"All {ok_count} host(s) reconciled.")
    else:
        console.print(
            f"\n[success]{ok_count} host(s) reconciled[/success], "
            f"[error]{len(result.failures)} failed[/error]"
        )
