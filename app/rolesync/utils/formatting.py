"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rolesync.core.theme import get_theme

if TYPE_CHECKING:
    from rolesync.models.feature import FeatureRecord


def _detect_color_system() -> str | None:
    """Return "truecolor" for interactive terminals, None to let Rich decide."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def create_feature_table(title: str = "Roles and Features") -> Table:
    """Create a pre-configured table for displaying catalog entries.

    Args:
        title: Table title.

    Returns:
        Rich Table configured for feature display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("", width=2, justify="center")
    table.add_column("Name", no_wrap=True)
    table.add_column("Display Name", style="text", overflow="ellipsis")
    table.add_column("Type", style="muted")
    table.add_column("State", style="info")
    return table


def format_feature_row(record: FeatureRecord) -> tuple[str, str, str, str, str]:
    """Format a catalog entry as a table row.

    Installed entries get a filled circle, others an empty one. Sub-features
    are indented by their depth in the catalog tree.

    Returns:
        Tuple of (icon, name, display name, type, state) with Rich markup.
    """
    indent = "  " * max(record.depth - 1, 0)
    if record.installed:
        icon = "[feature_installed]●[/]"
        name = f"[feature_installed]{record.name}[/]"
    else:
        icon = "[feature_available]○[/]"
        name = f"[feature_available]{record.name}[/]"

    return (
        icon,
        f"{indent}{name}",
        f"[text]{indent}{record.display_name or '-'}[/]",
        f"[muted]{record.feature_type.value}[/]",
        f"[info]{record.install_state.value}[/]",
    )


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {escape(message)}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {escape(message)}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
