"""Config command implementation.

Shows the effective settings and writes a settings file with defaults.
"""

import json
from typing import Annotated

import typer
from rich.table import Table

from rolesync.core.paths import get_settings_path
from rolesync.core.settings import Settings, SettingsError, load_settings, save_settings
from rolesync.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or initialize rolesync settings.",
    no_args_is_help=True,
)


@app.command()
def show(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show the effective settings."""
    path = get_settings_path()
    try:
        settings = load_settings(path)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if json_output:
        typer.echo(json.dumps(settings.model_dump(), indent=2))
        return

    table = Table(title="Settings", header_style="bold_header", border_style="border")
    table.add_column("Key", style="info", no_wrap=True)
    table.add_column("Value", style="text")
    table.add_column("Description", style="muted")

    for name, field in Settings.model_fields.items():
        value = getattr(settings, name)
        if isinstance(value, list):
            shown = ", ".join(value) or "-"
        else:
            shown = str(value).lower() if isinstance(value, bool) else str(value)
        table.add_row(name, shown, field.description or "")

    console.print(table)
    if path.exists():
        print_info(f"Loaded from {path}")
    else:
        print_info(f"No settings file at {path}; showing defaults.")


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing settings file.",
        ),
    ] = False,
) -> None:
    """Write a settings file with default values."""
    path = get_settings_path()
    if path.exists() and not force:
        print_error(f"Settings file already exists: {path}. Use --force to overwrite.")
        raise typer.Exit(code=1)

    try:
        saved = save_settings(Settings(), path)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Settings written to {saved}")
