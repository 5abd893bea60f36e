"""Scan command implementation.

Lists the role/feature catalog of one host and optionally saves it as a
manifest for later use as a sync source.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from rolesync.core.manifest import ManifestSaveError, save_manifest
from rolesync.core.settings import SettingsError, load_settings
from rolesync.hosts.base import HostError
from rolesync.hosts.powershell import PowerShellHost
from rolesync.models.feature import FeatureRecord
from rolesync.models.snapshot import FeatureSnapshot
from rolesync.utils.formatting import (
    console,
    create_feature_table,
    format_feature_row,
    print_error,
    print_info,
    print_success,
)


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def scan_host(
    host: Annotated[
        str,
        typer.Argument(help="Host to scan (use 'localhost' for this machine)."),
    ],
    installed_only: Annotated[
        bool,
        typer.Option(
            "--installed-only",
            "-i",
            help="Only show installed roles and features.",
        ),
    ] = False,
    limit: Annotated[
        int | None,
        typer.Option(
            "--limit",
            "-n",
            min=1,
            help="Limit number of entries to display.",
        ),
    ] = None,
    export_path: Annotated[
        Path | None,
        typer.Option(
            "--export",
            "-e",
            help="Save the full catalog as a TOML manifest.",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table or json.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Scan and display the roles and features of a host.

    Examples:
        rolesync scan localhost
        rolesync scan srv-web-01 --installed-only
        rolesync scan srv-ref-01 --export ref.toml
        rolesync scan srv-web-01 --format json
    """
    try:
        settings = load_settings()
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    target = PowerShellHost(
        host,
        executable=settings.powershell,
        query_timeout=float(settings.query_timeout_seconds),
        change_timeout=float(settings.change_timeout_seconds),
    )
    if not target.is_available():
        print_error(f"PowerShell executable not found: {settings.powershell}")
        raise typer.Exit(code=1)

    try:
        snapshot = target.query_inventory()
    except HostError as e:
        print_error(f"Scan failed: {e}")
        raise typer.Exit(code=1) from e

    if export_path is not None:
        export_path = export_path.resolve()
        if export_path.is_dir():
            print_error(f"Export path is a directory: {export_path}")
            raise typer.Exit(code=1)
        try:
            save_manifest(snapshot, export_path)
        except ManifestSaveError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_success(f"Manifest of {snapshot.hostname} saved to {export_path}")

    records = [r for r in snapshot if r.installed] if installed_only else list(snapshot)
    shown = records[:limit] if limit is not None else records

    if output_format == OutputFormat.JSON:
        _print_json(snapshot, shown)
        return

    if not shown:
        print_info("No roles or features found.")
        return

    title = "Installed Roles and Features" if installed_only else "Roles and Features"
    table = create_feature_table(title=f"{title} ({snapshot.hostname})")
    for record in shown:
        table.add_row(*format_feature_row(record))
    console.print(table)

    if len(shown) < len(records):
        print_info(f"Showing {len(shown)} of {len(records)} entries.")
    installed_count = len(snapshot.installed_names())
    console.print(f"\n[muted]{installed_count} of {len(snapshot)} installed on {snapshot.hostname}[/]")


def _print_json(snapshot: FeatureSnapshot, records: list[FeatureRecord]) -> None:
    output = snapshot.to_dict()
    output["features"] = [record.to_dict() for record in records]
    typer.echo(json.dumps(output, indent=2))
