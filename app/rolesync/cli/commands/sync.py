"""Sync command implementation.

Reconciles the installed roles and features of target hosts against a
source host or a saved manifest.
"""

import json
import logging
from pathlib import Path
from typing import Annotated

import typer

from rolesync.cli.display import create_actions_table, create_failures_table, print_result_summary
from rolesync.core.exclusions import build_exclusion_set
from rolesync.core.manifest import ManifestError
from rolesync.core.orchestrator import FleetOrchestrator, SourceKind, dedupe_targets, resolve_source
from rolesync.core.settings import Settings, SettingsError, load_settings
from rolesync.core.state import record_result_to_history
from rolesync.hosts.base import HostError
from rolesync.models.action import ReconciliationResult
from rolesync.utils.formatting import console, print_error, print_info, print_warning

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="Reconcile target hosts against a source.",
    invoke_without_command=True,
)


def _load_settings_or_exit() -> Settings:
    try:
        return load_settings()
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def sync(
    ctx: typer.Context,
    source: Annotated[
        str,
        typer.Option(
            "--source",
            "-s",
            help="Source host name, or path to a saved manifest.",
        ),
    ],
    targets: Annotated[
        list[str],
        typer.Option(
            "--target",
            "-t",
            help="Target host name (repeatable).",
        ),
    ],
    install_exclude: Annotated[
        list[str] | None,
        typer.Option(
            "--install-exclude",
            help="Feature never installed (repeatable, comma-separated).",
        ),
    ] = None,
    remove_exclude: Annotated[
        list[str] | None,
        typer.Option(
            "--remove-exclude",
            help="Feature never removed (repeatable, comma-separated).",
        ),
    ] = None,
    simulate: Annotated[
        bool,
        typer.Option(
            "--simulate",
            help="Show what would change without changing any host.",
        ),
    ] = False,
    export: Annotated[
        bool,
        typer.Option(
            "--export",
            help="Save the source host's snapshot as a manifest.",
        ),
    ] = False,
    export_path: Annotated[
        Path | None,
        typer.Option(
            "--export-path",
            help="Manifest destination for --export.",
        ),
    ] = None,
    throttle: Annotated[
        int | None,
        typer.Option(
            "--throttle",
            min=1,
            max=64,
            help="Hosts reconciled at the same time (default from settings).",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the result as JSON.",
        ),
    ] = False,
) -> None:
    """Bring target hosts in line with a source.

    Features installed on the source are installed on each target, and
    features not installed on the source are removed from each target,
    one feature at a time. Exits with code 1 if any target failed.

    Examples:
        rolesync sync -s srv-ref-01 -t srv-web-01 -t srv-web-02
        rolesync sync -s srv-ref-01 -t srv-web-01 --simulate
        rolesync sync -s ref.toml -t srv-web-01 --remove-exclude Telnet-Client
        rolesync sync -s srv-ref-01 -t srv-web-01 --export --json
    """
    if ctx.invoked_subcommand is not None:
        return

    settings = _load_settings_or_exit()
    spec = resolve_source(source)
    hosts = dedupe_targets(targets)

    if not hosts:
        print_error("No target hosts given.")
        raise typer.Exit(code=1)

    if (export or export_path is not None) and spec.kind is SourceKind.MANIFEST:
        print_warning("Source is a manifest file; --export is ignored.")

    orchestrator = FleetOrchestrator(
        max_concurrency=throttle or settings.max_concurrency,
        settings=settings,
    )

    install_excluded = build_exclusion_set(settings.install_exclude, install_exclude)
    remove_excluded = build_exclusion_set(settings.remove_exclude, remove_exclude)
    logger.debug(
        "Install exclusions: %s; remove exclusions: %s",
        sorted(install_excluded),
        sorted(remove_excluded),
    )

    if not json_output:
        mode = " (simulated)" if simulate else ""
        print_info(f"Reconciling {len(hosts)} host(s) against {spec.value}{mode}...")

    try:
        result = orchestrator.run(
            spec,
            hosts,
            install_exclude=install_excluded,
            remove_exclude=remove_excluded,
            simulate=simulate,
            export_manifest=export or export_path is not None,
            export_path=export_path,
        )
    except (HostError, ManifestError) as e:
        print_error(f"Cannot read source {spec.value}: {e}")
        raise typer.Exit(code=1) from e

    if settings.record_history:
        record_result_to_history(
            result,
            metadata={"command": "sync", "targets": hosts},
        )

    if json_output:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result, len(hosts))

    if not result.succeeded:
        raise typer.Exit(code=1)


def _print_result(result: ReconciliationResult, target_count: int) -> None:
    if result.actions:
        console.print(create_actions_table(list(result.actions), simulate=result.simulate))
    else:
        print_info("All targets already match the source.")

    if result.failures:
        console.print(create_failures_table(list(result.failures)))

    print_result_summary(result, target_count)
