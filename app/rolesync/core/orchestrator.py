"""Fleet orchestration.

This module resolves the reference state (a source host or a saved
manifest), then reconciles every target host against it on a bounded
thread pool. Failures on one target never affect the others.
"""

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from rolesync.core.engine import ReconciliationEngine
from rolesync.core.exclusions import EMPTY_EXCLUSIONS, ExclusionSet
from rolesync.core.manifest import ManifestSaveError, load_manifest, save_manifest
from rolesync.core.paths import get_default_manifest_path
from rolesync.core.settings import Settings
from rolesync.hosts.base import FeatureHost, HostError
from rolesync.hosts.powershell import PowerShellHost
from rolesync.models.action import ActionLog, ActionRecord, HostFailure, ReconciliationResult
from rolesync.models.snapshot import FeatureSnapshot

logger = logging.getLogger(__name__)

HostFactory = Callable[[str], FeatureHost]

MANIFEST_SUFFIX = ".toml"


class SourceKind(Enum):
    """Where the reference state comes from."""

    HOST = "host"
    MANIFEST = "manifest"


@dataclass(frozen=True, slots=True)
class SourceSpec:
    """Reference state location.

    Attributes:
        kind: Host or manifest file.
        value: Host name or manifest path.
    """

    kind: SourceKind
    value: str

    def __post_init__(self) -> None:
        if not self.value:
            msg = "Source cannot be empty"
            raise ValueError(msg)


def resolve_source(value: str) -> SourceSpec:
    """Classify a source argument.

    A value naming an existing file, ending in .toml, or containing a path
    separator is a manifest path; anything else is a host name.
    """
    path = Path(value).expanduser()
    if path.is_file() or _looks_like_path(value):
        return SourceSpec(kind=SourceKind.MANIFEST, value=str(path))
    return SourceSpec(kind=SourceKind.HOST, value=value)


def _looks_like_path(value: str) -> bool:
    if value.lower().endswith(MANIFEST_SUFFIX):
        return True
    return any(sep in value for sep in ("/", "\\"))


def dedupe_targets(targets: Iterable[str]) -> list[str]:
    """Drop repeated target names, case-insensitively; first occurrence wins."""
    seen: set[str] = set()
    unique: list[str] = []
    for target in targets:
        name = target.strip()
        if not name or name.lower() in seen:
            continue
        seen.add(name.lower())
        unique.append(name)
    return unique


@dataclass(frozen=True, slots=True)
class _HostOutcome:
    host: str
    records: tuple[ActionRecord, ...]
    failure: HostFailure | None = None


class FleetOrchestrator:
    """Reconciles a fleet of target hosts against one source.

    The source is acquired once, in the calling thread. Targets are then
    reconciled concurrently, each with its own engine and action log.

    Example:
        >>> orchestrator = FleetOrchestrator(max_concurrency=4)
        >>> result = orchestrator.run("srv-ref-01", ["srv-web-01", "srv-web-02"])
        >>> result.succeeded
        True
    """

    def __init__(
        self,
        host_factory: HostFactory | None = None,
        max_concurrency: int | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            host_factory: Builds a FeatureHost for a host name. Defaults to
                PowerShellHost configured from settings.
            max_concurrency: Upper bound on hosts reconciled at once.
                Defaults to settings.max_concurrency.
            settings: Settings for the default host factory.

        Raises:
            ValueError: If max_concurrency is less than 1.
        """
        self._settings = settings or Settings()
        if max_concurrency is None:
            max_concurrency = self._settings.max_concurrency
        if max_concurrency < 1:
            msg = f"max_concurrency must be at least 1, got {max_concurrency}"
            raise ValueError(msg)
        self.max_concurrency = max_concurrency
        self._host_factory = host_factory or self._default_host_factory

    def _default_host_factory(self, name: str) -> FeatureHost:
        return PowerShellHost(
            name,
            executable=self._settings.powershell,
            query_timeout=float(self._settings.query_timeout_seconds),
            change_timeout=float(self._settings.change_timeout_seconds),
        )

    def run(
        self,
        source: SourceSpec | str,
        targets: Iterable[str],
        install_exclude: ExclusionSet = EMPTY_EXCLUSIONS,
        remove_exclude: ExclusionSet = EMPTY_EXCLUSIONS,
        simulate: bool = False,
        export_manifest: bool = False,
        export_path: Path | None = None,
    ) -> ReconciliationResult:
        """Reconcile every target against the source.

        Args:
            source: SourceSpec, or a raw value passed to resolve_source().
            targets: Target host names.
            install_exclude: Features never installed.
            remove_exclude: Features never removed.
            simulate: Record decisions without changing any target.
            export_manifest: Save a host source's snapshot as a manifest.
            export_path: Manifest destination; defaults to the data dir.

        Returns:
            Actions of every target plus the targets that failed.

        Raises:
            HostError: If the source host cannot be queried.
            ManifestError: If the source manifest cannot be loaded.
        """
        spec = source if isinstance(source, SourceSpec) else resolve_source(source)
        snapshot = self.acquire_source(spec, export_manifest=export_manifest, export_path=export_path)

        hosts = dedupe_targets(targets)
        logger.info(
            "Reconciling %d host(s) against %s (%d features)",
            len(hosts),
            spec.value,
            len(snapshot),
        )

        actions: list[ActionRecord] = []
        failures: list[HostFailure] = []
        if hosts:
            workers = min(self.max_concurrency, len(hosts))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="rolesync") as pool:
                futures = [
                    pool.submit(
                        self._reconcile_host, host, snapshot, install_exclude, remove_exclude, simulate
                    )
                    for host in hosts
                ]
                for future in as_completed(futures):
                    outcome = future.result()
                    actions.extend(outcome.records)
                    if outcome.failure is not None:
                        failures.append(outcome.failure)

        return ReconciliationResult(
            source=spec.value,
            simulate=simulate,
            actions=tuple(actions),
            failures=tuple(failures),
        )

    def acquire_source(
        self,
        spec: SourceSpec,
        export_manifest: bool = False,
        export_path: Path | None = None,
    ) -> FeatureSnapshot:
        """Load or query the reference snapshot.

        Raises:
            HostError: If the source host cannot be queried.
            ManifestError: If the manifest cannot be loaded.
        """
        if spec.kind is SourceKind.MANIFEST:
            logger.info("Loading source manifest %s", spec.value)
            return load_manifest(Path(spec.value))

        logger.info("Querying source host %s", spec.value)
        snapshot = self._host_factory(spec.value).query_inventory()

        if export_manifest:
            destination = export_path or get_default_manifest_path(spec.value)
            try:
                saved = save_manifest(snapshot, destination)
            except ManifestSaveError as e:
                logger.warning("Could not export manifest of %s: %s", spec.value, e)
            else:
                logger.info("Exported manifest of %s to %s", spec.value, saved)

        return snapshot

    def _reconcile_host(
        self,
        host_name: str,
        source: FeatureSnapshot,
        install_exclude: ExclusionSet,
        remove_exclude: ExclusionSet,
        simulate: bool,
    ) -> _HostOutcome:
        log = ActionLog(host_name)
        try:
            host = self._host_factory(host_name)
            ReconciliationEngine(host).reconcile(
                source,
                install_exclude=install_exclude,
                remove_exclude=remove_exclude,
                simulate=simulate,
                log=log,
            )
        except HostError as e:
            logger.error("Reconciliation of %s failed: %s", host_name, e)
            return _HostOutcome(host_name, log.records, HostFailure.from_exception(host_name, e))
        except Exception as e:
            logger.exception("Unexpected error while reconciling %s", host_name)
            return _HostOutcome(host_name, log.records, HostFailure.from_exception(host_name, e))
        return _HostOutcome(host_name, log.records)
