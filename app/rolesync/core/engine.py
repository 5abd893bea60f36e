"""Reconciliation engine for one target host.

This module provides the ReconciliationEngine class that drives a target
host's installed features towards a source snapshot, one feature at a
time, in two phases: installs, then removals.

Acting on one feature can install or remove others as a side effect
(sub-feature cascades). The engine does not model dependencies; it
re-reads the target's installed set before each decision for as long as
that view is trusted, and stops re-reading once a phase has skipped or
simulated a decision. The trust state is the phase's Eligibility.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from enum import Enum
from typing import TYPE_CHECKING

from rolesync.core.exclusions import EMPTY_EXCLUSIONS, ExclusionSet, is_excluded
from rolesync.hosts.base import AuditWriteError
from rolesync.models.action import ActionKind, ActionLog, ActionRecord

if TYPE_CHECKING:
    from rolesync.hosts.base import FeatureHost
    from rolesync.models.snapshot import FeatureSnapshot

logger = logging.getLogger(__name__)


class Eligibility(Enum):
    """Whether the next decision in a phase re-queries the target first.

    Attributes:
        FRESH: Re-query the target's installed set before deciding.
        STALE: Decide against the last queried set.
    """

    FRESH = "fresh"
    STALE = "stale"


class ReconciliationEngine:
    """Engine that reconciles one target host against a source snapshot.

    Each phase walks the source catalog in its original order and starts
    with Eligibility.FRESH. A skipped feature (already in the desired
    state, or excluded) or a simulated action turns eligibility STALE
    for the rest of the phase; nothing turns it FRESH again. A real
    install or removal leaves eligibility as it was.

    Example:
        >>> engine = ReconciliationEngine(PowerShellHost("srv-web-02"))
        >>> log = engine.reconcile(source_snapshot, simulate=True)
        >>> for record in log:
        ...     print(record.feature, record.action.value)
    """

    def __init__(self, host: FeatureHost) -> None:
        """Initialize the engine for one target host.

        Args:
            host: The target host to query and change.
        """
        self.host = host

    def reconcile(
        self,
        source: FeatureSnapshot,
        install_exclude: ExclusionSet = EMPTY_EXCLUSIONS,
        remove_exclude: ExclusionSet = EMPTY_EXCLUSIONS,
        simulate: bool = False,
        log: ActionLog | None = None,
    ) -> ActionLog:
        """Bring the target's installed features in line with the source.

        Before any change, the target's currently installed names are
        written to an audit file on the target (best effort).

        Args:
            source: Reference snapshot.
            install_exclude: Features never installed by this run.
            remove_exclude: Features never removed by this run.
            simulate: Record decisions without changing the target.
            log: Log to append to. Records appended before a failure
                stay in it, so callers can report partial progress.

        Returns:
            The action log for this host.

        Raises:
            HostError: If querying or changing the target fails. Processing
                of this host stops at the first failure.
        """
        if log is None:
            log = ActionLog(self.host.name)

        current = self.host.query_inventory()
        self._write_audit(current.installed_names())

        self._run_phase(
            candidates=source.installed_names(),
            wanted_installed=True,
            exclusions=install_exclude,
            change=self.host.install_feature,
            kind=ActionKind.INSTALLED,
            simulate=simulate,
            log=log,
        )
        self._run_phase(
            candidates=source.not_installed_names(),
            wanted_installed=False,
            exclusions=remove_exclude,
            change=self.host.remove_feature,
            kind=ActionKind.REMOVED,
            simulate=simulate,
            log=log,
        )

        logger.info(
            "%s: %d action(s)%s", self.host.name, len(log), " (simulated)" if simulate else ""
        )
        return log

    def _run_phase(
        self,
        candidates: Sequence[str],
        wanted_installed: bool,
        exclusions: ExclusionSet,
        change: Callable[[str], None],
        kind: ActionKind,
        simulate: bool,
        log: ActionLog,
    ) -> None:
        """Run one phase of the decision loop.

        A feature needs action when its presence in the target's
        installed set differs from wanted_installed and it is not
        excluded.
        """
        eligibility = Eligibility.FRESH
        target_installed: frozenset[str] = frozenset()

        for name in candidates:
            if eligibility is Eligibility.FRESH:
                target_installed = self.host.installed_names()

            needs_action = (name in target_installed) != wanted_installed
            if needs_action and not is_excluded(name, exclusions):
                if simulate:
                    eligibility = Eligibility.STALE
                else:
                    change(name)
                log.append(ActionRecord(host=self.host.name, feature=name, action=kind))
                logger.debug("%s: %s %s", self.host.name, kind.value.lower(), name)
            else:
                eligibility = Eligibility.STALE

    def _write_audit(self, installed_names: list[str]) -> None:
        """Persist the pre-change installed names; failures are only logged."""
        try:
            path = self.host.persist_audit_snapshot(installed_names)
        except AuditWriteError as e:
            logger.warning("Could not write audit snapshot on %s: %s", self.host.name, e)
            return
        logger.info("Audit snapshot of %s written to %s", self.host.name, path)
