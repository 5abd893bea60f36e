"""Action models for reconciliation runs.

This module defines data structures for the outcome of a run: one
ActionRecord per feature the engine decided to act on, the per-host
ActionLog that collects them, and the fleet-wide ReconciliationResult.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ActionKind(Enum):
    """What the engine did (or, under simulation, would do) to a feature.

    Attributes:
        INSTALLED: The feature was installed on the target.
        REMOVED: The feature was removed from the target.
    """

    INSTALLED = "Installed"
    REMOVED = "Removed"


@dataclass(frozen=True, slots=True)
class ActionRecord:
    """A single decision taken for one feature on one target host.

    Created whether or not simulation suppressed the actual change.

    Attributes:
        host: Target host name.
        feature: Feature name.
        action: Install or removal.
    """

    host: str
    feature: str
    action: ActionKind

    def __post_init__(self) -> None:
        """Validate action data after initialization."""
        if not self.host:
            msg = "Host name cannot be empty"
            raise ValueError(msg)
        if not self.feature:
            msg = "Feature name cannot be empty"
            raise ValueError(msg)

    @property
    def is_install(self) -> bool:
        """Check if this is an install action."""
        return self.action == ActionKind.INSTALLED

    @property
    def is_remove(self) -> bool:
        """Check if this is a removal action."""
        return self.action == ActionKind.REMOVED

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"host": self.host, "feature": self.feature, "action": self.action.value}


class ActionLog:
    """Append-only, ordered record of the actions taken on one host."""

    def __init__(self, host: str) -> None:
        self._host = host
        self._records: list[ActionRecord] = []

    @property
    def host(self) -> str:
        return self._host

    @property
    def records(self) -> tuple[ActionRecord, ...]:
        """Snapshot of the records appended so far."""
        return tuple(self._records)

    def append(self, record: ActionRecord) -> None:
        """Append a record.

        Raises:
            ValueError: If the record belongs to a different host.
        """
        if record.host != self._host:
            msg = f"Cannot log an action for {record.host} in the log of {self._host}"
            raise ValueError(msg)
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ActionRecord]:
        return iter(tuple(self._records))


@dataclass(frozen=True, slots=True)
class HostFailure:
    """A target host whose reconciliation was aborted.

    Attributes:
        host: Target host name.
        error_type: Exception class name (e.g., 'UnreachableHostError').
        message: Error message.
    """

    host: str
    error_type: str
    message: str

    @classmethod
    def from_exception(cls, host: str, error: BaseException) -> HostFailure:
        """Create a failure record from the exception that aborted the host."""
        return cls(host=host, error_type=type(error).__name__, message=str(error))

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"host": self.host, "error_type": self.error_type, "message": self.message}


@dataclass(frozen=True, slots=True)
class ReconciliationResult:
    """Aggregate outcome of one fleet run.

    Attributes:
        source: Host name or manifest path the reference state came from.
        simulate: Whether the run was a simulation.
        actions: Actions across all target hosts, per-host order preserved.
        failures: Target hosts whose reconciliation was aborted.
    """

    source: str
    simulate: bool = False
    actions: tuple[ActionRecord, ...] = field(default_factory=tuple)
    failures: tuple[HostFailure, ...] = field(default_factory=tuple)

    @property
    def succeeded(self) -> bool:
        """Check if every target host was reconciled without error."""
        return not self.failures

    @property
    def failed_hosts(self) -> list[str]:
        """Names of target hosts that failed, in the order they were reported."""
        return [failure.host for failure in self.failures]

    @property
    def install_count(self) -> int:
        return sum(1 for record in self.actions if record.is_install)

    @property
    def remove_count(self) -> int:
        return sum(1 for record in self.actions if record.is_remove)

    def for_host(self, host: str) -> list[ActionRecord]:
        """Actions taken on one host, in the order they were taken."""
        return [record for record in self.actions if record.host == host]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "source": self.source,
            "simulate": self.simulate,
            "summary": {
                "installed": self.install_count,
                "removed": self.remove_count,
                "failed_hosts": len(self.failures),
            },
            "actions": [record.to_dict() for record in self.actions],
            "failures": [failure.to_dict() for failure in self.failures],
        }
