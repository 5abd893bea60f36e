"""History entry model for tracking reconciliation runs.

This module defines data structures for recording completed runs in a
history file, one entry per run.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from rolesync.models.action import ActionKind, ActionRecord


@dataclass(frozen=True, slots=True)
class HistoryItem:
    """Single feature change performed on a host.

    Attributes:
        host: Target host name.
        feature: Feature name.
        action: Whether the feature was installed or removed.
    """

    host: str
    feature: str
    action: ActionKind

    def __post_init__(self) -> None:
        """Validate item data after initialization."""
        if not self.host:
            msg = "Host name cannot be empty"
            raise ValueError(msg)
        if not self.feature:
            msg = "Feature name cannot be empty"
            raise ValueError(msg)

    @classmethod
    def from_action(cls, record: ActionRecord) -> HistoryItem:
        """Create a history item from an action record."""
        return cls(host=record.host, feature=record.feature, action=record.action)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {"host": self.host, "feature": self.feature, "action": self.action.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryItem:
        return cls(
            host=data["host"],
            feature=data["feature"],
            action=ActionKind(data["action"]),
        )


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Record of one reconciliation run.

    Attributes:
        id: Unique identifier (12-character hex string from UUID).
        timestamp: When the run finished (ISO 8601 format with timezone).
        source: Host name or manifest path used as the reference.
        items: Feature changes performed during the run.
        failed_hosts: Target hosts whose reconciliation was aborted.
        metadata: Additional context (command, exclusions, etc.).
    """

    id: str
    timestamp: str
    source: str
    items: tuple[HistoryItem, ...]
    failed_hosts: tuple[str, ...] = ()
    metadata: dict[str, Any] = field(default_factory=lambda: {})

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.id:
            msg = "History entry ID cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)

    @property
    def success(self) -> bool:
        """Check if every target host of the run was reconciled."""
        return not self.failed_hosts

    @property
    def hosts(self) -> list[str]:
        """Hosts that were changed during the run, in first-seen order."""
        return list(dict.fromkeys(item.host for item in self.items))

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "source": self.source,
            "items": [item.to_dict() for item in self.items],
            "failed_hosts": list(self.failed_hosts),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        """Deserialize from dictionary.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If item data is invalid.
        """
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            source=data["source"],
            items=tuple(HistoryItem.from_dict(item) for item in data["items"]),
            failed_hosts=tuple(data.get("failed_hosts", ())),
            metadata=data.get("metadata", {}),
        )

    def to_json_line(self) -> str:
        """One compact JSON object, without the trailing newline."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @classmethod
    def from_json_line(cls, line: str) -> HistoryEntry:
        """Parse one line of the history file.

        Raises:
            ValueError: If the line is not JSON (JSONDecodeError) or holds
                an invalid action.
            KeyError: If a required field is missing.
        """
        return cls.from_dict(json.loads(line))


def create_history_entry(
    source: str,
    items: list[HistoryItem],
    failed_hosts: list[str] | None = None,
    metadata: dict[str, Any] | None = None,
) -> HistoryEntry:
    """Create a new history entry with auto-generated ID and timestamp.

    Args:
        source: Host name or manifest path used as the reference.
        items: Feature changes performed during the run.
        failed_hosts: Target hosts whose reconciliation was aborted.
        metadata: Optional additional context.

    Returns:
        New HistoryEntry instance.
    """
    return HistoryEntry(
        id=uuid.uuid4().hex[:12],
        timestamp=datetime.now(UTC).isoformat(),
        source=source,
        items=tuple(items),
        failed_hosts=tuple(failed_hosts or ()),
        metadata=metadata or {},
    )
