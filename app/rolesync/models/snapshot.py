"""Feature snapshot model.

A snapshot is the complete role/feature catalog of one host at one point
in time, as produced by a single inventory query.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from rolesync.models.feature import FeatureRecord


@dataclass(frozen=True, slots=True)
class FeatureSnapshot:
    """Point-in-time catalog of one host.

    Immutable once captured; a newer view of the host is a new snapshot.
    Record order is the catalog order reported by the host.

    Attributes:
        hostname: Host the snapshot was taken from.
        captured_at: ISO format timestamp of the inventory query.
        features: Catalog entries in catalog order.
    """

    hostname: str
    captured_at: str
    features: tuple[FeatureRecord, ...]

    def __post_init__(self) -> None:
        """Validate that feature names are unique within the snapshot."""
        seen: set[str] = set()
        duplicates: list[str] = []
        for record in self.features:
            if record.name in seen:
                duplicates.append(record.name)
            seen.add(record.name)
        if duplicates:
            msg = f"Duplicate feature names in snapshot of {self.hostname}: {duplicates}"
            raise ValueError(msg)

    @classmethod
    def capture(cls, hostname: str, features: Iterable[FeatureRecord]) -> FeatureSnapshot:
        """Create a snapshot stamped with the current time."""
        return cls(
            hostname=hostname,
            captured_at=datetime.now(UTC).isoformat(),
            features=tuple(features),
        )

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[FeatureRecord]:
        return iter(self.features)

    def get(self, name: str) -> FeatureRecord | None:
        """Look up a catalog entry by name."""
        for record in self.features:
            if record.name == name:
                return record
        return None

    def names(self) -> list[str]:
        """All catalog names, in catalog order."""
        return [record.name for record in self.features]

    def installed_names(self) -> list[str]:
        """Names of installed features, in catalog order."""
        return [record.name for record in self.features if record.installed]

    def not_installed_names(self) -> list[str]:
        """Names of features that are not installed, in catalog order."""
        return [record.name for record in self.features if not record.installed]

    def installed(self) -> frozenset[str]:
        """Set of installed feature names."""
        return frozenset(self.installed_names())

    def not_installed(self) -> frozenset[str]:
        """Complement of installed() within the catalog."""
        return frozenset(self.not_installed_names())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "hostname": self.hostname,
            "captured_at": self.captured_at,
            "summary": {
                "total": len(self.features),
                "installed": len(self.installed_names()),
            },
            "features": [record.to_dict() for record in self.features],
        }
