"""Manifest models for persisted feature snapshots.

This module defines the Pydantic models representing the manifest TOML
structure: a saved FeatureSnapshot that can later serve as the source of
a reconciliation run in place of a live host.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from rolesync.models.feature import FeatureRecord, FeatureType, InstallState
from rolesync.models.snapshot import FeatureSnapshot

# Type alias for the schema version
ManifestVersion = Literal["1.0"]

# Type alias for the feature type as written to the manifest
FeatureTypeName = Literal["Role", "Role Service", "Feature"]


class ManifestMeta(BaseModel):
    """Metadata section of the manifest.

    Attributes:
        version: Manifest schema version.
        created: Timestamp when the manifest file was written.
        hostname: Host the snapshot was captured from.
        captured_at: ISO timestamp of the inventory query.
    """

    model_config = ConfigDict(extra="forbid")

    version: Annotated[ManifestVersion, Field(description="Manifest schema version")] = "1.0"
    created: Annotated[datetime, Field(description="Timestamp when manifest was written")]
    hostname: Annotated[str, Field(min_length=1, description="Source host of the snapshot")]
    captured_at: Annotated[str, Field(description="When the snapshot was captured")]


class FeatureEntry(BaseModel):
    """One catalog entry in the manifest."""

    model_config = ConfigDict(extra="forbid")

    name: Annotated[str, Field(min_length=1, description="Unique feature name")]
    display_name: Annotated[str, Field(description="Human-readable name")] = ""
    installed: Annotated[bool, Field(description="Whether the feature is installed")]
    install_state: Annotated[
        str,
        Field(description="Detailed installation state"),
    ] = InstallState.UNKNOWN.value
    feature_type: Annotated[FeatureTypeName, Field(description="Role, role service or feature")]
    path: Annotated[str, Field(description="Location in the catalog tree")] = ""
    depth: Annotated[int, Field(ge=0, description="Nesting level")] = 1
    depends_on: Annotated[list[str], Field(default_factory=list, description="Requirements")]
    parent: Annotated[str | None, Field(description="Parent entry")] = None
    sub_features: Annotated[list[str], Field(default_factory=list, description="Children")]
    additional_info: Annotated[
        dict[str, Any],
        Field(default_factory=dict, description="Opaque platform data"),
    ]

    @classmethod
    def from_record(cls, record: FeatureRecord) -> FeatureEntry:
        """Create a manifest entry from a snapshot record."""
        return cls(
            name=record.name,
            display_name=record.display_name,
            installed=record.installed,
            install_state=record.install_state.value,
            feature_type=record.feature_type.value,  # type: ignore[arg-type]
            path=record.path,
            depth=record.depth,
            depends_on=list(record.depends_on),
            parent=record.parent,
            sub_features=list(record.sub_features),
            additional_info=dict(record.additional_info),
        )

    def to_record(self) -> FeatureRecord:
        """Convert back to an immutable snapshot record."""
        return FeatureRecord(
            name=self.name,
            display_name=self.display_name or self.name,
            installed=self.installed,
            install_state=InstallState.parse(self.install_state),
            feature_type=FeatureType(self.feature_type),
            path=self.path,
            depth=self.depth,
            depends_on=tuple(self.depends_on),
            parent=self.parent,
            sub_features=tuple(self.sub_features),
            additional_info=self.additional_info,
        )


class FeatureManifest(BaseModel):
    """Complete persisted snapshot.

    Attributes:
        meta: Metadata section.
        features: Catalog entries in catalog order.
    """

    model_config = ConfigDict(extra="forbid")

    meta: Annotated[ManifestMeta, Field(description="Manifest metadata")]
    features: Annotated[
        list[FeatureEntry],
        Field(default_factory=list, description="Catalog entries in catalog order"),
    ]

    @model_validator(mode="after")
    def validate_unique_names(self) -> FeatureManifest:
        """Validate that no feature name appears twice."""
        seen: set[str] = set()
        duplicates: set[str] = set()
        for entry in self.features:
            if entry.name in seen:
                duplicates.add(entry.name)
            seen.add(entry.name)
        if duplicates:
            msg = f"Duplicate feature names in manifest: {sorted(duplicates)}"
            raise ValueError(msg)
        return self

    @classmethod
    def from_snapshot(cls, snapshot: FeatureSnapshot) -> FeatureManifest:
        """Build a manifest from a captured snapshot."""
        return cls(
            meta=ManifestMeta(
                created=datetime.now(UTC),
                hostname=snapshot.hostname,
                captured_at=snapshot.captured_at,
            ),
            features=[FeatureEntry.from_record(record) for record in snapshot],
        )

    def to_snapshot(self) -> FeatureSnapshot:
        """Rebuild the snapshot this manifest was saved from."""
        return FeatureSnapshot(
            hostname=self.meta.hostname,
            captured_at=self.meta.captured_at,
            features=tuple(entry.to_record() for entry in self.features),
        )

    @property
    def installed_count(self) -> int:
        """Number of installed features in the manifest."""
        return sum(1 for entry in self.features if entry.installed)
