"""Feature models for role and feature catalogs.

This module defines the core data structures for representing one entry
of a host's Windows Server role/feature catalog, as reported by
Get-WindowsFeature.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class FeatureType(Enum):
    """Kind of catalog entry."""

    ROLE = "Role"
    ROLE_SERVICE = "Role Service"
    FEATURE = "Feature"

    @classmethod
    def parse(cls, value: object) -> FeatureType:
        """Parse a feature type as written by PowerShell or by rolesync.

        Accepts "Role Service" as well as "RoleService" / "role_service".

        Raises:
            ValueError: If the value names no known feature type.
        """
        normalized = str(value).replace(" ", "").replace("_", "").lower()
        for member in cls:
            if member.value.replace(" ", "").lower() == normalized:
                return member
        msg = f"Unknown feature type: {value!r}"
        raise ValueError(msg)


class InstallState(Enum):
    """Installation state of a catalog entry.

    The declaration order of the first five members matches the numeric
    values of the ServerManager InstallState enum, which is what
    ConvertTo-Json emits when the state is not stringified.
    """

    AVAILABLE = "Available"
    INSTALLED = "Installed"
    INSTALL_PENDING = "InstallPending"
    REMOVED = "Removed"
    UNINSTALL_PENDING = "UninstallPending"
    UNKNOWN = "UnknownState"

    @classmethod
    def parse(cls, value: object) -> InstallState:
        """Parse an install state from a string or ServerManager enum number.

        Unrecognized strings and out-of-range numbers map to UNKNOWN.
        """
        if isinstance(value, int) and not isinstance(value, bool):
            members = list(cls)
            if 0 <= value < len(members) - 1:
                return members[value]
            return cls.UNKNOWN
        text = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        return cls.UNKNOWN


@dataclass(frozen=True, slots=True)
class FeatureRecord:
    """One role, role service or feature in a host's catalog.

    Attributes:
        name: Unique catalog key (e.g., 'Web-Server').
        display_name: Human-readable name (e.g., 'Web Server (IIS)').
        installed: Whether the feature is currently installed.
        install_state: Detailed installation state.
        feature_type: Role, role service or feature.
        path: Hierarchical location in the catalog tree.
        depth: Nesting level in the catalog tree (1 = top level).
        depends_on: Names of features this one requires, in catalog order.
        parent: Name of the parent entry, if any.
        sub_features: Names of the child entries, in catalog order.
        additional_info: Opaque platform-specific key/value data.
    """

    name: str
    display_name: str
    installed: bool
    install_state: InstallState
    feature_type: FeatureType
    path: str = ""
    depth: int = 1
    depends_on: tuple[str, ...] = ()
    parent: str | None = None
    sub_features: tuple[str, ...] = ()
    additional_info: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), hash=False
    )

    def __post_init__(self) -> None:
        """Validate feature data after initialization."""
        if not self.name:
            msg = "Feature name cannot be empty"
            raise ValueError(msg)
        if self.depth < 0:
            msg = f"Feature depth cannot be negative, got {self.depth}"
            raise ValueError(msg)
        if not isinstance(self.additional_info, MappingProxyType):
            object.__setattr__(
                self, "additional_info", MappingProxyType(dict(self.additional_info))
            )

    @property
    def is_role(self) -> bool:
        """Check if this entry is a top-level role."""
        return self.feature_type == FeatureType.ROLE

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "display_name": self.display_name,
            "installed": self.installed,
            "install_state": self.install_state.value,
            "feature_type": self.feature_type.value,
            "path": self.path,
            "depth": self.depth,
            "depends_on": list(self.depends_on),
            "parent": self.parent,
            "sub_features": list(self.sub_features),
            "additional_info": dict(self.additional_info),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FeatureRecord:
        """Build a record from a Get-WindowsFeature object or a to_dict() mapping.

        PascalCase keys (PowerShell) and snake_case keys (rolesync) are
        both accepted.

        Raises:
            KeyError: If the name is missing.
            ValueError: If the feature type is unknown or the data is invalid.
        """

        def pick(snake: str, pascal: str, default: Any = None) -> Any:
            if snake in data:
                return data[snake]
            return data.get(pascal, default)

        name = pick("name", "Name")
        if name is None:
            raise KeyError("name")

        installed = bool(pick("installed", "Installed", False))
        raw_state = pick("install_state", "InstallState")
        if raw_state is None:
            install_state = InstallState.INSTALLED if installed else InstallState.AVAILABLE
        else:
            install_state = InstallState.parse(raw_state)

        return cls(
            name=str(name),
            display_name=str(pick("display_name", "DisplayName") or name),
            installed=installed,
            install_state=install_state,
            feature_type=FeatureType.parse(pick("feature_type", "FeatureType", "Feature")),
            path=str(pick("path", "Path") or ""),
            depth=int(pick("depth", "Depth", 1) or 0),
            depends_on=_name_tuple(pick("depends_on", "DependsOn")),
            parent=pick("parent", "Parent") or None,
            sub_features=_name_tuple(pick("sub_features", "SubFeatures")),
            additional_info=dict(pick("additional_info", "AdditionalInfo") or {}),
        )


def _name_tuple(value: object) -> tuple[str, ...]:
    """Normalize a PowerShell name list (None, a single string, or a list)."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    if isinstance(value, list | tuple):
        return tuple(str(item) for item in value if item)
    msg = f"Expected a list of feature names, got {type(value).__name__}"
    raise ValueError(msg)
