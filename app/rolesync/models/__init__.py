"""Data models for rolesync.

This module exports the core data structures used throughout the application.
"""

from rolesync.models.action import (
    ActionKind,
    ActionLog,
    ActionRecord,
    HostFailure,
    ReconciliationResult,
)
from rolesync.models.feature import FeatureRecord, FeatureType, InstallState
from rolesync.models.history import HistoryEntry, HistoryItem, create_history_entry
from rolesync.models.manifest import FeatureEntry, FeatureManifest, ManifestMeta
from rolesync.models.snapshot import FeatureSnapshot

__all__ = [
    "ActionKind",
    "ActionLog",
    "ActionRecord",
    "FeatureEntry",
    "FeatureManifest",
    "FeatureRecord",
    "FeatureSnapshot",
    "FeatureType",
    "HistoryEntry",
    "HistoryItem",
    "HostFailure",
    "InstallState",
    "ManifestMeta",
    "ReconciliationResult",
    "create_history_entry",
]
