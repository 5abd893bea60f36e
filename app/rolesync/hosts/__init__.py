"""Feature hosts for querying and changing role/feature state.

This module exports the host interface, its error taxonomy, and the
PowerShell implementation.
"""

from rolesync.hosts.base import (
    AuditWriteError,
    FeatureChangeError,
    FeatureHost,
    HostError,
    InstallFailedError,
    QueryFailedError,
    RemoveFailedError,
    UnreachableHostError,
)
from rolesync.hosts.powershell import PowerShellHost, is_local_host

__all__ = [
    "AuditWriteError",
    "FeatureChangeError",
    "FeatureHost",
    "HostError",
    "InstallFailedError",
    "PowerShellHost",
    "QueryFailedError",
    "RemoveFailedError",
    "UnreachableHostError",
    "is_local_host",
]
