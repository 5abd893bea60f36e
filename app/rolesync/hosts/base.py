"""Abstract base class for feature hosts.

This module defines the FeatureHost interface the reconciliation engine
drives, and the errors a host may raise.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from rolesync.models.snapshot import FeatureSnapshot


class HostError(Exception):
    """Base exception for errors talking to a host."""

    def __init__(self, host: str, message: str) -> None:
        super().__init__(f"{host}: {message}")
        self.host = host


class UnreachableHostError(HostError):
    """Raised when a host cannot be contacted."""


class QueryFailedError(HostError):
    """Raised when the inventory query ran but produced no usable result."""


class FeatureChangeError(HostError):
    """Base exception for a failed install or removal."""

    verb = "change"

    def __init__(self, host: str, feature: str, cause: str) -> None:
        super().__init__(host, f"failed to {self.verb} {feature}: {cause}")
        self.feature = feature
        self.cause = cause


class InstallFailedError(FeatureChangeError):
    """Raised when installing a feature fails."""

    verb = "install"


class RemoveFailedError(FeatureChangeError):
    """Raised when removing a feature fails."""

    verb = "remove"


class AuditWriteError(HostError):
    """Raised when the pre-change audit file cannot be written.

    Callers treat this as non-fatal.
    """


class FeatureHost(ABC):
    """Abstract base class for all feature hosts.

    A host exposes its role/feature catalog and accepts single-feature
    install and removal requests.

    Example:
        >>> host = PowerShellHost("srv-web-01")
        >>> snapshot = host.query_inventory()
        >>> if "Web-Server" not in snapshot.installed():
        ...     host.install_feature("Web-Server")
    """

    def __init__(self, name: str) -> None:
        if not name:
            msg = "Host name cannot be empty"
            raise ValueError(msg)
        self._name = name

    @property
    def name(self) -> str:
        """Host name as given by the caller."""
        return self._name

    @abstractmethod
    def query_inventory(self) -> FeatureSnapshot:
        """Capture the host's full catalog.

        Raises:
            UnreachableHostError: If the host cannot be contacted.
            QueryFailedError: If the query fails or returns unusable output.
        """

    @abstractmethod
    def install_feature(self, name: str) -> None:
        """Install one feature.

        Raises:
            InstallFailedError: If the installation fails.
            UnreachableHostError: If the host cannot be contacted.
        """

    @abstractmethod
    def remove_feature(self, name: str) -> None:
        """Remove one feature.

        Raises:
            RemoveFailedError: If the removal fails.
            UnreachableHostError: If the host cannot be contacted.
        """

    @abstractmethod
    def persist_audit_snapshot(self, installed_names: Iterable[str]) -> str:
        """Write the given installed names to a temporary file on the host.

        Returns:
            Path of the written file, as seen by the host.

        Raises:
            AuditWriteError: If the file cannot be written.
        """

    def installed_names(self) -> frozenset[str]:
        """Query the host and return the names of installed features."""
        return self.query_inventory().installed()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r})"
