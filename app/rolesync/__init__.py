"""rolesync - Windows Server role and feature reconciliation across a fleet."""

__version__ = "0.1.0"
