"""CLI commands for rolesync.

This package contains all subcommand implementations.
"""

from rolesync.cli.commands import config, history, scan, sync

__all__ = ["config", "history", "scan", "sync"]
