"""CLI package for rolesync.

This package contains the Typer application and all subcommands.
"""

from rolesync.cli.main import app

__all__ = ["app"]
