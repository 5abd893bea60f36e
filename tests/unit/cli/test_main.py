"""Unit tests for the top-level CLI application."""

import logging

from typer.testing import CliRunner

from rolesync import __version__
from rolesync.cli.main import app, configure_logging

runner = CliRunner()


class TestMainApp:
    """Tests for global options."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"rolesync version {__version__}" in result.stdout

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "sync" in result.output
        assert "scan" in result.output

    def test_commands_registered(self) -> None:
        result = runner.invoke(app, ["--help"])
        for command in ("sync", "scan", "history", "config"):
            assert command in result.stdout


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_levels(self) -> None:
        configure_logging(verbose=True, quiet=False)
        assert logging.getLogger().level == logging.DEBUG

        configure_logging(verbose=False, quiet=True)
        assert logging.getLogger().level == logging.ERROR

        configure_logging(verbose=False, quiet=False)
        assert logging.getLogger().level == logging.WARNING
