"""Unit tests for the scan command."""

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from fakes import make_record
from typer.testing import CliRunner

from rolesync.cli.main import app
from rolesync.core.manifest import load_manifest
from rolesync.hosts.base import UnreachableHostError
from rolesync.models.feature import FeatureType
from rolesync.models.snapshot import FeatureSnapshot

runner = CliRunner()


@pytest.fixture
def web_snapshot() -> FeatureSnapshot:
    return FeatureSnapshot(
        hostname="srv-web-01",
        captured_at="2026-01-15T10:00:00+00:00",
        features=(
            make_record("Web-Server", installed=True, feature_type=FeatureType.ROLE),
            make_record("Web-WebServer", installed=True, feature_type=FeatureType.ROLE_SERVICE, depth=2),
            make_record("Telnet-Client"),
        ),
    )


@pytest.fixture
def mock_host(web_snapshot: FeatureSnapshot):
    with patch("rolesync.cli.commands.scan.PowerShellHost") as mock_cls:
        mock_cls.return_value.query_inventory.return_value = web_snapshot
        yield mock_cls


class TestScanCommand:
    """Tests for rolesync scan."""

    def test_help(self) -> None:
        result = runner.invoke(app, ["scan", "--help"])
        assert result.exit_code == 0
        assert "--installed-only" in result.stdout

    def test_table(self, mock_host: MagicMock) -> None:
        result = runner.invoke(app, ["scan", "srv-web-01"])

        assert result.exit_code == 0, result.output
        assert "Web-Server" in result.stdout
        assert "Telnet-Client" in result.stdout
        assert "2 of 3 installed on srv-web-01" in result.stdout
        mock_host.assert_called_once_with(
            "srv-web-01", executable="powershell", query_timeout=300.0, change_timeout=1800.0
        )

    def test_installed_only(self, mock_host: MagicMock) -> None:
        result = runner.invoke(app, ["scan", "srv-web-01", "--installed-only"])

        assert result.exit_code == 0
        assert "Telnet-Client" not in result.stdout

    def test_limit(self, mock_host: MagicMock) -> None:
        result = runner.invoke(app, ["scan", "srv-web-01", "--limit", "1"])

        assert result.exit_code == 0
        assert "Showing 1 of 3 entries" in result.stdout

    def test_json(self, mock_host: MagicMock) -> None:
        result = runner.invoke(app, ["scan", "srv-web-01", "--format", "json", "-i"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["hostname"] == "srv-web-01"
        assert data["summary"] == {"total": 3, "installed": 2}
        assert [f["name"] for f in data["features"]] == ["Web-Server", "Web-WebServer"]

    def test_export(self, mock_host: MagicMock, tmp_path: Path) -> None:
        path = tmp_path / "web.toml"

        result = runner.invoke(app, ["scan", "srv-web-01", "--export", str(path)])

        assert result.exit_code == 0, result.output
        assert load_manifest(path).names() == ["Web-Server", "Web-WebServer", "Telnet-Client"]

    def test_export_to_directory_fails(self, mock_host: MagicMock, tmp_path: Path) -> None:
        result = runner.invoke(app, ["scan", "srv-web-01", "--export", str(tmp_path)])

        assert result.exit_code == 1
        assert "is a directory" in result.output

    def test_unreachable_host(self, mock_host: MagicMock) -> None:
        mock_host.return_value.query_inventory.side_effect = UnreachableHostError(
            "srv-web-01", "WinRM cannot complete the operation"
        )

        result = runner.invoke(app, ["scan", "srv-web-01"])

        assert result.exit_code == 1
        assert "Scan failed" in result.output

    def test_host_required(self) -> None:
        result = runner.invoke(app, ["scan"])
        assert result.exit_code == 2

    def test_missing_powershell(self, mock_host: MagicMock) -> None:
        mock_host.return_value.is_available.return_value = False

        result = runner.invoke(app, ["scan", "srv-web-01"])

        assert result.exit_code == 1
        assert "PowerShell executable not found" in result.output
        mock_host.return_value.query_inventory.assert_not_called()
