"""Unit tests for the PowerShell feature host.

run_command is patched throughout; the scripts handed to PowerShell are
decoded from -EncodedCommand and inspected.
"""

import base64
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from rolesync.hosts.base import (
    AuditWriteError,
    InstallFailedError,
    QueryFailedError,
    RemoveFailedError,
    UnreachableHostError,
)
from rolesync.hosts.powershell import PowerShellHost, is_local_host, ps_quote
from rolesync.models.feature import FeatureType, InstallState
from rolesync.utils.shell import CommandResult


def _script(mock_run: MagicMock) -> str:
    """Decode the script of the most recent run_command call."""
    args = mock_run.call_args.args[0]
    assert args[-2] == "-EncodedCommand"
    return base64.b64decode(args[-1]).decode("utf-16-le")


class TestHelpers:
    """Tests for quoting and local host detection."""

    def test_ps_quote_doubles_single_quotes(self) -> None:
        assert ps_quote("Web-Server") == "'Web-Server'"
        assert ps_quote("it's") == "'it''s'"

    @pytest.mark.parametrize("name", ["localhost", "LOCALHOST", ".", "127.0.0.1", "::1"])
    def test_local_aliases(self, name: str) -> None:
        assert is_local_host(name)

    @patch("rolesync.hosts.powershell.socket.gethostname", return_value="SRV-WEB-01.corp.example")
    def test_own_hostname_is_local(self, _mock_hostname: MagicMock) -> None:
        assert is_local_host("srv-web-01")
        assert is_local_host("srv-web-01.corp.example")
        assert not is_local_host("srv-web-02")


@patch("rolesync.hosts.powershell.socket.gethostname", return_value="admin-ws")
@patch("rolesync.hosts.powershell.run_command")
class TestQueryInventory:
    """Tests for PowerShellHost.query_inventory."""

    def test_parses_inventory(
        self, mock_run: MagicMock, _mock_hostname: MagicMock, mock_inventory_json: str
    ) -> None:
        mock_run.return_value = CommandResult(mock_inventory_json, "", 0)

        snapshot = PowerShellHost("srv-web-01").query_inventory()

        assert snapshot.hostname == "srv-web-01"
        assert snapshot.names() == ["Web-Server", "Web-WebServer", "Telnet-Client"]
        assert snapshot.installed() == frozenset({"Web-Server", "Web-WebServer"})
        service = snapshot.get("Web-WebServer")
        assert service is not None
        assert service.feature_type is FeatureType.ROLE_SERVICE
        assert service.install_state is InstallState.INSTALLED
        assert service.parent == "Web-Server"
        assert service.path == "Web Server (IIS)\\Web Server"

    def test_single_object_output(self, mock_run: MagicMock, _mock_hostname: MagicMock) -> None:
        """ConvertTo-Json emits a bare object for a one-feature catalog."""
        mock_run.return_value = CommandResult(
            '{"Name":"Telnet-Client","Installed":false,"FeatureType":"Feature"}', "", 0
        )

        snapshot = PowerShellHost("srv-web-01").query_inventory()

        assert snapshot.names() == ["Telnet-Client"]

    def test_remote_script_targets_computer(
        self, mock_run: MagicMock, _mock_hostname: MagicMock, mock_inventory_json: str
    ) -> None:
        mock_run.return_value = CommandResult(mock_inventory_json, "", 0)

        PowerShellHost("srv-web-01", executable="pwsh", query_timeout=42.0).query_inventory()

        args = mock_run.call_args.args[0]
        assert args[:3] == ["pwsh", "-NoProfile", "-NonInteractive"]
        assert mock_run.call_args.kwargs["timeout"] == 42.0
        script = _script(mock_run)
        assert "$target = @{ ComputerName = 'srv-web-01' }" in script
        assert "Get-WindowsFeature @target" in script
        assert "ConvertTo-Json -Depth 4 -Compress" in script

    def test_local_script_has_no_computer_name(
        self, mock_run: MagicMock, _mock_hostname: MagicMock, mock_inventory_json: str
    ) -> None:
        mock_run.return_value = CommandResult(mock_inventory_json, "", 0)

        PowerShellHost("localhost").query_inventory()

        script = _script(mock_run)
        assert "$target = @{}" in script
        assert "ComputerName" not in script

    def test_winrm_failure_is_unreachable(
        self, mock_run: MagicMock, _mock_hostname: MagicMock
    ) -> None:
        mock_run.return_value = CommandResult(
            "", "WinRM cannot complete the operation. Verify that the computer exists.", 1
        )

        with pytest.raises(UnreachableHostError, match="WinRM"):
            PowerShellHost("srv-web-01").query_inventory()

    def test_other_failure_is_query_failed(
        self, mock_run: MagicMock, _mock_hostname: MagicMock
    ) -> None:
        mock_run.return_value = CommandResult("", "Access is denied.", 1)

        with pytest.raises(QueryFailedError, match="Access is denied"):
            PowerShellHost("srv-web-01").query_inventory()

    @pytest.mark.parametrize("stdout", ["", "not json", "42", '[{"Installed": true}]'])
    def test_unusable_output(
        self, mock_run: MagicMock, _mock_hostname: MagicMock, stdout: str
    ) -> None:
        mock_run.return_value = CommandResult(stdout, "", 0)

        with pytest.raises(QueryFailedError):
            PowerShellHost("srv-web-01").query_inventory()

    def test_duplicate_names_are_query_failure(
        self, mock_run: MagicMock, _mock_hostname: MagicMock
    ) -> None:
        mock_run.return_value = CommandResult('[{"Name":"A"},{"Name":"A"}]', "", 0)

        with pytest.raises(QueryFailedError, match="Duplicate"):
            PowerShellHost("srv-web-01").query_inventory()

    def test_timeout_is_unreachable(self, mock_run: MagicMock, _mock_hostname: MagicMock) -> None:
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="powershell", timeout=300)

        with pytest.raises(UnreachableHostError, match="timed out after 300s"):
            PowerShellHost("srv-web-01").query_inventory()

    def test_missing_executable_is_unreachable(
        self, mock_run: MagicMock, _mock_hostname: MagicMock
    ) -> None:
        mock_run.side_effect = FileNotFoundError("pwsh")

        with pytest.raises(UnreachableHostError, match="executable not found"):
            PowerShellHost("srv-web-01", executable="pwsh").query_inventory()

    def test_unlaunchable_executable_is_unreachable(
        self, mock_run: MagicMock, _mock_hostname: MagicMock
    ) -> None:
        mock_run.side_effect = PermissionError(13, "Permission denied", "powershell")

        with pytest.raises(UnreachableHostError, match="Cannot start powershell: Permission denied"):
            PowerShellHost("srv-web-01").query_inventory()


@patch("rolesync.hosts.powershell.socket.gethostname", return_value="admin-ws")
@patch("rolesync.hosts.powershell.run_command")
class TestChangeFeature:
    """Tests for install_feature and remove_feature."""

    def test_install(self, mock_run: MagicMock, _mock_hostname: MagicMock) -> None:
        mock_run.return_value = CommandResult("", "", 0)

        PowerShellHost("srv-web-01", change_timeout=900.0).install_feature("Web-Server")

        script = _script(mock_run)
        assert "Install-WindowsFeature -Name 'Web-Server' @target" in script
        assert mock_run.call_args.kwargs["timeout"] == 900.0

    def test_remove(self, mock_run: MagicMock, _mock_hostname: MagicMock) -> None:
        mock_run.return_value = CommandResult("", "", 0)

        PowerShellHost("srv-web-01").remove_feature("Telnet-Client")

        assert "Uninstall-WindowsFeature -Name 'Telnet-Client' @target" in _script(mock_run)

    def test_install_failure(self, mock_run: MagicMock, _mock_hostname: MagicMock) -> None:
        mock_run.return_value = CommandResult("", "Install-WindowsFeature reported failure", 1)

        with pytest.raises(InstallFailedError) as exc_info:
            PowerShellHost("srv-web-01").install_feature("Web-Server")

        assert exc_info.value.feature == "Web-Server"
        assert "reported failure" in exc_info.value.cause

    def test_remove_timeout(self, mock_run: MagicMock, _mock_hostname: MagicMock) -> None:
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="powershell", timeout=1800)

        with pytest.raises(RemoveFailedError, match="timed out after 1800s"):
            PowerShellHost("srv-web-01").remove_feature("Telnet-Client")

    def test_connection_lost_is_unreachable(
        self, mock_run: MagicMock, _mock_hostname: MagicMock
    ) -> None:
        mock_run.return_value = CommandResult("", "The RPC server is unavailable.", 1)

        with pytest.raises(UnreachableHostError):
            PowerShellHost("srv-web-01").install_feature("Web-Server")


@patch("rolesync.hosts.powershell.socket.gethostname", return_value="admin-ws")
@patch("rolesync.hosts.powershell.run_command")
class TestAuditSnapshot:
    """Tests for persist_audit_snapshot."""

    def test_returns_path_from_output(self, mock_run: MagicMock, _mock_hostname: MagicMock) -> None:
        mock_run.return_value = CommandResult(
            "C:\\Windows\\Temp\\rolesync-audit-20260115100000.txt\r\n", "", 0
        )

        path = PowerShellHost("srv-web-01").persist_audit_snapshot(["Web-Server", "it's"])

        assert path == "C:\\Windows\\Temp\\rolesync-audit-20260115100000.txt"
        script = _script(mock_run)
        assert "$names = @('Web-Server', 'it''s')" in script
        assert "Invoke-Command @target" in script

    def test_failure(self, mock_run: MagicMock, _mock_hostname: MagicMock) -> None:
        mock_run.return_value = CommandResult("", "Access to the path is denied.", 1)

        with pytest.raises(AuditWriteError, match="denied"):
            PowerShellHost("srv-web-01").persist_audit_snapshot(["Web-Server"])

    def test_unreachable_becomes_audit_error(
        self, mock_run: MagicMock, _mock_hostname: MagicMock
    ) -> None:
        mock_run.side_effect = FileNotFoundError("powershell")

        with pytest.raises(AuditWriteError):
            PowerShellHost("srv-web-01").persist_audit_snapshot([])


class TestAvailability:
    """Tests for is_available."""

    @patch("rolesync.hosts.powershell.command_exists", return_value=True)
    def test_checks_executable(self, mock_exists: MagicMock) -> None:
        assert PowerShellHost("srv-web-01", executable="pwsh").is_available()
        mock_exists.assert_called_once_with("pwsh")
