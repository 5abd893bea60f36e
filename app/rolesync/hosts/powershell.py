"""PowerShell feature host implementation.

Drives the ServerManager cmdlets (Get-WindowsFeature, Install-WindowsFeature,
Uninstall-WindowsFeature) on the local machine, or on a remote computer
through their -ComputerName parameter and Invoke-Command.
"""

import json
import logging
import socket
import subprocess
from collections.abc import Iterable
from typing import Any

from rolesync.hosts.base import (
    AuditWriteError,
    FeatureHost,
    InstallFailedError,
    QueryFailedError,
    RemoveFailedError,
    UnreachableHostError,
)
from rolesync.models.feature import FeatureRecord
from rolesync.models.snapshot import FeatureSnapshot
from rolesync.utils.shell import CommandResult, command_exists, encode_script, run_command

logger = logging.getLogger(__name__)

# Names that always refer to the machine rolesync runs on
LOCAL_ALIASES: frozenset[str] = frozenset({"localhost", ".", "127.0.0.1", "::1"})

# Fragments of PowerShell/WinRM error text that mean the host was never reached
UNREACHABLE_MARKERS: tuple[str, ...] = (
    "winrm cannot complete the operation",
    "winrm client cannot process the request",
    "the rpc server is unavailable",
    "the network path was not found",
    "no such host is known",
    "cannot connect to",
)

_INVENTORY_SCRIPT = """
Get-WindowsFeature @target | ForEach-Object {
    [pscustomobject]@{
        Name = $_.Name
        DisplayName = $_.DisplayName
        Installed = [bool]$_.Installed
        InstallState = [string]$_.InstallState
        FeatureType = [string]$_.FeatureType
        Path = $_.Path
        Depth = $_.Depth
        DependsOn = @($_.DependsOn)
        Parent = $_.Parent
        SubFeatures = @($_.SubFeatures)
        AdditionalInfo = $_.AdditionalInfo
    }
} | ConvertTo-Json -Depth 4 -Compress
"""

_CHANGE_SCRIPT = """
$result = {cmdlet} -Name {name} @target
if (-not $result.Success) {{
    throw "{cmdlet} reported failure (exit code: $($result.ExitCode))"
}}
"""

_AUDIT_SCRIPT = """
$names = @({names})
$block = {{
    param([string[]]$Names)
    $stamp = Get-Date -Format 'yyyyMMddHHmmss'
    $path = Join-Path $env:TEMP ('rolesync-audit-' + $stamp + '.txt')
    Set-Content -Path $path -Value $Names -Encoding UTF8
    $path
}}
if ($target.Count) {{
    Invoke-Command @target -ScriptBlock $block -ArgumentList (,$names)
}} else {{
    & $block $names
}}
"""


def ps_quote(value: str) -> str:
    """Quote a value as a single-quoted PowerShell string literal."""
    return "'" + value.replace("'", "''") + "'"


def is_local_host(name: str) -> bool:
    """Check if a host name refers to the machine rolesync runs on.

    Args:
        name: Host name as given by the user.

    Returns:
        True for localhost aliases and this machine's own hostname.
    """
    lowered = name.strip().lower()
    if lowered in LOCAL_ALIASES:
        return True
    own = socket.gethostname().lower()
    return lowered in (own, own.split(".")[0])


class PowerShellHost(FeatureHost):
    """Feature host backed by the ServerManager PowerShell module.

    Attributes:
        executable: PowerShell executable ('powershell' or 'pwsh').
        query_timeout: Seconds allowed for an inventory query or audit write.
        change_timeout: Seconds allowed for one install or removal.
    """

    def __init__(
        self,
        name: str,
        executable: str = "powershell",
        query_timeout: float = 300.0,
        change_timeout: float = 1800.0,
    ) -> None:
        super().__init__(name)
        self._executable = executable
        self._query_timeout = query_timeout
        self._change_timeout = change_timeout

    @property
    def executable(self) -> str:
        return self._executable

    @property
    def is_local(self) -> bool:
        """Check if cmdlets run without -ComputerName."""
        return is_local_host(self.name)

    def is_available(self) -> bool:
        """Check if the PowerShell executable is on PATH."""
        return command_exists(self._executable)

    def query_inventory(self) -> FeatureSnapshot:
        """Capture the host's catalog with Get-WindowsFeature.

        Raises:
            UnreachableHostError: If the host cannot be contacted.
            QueryFailedError: If the query fails or returns unusable output.
        """
        logger.debug("Querying feature inventory of %s", self.name)
        try:
            result = self._run(_INVENTORY_SCRIPT, self._query_timeout)
        except subprocess.TimeoutExpired as e:
            raise UnreachableHostError(
                self.name, f"inventory query timed out after {e.timeout:.0f}s"
            ) from e

        if not result.success:
            self._raise_if_unreachable(result)
            raise QueryFailedError(self.name, result.output or f"exit code {result.returncode}")

        records = self._parse_inventory(result.stdout)
        try:
            return FeatureSnapshot.capture(self.name, records)
        except ValueError as e:
            raise QueryFailedError(self.name, str(e)) from e

    def install_feature(self, name: str) -> None:
        """Install one feature with Install-WindowsFeature.

        Raises:
            InstallFailedError: If the installation fails or times out.
            UnreachableHostError: If the host cannot be contacted.
        """
        logger.info("Installing %s on %s", name, self.name)
        cause = self._change("Install-WindowsFeature", name)
        if cause is not None:
            raise InstallFailedError(self.name, name, cause)

    def remove_feature(self, name: str) -> None:
        """Remove one feature with Uninstall-WindowsFeature.

        Raises:
            RemoveFailedError: If the removal fails or times out.
            UnreachableHostError: If the host cannot be contacted.
        """
        logger.info("Removing %s from %s", name, self.name)
        cause = self._change("Uninstall-WindowsFeature", name)
        if cause is not None:
            raise RemoveFailedError(self.name, name, cause)

    def persist_audit_snapshot(self, installed_names: Iterable[str]) -> str:
        """Write installed names to $env:TEMP on the host.

        Raises:
            AuditWriteError: If the file cannot be written.
        """
        names = ", ".join(ps_quote(name) for name in installed_names)
        script = _AUDIT_SCRIPT.format(names=names)
        try:
            result = self._run(script, self._query_timeout)
        except (subprocess.TimeoutExpired, UnreachableHostError) as e:
            raise AuditWriteError(self.name, str(e)) from e

        lines = result.stdout.strip().splitlines()
        if not result.success or not lines:
            raise AuditWriteError(self.name, result.output or "no audit path returned")
        return lines[-1].strip()

    def _change(self, cmdlet: str, feature: str) -> str | None:
        """Run an install/uninstall cmdlet; return a failure cause or None."""
        script = _CHANGE_SCRIPT.format(cmdlet=cmdlet, name=ps_quote(feature))
        try:
            result = self._run(script, self._change_timeout)
        except subprocess.TimeoutExpired as e:
            return f"timed out after {e.timeout:.0f}s"

        if result.success:
            return None
        self._raise_if_unreachable(result)
        return result.output or f"exit code {result.returncode}"

    def _run(self, body: str, timeout: float) -> CommandResult:
        """Run a script body with $target bound to the splatting table.

        Raises:
            UnreachableHostError: If the PowerShell executable is missing or
                cannot be started.
            subprocess.TimeoutExpired: If the script exceeds the timeout.
        """
        if self.is_local:
            target = "$target = @{}"
        else:
            target = f"$target = @{{ ComputerName = {ps_quote(self.name)} }}"
        script = f"$ErrorActionPreference = 'Stop'\n{target}\n{body}"

        args = [
            self._executable,
            "-NoProfile",
            "-NonInteractive",
            "-ExecutionPolicy",
            "Bypass",
            "-EncodedCommand",
            encode_script(script),
        ]
        try:
            return run_command(args, timeout=timeout)
        except FileNotFoundError as e:
            raise UnreachableHostError(
                self.name, f"PowerShell executable not found: {self._executable}"
            ) from e
        except OSError as e:
            raise UnreachableHostError(
                self.name, f"Cannot start {self._executable}: {e.strerror or e}"
            ) from e

    def _raise_if_unreachable(self, result: CommandResult) -> None:
        """Raise UnreachableHostError when the error text is a connection failure."""
        text = result.output.lower()
        if any(marker in text for marker in UNREACHABLE_MARKERS):
            raise UnreachableHostError(self.name, result.output)

    def _parse_inventory(self, stdout: str) -> list[FeatureRecord]:
        """Parse ConvertTo-Json output into records.

        Raises:
            QueryFailedError: If the output is empty or malformed.
        """
        text = stdout.strip()
        if not text:
            raise QueryFailedError(self.name, "inventory query returned no features")

        try:
            data: Any = json.loads(text)
        except json.JSONDecodeError as e:
            raise QueryFailedError(self.name, f"invalid inventory JSON: {e}") from e

        # ConvertTo-Json emits a bare object for a single-element pipeline
        items = [data] if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise QueryFailedError(self.name, "inventory JSON is not a list of features")

        try:
            return [FeatureRecord.from_dict(item) for item in items]
        except (KeyError, TypeError, ValueError) as e:
            raise QueryFailedError(self.name, f"invalid feature entry: {e}") from e
