"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path

import pytest
from fakes import FakeHost, make_snapshot

from rolesync.models.snapshot import FeatureSnapshot


@pytest.fixture(autouse=True)
def isolated_xdg_dirs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every XDG directory into tmp_path so no test touches $HOME."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    return tmp_path


@pytest.fixture
def source_snapshot() -> FeatureSnapshot:
    """Source with A and B installed and C available."""
    return make_snapshot("srv-ref-01", [("A", True), ("B", True), ("C", False)])


@pytest.fixture
def target_host() -> FakeHost:
    """Target with B and C installed."""
    return FakeHost("srv-web-01", catalog=["A", "B", "C"], installed={"B", "C"})


@pytest.fixture
def mock_inventory_json() -> str:
    """Sample Get-WindowsFeature output as produced by the inventory script."""
    return (
        '[{"Name":"Web-Server","DisplayName":"Web Server (IIS)","Installed":true,'
        '"InstallState":"Installed","FeatureType":"Role","Path":"Web Server (IIS)",'
        '"Depth":1,"DependsOn":[],"Parent":null,"SubFeatures":["Web-WebServer"],'
        '"AdditionalInfo":{"MajorVersion":10,"NumericId":2}},'
        '{"Name":"Web-WebServer","DisplayName":"Web Server","Installed":true,'
        '"InstallState":1,"FeatureType":"Role Service",'
        '"Path":"Web Server (IIS)\\\\Web Server","Depth":2,"DependsOn":[],'
        '"Parent":"Web-Server","SubFeatures":[],"AdditionalInfo":{}},'
        '{"Name":"Telnet-Client","DisplayName":"Telnet Client","Installed":false,'
        '"InstallState":"Available","FeatureType":"Feature","Path":"Telnet Client",'
        '"Depth":1,"DependsOn":[],"Parent":null,"SubFeatures":[],"AdditionalInfo":null}]'
    )
