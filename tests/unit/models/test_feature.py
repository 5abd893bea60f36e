"""Unit tests for feature models.

Tests for FeatureType, InstallState and FeatureRecord.
"""

from types import MappingProxyType

import pytest

from rolesync.models.feature import FeatureRecord, FeatureType, InstallState


class TestFeatureType:
    """Tests for FeatureType parsing."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Role", FeatureType.ROLE),
            ("Role Service", FeatureType.ROLE_SERVICE),
            ("RoleService", FeatureType.ROLE_SERVICE),
            ("role_service", FeatureType.ROLE_SERVICE),
            ("feature", FeatureType.FEATURE),
        ],
    )
    def test_parse(self, raw: str, expected: FeatureType) -> None:
        assert FeatureType.parse(raw) is expected

    def test_parse_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown feature type"):
            FeatureType.parse("Driver")


class TestInstallState:
    """Tests for InstallState parsing."""

    def test_parse_strings_case_insensitive(self) -> None:
        assert InstallState.parse("installed") is InstallState.INSTALLED
        assert InstallState.parse("InstallPending") is InstallState.INSTALL_PENDING

    def test_parse_servermanager_numbers(self) -> None:
        """Numbers follow the ServerManager enum order."""
        assert InstallState.parse(0) is InstallState.AVAILABLE
        assert InstallState.parse(1) is InstallState.INSTALLED
        assert InstallState.parse(3) is InstallState.REMOVED
        assert InstallState.parse(4) is InstallState.UNINSTALL_PENDING

    @pytest.mark.parametrize("raw", ["Mystery", 5, -1, None, True])
    def test_unrecognized_is_unknown(self, raw: object) -> None:
        assert InstallState.parse(raw) is InstallState.UNKNOWN


class TestFeatureRecord:
    """Tests for FeatureRecord."""

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError, match="name cannot be empty"):
            FeatureRecord("", "", False, InstallState.AVAILABLE, FeatureType.FEATURE)

    def test_negative_depth_rejected(self) -> None:
        with pytest.raises(ValueError, match="depth"):
            FeatureRecord(
                "A", "A", False, InstallState.AVAILABLE, FeatureType.FEATURE, depth=-1
            )

    def test_additional_info_is_read_only(self) -> None:
        """Additional info is copied into a read-only mapping."""
        info = {"NumericId": 2}
        record = FeatureRecord(
            "A", "A", True, InstallState.INSTALLED, FeatureType.ROLE, additional_info=info
        )
        info["NumericId"] = 3

        assert isinstance(record.additional_info, MappingProxyType)
        assert record.additional_info["NumericId"] == 2
        with pytest.raises(TypeError):
            record.additional_info["NumericId"] = 4  # type: ignore[index]

    def test_is_role(self) -> None:
        role = FeatureRecord("A", "A", True, InstallState.INSTALLED, FeatureType.ROLE)
        feature = FeatureRecord("B", "B", True, InstallState.INSTALLED, FeatureType.FEATURE)
        assert role.is_role
        assert not feature.is_role

    def test_hashable(self) -> None:
        record = FeatureRecord("A", "A", True, InstallState.INSTALLED, FeatureType.ROLE)
        assert len({record, record}) == 1


class TestFeatureRecordFromDict:
    """Tests for FeatureRecord.from_dict."""

    def test_powershell_shape(self) -> None:
        """PascalCase Get-WindowsFeature objects are accepted."""
        record = FeatureRecord.from_dict(
            {
                "Name": "Web-WebServer",
                "DisplayName": "Web Server",
                "Installed": True,
                "InstallState": 1,
                "FeatureType": "Role Service",
                "Path": "Web Server (IIS)\\Web Server",
                "Depth": 2,
                "DependsOn": None,
                "Parent": "Web-Server",
                "SubFeatures": ["Web-Common-Http", "Web-Security"],
                "AdditionalInfo": {"NumericId": 140},
            }
        )

        assert record.name == "Web-WebServer"
        assert record.installed is True
        assert record.install_state is InstallState.INSTALLED
        assert record.feature_type is FeatureType.ROLE_SERVICE
        assert record.depth == 2
        assert record.depends_on == ()
        assert record.parent == "Web-Server"
        assert record.sub_features == ("Web-Common-Http", "Web-Security")
        assert record.additional_info == {"NumericId": 140}

    def test_single_name_list_as_string(self) -> None:
        """PowerShell flattens one-element arrays to a string."""
        record = FeatureRecord.from_dict({"Name": "A", "DependsOn": "B", "Installed": False})
        assert record.depends_on == ("B",)

    def test_minimal_defaults(self) -> None:
        record = FeatureRecord.from_dict({"Name": "Telnet-Client", "Installed": False})

        assert record.display_name == "Telnet-Client"
        assert record.install_state is InstallState.AVAILABLE
        assert record.feature_type is FeatureType.FEATURE
        assert record.parent is None

    def test_to_dict_round_trip(self) -> None:
        record = FeatureRecord(
            "Web-Server",
            "Web Server (IIS)",
            True,
            InstallState.INSTALLED,
            FeatureType.ROLE,
            sub_features=("Web-WebServer",),
            additional_info={"MajorVersion": 10},
        )
        assert FeatureRecord.from_dict(record.to_dict()) == record

    def test_missing_name(self) -> None:
        with pytest.raises(KeyError):
            FeatureRecord.from_dict({"Installed": True})

    def test_invalid_name_list(self) -> None:
        with pytest.raises(ValueError, match="list of feature names"):
            FeatureRecord.from_dict({"Name": "A", "SubFeatures": 3})
