"""User settings for rolesync.

Settings are stored in ~/.config/rolesync/config.toml. Every key is
optional; a missing file means all defaults.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from rolesync.core.paths import get_settings_path

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """rolesync settings.

    Attributes:
        max_concurrency: Target hosts reconciled at the same time.
        powershell: PowerShell executable used to reach hosts.
        query_timeout_seconds: Time allowed for one inventory query.
        change_timeout_seconds: Time allowed for one install or removal.
        install_exclude: Features never installed, merged with CLI values.
        remove_exclude: Features never removed, merged with CLI values.
        record_history: Append non-simulated runs to the history file.
    """

    model_config = ConfigDict(extra="forbid")

    max_concurrency: Annotated[
        int,
        Field(ge=1, le=64, description="Concurrent target hosts (1-64)"),
    ] = 5
    powershell: Annotated[
        str,
        Field(min_length=1, description="PowerShell executable"),
    ] = "powershell"
    query_timeout_seconds: Annotated[
        int,
        Field(ge=10, le=3600, description="Inventory query timeout in seconds (10-3600)"),
    ] = 300
    change_timeout_seconds: Annotated[
        int,
        Field(ge=60, le=14400, description="Install/remove timeout in seconds (60-14400)"),
    ] = 1800
    install_exclude: Annotated[
        list[str],
        Field(default_factory=list, description="Features never installed"),
    ]
    remove_exclude: Annotated[
        list[str],
        Field(default_factory=list, description="Features never removed"),
    ]
    record_history: Annotated[
        bool,
        Field(description="Record non-simulated runs in the history file"),
    ] = True


class SettingsError(Exception):
    """Raised when the settings file cannot be read, parsed or written."""


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a TOML file.

    Args:
        path: Path to the settings file. If None, uses the default path.

    Returns:
        Validated Settings; defaults when the file does not exist.

    Raises:
        SettingsError: If the file is unreadable, not valid TOML, or
            does not match the schema.
    """
    settings_path = path or get_settings_path()

    if not settings_path.exists():
        logger.debug("No settings file at %s, using defaults", settings_path)
        return Settings()

    try:
        with open(settings_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise SettingsError(f"Invalid TOML syntax in {settings_path}: {e}") from e
    except OSError as e:
        raise SettingsError(f"Failed to read settings {settings_path}: {e}") from e

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings in {settings_path}: {e}") from e


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Save settings to a TOML file atomically.

    Args:
        settings: The settings to save.
        path: Destination. If None, uses the default path.

    Returns:
        Path where the settings were saved.

    Raises:
        SettingsError: If the file cannot be written.
    """
    settings_path = path or get_settings_path()

    tmp_path: Path | None = None
    try:
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=settings_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(settings.model_dump(), f)
        os.replace(str(tmp_path), str(settings_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise SettingsError(f"Failed to write settings {settings_path}: {e}") from e

    return settings_path
