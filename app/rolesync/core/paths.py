"""Path management for rolesync.

Follows the XDG Base Directory layout for configuration, state and
data storage. On Windows, where no XDG variable is set, the per-user
application data folders are used instead.

XDG defaults:
- Config: ~/.config/rolesync/
- State: ~/.local/state/rolesync/
- Data: ~/.local/share/rolesync/

Windows defaults:
- Config: %APPDATA%\\rolesync\\
- State: %LOCALAPPDATA%\\rolesync\\state\\
- Data: %LOCALAPPDATA%\\rolesync\\data\\
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "rolesync"


def _is_windows() -> bool:
    return os.name == "nt"


def _get_app_dir(
    env_var: str,
    default_subdir: str,
    windows_var: str,
    windows_subdir: str | None = None,
) -> Path:
    """Resolve an application directory.

    An XDG variable always wins. On Windows the APPDATA/LOCALAPPDATA
    folder comes next, then the XDG default under the home directory.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").
        windows_var: Windows folder variable (e.g., "APPDATA").
        windows_subdir: Subdirectory below the Windows application folder.

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    if _is_windows():
        root = os.environ.get(windows_var)
        if root:
            app_dir = Path(root) / APP_NAME
            return app_dir / windows_subdir if windows_subdir else app_dir
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/rolesync/ (or XDG_CONFIG_HOME/rolesync/).
    """
    return _get_app_dir("XDG_CONFIG_HOME", ".config", "APPDATA")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the run history, which should persist between
    runs but is not configuration.

    Returns:
        Path to ~/.local/state/rolesync/ (or XDG_STATE_HOME/rolesync/).
    """
    return _get_app_dir("XDG_STATE_HOME", ".local/state", "LOCALAPPDATA", "state")


def get_data_dir() -> Path:
    """Get the data directory path.

    Returns:
        Path to ~/.local/share/rolesync/ (or XDG_DATA_HOME/rolesync/).
    """
    return _get_app_dir("XDG_DATA_HOME", ".local/share", "LOCALAPPDATA", "data")


def get_settings_path() -> Path:
    """Get the settings file path.

    Returns:
        Path to config.toml in the configuration directory.
    """
    return get_config_dir() / "config.toml"


def get_manifests_dir() -> Path:
    """Get the directory where exported manifests are stored by default."""
    return get_data_dir() / "manifests"


def get_default_manifest_path(hostname: str) -> Path:
    """Get the default export path for a host's manifest.

    Args:
        hostname: Host the manifest was captured from.

    Returns:
        Path to manifests/<hostname>.toml in the data directory.
    """
    return get_manifests_dir() / f"{hostname.lower()}.toml"
