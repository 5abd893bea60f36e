"""Color theme for the rolesync CLI.

The bundled palette lives in rolesync/data/theme.toml. Any subset of its
[colors] keys can be overridden in ~/.config/rolesync/theme.toml.
"""

import logging
import re
import tomllib
from importlib import resources
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from rolesync.core.paths import get_config_dir

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})")


class ThemeColors(BaseModel):
    """Palette used by every console style. Values are #RGB or #RRGGBB."""

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # Install/remove
    added: str = "#c1ff62"
    removed: str = "#f53263"
    changed: str = "#0e8ac8"

    # Inventory
    host: str = "#0e8ac8"
    feature_installed: str = "#69B9A1"
    feature_available: str = "#226666"

    @field_validator("*", mode="before")
    @classmethod
    def check_hex(cls, value: object) -> str:
        if not isinstance(value, str) or not _HEX_COLOR.fullmatch(value.strip()):
            msg = f"expected a #RGB or #RRGGBB color, got {value!r}"
            raise ValueError(msg)
        return value.strip()


def get_user_theme_path() -> Path:
    """Path of the optional user override, ~/.config/rolesync/theme.toml."""
    return get_config_dir() / "theme.toml"


def get_bundled_theme_path() -> Path:
    return Path(str(resources.files("rolesync.data").joinpath("theme.toml")))


def read_colors(path: Path) -> dict[str, str]:
    """Read the [colors] table of a theme file.

    Missing files yield an empty table. Unreadable or malformed files are
    logged and also yield an empty table, so a broken override never
    stops the CLI.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return {}

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignoring theme file %s: [colors] is not a table", path)
        return {}
    return {key: value for key, value in colors.items() if isinstance(value, str)}


def load_theme(user_path: Path | None = None) -> ThemeColors:
    """Merge the user override over the bundled palette.

    Falls back to the built-in defaults when the merged palette is invalid.
    """
    merged = {
        **read_colors(get_bundled_theme_path()),
        **read_colors(user_path or get_user_theme_path()),
    }
    try:
        return ThemeColors.model_validate(merged)
    except ValidationError as e:
        logger.warning("Invalid theme, using defaults: %s", e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich styles referenced by console markup."""
    c = colors or load_theme()
    return Theme(
        {
            "text": c.text,
            "muted": c.muted,
            "dim": c.muted,
            "header": c.header,
            "bold_header": f"bold {c.header}",
            "border": c.border,
            "success": c.success,
            "warning": c.warning,
            "error": f"bold {c.error}",
            "info": c.info,
            "added": c.added,
            "removed": c.removed,
            "changed": c.changed,
            "host": f"bold {c.host}",
            "feature_installed": f"bold {c.feature_installed}",
            "feature_available": c.feature_available,
        }
    )


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Return the process-wide Rich theme, loading it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme


def reload_theme() -> Theme:
    """Discard the cached theme and load it again."""
    global _cached_theme
    _cached_theme = get_rich_theme()
    return _cached_theme
