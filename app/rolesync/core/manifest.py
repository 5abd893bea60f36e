"""Manifest file I/O operations.

This module provides functions for loading and saving feature snapshots
as manifest files in TOML format, validated with Pydantic models.
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import tomli_w
from pydantic import ValidationError

from rolesync.models.manifest import FeatureManifest
from rolesync.models.snapshot import FeatureSnapshot

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """Base exception for manifest-related errors."""


class ManifestLoadError(ManifestError):
    """Raised when a manifest cannot be loaded."""


class ManifestNotFoundError(ManifestLoadError):
    """Raised when manifest file is not found."""


class ManifestParseError(ManifestLoadError):
    """Raised when manifest file cannot be parsed."""


class ManifestValidationError(ManifestLoadError):
    """Raised when manifest content is invalid."""


class ManifestSaveError(ManifestError):
    """Raised when a manifest cannot be written."""


def load_manifest(path: Path) -> FeatureSnapshot:
    """Load and validate a manifest, returning the snapshot it holds.

    Args:
        path: Path to the manifest file.

    Returns:
        The persisted FeatureSnapshot, in its original catalog order.

    Raises:
        ManifestNotFoundError: If the manifest file doesn't exist.
        ManifestParseError: If the TOML syntax is invalid.
        ManifestValidationError: If the content doesn't match the schema.
        ManifestLoadError: If the file cannot be read.
    """
    if not path.exists():
        raise ManifestNotFoundError(f"Manifest not found: {path}")

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ManifestParseError(f"Invalid TOML syntax in {path}: {e}") from e
    except OSError as e:
        raise ManifestLoadError(f"Failed to read manifest {path}: {e}") from e

    try:
        manifest = FeatureManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestValidationError(f"Invalid manifest content in {path}: {e}") from e

    logger.debug(
        "Loaded manifest %s (%d features, %d installed)",
        path,
        len(manifest.features),
        manifest.installed_count,
    )
    return manifest.to_snapshot()


def save_manifest(snapshot: FeatureSnapshot, path: Path) -> Path:
    """Save a snapshot as a TOML manifest.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.
    The temporary file is cleaned up on failure.

    Args:
        snapshot: The snapshot to persist.
        path: Destination path. Parent directories are created.

    Returns:
        Path where the manifest was saved.

    Raises:
        ManifestSaveError: If the file cannot be written.
    """
    data = _manifest_to_dict(FeatureManifest.from_snapshot(snapshot))

    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(path))
    except (OSError, TypeError) as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ManifestSaveError(f"Failed to write manifest {path}: {e}") from e

    logger.debug("Saved manifest of %s to %s", snapshot.hostname, path)
    return path


def _manifest_to_dict(manifest: FeatureManifest) -> dict[str, Any]:
    """Convert a FeatureManifest to a dictionary suitable for TOML serialization.

    TOML has no null, so None values are omitted; a missing optional key
    loads back as its model default.
    """
    return {
        "meta": {
            "version": manifest.meta.version,
            "created": manifest.meta.created.isoformat(),
            "hostname": manifest.meta.hostname,
            "captured_at": manifest.meta.captured_at,
        },
        "features": [_drop_none(entry.model_dump()) for entry in manifest.features],
    }


def _drop_none(value: Any) -> Any:
    """Recursively remove None values from dicts and lists."""
    if isinstance(value, dict):
        return {key: _drop_none(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [_drop_none(item) for item in value if item is not None]
    return value
