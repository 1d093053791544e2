from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from webpgallery.core.encoder import DEFAULT_CWEBP
from webpgallery.core.errors import FileSystemError
from webpgallery.core.preview_server import DEFAULT_HOST

LOGGER = logging.getLogger(__name__)

DEFAULT_SETTINGS: dict[str, Any] = {
    "cwebp_path": DEFAULT_CWEBP,
    "quality": 80,
    "lossless": False,
    "max_workers": None,  # None => executor default
    "host": DEFAULT_HOST,
}


def load_settings(path: Path | None = None) -> dict[str, Any]:
    if path is None or not path.exists():
        return DEFAULT_SETTINGS.copy()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        LOGGER.warning("Ignoring settings file %s: %s", path, error)
        return DEFAULT_SETTINGS.copy()

    if not isinstance(data, dict):
        LOGGER.warning("Ignoring settings file %s: expected a JSON object", path)
        return DEFAULT_SETTINGS.copy()

    unknown = sorted(set(data) - set(DEFAULT_SETTINGS))
    if unknown:
        LOGGER.warning("Unknown settings in %s: %s", path, ", ".join(unknown))
    return {**DEFAULT_SETTINGS, **{key: data[key] for key in data if key in DEFAULT_SETTINGS}}


def save_settings(data: dict[str, Any], path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    except OSError as error:
        raise FileSystemError(f"Could not write settings to {path}: {error}") from error
