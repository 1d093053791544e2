from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image, UnidentifiedImageError

LOGGER = logging.getLogger(__name__)


def probe_dimensions(path: Path) -> tuple[int, int] | None:
    try:
        with Image.open(path) as image:
            return image.width, image.height
    except (UnidentifiedImageError, OSError) as error:
        LOGGER.debug("Could not read dimensions of %s: %s", path.name, error)
        return None


def format_dimensions(dimensions: tuple[int, int] | None) -> str:
    if dimensions is None:
        return ""
    width, height = dimensions
    return f"{width}×{height}"
