from __future__ import annotations

import sys
import threading
import time
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from webpgallery.core.errors import EncodeError

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="needs a POSIX shell")
linux_only = pytest.mark.skipif(sys.platform != "linux", reason="needs byte-oriented file names")

PIL_FORMATS = {
    ".png": "PNG",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".bmp": "BMP",
    ".gif": "GIF",
    ".tiff": "TIFF",
}


def write_image(path: Path, size: int | None = None, dimensions: tuple[int, int] = (32, 24)) -> Path:
    buffer = BytesIO()
    Image.new("RGB", dimensions, (200, 120, 40)).save(buffer, format=PIL_FORMATS[path.suffix.lower()])
    data = buffer.getvalue()
    if size is not None:
        assert size >= len(data), f"{path.name} needs at least {len(data)} bytes"
        data += b"\0" * (size - len(data))
    path.write_bytes(data)
    return path


def write_fake_cwebp(path: Path, exit_code: int = 0) -> Path:
    # Echoes a Latin-1 byte on stderr like cwebp does for non-UTF-8 names.
    lines = ["#!/bin/sh", "for last; do :; done", "printf 'Saving file \\351\\n' >&2"]
    if exit_code == 0:
        lines.append("printf 'RIFF0000WEBP' > \"$last\"")
    lines.append(f"exit {exit_code}")
    path.write_text("\n".join(lines) + "\n")
    path.chmod(0o755)
    return path


class FakeEncoder:
    def __init__(
        self,
        ratio: float = 0.5,
        sizes: dict[str, int] | None = None,
        fail_on: set[str] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.ratio = ratio
        self.sizes = sizes or {}
        self.fail_on = fail_on or set()
        self.delay = delay
        self.calls: list[tuple[str, str, int, bool]] = []
        self._lock = threading.Lock()

    def encode(self, source_path: Path, output_path: Path, quality: int, lossless: bool) -> int:
        with self._lock:
            self.calls.append((source_path.name, output_path.name, quality, lossless))
        if self.delay:
            time.sleep(self.delay)
        if source_path.name in self.fail_on:
            raise EncodeError(source_path.name, "rejected by fake encoder")
        size = self.sizes.get(source_path.name, int(source_path.stat().st_size * self.ratio))
        output_path.write_bytes(b"\0" * size)
        return size


@pytest.fixture
def image_folder(tmp_path: Path) -> Path:
    folder = tmp_path / "photos"
    folder.mkdir()
    return folder
