from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Iterable

from webpgallery.core.errors import EncodeError, display_name

LOGGER = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".gif", ".tiff"}
DEFAULT_CWEBP = "cwebp"


def is_supported_image(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def filter_supported_images(paths: Iterable[Path]) -> list[Path]:
    return [path for path in paths if is_supported_image(path)]


class WebpEncoder:
    """Runs the external ``cwebp`` binary for one image at a time.

    The call blocks until the process exits; callers that want several encodes
    in flight run it from worker threads.
    """

    def __init__(self, binary: str = DEFAULT_CWEBP) -> None:
        self.binary = binary

    def build_command(self, source_path: Path, output_path: Path, quality: int, lossless: bool) -> list[str]:
        cmd = [self.binary, "-q", str(quality)]
        if lossless:
            cmd.append("-lossless")
        cmd.extend([str(source_path), "-o", str(output_path)])
        return cmd

    def encode(self, source_path: Path, output_path: Path, quality: int, lossless: bool) -> int:
        if not is_supported_image(source_path):
            raise EncodeError(source_path.name, f"unsupported format '{source_path.suffix}'")

        cmd = self.build_command(source_path, output_path, quality, lossless)
        LOGGER.debug("Running %s", " ".join(cmd))

        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, errors="replace")
        except FileNotFoundError:
            raise EncodeError(source_path.name, f"encoder '{self.binary}' not found") from None
        except OSError as error:
            raise EncodeError(source_path.name, str(error)) from error

        if proc.returncode != 0:
            output_path.unlink(missing_ok=True)
            detail = proc.stderr.strip() or proc.stdout.strip()
            reason = f"{self.binary} exited with code {proc.returncode}"
            raise EncodeError(source_path.name, f"{reason}: {detail}" if detail else reason)

        if not output_path.is_file():
            raise EncodeError(source_path.name, f"{self.binary} produced no output file")

        return output_path.stat().st_size
