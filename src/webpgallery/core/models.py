from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

OUTPUT_DIR_PREFIX = "conversion_q"


def build_output_dir_name(quality: int, lossless: bool) -> str:
    return f"{OUTPUT_DIR_PREFIX}{quality}{'_lossless' if lossless else ''}"


@dataclass(frozen=True, slots=True)
class ConversionJob:
    source_dir: Path
    quality: int
    lossless: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.quality <= 100:
            raise ValueError(f"Quality must be between 0 and 100, got {self.quality}.")

    @property
    def output_dir(self) -> Path:
        return self.source_dir / build_output_dir_name(self.quality, self.lossless)


@dataclass(frozen=True, slots=True)
class ConversionResult:
    source_file: str
    output_file: str
    original_bytes: int
    converted_bytes: int


@dataclass(frozen=True, slots=True)
class BatchSummary:
    total_images: int
    original_total_bytes: int
    converted_total_bytes: int
    elapsed_seconds: float

    @property
    def bytes_saved(self) -> int:
        return self.original_total_bytes - self.converted_total_bytes

    @property
    def percent_saved(self) -> float:
        if self.original_total_bytes <= 0:
            return 0.0
        return (1 - self.converted_total_bytes / self.original_total_bytes) * 100

    @classmethod
    def from_results(cls, results: list[ConversionResult], elapsed_seconds: float) -> BatchSummary:
        return cls(
            total_images=len(results),
            original_total_bytes=sum(result.original_bytes for result in results),
            converted_total_bytes=sum(result.converted_bytes for result in results),
            elapsed_seconds=elapsed_seconds,
        )


@dataclass(slots=True)
class BatchResult:
    job: ConversionJob
    summary: BatchSummary
    report_path: Path
    index_path: Path
    results: list[ConversionResult] = field(default_factory=list)

    @property
    def converted(self) -> int:
        return len(self.results)

    @property
    def message(self) -> str:
        return f"Converted {self.converted} images"


@dataclass(frozen=True, slots=True)
class GalleryIndexEntry:
    folder_name: str
    quality: int
    lossless: bool
    percent_saved: float
    elapsed_seconds: float

    @property
    def report_href(self) -> str:
        return f"{self.folder_name}/index.html"
