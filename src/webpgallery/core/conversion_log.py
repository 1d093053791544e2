from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from webpgallery.core.errors import FileSystemError
from webpgallery.core.models import BatchSummary, ConversionJob, ConversionResult
from webpgallery.core.sizes import format_kilobytes

LOG_FILENAME = "conversion.log"

QUALITY_LABEL = "Quality: "
LOSSLESS_LABEL = "Lossless: "
STARTED_LABEL = "Started: "
SAVED_LABEL = "Total filesize saved: "
TIME_LABEL = "Total time: "

_ENTRY_PATTERN = re.compile(
    r"^(?P<source>.+) -> (?P<output>.+): (?P<original>\d+(?:\.\d+)?) KB -> (?P<converted>\d+(?:\.\d+)?) KB"
    r" \| Quality: (?P<quality>\d+) \| Lossless: (?P<lossless>true|false)$"
)
_PERCENT_PATTERN = re.compile(r"^(-?\d+(?:\.\d+)?)%$")
_SECONDS_PATTERN = re.compile(r"^(\d+(?:\.\d+)?) seconds$")


def _flag(value: bool) -> str:
    return "true" if value else "false"


def format_result_line(result: ConversionResult, quality: int, lossless: bool) -> str:
    return (
        f"{result.source_file} -> {result.output_file}: "
        f"{format_kilobytes(result.original_bytes)} -> {format_kilobytes(result.converted_bytes)} "
        f"| Quality: {quality} | Lossless: {_flag(lossless)}"
    )


def format_summary_lines(summary: BatchSummary) -> list[str]:
    return [
        f"{SAVED_LABEL}{summary.percent_saved:.2f}%",
        f"{TIME_LABEL}{summary.elapsed_seconds:.2f} seconds",
    ]


class ConversionLog:
    """Append-only text log kept inside an output directory.

    Every write opens the file, appends one framed chunk and closes it again,
    serialised by a lock so interleaved completions never split a line.
    """

    def __init__(self, output_dir: Path) -> None:
        self.path = output_dir / LOG_FILENAME
        self._lock = threading.Lock()

    def start(self, job: ConversionJob, started_at: datetime | None = None) -> None:
        started_at = started_at or datetime.now()
        header = [
            f"{QUALITY_LABEL}{job.quality}",
            f"{LOSSLESS_LABEL}{_flag(job.lossless)}",
            f"{STARTED_LABEL}{started_at.isoformat(timespec='seconds')}",
        ]
        self._write(header, mode="w")

    def append_result(self, result: ConversionResult, job: ConversionJob) -> None:
        self._write([format_result_line(result, job.quality, job.lossless)])

    def write_summary(self, summary: BatchSummary) -> None:
        self._write(format_summary_lines(summary))

    def read(self) -> LogRecord:
        return read_log(self.path)

    def _write(self, lines: list[str], mode: str = "a") -> None:
        chunk = "".join(f"{line}\n" for line in lines)
        with self._lock:
            try:
                with self.path.open(mode, encoding="utf-8", errors="surrogateescape") as stream:
                    stream.write(chunk)
            except OSError as error:
                raise FileSystemError(f"Could not write {self.path}: {error}") from error


@dataclass(frozen=True, slots=True)
class LogEntry:
    source_file: str
    output_file: str
    original_kb: float
    converted_kb: float


@dataclass(slots=True)
class LogRecord:
    quality: int | None = None
    lossless: bool | None = None
    started: str | None = None
    percent_saved: float | None = None
    elapsed_seconds: float | None = None
    entries: list[LogEntry] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return (
            self.quality is not None
            and self.lossless is not None
            and self.percent_saved is not None
            and self.elapsed_seconds is not None
        )


def parse_log(text: str) -> LogRecord:
    # Header labels, per-file lines and the summary pair are told apart by their
    # prefixes; anything else is ignored.
    record = LogRecord()
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        if entry := _ENTRY_PATTERN.match(line):
            record.entries.append(
                LogEntry(
                    source_file=entry.group("source"),
                    output_file=entry.group("output"),
                    original_kb=float(entry.group("original")),
                    converted_kb=float(entry.group("converted")),
                )
            )
        elif line.startswith(QUALITY_LABEL):
            value = line[len(QUALITY_LABEL):]
            record.quality = int(value) if value.isdigit() else None
        elif line.startswith(LOSSLESS_LABEL):
            value = line[len(LOSSLESS_LABEL):]
            record.lossless = {"true": True, "false": False}.get(value)
        elif line.startswith(STARTED_LABEL):
            record.started = line[len(STARTED_LABEL):]
        elif line.startswith(SAVED_LABEL):
            match = _PERCENT_PATTERN.match(line[len(SAVED_LABEL):])
            record.percent_saved = float(match.group(1)) if match else None
        elif line.startswith(TIME_LABEL):
            match = _SECONDS_PATTERN.match(line[len(TIME_LABEL):])
            record.elapsed_seconds = float(match.group(1)) if match else None

    return record


def read_log(path: Path) -> LogRecord:
    try:
        text = path.read_text(encoding="utf-8", errors="surrogateescape")
    except OSError as error:
        raise FileSystemError(f"Could not read {path}: {error}") from error
    return parse_log(text)
