from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Mapping
from urllib.parse import quote

from webpgallery.core.conversion_log import LOG_FILENAME, LogRecord, read_log
from webpgallery.core.errors import FileSystemError
from webpgallery.core.imaging import format_dimensions, probe_dimensions
from webpgallery.core.models import OUTPUT_DIR_PREFIX, ConversionJob, ConversionResult, GalleryIndexEntry
from webpgallery.core.sizes import format_kilobytes

LOGGER = logging.getLogger(__name__)

REPORT_FILENAME = "index.html"
TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def load_template(name: str, templates_dir: Path = TEMPLATES_DIR) -> str:
    path = templates_dir / name
    try:
        return path.read_text(encoding="utf-8")
    except OSError as error:
        raise FileSystemError(f"Could not read template {path}: {error}") from error


def render_template(template: str, values: Mapping[str, str]) -> str:
    rendered = template
    for key, value in values.items():
        rendered = rendered.replace(f"<!-- {key.upper()} -->", value)
    return rendered


def _write_html(path: Path, content: str) -> Path:
    try:
        path.write_text(content, encoding="utf-8", errors="replace")
    except OSError as error:
        raise FileSystemError(f"Could not write {path}: {error}") from error
    return path


def _image_cell(href: str, name: str, label: str, path: Path) -> str:
    caption = label
    dimensions = format_dimensions(probe_dimensions(path))
    if dimensions:
        caption += f" · {dimensions}"
    return (
        f'<td><a href="{href}" target="_blank">'
        f'<img src="{href}" alt="{html.escape(name)}" loading="lazy">'
        f"<small>{html.escape(caption)}</small></a></td>"
    )


def render_report_rows(job: ConversionJob, results: list[ConversionResult]) -> str:
    rows: list[str] = []
    for result in results:
        original = _image_cell(
            "../" + quote(result.source_file, errors="surrogateescape"),
            result.source_file,
            f"Original: {format_kilobytes(result.original_bytes)}",
            job.source_dir / result.source_file,
        )
        converted = _image_cell(
            quote(result.output_file, errors="surrogateescape"),
            result.output_file,
            f"Converted: {format_kilobytes(result.converted_bytes)}",
            job.output_dir / result.output_file,
        )
        rows.append(f"<tr>{original}{converted}</tr>")
    return "\n".join(rows)


def render_summary(record: LogRecord, image_count: int) -> str:
    lossless = "yes" if record.lossless else "no"
    saved = f"{record.percent_saved:.2f}%" if record.percent_saved is not None else "n/a"
    elapsed = f"{record.elapsed_seconds:.2f} seconds" if record.elapsed_seconds is not None else "n/a"
    return (
        f"<p>{image_count} images · Quality {record.quality} · Lossless: {lossless} · "
        f"Filesize saved: {saved} · Time: {elapsed}</p>"
    )


def write_folder_report(
    job: ConversionJob,
    results: list[ConversionResult],
    templates_dir: Path = TEMPLATES_DIR,
) -> Path:
    # Summary figures come back out of the log so the page always agrees with it.
    record = read_log(job.output_dir / LOG_FILENAME)
    content = render_template(
        load_template("template.html", templates_dir),
        {
            "title": html.escape(f"{job.source_dir.name} · {job.output_dir.name}"),
            "summary": render_summary(record, len(results)),
            "content": render_report_rows(job, results),
        },
    )
    report_path = _write_html(job.output_dir / REPORT_FILENAME, content)
    LOGGER.info("Wrote report %s", report_path)
    return report_path


def _entry_from_record(folder_name: str, record: LogRecord) -> GalleryIndexEntry | None:
    if not record.is_complete:
        return None
    return GalleryIndexEntry(
        folder_name=folder_name,
        quality=record.quality,
        lossless=record.lossless,
        percent_saved=record.percent_saved,
        elapsed_seconds=record.elapsed_seconds,
    )


def collect_index_entries(root_dir: Path) -> list[GalleryIndexEntry]:
    try:
        candidates = sorted(
            path for path in root_dir.iterdir() if path.is_dir() and path.name.startswith(OUTPUT_DIR_PREFIX)
        )
    except OSError as error:
        raise FileSystemError(f"Could not list {root_dir}: {error}") from error

    entries: list[GalleryIndexEntry] = []
    for folder in candidates:
        log_path = folder / LOG_FILENAME
        if not log_path.is_file():
            LOGGER.debug("Skipping %s: no %s", folder.name, LOG_FILENAME)
            continue

        entry = _entry_from_record(folder.name, read_log(log_path))
        if entry is None:
            LOGGER.debug("Skipping %s: log has no summary yet", folder.name)
            continue
        entries.append(entry)
    return entries


def render_card(card_template: str, entry: GalleryIndexEntry) -> str:
    return render_template(
        card_template,
        {
            "link_placeholder": quote(entry.report_href),
            "link_name": html.escape(entry.folder_name),
            "quality_placeholder": str(entry.quality),
            "lossless_placeholder": "true" if entry.lossless else "false",
            "filesize_saved_placeholder": f"{entry.percent_saved:.2f}%",
            "time_placeholder": f"{entry.elapsed_seconds:.2f} seconds",
        },
    )


def write_index(root_dir: Path, templates_dir: Path = TEMPLATES_DIR) -> Path:
    entries = collect_index_entries(root_dir)
    card_template = load_template("card_template.html", templates_dir)

    cards = "\n".join(render_card(card_template, entry) for entry in entries)
    if not cards:
        cards = '<p class="empty">No conversions yet.</p>'

    body = render_template(load_template("index_body.html", templates_dir), {"cards": cards})
    content = "".join(
        [
            load_template("common_head.html", templates_dir),
            load_template("header.html", templates_dir),
            body,
            load_template("footer.html", templates_dir),
            load_template("common_tail.html", templates_dir),
        ]
    )
    index_path = _write_html(root_dir / REPORT_FILENAME, content)
    LOGGER.info("Wrote index %s with %d entries", index_path, len(entries))
    return index_path
