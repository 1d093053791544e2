from datetime import datetime
from pathlib import Path

from conftest import write_image
from webpgallery.core.conversion_log import ConversionLog
from webpgallery.core.models import BatchSummary, ConversionJob, ConversionResult
from webpgallery.core.report import (
    collect_index_entries,
    render_template,
    write_folder_report,
    write_index,
)


def _complete_run(root: Path, quality: int, lossless: bool, percent_inputs=(1000, 400)) -> ConversionJob:
    job = ConversionJob(root, quality, lossless)
    job.output_dir.mkdir()
    log = ConversionLog(job.output_dir)
    log.start(job, started_at=datetime(2026, 10, 19, 9, 30))
    original, converted = percent_inputs
    log.write_summary(BatchSummary(0, original, converted, 2.5))
    return job


def test_render_template_replaces_every_marker():
    rendered = render_template("<h1><!-- TITLE --></h1><title><!-- TITLE --></title><!-- BODY -->", {"title": "x"})
    assert rendered == "<h1>x</h1><title>x</title><!-- BODY -->"


def test_index_lists_complete_runs_and_skips_others(tmp_path):
    _complete_run(tmp_path, 80, False)
    _complete_run(tmp_path, 90, True, percent_inputs=(1000, 750))
    (tmp_path / "conversion_q50").mkdir()
    running = ConversionJob(tmp_path, 30)
    running.output_dir.mkdir()
    ConversionLog(running.output_dir).start(running)
    (tmp_path / "unrelated").mkdir()
    (tmp_path / "conversion_q10.txt").write_text("a file, not a folder")

    entries = collect_index_entries(tmp_path)

    assert [entry.folder_name for entry in entries] == ["conversion_q80", "conversion_q90_lossless"]
    assert entries[0].quality == 80
    assert entries[0].lossless is False
    assert entries[0].percent_saved == 60.0
    assert entries[0].elapsed_seconds == 2.5
    assert entries[1].lossless is True
    assert entries[1].percent_saved == 25.0

    index = write_index(tmp_path).read_text(encoding="utf-8")
    assert index.count('class="card"') == 2
    assert 'href="conversion_q90_lossless/index.html"' in index
    assert "25.00%" in index
    assert "2.50 seconds" in index
    assert "conversion_q50" not in index
    assert "conversion_q30" not in index


def test_index_without_runs_shows_placeholder(tmp_path):
    index = write_index(tmp_path).read_text(encoding="utf-8")
    assert "No conversions yet." in index
    assert (tmp_path / "index.html").exists()


def test_folder_report_escapes_names(tmp_path):
    name = "a&b <1>.png"
    write_image(tmp_path / name)
    job = _complete_run(tmp_path, 80, False)
    (job.output_dir / "a&b <1>.webp").write_bytes(b"\0" * 512)
    result = ConversionResult(name, "a&b <1>.webp", (tmp_path / name).stat().st_size, 512)

    report = write_folder_report(job, [result]).read_text(encoding="utf-8")

    assert 'alt="a&amp;b &lt;1&gt;.png"' in report
    assert 'href="../a%26b%20%3C1%3E.png"' in report
    assert "Converted: 0.50 KB" in report
    assert "60.00%" in report
