from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Protocol

from webpgallery.core.conversion_log import ConversionLog
from webpgallery.core.encoder import WebpEncoder, filter_supported_images
from webpgallery.core.errors import EncodeError, FileSystemError, FolderReadError, display_name
from webpgallery.core.models import BatchResult, BatchSummary, ConversionJob, ConversionResult
from webpgallery.core.report import write_folder_report, write_index
from webpgallery.core.sizes import format_kilobytes

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
LogCallback = Callable[[str], None]


class Encoder(Protocol):
    def encode(self, source_path: Path, output_path: Path, quality: int, lossless: bool) -> int: ...


def list_eligible_images(source_dir: Path) -> list[Path]:
    if not source_dir.is_dir():
        raise FolderReadError(f"Folder not found: {source_dir}")
    try:
        files = [path for path in source_dir.iterdir() if path.is_file()]
    except OSError as error:
        raise FolderReadError(f"Could not read {source_dir}: {error}") from error
    return sorted(filter_supported_images(files), key=lambda path: path.name)


def build_output_name(source_path: Path) -> str:
    return f"{source_path.stem}.webp"


def find_output_collisions(images: list[Path]) -> dict[str, list[str]]:
    by_output: dict[str, list[str]] = {}
    for source_path in images:
        by_output.setdefault(build_output_name(source_path), []).append(source_path.name)
    return {output: names for output, names in by_output.items() if len(names) > 1}


class BatchConverter:
    def __init__(self, encoder: Encoder | None = None, max_workers: int | None = None) -> None:
        self.encoder = encoder or WebpEncoder()
        self.max_workers = max_workers

    def run(
        self,
        job: ConversionJob,
        on_progress: ProgressCallback | None = None,
        on_log: LogCallback | None = None,
    ) -> BatchResult:
        images = list_eligible_images(job.source_dir)
        output_dir = job.output_dir
        try:
            output_dir.mkdir(exist_ok=True)
        except OSError as error:
            raise FileSystemError(f"Could not create {output_dir}: {error}") from error

        for output_name, names in find_output_collisions(images).items():
            message = f"{display_name(output_name)} is written by several sources: " + ", ".join(
                display_name(name) for name in names
            )
            LOGGER.warning("%s", message)
            if on_log:
                on_log(f"Warning: {message}")

        log = ConversionLog(output_dir)
        log.start(job)
        started = time.perf_counter()

        total = len(images)
        LOGGER.info("Converting %d images from %s into %s", total, job.source_dir, output_dir.name)
        if on_log:
            on_log(f"Found {total} images in {display_name(str(job.source_dir))}")

        results_by_name: dict[str, ConversionResult] = {}
        if images:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="cwebp") as pool:
                futures: dict[Future[ConversionResult], Path] = {
                    pool.submit(self._convert_one, job, source_path): source_path for source_path in images
                }
                try:
                    for done, future in enumerate(as_completed(futures), start=1):
                        result = future.result()
                        log.append_result(result, job)
                        results_by_name[result.source_file] = result

                        if on_log:
                            on_log(
                                f"[{done}/{total}] {display_name(result.source_file)} -> "
                                f"{display_name(result.output_file)} "
                                f"({format_kilobytes(result.original_bytes)} -> "
                                f"{format_kilobytes(result.converted_bytes)})"
                            )
                        if on_progress:
                            on_progress(done, total)
                except EncodeError as error:
                    LOGGER.error("%s", error)
                    if on_log:
                        on_log(f"Failed: {display_name(error.filename)} ({error.reason})")
                    pool.shutdown(wait=True, cancel_futures=True)
                    raise
                except BaseException:
                    pool.shutdown(wait=True, cancel_futures=True)
                    raise

        results = [results_by_name[path.name] for path in images]
        summary = BatchSummary.from_results(results, time.perf_counter() - started)
        log.write_summary(summary)
        LOGGER.info(
            "Converted %d images, saved %.2f%% in %.2f seconds",
            summary.total_images,
            summary.percent_saved,
            summary.elapsed_seconds,
        )

        report_path = write_folder_report(job, results)
        index_path = write_index(job.source_dir)
        if on_log:
            on_log(f"Report created: {report_path}")

        return BatchResult(
            job=job,
            summary=summary,
            report_path=report_path,
            index_path=index_path,
            results=results,
        )

    def _convert_one(self, job: ConversionJob, source_path: Path) -> ConversionResult:
        output_name = build_output_name(source_path)
        output_path = job.output_dir / output_name

        converted_bytes = self.encoder.encode(source_path, output_path, job.quality, job.lossless)
        try:
            original_bytes = source_path.stat().st_size
        except OSError as error:
            raise EncodeError(source_path.name, str(error)) from error

        LOGGER.debug("Encoded %s -> %s", source_path.name, output_name)
        return ConversionResult(
            source_file=source_path.name,
            output_file=output_name,
            original_bytes=original_bytes,
            converted_bytes=converted_bytes,
        )

    def get_expected_output_names(self, job: ConversionJob) -> list[str]:
        return [build_output_name(path) for path in list_eligible_images(job.source_dir)]
