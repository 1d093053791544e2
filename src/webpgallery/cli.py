"""Command-line entry points for converting folders and previewing the galleries."""

from __future__ import annotations

import logging
import threading
import webbrowser
from pathlib import Path

import click

from webpgallery import logging_config
from webpgallery.core.converter import BatchConverter
from webpgallery.core.encoder import WebpEncoder
from webpgallery.core.errors import FolderReadError, PipelineError
from webpgallery.core.models import ConversionJob
from webpgallery.core.preview_server import PreviewServer
from webpgallery.core.report import write_index
from webpgallery.core.settings import load_settings, save_settings
from webpgallery.core.sizes import format_bytes

config_option = click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="JSON settings file merged over the defaults.",
)
verbose_option = click.option("-v", "--verbose", is_flag=True, help="Activate debug logs.")


def _setup(verbose: bool) -> None:
    logging_config.configure(logging.DEBUG if verbose else logging.WARNING)


def _fail(error: PipelineError) -> click.ClickException:
    return click.ClickException(error.describe())


@click.group()
def main_cli():
    """Convert image folders to WebP and browse the results."""
    pass


@main_cli.command("convert")
@click.argument("folder", type=click.Path(path_type=Path, file_okay=False))
@click.option("-q", "--quality", type=click.IntRange(0, 100), default=None, help="WebP quality (0-100).")
@click.option("--lossless/--lossy", default=None, help="Use cwebp's lossless mode.")
@click.option("--cwebp", "cwebp_path", type=str, default=None, help="Path to the cwebp binary.")
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Maximum concurrent encodes.")
@config_option
@verbose_option
def convert_cli(
    folder: Path,
    quality: int | None,
    lossless: bool | None,
    cwebp_path: str | None,
    workers: int | None,
    config_path: Path | None,
    verbose: bool,
):
    """Convert every supported image directly inside FOLDER."""
    _setup(verbose)
    settings = load_settings(config_path)

    try:
        job = ConversionJob(
            source_dir=folder,
            quality=quality if quality is not None else int(settings["quality"]),
            lossless=lossless if lossless is not None else bool(settings["lossless"]),
        )
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    converter = BatchConverter(
        encoder=WebpEncoder(cwebp_path or settings["cwebp_path"]),
        max_workers=workers or settings["max_workers"],
    )

    try:
        if job.output_dir.is_dir():
            existing = [name for name in converter.get_expected_output_names(job) if (job.output_dir / name).exists()]
            if existing:
                click.echo(f"Overwriting {len(existing)} existing file(s) in {job.output_dir.name}")

        result = converter.run(job, on_log=click.echo)
    except PipelineError as error:
        raise _fail(error) from error

    summary = result.summary
    click.echo(result.message)
    click.echo(
        f"Filesize saved: {summary.percent_saved:.2f}% "
        f"({format_bytes(summary.original_total_bytes)} -> {format_bytes(summary.converted_total_bytes)}) "
        f"in {summary.elapsed_seconds:.2f} seconds"
    )
    click.echo(f"Report: {result.report_path}")


@main_cli.command("index")
@click.argument("root", type=click.Path(path_type=Path, file_okay=False))
@verbose_option
def index_cli(root: Path, verbose: bool):
    """Rebuild the index page listing every conversion folder under ROOT."""
    _setup(verbose)
    if not root.is_dir():
        raise _fail(FolderReadError(f"Folder not found: {root}"))
    try:
        index_path = write_index(root)
    except PipelineError as error:
        raise _fail(error) from error
    click.echo(f"Index: {index_path}")


@main_cli.command("serve")
@click.argument("folder", type=click.Path(path_type=Path, file_okay=False))
@click.option("--open/--no-open", "open_browser", default=True, help="Open the gallery in a web browser.")
@config_option
@verbose_option
def serve_cli(folder: Path, open_browser: bool, config_path: Path | None, verbose: bool):
    """Serve FOLDER over HTTP until interrupted."""
    _setup(verbose)
    settings = load_settings(config_path)

    with PreviewServer(host=settings["host"]) as server:
        try:
            url = server.start(folder)
        except PipelineError as error:
            raise _fail(error) from error

        click.echo(f"Serving {folder} at {url}")
        if open_browser:
            webbrowser.open(url)

        try:
            threading.Event().wait()
        except KeyboardInterrupt:
            click.echo("Stopping preview server")


@main_cli.command("config")
@click.argument("path", type=click.Path(path_type=Path, dir_okay=False))
@click.option("-q", "--quality", type=click.IntRange(0, 100), default=None, help="Default WebP quality.")
@click.option("--lossless/--lossy", default=None, help="Default encoding mode.")
@click.option("--cwebp", "cwebp_path", type=str, default=None, help="Path to the cwebp binary.")
@click.option("--workers", type=click.IntRange(min=1), default=None, help="Maximum concurrent encodes.")
@click.option("--host", type=str, default=None, help="Interface the preview server binds to.")
@verbose_option
def config_cli(
    path: Path,
    quality: int | None,
    lossless: bool | None,
    cwebp_path: str | None,
    workers: int | None,
    host: str | None,
    verbose: bool,
):
    """Write a settings file at PATH, keeping values it already holds."""
    _setup(verbose)
    settings = load_settings(path)
    updates = {
        "quality": quality,
        "lossless": lossless,
        "cwebp_path": cwebp_path,
        "max_workers": workers,
        "host": host,
    }
    settings.update({key: value for key, value in updates.items() if value is not None})

    try:
        save_settings(settings, path)
    except PipelineError as error:
        raise _fail(error) from error
    click.echo(f"Saved settings to {path}")
