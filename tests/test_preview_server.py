from urllib.error import URLError
from urllib.request import urlopen

import pytest

from webpgallery.core.errors import ServerStartError
from webpgallery.core import preview_server as preview_server_module
from webpgallery.core.preview_server import PreviewServer


def _get(url: str) -> bytes | None:
    try:
        with urlopen(url, timeout=5) as response:
            return response.read()
    except (URLError, ConnectionError):
        return None


def test_serves_folder_contents(tmp_path):
    (tmp_path / "index.html").write_text("<h1>gallery</h1>", encoding="utf-8")
    nested = tmp_path / "conversion_q80"
    nested.mkdir()
    (nested / "a.webp").write_bytes(b"RIFF")

    with PreviewServer() as server:
        url = server.start(tmp_path)

        assert url == f"http://127.0.0.1:{server.port}/"
        assert server.is_running
        assert _get(url) == b"<h1>gallery</h1>"
        assert _get(url + "conversion_q80/a.webp") == b"RIFF"

    assert not server.is_running
    assert server.url is None


def test_restart_tears_down_previous_server(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    first.mkdir()
    second.mkdir()
    (first / "marker.txt").write_text("first")
    (second / "marker.txt").write_text("second")

    server = PreviewServer()
    try:
        first_url = server.start(first)
        assert _get(first_url + "marker.txt") == b"first"

        second_url = server.start(second)

        assert server.folder == second
        assert _get(second_url + "marker.txt") == b"second"
        assert _get(first_url + "marker.txt") != b"first"
    finally:
        server.stop()


def test_missing_folder_raises(tmp_path):
    server = PreviewServer()
    with pytest.raises(ServerStartError):
        server.start(tmp_path / "missing")
    assert not server.is_running


def test_unreadable_folder_raises(tmp_path, monkeypatch):
    monkeypatch.setattr(preview_server_module.os, "access", lambda path, mode: False)
    server = PreviewServer()

    with pytest.raises(ServerStartError, match="not readable"):
        server.start(tmp_path)

    assert not server.is_running

def test_stop_is_idempotent(tmp_path):
    server = PreviewServer()
    server.stop()
    server.start(tmp_path)
    server.stop()
    server.stop()
    assert server.port is None
