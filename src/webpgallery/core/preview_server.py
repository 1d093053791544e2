from __future__ import annotations

import logging
import os
import threading
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

from webpgallery.core.errors import ServerStartError

LOGGER = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: object) -> None:
        LOGGER.debug("%s - %s", self.address_string(), format % args)


class PreviewServer:
    """Serves one folder over HTTP on an ephemeral local port.

    At most one listener is alive per instance: ``start`` tears down the
    previous one before binding the next.
    """

    def __init__(self, host: str = DEFAULT_HOST) -> None:
        self.host = host
        self.folder: Path | None = None
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def port(self) -> int | None:
        if self._server is None:
            return None
        return self._server.server_address[1]

    @property
    def url(self) -> str | None:
        if self._server is None:
            return None
        return f"http://{self.host}:{self.port}/"

    def start(self, folder: Path) -> str:
        self.stop()

        if not folder.is_dir():
            raise ServerStartError(f"Folder not found: {folder}")
        if not os.access(folder, os.R_OK | os.X_OK):
            raise ServerStartError(f"Folder is not readable: {folder}")

        handler = partial(_QuietHandler, directory=str(folder))
        try:
            server = ThreadingHTTPServer((self.host, 0), handler)
        except OSError as error:
            raise ServerStartError(f"Could not bind {self.host}: {error}") from error

        server.daemon_threads = True
        self._server = server
        self.folder = folder
        self._thread = threading.Thread(target=server.serve_forever, name="preview-server", daemon=True)
        self._thread.start()

        LOGGER.info("Serving %s at %s", folder, self.url)
        return self.url

    def stop(self) -> None:
        if self._server is None:
            return

        LOGGER.info("Stopping preview server at %s", self.url)
        self._server.shutdown()
        self._server.server_close()
        if self._thread is not None:
            self._thread.join()

        self._server = None
        self._thread = None
        self.folder = None

    def __enter__(self) -> PreviewServer:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
