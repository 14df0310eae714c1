from __future__ import annotations

import functools
import logging
import pathlib
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Optional

from .build import build_site
from .config import SiteConfig
from .errors import SiteBuildError
from .shell import LIVE_RELOAD_PATH
from .utils import snapshot_tree

logger = logging.getLogger(__name__)


class SiteRequestHandler(SimpleHTTPRequestHandler):
    """Serves the output dir under the site's base path."""

    base_path = "/"
    version: Optional[Callable[[], int]] = None

    def do_GET(self):
        if self.version is not None and self.path.split("?")[0] == LIVE_RELOAD_PATH:
            body = str(self.version()).encode()
            self.send_response(200)
            self.send_header("Content-Type", "text/plain")
            self.send_header("Cache-Control", "no-store")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            self.wfile.write(body)
            return
        super().do_GET()

    def translate_path(self, path):
        if self.base_path != "/" and path.startswith(self.base_path):
            path = "/" + path[len(self.base_path):]
        return super().translate_path(path)

    def send_error(self, code, message=None, explain=None):
        not_found = pathlib.Path(self.directory) / "404.html"
        if code == 404 and not_found.is_file():
            body = not_found.read_bytes()
            self.send_response(404)
            self.send_header("Content-Type", "text/html; charset=utf-8")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            if self.command != "HEAD":
                self.wfile.write(body)
            return
        super().send_error(code, message, explain)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(
    directory: pathlib.Path,
    host: str,
    port: int,
    base_path: str = "/",
    version: Optional[Callable[[], int]] = None,
) -> ThreadingHTTPServer:
    handler = type(
        "BoundSiteRequestHandler",
        (SiteRequestHandler,),
        {"base_path": base_path, "version": staticmethod(version) if version else None},
    )
    return ThreadingHTTPServer(
        (host, port), functools.partial(handler, directory=str(directory))
    )


class DevServer:
    """Build, serve, and rebuild whenever a watched file changes."""

    def __init__(self, config: SiteConfig, host: str = "127.0.0.1",
                 port: int = 3333, interval: float = 1.0):
        self.config = config
        self.host = host
        self.port = port
        self.interval = interval
        self.version = 0
        self._lock = threading.Lock()
        self._stop = threading.Event()

    @property
    def watched(self):
        return [
            self.config.content_path,
            self.config.public_path,
            self.config.components_path,
        ]

    def rebuild(self) -> bool:
        with self._lock:
            try:
                build_site(self.config, live_reload=True)
            except SiteBuildError as e:
                logger.error("build failed: %s", e)
                return False
            self.version += 1
            return True

    def watch(self) -> None:
        snapshot = snapshot_tree(self.watched)
        while not self._stop.wait(self.interval):
            current = snapshot_tree(self.watched)
            if current != snapshot:
                snapshot = current
                logger.info("change detected, rebuilding")
                self.rebuild()

    def serve_forever(self) -> None:
        with self._lock:
            build_site(self.config, live_reload=True)
            self.version += 1
        httpd = make_server(
            self.config.output_path, self.host, self.port,
            base_path=self.config.base_path, version=lambda: self.version,
        )
        watcher = threading.Thread(target=self.watch, daemon=True)
        watcher.start()
        logger.info("dev server on http://%s:%d%s", self.host, self.port,
                    self.config.base_path)
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            self._stop.set()
            httpd.server_close()


def preview(config: SiteConfig, host: str = "127.0.0.1", port: int = 4173) -> None:
    out = config.output_path
    if not out.is_dir():
        raise SiteBuildError(f"{out} has no build output; run `sitebuilder build` first")
    httpd = make_server(out, host, port, base_path=config.base_path)
    logger.info("previewing %s on http://%s:%d%s", out, host, port, config.base_path)
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        httpd.server_close()
