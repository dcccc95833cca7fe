"""Live preview HTTP server.

Every request to ``/`` reads the document named by the ``path`` query
parameter from disk and renders it again, so edits made in an editor show up
on the next reload. ``/watch`` is a long-poll endpoint used by the page to
reload itself when the file changes.
"""

from __future__ import annotations

import enum
import json
import logging
import threading
import time
import webbrowser
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import parse_qs, urlencode, urlsplit

from .config import RenderConfig, ServerConfig
from .errors import ServerBindError, SourceUnreadableError
from .renderer import read_document, render

logger = logging.getLogger("mdembed.server")


class ServerState(enum.Enum):
    IDLE = "idle"
    LISTENING = "listening"
    STOPPED = "stopped"


def _first(params: Dict[str, List[str]], name: str) -> Optional[str]:
    values = params.get(name)
    if not values or not values[0]:
        return None
    return values[0]


def _document_path(raw: str) -> Path:
    return Path(raw).expanduser().resolve()


class PreviewRequestHandler(BaseHTTPRequestHandler):
    """Handles ``/`` (rendered page) and ``/watch`` (change notification)."""

    server: "_PreviewHTTPServer"
    server_version = "mdembed"

    def do_GET(self) -> None:  # noqa: N802 - http.server signature
        url = urlsplit(self.path)
        params = parse_qs(url.query)
        try:
            if url.path == "/":
                self._handle_render(params)
            elif url.path == "/watch":
                self._handle_watch(params)
            else:
                self.send_error(HTTPStatus.NOT_FOUND, "Unknown route")
        except (BrokenPipeError, ConnectionResetError):
            logger.debug("Client disconnected during %s", self.path)

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        logger.debug("%s - %s", self.address_string(), format % args)

    def _send_body(
        self,
        status: HTTPStatus,
        body: bytes,
        content_type: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store")
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(body)

    def _handle_render(self, params: Dict[str, List[str]]) -> None:
        preview = self.server.preview
        raw_path = _first(params, "path")
        if raw_path is None:
            if preview.default_document is None:
                self.send_error(HTTPStatus.BAD_REQUEST, "Missing 'path' query parameter")
                return
            self.send_response(HTTPStatus.FOUND)
            self.send_header("Location", preview.document_path_query(preview.default_document))
            self.send_header("Content-Length", "0")
            self.end_headers()
            return

        path = _document_path(raw_path)
        logger.info("Rendering document %s", path)
        try:
            document = read_document(path)
            watch_url = "/watch?" + urlencode(
                {"path": str(document.path), "since": document.mtime_ns}
            )
            rendered = render(
                document.text,
                document.base_dir,
                preview.render_config,
                default_title=document.path.name,
                watch_url=watch_url,
            )
        except SourceUnreadableError as exc:
            logger.error("%s", exc)
            self.send_error(HTTPStatus.NOT_FOUND, "Document not readable", str(exc))
            return
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error rendering %s", path)
            self.send_error(HTTPStatus.INTERNAL_SERVER_ERROR, "Error rendering document")
            return

        self._send_body(
            HTTPStatus.OK,
            rendered.to_bytes(),
            "text/html; charset=utf-8",
            {"X-Unresolved-Assets": str(len(rendered.unresolved))},
        )

    def _handle_watch(self, params: Dict[str, List[str]]) -> None:
        preview = self.server.preview
        raw_path = _first(params, "path")
        if raw_path is None:
            self.send_error(HTTPStatus.BAD_REQUEST, "Missing 'path' query parameter")
            return
        since_raw = _first(params, "since") or "0"
        try:
            since = int(since_raw)
        except ValueError:
            self.send_error(HTTPStatus.BAD_REQUEST, "'since' must be an integer")
            return

        path = _document_path(raw_path)
        deadline = time.monotonic() + preview.config.watch_timeout
        while True:
            try:
                mtime_ns = path.stat().st_mtime_ns
            except OSError as exc:
                self.send_error(
                    HTTPStatus.NOT_FOUND, "Document not found", f"Cannot watch {path}: {exc}"
                )
                return
            if mtime_ns != since:
                logger.info("Detected change in %s", path)
                body = json.dumps({"mtime_ns": mtime_ns}).encode("utf-8")
                self._send_body(HTTPStatus.OK, body, "application/json")
                return
            if time.monotonic() >= deadline or preview.stopping.wait(
                preview.config.poll_interval
            ):
                break

        self.send_response(HTTPStatus.NO_CONTENT)
        self.send_header("Cache-Control", "no-store")
        self.end_headers()


class _PreviewHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_port = False

    def __init__(self, address, handler, preview: "PreviewServer") -> None:
        self.preview = preview
        super().__init__(address, handler)


class PreviewServer:
    """Owns the HTTP server and its lifecycle."""

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        render_config: Optional[RenderConfig] = None,
        default_document: Optional[Path] = None,
    ) -> None:
        self.config = config or ServerConfig()
        self.render_config = render_config or RenderConfig(live_reload=True)
        self.default_document = (
            _document_path(str(default_document)) if default_document else None
        )
        self.state = ServerState.IDLE
        self.stopping = threading.Event()
        self._httpd: Optional[_PreviewHTTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._serving = False

    @property
    def server_address(self) -> tuple:
        if self._httpd is None:
            return (self.config.host, self.config.port)
        return self._httpd.server_address[:2]

    @property
    def url(self) -> str:
        host, port = self.server_address
        if host in ("0.0.0.0", "::", ""):
            host = "127.0.0.1"
        if ":" in host:
            host = f"[{host}]"
        return f"http://{host}:{port}"

    def document_path_query(self, path: Path) -> str:
        return "/?" + urlencode({"path": str(_document_path(str(path)))})

    def document_url(self, path: Path) -> str:
        """URL that previews ``path`` on this server."""
        return self.url + self.document_path_query(path)

    def start(self) -> None:
        """Bind the listening socket."""
        if self.state is ServerState.LISTENING:
            return
        try:
            self._httpd = _PreviewHTTPServer(
                (self.config.host, self.config.port), PreviewRequestHandler, self
            )
        except OSError as exc:
            self.state = ServerState.STOPPED
            raise ServerBindError(
                self.config.host, self.config.port, exc.strerror or str(exc)
            ) from exc
        self.stopping.clear()
        self.state = ServerState.LISTENING
        logger.info("Preview server listening on %s", self.url)

        if self.config.open_browser and self.default_document is not None:
            target = self.document_url(self.default_document)
            logger.info("Opening %s", target)
            webbrowser.open(target)

    def serve_forever(self) -> None:
        """Start if needed and handle requests until ``shutdown`` is called."""
        self.start()
        httpd = self._httpd
        assert httpd is not None
        self._serving = True
        try:
            httpd.serve_forever()
        finally:
            self._close()

    def start_background(self) -> threading.Thread:
        """Serve from a daemon thread; returns once the socket is bound."""
        self.start()
        httpd = self._httpd
        assert httpd is not None
        self._serving = True
        self._thread = threading.Thread(
            target=httpd.serve_forever, name="mdembed-preview", daemon=True
        )
        self._thread.start()
        return self._thread

    def shutdown(self) -> None:
        """Stop serving, release the socket and move to ``STOPPED``."""
        httpd = self._httpd
        self.stopping.set()
        if httpd is not None and self._serving:
            httpd.shutdown()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        self._close()

    def _close(self) -> None:
        httpd, self._httpd = self._httpd, None
        self._serving = False
        if httpd is not None:
            httpd.server_close()
            logger.info("Preview server stopped")
        self.state = ServerState.STOPPED

    def __enter__(self) -> "PreviewServer":
        self.start_background()
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
