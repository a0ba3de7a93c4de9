"""Stateless HTTP server transports: a standalone server and a WSGI application."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import IO, Any
from urllib.parse import urlsplit

from mcpwire.http_common import HTTPTransportBase
from mcpwire.messages import TransportError

_log = logging.getLogger(__name__)

_TEXT = "text/plain; charset=utf-8"
_JSON = "application/json"
_METHOD_NOT_ALLOWED = "Only POST method is supported"


class _BoundedReader:
    """Reads at most ``length`` bytes from a stream that never reaches EOF on its own."""

    def __init__(self, stream: IO[bytes], length: int) -> None:
        self._stream = stream
        self._length = max(length, 0)

    def read(self, size: int = -1) -> bytes:
        if self._length == 0:
            return b""
        data = self._stream.read(self._length)
        self._length = 0
        return data


def _content_length(value: str | None) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def _exchange(transport: HTTPTransportBase, stream: Any) -> tuple[int, str, bytes]:
    """Run one POST body through ``transport``; return status, content type and body."""
    try:
        body = transport.read_body(stream)
    except TransportError as exc:
        return 400, _TEXT, str(exc).encode("utf-8")
    try:
        reply = transport.handle_message(body)
    except TransportError as exc:
        return 500, _TEXT, str(exc).encode("utf-8")
    try:
        data = reply.to_json().encode("utf-8")
    except (TransportError, TypeError, ValueError) as exc:
        if transport.on_error is not None:
            transport.on_error(TransportError(f"failed to marshal response: {exc}"))
        return 500, _TEXT, b"Failed to marshal response"
    return 200, _JSON, data


def _split_addr(addr: str) -> tuple[str, int]:
    host, _, port = addr.rpartition(":")
    return host, int(port)


class HTTPServerTransport(HTTPTransportBase):
    """Serves the transport over HTTP at ``endpoint`` on ``addr`` ("host:port").

    ``start`` blocks until ``close`` is called. Once listening, ``server_address``
    holds the bound (host, port).
    """

    def __init__(self, endpoint: str, addr: str = ":8080") -> None:
        super().__init__()
        self.endpoint = endpoint
        self.addr = addr
        self.server_address: tuple[str, int] | None = None
        self._server: ThreadingHTTPServer | None = None
        self._server_lock = threading.Lock()

    def start(self) -> None:
        """Listen and serve requests until closed."""
        try:
            address = _split_addr(self.addr)
            server = ThreadingHTTPServer(address, self._handler_class())
        except (OSError, ValueError) as exc:
            raise TransportError(f"failed to listen on {self.addr}: {exc}") from exc
        server.daemon_threads = True
        with self._server_lock:
            self._server = server
            self.server_address = tuple(server.server_address[:2])
        try:
            server.serve_forever(poll_interval=0.1)
        finally:
            server.server_close()

    def close(self) -> None:
        """Stop the server, then call ``on_close``."""
        with self._server_lock:
            server = self._server
            self._server = None
        if server is not None:
            server.shutdown()
        super().close()

    def _handler_class(self) -> type[BaseHTTPRequestHandler]:
        transport = self

        class _Handler(BaseHTTPRequestHandler):
            def _dispatch(self) -> None:
                if urlsplit(self.path).path != transport.endpoint:
                    self._reply(404, _TEXT, b"404 page not found")
                    return
                if self.command != "POST":
                    self._reply(405, _TEXT, _METHOD_NOT_ALLOWED.encode("utf-8"))
                    return
                length = _content_length(self.headers.get("Content-Length"))
                status, content_type, payload = _exchange(
                    transport, _BoundedReader(self.rfile, length)
                )
                self._reply(status, content_type, payload)

            def _reply(self, status: int, content_type: str, payload: bytes) -> None:
                self.send_response(status)
                self.send_header("Content-Type", content_type)
                self.send_header("Content-Length", str(len(payload)))
                self.end_headers()
                self.wfile.write(payload)

            do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = _dispatch

            def log_message(self, format: str, *args: Any) -> None:
                _log.debug("%s - " + format, self.address_string(), *args)

        return _Handler


class WSGITransport(HTTPTransportBase):
    """A WSGI application that answers each POST with the reply to its message."""

    def start(self) -> None:
        """Nothing to do: the hosting WSGI server drives the transport."""
        return None

    def __call__(
        self, environ: dict[str, Any], start_response: Callable[..., Any]
    ) -> Iterable[bytes]:
        if environ.get("REQUEST_METHOD", "GET").upper() != "POST":
            status, content_type, payload = 405, _TEXT, _METHOD_NOT_ALLOWED.encode("utf-8")
        else:
            length = _content_length(environ.get("CONTENT_LENGTH"))
            stream = _BoundedReader(environ["wsgi.input"], length)
            status, content_type, payload = _exchange(self, stream)
        start_response(
            f"{status} {HTTPStatus(status).phrase}",
            [("Content-Type", content_type), ("Content-Length", str(len(payload)))],
        )
        return [payload]