"""A client transport that POSTs each message and dispatches the reply body."""

from __future__ import annotations

import json
import threading
import urllib.error
import urllib.request
from typing import Any

from mcpwire.messages import (
    Message,
    MessageFormatError,
    MessageType,
    Transport,
    TransportError,
    parse_error,
    parse_notification,
    parse_request,
    parse_response,
)

_PARSERS = (
    (MessageType.RESPONSE, "response", parse_response),
    (MessageType.ERROR, "error", parse_error),
    (MessageType.NOTIFICATION, "notification", parse_notification),
    (MessageType.REQUEST, "request", parse_request),
)


def _decode_reply(body: bytes) -> Message | None:
    try:
        obj = json.loads(body)
    except (ValueError, UnicodeDecodeError):
        return None
    for kind, attr, parser in _PARSERS:
        try:
            payload = parser(obj)
        except MessageFormatError:
            continue
        return Message(kind, **{attr: payload})
    return None


class HTTPClientTransport(Transport):
    """Sends every message as an HTTP POST to ``base_url + endpoint``.

    A non-empty reply body is decoded and handed to ``on_message``.
    """

    def __init__(
        self,
        endpoint: str,
        base_url: str = "",
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.base_url = base_url
        self.headers: dict[str, str] = dict(headers or {})
        self.timeout = timeout
        self._lock = threading.Lock()
        self._opener: urllib.request.OpenerDirector | None = None
        self.on_close = None
        self.on_error = None
        self.on_message = None

    def start(self) -> None:
        """Prepare the HTTP opener used for every request."""
        self._get_opener()

    def _get_opener(self) -> urllib.request.OpenerDirector:
        with self._lock:
            if self._opener is None:
                self._opener = urllib.request.build_opener()
            return self._opener

    def send(self, message: Message) -> None:
        """POST ``message`` and dispatch whatever the server answers with."""
        try:
            data = message.to_json().encode("utf-8")
        except (MessageFormatError, TypeError, ValueError) as exc:
            raise TransportError(f"failed to marshal message: {exc}") from exc

        url = f"{self.base_url}{self.endpoint}"
        try:
            request = urllib.request.Request(url, data=data, method="POST")
        except ValueError as exc:
            raise TransportError(f"failed to create request: {exc}") from exc
        request.add_header("Content-Type", "application/json")
        for key, value in self.headers.items():
            request.add_header(key, value)

        options: dict[str, Any] = {} if self.timeout is None else {"timeout": self.timeout}
        opener = self._get_opener()
        try:
            with opener.open(request, **options) as reply:
                status = reply.status
                body = reply.read()
        except urllib.error.HTTPError as exc:
            status = exc.code
            body = exc.read()
        except (urllib.error.URLError, OSError, ValueError) as exc:
            raise TransportError(f"failed to send request: {exc}") from exc

        text = body.decode("utf-8", errors="replace")
        if status != 200:
            raise TransportError(f"server returned error: {text} (status: {status})")
        if not body:
            return

        incoming = _decode_reply(body)
        if incoming is None:
            raise TransportError(f"received invalid response: {text}")
        with self._lock:
            handler = self.on_message
        if handler is not None:
            handler(incoming)

    def close(self) -> None:
        """Call ``on_close``."""
        handler = self.on_close
        if handler is not None:
            handler()