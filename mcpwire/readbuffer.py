"""Framing of a newline-delimited byte stream into JSON-RPC messages."""

from __future__ import annotations

import json
import threading

from mcpwire.messages import (
    Message,
    MessageFormatError,
    MessageType,
    parse_error,
    parse_notification,
    parse_request,
    parse_response,
)

_UNRECOGNIZED = "failed to unmarshal JSON-RPC message, unrecognized type"

_PARSERS = (
    (MessageType.REQUEST, "request", parse_request),
    (MessageType.NOTIFICATION, "notification", parse_notification),
    (MessageType.RESPONSE, "response", parse_response),
    (MessageType.ERROR, "error", parse_error),
)


def deserialize_message(line: str | bytes) -> Message:
    """Parse one line as a request, notification, response or error, in that order."""
    try:
        obj = json.loads(line)
    except (ValueError, UnicodeDecodeError):
        raise MessageFormatError(_UNRECOGNIZED) from None
    if isinstance(obj, dict):
        for kind, attr, parser in _PARSERS:
            try:
                payload = parser(obj)
            except MessageFormatError:
                continue
            return Message(kind, **{attr: payload})
    raise MessageFormatError(_UNRECOGNIZED)


class ReadBuffer:
    """Collects chunks of a stream and yields whole newline-terminated messages."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._buffer = bytearray()

    def append(self, chunk: bytes) -> None:
        """Add a chunk of data to the buffer."""
        with self._lock:
            self._buffer.extend(chunk)

    def read_message(self) -> Message | None:
        """Return the next complete message, or None when no full line is buffered.

        Raises MessageFormatError when the next line is not a JSON-RPC message;
        that line is consumed either way.
        """
        with self._lock:
            index = self._buffer.find(b"\n")
            if index < 0:
                return None
            line = bytes(self._buffer[:index])
            del self._buffer[: index + 1]
        return deserialize_message(line.decode("utf-8", errors="replace"))

    def clear(self) -> None:
        """Discard everything buffered."""
        with self._lock:
            self._buffer.clear()