"""Shared request/response pairing for stateless HTTP server transports."""

from __future__ import annotations

import dataclasses
import json
import queue
import threading
from typing import IO, Any

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

_MAX_KEY = 1_000_000
_UNRECOGNIZED = "failed to unmarshal JSON-RPC message, unrecognized type"

_PARSERS = (
    (MessageType.REQUEST, "request", parse_request),
    (MessageType.NOTIFICATION, "notification", parse_notification),
    (MessageType.RESPONSE, "response", parse_response),
    (MessageType.ERROR, "error", parse_error),
)


def _reply_id(message: Message) -> int:
    if message.type is MessageType.RESPONSE and message.response is not None:
        return message.response.id
    if message.type is MessageType.ERROR and message.error is not None:
        return message.error.id
    raise TransportError("only responses can be sent back over an HTTP server transport")


def _with_id(message: Message, new_id: int) -> Message:
    if message.response is not None:
        return dataclasses.replace(message, response=dataclasses.replace(message.response, id=new_id))
    if message.error is not None:
        return dataclasses.replace(message, error=dataclasses.replace(message.error, id=new_id))
    return message


class HTTPTransportBase(Transport):
    """Pairs each incoming HTTP body with the reply the handler sends back.

    Every incoming message is given a free slot; requests have their id replaced
    by the slot number while in flight and restored on the reply. ``timeout``
    bounds the wait for a reply; None waits indefinitely.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: dict[int, queue.Queue] = {}
        self.timeout: float | None = None
        self.on_close = None
        self.on_error = None
        self.on_message = None

    def send(self, message: Message) -> None:
        """Deliver a reply to the HTTP exchange waiting on its id."""
        key = _reply_id(message)
        with self._lock:
            channel = self._pending.get(key)
        if channel is None:
            raise TransportError(f"no response channel found for key: {key}")
        channel.put(message)

    def close(self) -> None:
        """Call ``on_close``."""
        handler = self.on_close
        if handler is not None:
            handler()

    def handle_message(self, body: bytes | str) -> Message:
        """Dispatch one HTTP body to ``on_message`` and return the reply sent for it."""
        key, channel = self._open_slot()
        try:
            original_id, incoming = self._decode(body, key)
            handler = self.on_message
            if handler is not None:
                handler(incoming)
            try:
                reply = channel.get(timeout=self.timeout)
            except queue.Empty:
                raise TransportError(f"timed out waiting for a response for key: {key}") from None
        finally:
            with self._lock:
                if self._pending.get(key) is channel:
                    del self._pending[key]
        if original_id is not None:
            reply = _with_id(reply, original_id)
        return reply

    def read_body(self, stream: IO[Any]) -> bytes:
        """Read a whole request body, reporting failures to ``on_error``."""
        try:
            data = stream.read()
        except OSError as exc:
            error = TransportError(f"failed to read request body: {exc}")
            if self.on_error is not None:
                self.on_error(error)
            raise error from exc
        if isinstance(data, str):
            return data.encode("utf-8")
        return bytes(data)

    def _open_slot(self) -> tuple[int, queue.Queue]:
        with self._lock:
            key = next((k for k in range(_MAX_KEY) if k not in self._pending), _MAX_KEY)
            channel: queue.Queue = queue.Queue()
            self._pending[key] = channel
        return key, channel

    @staticmethod
    def _decode(body: bytes | str, key: int) -> tuple[int | None, Message]:
        try:
            obj = json.loads(body)
        except (ValueError, UnicodeDecodeError):
            raise MessageFormatError(_UNRECOGNIZED) from None
        if isinstance(obj, dict):
            for kind, attr, parser in _PARSERS:
                try:
                    payload = parser(obj)
                except MessageFormatError:
                    continue
                if kind is MessageType.REQUEST:
                    original_id = payload.id
                    return original_id, Message(kind, request=dataclasses.replace(payload, id=key))
                return None, Message(kind, **{attr: payload})
        raise MessageFormatError(_UNRECOGNIZED)