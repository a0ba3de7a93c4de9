"""JSON-RPC 2.0 message types and the contract every transport fulfils."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class TransportError(Exception):
    """Base class for transport and message errors."""


class MessageFormatError(TransportError, ValueError):
    """Raised when data is not a valid JSON-RPC message of the expected kind."""


class MessageType(str, Enum):
    """The four kinds of JSON-RPC message."""

    REQUEST = "request"
    NOTIFICATION = "notification"
    RESPONSE = "response"
    ERROR = "error"


def _load(data: Any) -> dict:
    """Decode JSON text, bytes or an already decoded mapping into a dict."""
    if isinstance(data, Mapping):
        return dict(data)
    if isinstance(data, (bytes, bytearray, memoryview)):
        data = bytes(data)
    elif not isinstance(data, str):
        raise MessageFormatError(f"cannot decode a message from {type(data).__name__}")
    try:
        obj = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MessageFormatError(f"invalid JSON: {exc}") from exc
    if not isinstance(obj, dict):
        raise MessageFormatError(f"expected a JSON object, got {type(obj).__name__}")
    return obj


def _get_int(obj: Mapping, key: str, owner: str) -> int | None:
    value = obj.get(key)
    if value is None:
        return None
    if (
        isinstance(value, bool)
        or not isinstance(value, int)
        or not _INT64_MIN <= value <= _INT64_MAX
    ):
        raise MessageFormatError(
            f"field {key} in {owner}: expected a 64-bit integer, got {value!r}"
        )
    return value


def _get_str(obj: Mapping, key: str, owner: str) -> str | None:
    value = obj.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise MessageFormatError(f"field {key} in {owner}: expected a string, got {value!r}")
    return value


def _required(value: Any, key: str, owner: str) -> Any:
    if value is None:
        raise MessageFormatError(f"field {key} in {owner}: required")
    return value


@dataclass
class JSONRPCErrorInner:
    """The error object carried by an error response."""

    code: int
    message: str
    data: Any = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"code": self.code}
        if self.data is not None:
            out["data"] = self.data
        out["message"] = self.message
        return out


@dataclass
class JSONRPCError:
    """A response to a request that indicates an error occurred."""

    id: int
    error: JSONRPCErrorInner
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict:
        return {"error": self.error.to_dict(), "id": self.id, "jsonrpc": self.jsonrpc}


@dataclass
class JSONRPCRequest:
    """A request; ``params`` is the decoded JSON value, or None when absent."""

    id: int
    method: str
    params: Any = None
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"id": self.id, "jsonrpc": self.jsonrpc, "method": self.method}
        if self.params is not None:
            out["params"] = self.params
        return out


@dataclass
class JSONRPCNotification:
    """A notification: a method call that carries no id and expects no reply."""

    method: str
    params: Any = None
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict:
        out: dict[str, Any] = {"jsonrpc": self.jsonrpc, "method": self.method}
        if self.params is not None:
            out["params"] = self.params
        return out


@dataclass
class JSONRPCResponse:
    """A successful response; ``result`` is the decoded JSON value."""

    id: int
    result: Any
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict:
        return {"id": self.id, "jsonrpc": self.jsonrpc, "result": self.result}


Payload = Union[JSONRPCRequest, JSONRPCNotification, JSONRPCResponse, JSONRPCError]


def parse_request(data: Any) -> JSONRPCRequest:
    """Parse a request; id, jsonrpc and method are required."""
    obj = _load(data)
    owner = "JSONRPCRequest"
    request_id = _get_int(obj, "id", owner)
    jsonrpc = _get_str(obj, "jsonrpc", owner)
    method = _get_str(obj, "method", owner)
    return JSONRPCRequest(
        id=_required(request_id, "id", owner),
        jsonrpc=_required(jsonrpc, "jsonrpc", owner),
        method=_required(method, "method", owner),
        params=obj.get("params"),
    )


def parse_notification(data: Any) -> JSONRPCNotification:
    """Parse a notification; jsonrpc and method are required, an id is refused."""
    obj = _load(data)
    owner = "JSONRPCNotification"
    jsonrpc = _get_str(obj, "jsonrpc", owner)
    method = _get_str(obj, "method", owner)
    notification_id = _get_int(obj, "id", owner)
    _required(jsonrpc, "jsonrpc", owner)
    _required(method, "method", owner)
    if notification_id is not None:
        raise MessageFormatError(f"field id in {owner}: not allowed")
    return JSONRPCNotification(method=method, params=obj.get("params"), jsonrpc=jsonrpc)


def parse_response(data: Any) -> JSONRPCResponse:
    """Parse a successful response; id, jsonrpc and a non-null result are required."""
    obj = _load(data)
    owner = "JSONRPCResponse"
    response_id = _get_int(obj, "id", owner)
    jsonrpc = _get_str(obj, "jsonrpc", owner)
    return JSONRPCResponse(
        id=_required(response_id, "id", owner),
        jsonrpc=_required(jsonrpc, "jsonrpc", owner),
        result=_required(obj.get("result"), "result", owner),
    )


def parse_error(data: Any) -> JSONRPCError:
    """Parse an error response; absent fields take their zero values."""
    obj = _load(data)
    owner = "JSONRPCError"
    error_id = _get_int(obj, "id", owner)
    jsonrpc = _get_str(obj, "jsonrpc", owner)
    inner_obj = obj.get("error")
    if inner_obj is None:
        inner = JSONRPCErrorInner(code=0, message="")
    elif isinstance(inner_obj, Mapping):
        inner_owner = "JSONRPCErrorInner"
        code = _get_int(inner_obj, "code", inner_owner)
        message = _get_str(inner_obj, "message", inner_owner)
        inner = JSONRPCErrorInner(
            code=code if code is not None else 0,
            message=message if message is not None else "",
            data=inner_obj.get("data"),
        )
    else:
        raise MessageFormatError(f"field error in {owner}: expected an object, got {inner_obj!r}")
    return JSONRPCError(
        id=error_id if error_id is not None else 0,
        error=inner,
        jsonrpc=jsonrpc if jsonrpc is not None else "",
    )


@dataclass
class Message:
    """A JSON-RPC message of one kind; the field matching ``type`` holds it."""

    type: MessageType
    request: JSONRPCRequest | None = None
    notification: JSONRPCNotification | None = None
    response: JSONRPCResponse | None = None
    error: JSONRPCError | None = None

    def _payload(self) -> Payload | None:
        return {
            MessageType.REQUEST: self.request,
            MessageType.NOTIFICATION: self.notification,
            MessageType.RESPONSE: self.response,
            MessageType.ERROR: self.error,
        }.get(self.type)

    def to_dict(self) -> dict:
        payload = self._payload()
        if payload is None:
            raise MessageFormatError("unknown message type, couldn't marshal")
        return payload.to_dict()

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


class Transport(ABC):
    """The minimal contract for a transport that a client or server talks over.

    ``on_message`` receives each incoming :class:`Message`, ``on_error`` receives
    out-of-band errors, and ``on_close`` is called when the connection closes.
    """

    on_close: Callable[[], None] | None = None
    on_error: Callable[[Exception], None] | None = None
    on_message: Callable[[Message], None] | None = None

    @abstractmethod
    def start(self) -> None:
        """Begin processing messages; install the handlers before calling this."""

    @abstractmethod
    def send(self, message: Message) -> None:
        """Send a request, notification or response."""

    @abstractmethod
    def close(self) -> None:
        """Close the connection and call ``on_close``."""