import json

import pytest

from mcpwire.messages import (
    JSONRPCError,
    JSONRPCErrorInner,
    JSONRPCNotification,
    JSONRPCRequest,
    JSONRPCResponse,
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


def test_parse_request_fields():
    req = parse_request('{"jsonrpc": "2.0", "method": "test", "params": {"a": [1, 2]}, "id": 7}')
    assert req == JSONRPCRequest(id=7, method="test", params={"a": [1, 2]}, jsonrpc="2.0")


def test_parse_request_accepts_bytes_and_mappings():
    text = '{"jsonrpc":"2.0","id":3,"method":"ping"}'
    assert parse_request(text.encode()) == parse_request(json.loads(text))


@pytest.mark.parametrize(
    "payload, missing",
    [
        ({"jsonrpc": "2.0", "method": "test"}, "id"),
        ({"id": 1, "method": "test"}, "jsonrpc"),
        ({"id": 1, "jsonrpc": "2.0"}, "method"),
    ],
)
def test_parse_request_required_fields(payload, missing):
    with pytest.raises(MessageFormatError, match=f"field {missing} in .*: required"):
        parse_request(payload)


@pytest.mark.parametrize("bad_id", ["1", 1.5, True])
def test_parse_request_rejects_non_integer_id(bad_id):
    with pytest.raises(MessageFormatError):
        parse_request({"id": bad_id, "jsonrpc": "2.0", "method": "test"})


def test_parse_request_null_params_is_absent():
    req = parse_request('{"id":1,"jsonrpc":"2.0","method":"m","params":null}')
    assert req.params is None
    assert "params" not in req.to_dict()


def test_parse_notification_refuses_id():
    with pytest.raises(MessageFormatError, match="not allowed"):
        parse_notification({"jsonrpc": "2.0", "method": "test", "id": 1})


def test_parse_notification_fields():
    note = parse_notification('{"jsonrpc":"2.0","method":"notifications/tools/list_changed"}')
    assert note.method == "notifications/tools/list_changed"
    assert note.jsonrpc == "2.0"


def test_parse_notification_requires_method():
    with pytest.raises(MessageFormatError, match="field method"):
        parse_notification({"jsonrpc": "2.0"})


@pytest.mark.parametrize(
    "payload",
    [{"jsonrpc": "2.0", "id": 1}, {"jsonrpc": "2.0", "id": 1, "result": None}],
)
def test_parse_response_requires_result(payload):
    with pytest.raises(MessageFormatError, match="field result"):
        parse_response(payload)


def test_parse_error_fields():
    err = parse_error(
        '{"jsonrpc":"2.0","id":1,"error":{"code":-32700,"message":"Parse error","data":[1]}}'
    )
    assert err.id == 1
    assert err.error == JSONRPCErrorInner(code=-32700, message="Parse error", data=[1])


def test_parse_error_is_lenient_about_missing_fields():
    err = parse_error({})
    assert err == JSONRPCError(id=0, error=JSONRPCErrorInner(code=0, message=""), jsonrpc="")


def test_parse_error_rejects_wrong_types():
    with pytest.raises(MessageFormatError):
        parse_error({"error": {"code": "bad"}})
    with pytest.raises(MessageFormatError):
        parse_error({"error": "bad"})


@pytest.mark.parametrize("text", ['{"invalid json', "[1, 2]", "42"])
def test_invalid_json_raises_transport_error(text):
    with pytest.raises(TransportError):
        parse_request(text)


def test_response_wire_format():
    msg = Message(
        MessageType.RESPONSE,
        response=JSONRPCResponse(id=1, result={"status": "ok"}, jsonrpc="2.0"),
    )
    assert msg.to_json() == '{"id":1,"jsonrpc":"2.0","result":{"status":"ok"}}'


def test_error_inner_omits_absent_data():
    assert "data" not in JSONRPCErrorInner(code=-32600, message="Invalid Request").to_dict()
    with_data = JSONRPCErrorInner(code=-32600, message="Invalid Request", data={"x": 1})
    assert with_data.to_dict()["data"] == {"x": 1}


@pytest.mark.parametrize(
    "message, parser, attr",
    [
        (
            Message(MessageType.REQUEST, request=JSONRPCRequest(id=5, method="tools/list", params={})),
            parse_request,
            "request",
        ),
        (
            Message(
                MessageType.NOTIFICATION,
                notification=JSONRPCNotification(method="notifications/initialized"),
            ),
            parse_notification,
            "notification",
        ),
        (
            Message(MessageType.RESPONSE, response=JSONRPCResponse(id=9, result=[1, "two"])),
            parse_response,
            "response",
        ),
        (
            Message(
                MessageType.ERROR,
                error=JSONRPCError(id=4, error=JSONRPCErrorInner(code=-32601, message="nope")),
            ),
            parse_error,
            "error",
        ),
    ],
)
def test_round_trip(message, parser, attr):
    assert parser(message.to_json()) == getattr(message, attr)
    assert json.loads(message.to_json()) == message.to_dict()


def test_message_without_payload_cannot_be_serialised():
    with pytest.raises(MessageFormatError, match="unknown message type"):
        Message(MessageType.REQUEST).to_json()


def test_transport_is_abstract():
    with pytest.raises(TypeError):
        Transport()


def test_transport_subclass_dispatches_to_handlers():
    class Loopback(Transport):
        def start(self):
            pass

        def send(self, message):
            self.on_message(message)

        def close(self):
            self.on_close()

    received = []
    closed = []
    transport = Loopback()
    transport.on_message = received.append
    transport.on_close = lambda: closed.append(True)
    msg = Message(MessageType.NOTIFICATION, notification=JSONRPCNotification(method="m"))
    transport.send(msg)
    transport.close()
    assert received == [msg]
    assert closed == [True]