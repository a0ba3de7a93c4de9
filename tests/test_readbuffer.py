import pytest

from mcpwire.messages import MessageFormatError, MessageType
from mcpwire.readbuffer import ReadBuffer, deserialize_message


def test_read_buffer_framing():
    rb = ReadBuffer()
    assert rb.read_message() is None

    rb.append(b'{"jsonrpc": "2.0", "method": "test"')
    assert rb.read_message() is None

    rb.append(b', "params": {}}')
    rb.append(b"\n")
    msg = rb.read_message()
    assert msg is not None
    assert msg.type == MessageType.NOTIFICATION
    assert msg.notification.method == "test"

    rb.clear()
    assert rb.read_message() is None


def test_clear_discards_partial_message():
    rb = ReadBuffer()
    rb.append(b'{"jsonrpc": "2.0", "method": "te')
    rb.clear()
    rb.append(b'{"jsonrpc":"2.0","method":"test"}\n')
    msg = rb.read_message()
    assert msg.notification.method == "test"


def test_multiple_messages_in_one_chunk():
    rb = ReadBuffer()
    rb.append(
        b'{"jsonrpc":"2.0","id":1,"method":"test","params":{}}\n'
        b'{"jsonrpc":"2.0","result":{},"id":1}\n'
    )
    first = rb.read_message()
    second = rb.read_message()
    assert first.type == MessageType.REQUEST
    assert second.type == MessageType.RESPONSE
    assert rb.read_message() is None


def test_invalid_line_raises_and_is_consumed():
    rb = ReadBuffer()
    rb.append(b'{"invalid json\n{"jsonrpc":"2.0","method":"test"}\n')
    with pytest.raises(MessageFormatError, match="failed to unmarshal JSON-RPC message, unrecognized type"):
        rb.read_message()
    assert rb.read_message().notification.method == "test"


@pytest.mark.parametrize(
    "line, want",
    [
        ('{"jsonrpc": "2.0", "method": "test", "params": {}, "id": 1}', MessageType.REQUEST),
        ('{"jsonrpc": "2.0", "method": "test", "params": {}}', MessageType.NOTIFICATION),
        (
            '{"jsonrpc": "2.0", "error": {"code": -32600, "message": "Invalid Request"}, "id": 1}',
            MessageType.ERROR,
        ),
        ('{"jsonrpc": "2.0", "result": {}, "id": 1}', MessageType.RESPONSE),
    ],
)
def test_message_deserialization_types(line, want):
    assert deserialize_message(line).type == want


def test_deserialize_request_details():
    msg = deserialize_message('{"jsonrpc":"2.0","id":1,"method":"test","params":{}}')
    assert msg.type == MessageType.REQUEST
    assert msg.request.jsonrpc == "2.0"
    assert msg.request.method == "test"
    assert msg.request.id == 1


def test_deserialize_notification_details():
    msg = deserialize_message('{"jsonrpc":"2.0","method":"test","params":{}}')
    assert msg.type == MessageType.NOTIFICATION
    assert msg.notification.jsonrpc == "2.0"
    assert msg.notification.method == "test"


def test_deserialize_error_details():
    msg = deserialize_message(
        '{"jsonrpc":"2.0","id":1,"error":{"code":-32700,"message":"Parse error"}}'
    )
    assert msg.type == MessageType.ERROR
    assert msg.error.jsonrpc == "2.0"
    assert msg.error.error.code == -32700
    assert msg.error.error.message == "Parse error"


@pytest.mark.parametrize("line", ['{"invalid json', "", "[1]", '"text"'])
def test_deserialize_unrecognized(line):
    with pytest.raises(MessageFormatError, match="unrecognized type"):
        deserialize_message(line)


def test_deserialize_round_trips_serialised_message():
    original = deserialize_message('{"jsonrpc":"2.0","id":12,"method":"tools/call","params":{"name":"x"}}')
    assert deserialize_message(original.to_json()) == original