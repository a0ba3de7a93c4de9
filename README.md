# mcpwire

Message types and HTTP transports for the Model Context Protocol's
JSON-RPC 2.0 wire format. It uses only the standard library.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Messages

`mcpwire.messages` has the four JSON-RPC message kinds. They are
`JSONRPCRequest`, `JSONRPCNotification`, `JSONRPCResponse` and `JSONRPCError`,
and the inner error object is `JSONRPCErrorInner`. Each kind has its own
parser:

- `parse_request`
- `parse_notification`
- `parse_response`
- `parse_error`

A parser accepts JSON text, bytes or a mapping that is already decoded.

- A missing required field raises `MessageFormatError`.
- So does a value of the wrong type.
- So does an `id` on a notification.

`MessageFormatError` is a `TransportError` and also a `ValueError`.

A `Message` holds one payload and records its kind in a `MessageType`.
`Message.to_dict()` turns it into a plain dict and `Message.to_json()` turns it
into compact JSON.

```python
from mcpwire.messages import parse_request

request = parse_request('{"jsonrpc": "2.0", "id": 1, "method": "ping"}')
print(request.method, request.id)
```

## Reading a stream

`mcpwire.readbuffer.ReadBuffer` collects chunks of bytes with `append`. Each
call to `read_message` returns the next complete message, one per line, or
`None` if no full line has arrived yet. `clear` throws away everything in the
buffer.

`deserialize_message` works out which kind of message a single line holds. It
tries request, then notification, then response, then error. If none of them
fits, it raises `MessageFormatError`.

```python
from mcpwire.readbuffer import ReadBuffer

buffer = ReadBuffer()
buffer.append(b'{"jsonrpc": "2.0", "method": "test"}\n')
message = buffer.read_message()  # a notification
```

## Transports

Every transport follows the abstract `Transport` contract. It has three
methods: `start`, `send` and `close`. You install three handlers on it:

- `on_message` is called with each incoming `Message`.
- `on_error` is called with errors that arrive out of band.
- `on_close` is called when the connection closes.

### `mcpwire.http_server.HTTPServerTransport(endpoint, addr=":8080")`

A stateless HTTP server.

- `start()` blocks and serves until `close()` is called. Once the server is
  listening, `server_address` holds the bound host and port.
- Each POST to `endpoint` carries one message. The response is the reply that
  the message handler sends back through `send()`.
- Any method other than POST gets a 405.
- Any path other than `endpoint` gets a 404.

### `mcpwire.http_server.WSGITransport()`

Does the same job as a WSGI application, so you can mount it in any WSGI
server. Its `start()` does nothing, because the hosting server drives it.

### `mcpwire.http_common.HTTPTransportBase`

The shared plumbing of both server transports.

- `handle_message(body)` hands the body to `on_message` and waits for the
  matching reply.
- While a request is waiting, its `id` is replaced by an internal slot number.
  The original `id` is put back on the reply.
- Set the `timeout` attribute to limit how long `handle_message` waits.
- `read_body(stream)` reads a whole request body.

### `mcpwire.http_client.HTTPClientTransport(endpoint, base_url="", headers=None, timeout=None)`

POSTs each message to `base_url + endpoint`, adding any extra `headers`.

- A reply body that is not empty is decoded and passed to `on_message`.
- A status other than 200 raises `TransportError`.
- So does a reply body that cannot be decoded.

## Protocol payloads

`mcpwire.capabilities` has the payload types that a server sends back:

- `ServerCapabilities`, with `ServerCapabilitiesPrompts`,
  `ServerCapabilitiesResources` and `ServerCapabilitiesTools`
- `Implementation`
- `InitializeResponse`
- `ToolDefinition`
- `ToolsResponse`

It also has `CallToolRequestParams`, the parameters of an incoming tool call.
The types convert to plain dictionaries with `to_dict`, and several also read
them back with `from_dict`.

## What this package does not do

- There is no standard-input/standard-output transport. The line framing in
  `ReadBuffer` is there, but nothing reads it from a process's streams.
- There is no server object that registers tools, prompts or resources and
  answers protocol requests. You supply the message handler yourself.
- There is no command-line program.