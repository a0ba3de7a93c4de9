"""JSON-RPC message types, line framing and HTTP/WSGI transports for Model Context Protocol peers."""

__version__ = "0.1.0"

__all__ = [
    "capabilities",
    "http_client",
    "http_common",
    "http_server",
    "messages",
    "readbuffer",
]