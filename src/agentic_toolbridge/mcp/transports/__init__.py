"""Wire transports for MCP envelopes."""

from agentic_toolbridge.mcp.transports.base import CloseHandler, EnvelopeHandler, Transport
from agentic_toolbridge.mcp.transports.factory import (
    DefaultTransportFactory,
    TransportFactory,
    config_key,
    parse_kind,
)
from agentic_toolbridge.mcp.transports.http import StreamableHTTPTransport, parse_reply_body
from agentic_toolbridge.mcp.transports.sse import SSETransport, resolve_endpoint
from agentic_toolbridge.mcp.transports.websocket import WebSocketTransport, as_ws_url

__all__ = [
    "CloseHandler",
    "EnvelopeHandler",
    "Transport",
    "TransportFactory",
    "DefaultTransportFactory",
    "config_key",
    "parse_kind",
    "StreamableHTTPTransport",
    "parse_reply_body",
    "SSETransport",
    "resolve_endpoint",
    "WebSocketTransport",
    "as_ws_url",
]
