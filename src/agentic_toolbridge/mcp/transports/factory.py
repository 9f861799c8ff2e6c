"""Transport construction from server configuration."""

from typing import Protocol

import httpx

from agentic_toolbridge.config.servers import TransportKind
from agentic_toolbridge.core.exceptions import MCPConnectionError
from agentic_toolbridge.mcp.transports.base import Transport
from agentic_toolbridge.mcp.transports.http import StreamableHTTPTransport
from agentic_toolbridge.mcp.transports.sse import SSETransport
from agentic_toolbridge.mcp.transports.websocket import WebSocketTransport, as_ws_url


class TransportFactory(Protocol):
    """Builds an unopened transport for a server."""

    def __call__(self, kind: TransportKind, url: str) -> Transport: ...


def parse_kind(transport: "str | TransportKind | None") -> TransportKind:
    try:
        return TransportKind.parse(transport)
    except ValueError as e:
        raise MCPConnectionError(str(e)) from e


def config_key(kind: TransportKind, url: str) -> str:
    """Identity of a transport + URL pair, used to detect config drift."""
    normalized = as_ws_url(url) if kind == TransportKind.WEBSOCKET else (url or "").strip()
    return f"{kind.value}:{normalized}"


class DefaultTransportFactory:
    """
    Creates the concrete transport for a kind.

    An optional shared ``httpx.AsyncClient`` is passed to the HTTP-based
    transports; otherwise each transport owns its own client.
    """

    def __init__(
        self,
        request_timeout: float = 30.0,
        endpoint_timeout: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._request_timeout = request_timeout
        self._endpoint_timeout = endpoint_timeout
        self._http_client = http_client

    def __call__(self, kind: TransportKind, url: str) -> Transport:
        if kind == TransportKind.WEBSOCKET:
            return WebSocketTransport(url, open_timeout=self._endpoint_timeout)
        if kind == TransportKind.SSE:
            return SSETransport(
                url,
                http_client=self._http_client,
                endpoint_timeout=self._endpoint_timeout,
                request_timeout=self._request_timeout,
            )
        if kind == TransportKind.STREAMABLE_HTTP:
            return StreamableHTTPTransport(
                url,
                http_client=self._http_client,
                request_timeout=self._request_timeout,
            )
        raise MCPConnectionError(f"Unsupported MCP transport: {kind}")
