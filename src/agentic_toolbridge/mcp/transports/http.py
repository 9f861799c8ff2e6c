"""Stateless request/reply transport over HTTP POST (Streamable HTTP)."""

import json
from typing import Any

import httpx

from agentic_toolbridge.config.servers import TransportKind
from agentic_toolbridge.core.exceptions import MCPConnectionError
from agentic_toolbridge.mcp.models import JSONRPC_VERSION
from agentic_toolbridge.mcp.transports.base import Transport
from agentic_toolbridge.utils.logging import get_logger


logger = get_logger(__name__)


def _reply_members(parsed: dict[str, Any]) -> dict[str, Any]:
    if parsed.get("error"):
        return {"error": parsed["error"]}
    if "result" in parsed:
        return {"result": parsed["result"]}
    return {"result": parsed}


def parse_reply_body(text: str) -> dict[str, Any]:
    """
    Recover the reply members (``result`` or ``error``) from a POST body.

    Strict JSON is tried first, then the substring between the outermost
    braces. A body that still does not parse is wrapped as a single text
    content part so the call degrades to an opaque text result.
    """
    trimmed = (text or "").strip()

    try:
        parsed = json.loads(trimmed)
    except ValueError:
        parsed = None
    if isinstance(parsed, dict):
        return _reply_members(parsed)

    first, last = trimmed.find("{"), trimmed.rfind("}")
    if first != -1 and last > first:
        try:
            parsed = json.loads(trimmed[first : last + 1])
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            logger.debug("Recovered reply from malformed body", size=len(trimmed))
            return _reply_members(parsed)

    logger.warning("Unparsable reply body, returning as text", size=len(trimmed))
    return {"result": {"content": [{"type": "text", "text": trimmed}]}}


class StreamableHTTPTransport(Transport):
    """
    MCP transport with no persistent connection.

    Every envelope is one POST. For calls, the response body carries the
    reply; it is handed to the envelope handler before ``send_envelope``
    returns, with the request id filled in since correlation is implicit.
    """

    kind = TransportKind.STREAMABLE_HTTP

    def __init__(
        self,
        url: str,
        http_client: httpx.AsyncClient | None = None,
        request_timeout: float = 30.0,
    ):
        super().__init__(url.strip())
        self._client = http_client
        self._owns_client = http_client is None
        self._request_timeout = request_timeout
        self._open = False

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._request_timeout))
        return self._client

    @property
    def is_open(self) -> bool:
        return self._open and not self._closing

    async def connect(self) -> None:
        if not self.url:
            raise MCPConnectionError("Invalid Streamable HTTP URL")
        self._open = True

    async def send_envelope(self, envelope: dict[str, Any]) -> None:
        if not self.is_open:
            raise MCPConnectionError("MCP Streamable HTTP not connected")

        client = self._get_client()
        try:
            response = await client.post(
                self.url,
                json=envelope,
                headers={"Accept": "application/json, text/event-stream"},
            )
        except httpx.HTTPError as e:
            raise MCPConnectionError(f"MCP Streamable HTTP request failed: {e}") from e

        text = response.text
        if response.is_error:
            raise MCPConnectionError(
                f"MCP Streamable HTTP error ({response.status_code}): {text or response.reason_phrase}"
            )

        request_id = envelope.get("id")
        if request_id is None:
            return

        reply = {"jsonrpc": JSONRPC_VERSION, "id": request_id}
        reply.update(parse_reply_body(text))
        self._deliver(reply)

    async def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        self._open = False
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
