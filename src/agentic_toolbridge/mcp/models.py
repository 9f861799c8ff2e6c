"""MCP data models: wire envelopes, tools and normalized tool results."""

import json
import time
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, Field, computed_field

JSONRPC_VERSION = "2.0"
TOOL_ID_SEPARATOR = "__"


# =============================================================================
# WIRE ENVELOPES
# =============================================================================


class JsonRpcRequest(BaseModel):
    """
    Outbound JSON-RPC call or notification.

    A request without an id is a notification and expects no reply.
    """

    method: str
    params: dict[str, Any] = Field(default_factory=dict)
    id: int | None = None

    @property
    def is_notification(self) -> bool:
        return self.id is None

    def to_envelope(self) -> dict[str, Any]:
        envelope: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION}
        if self.id is not None:
            envelope["id"] = self.id
        envelope["method"] = self.method
        envelope["params"] = self.params
        return envelope


class JsonRpcError(BaseModel):
    """Error member of a JSON-RPC reply."""

    code: int | None = None
    message: str = "MCP error"
    data: Any = None


class JsonRpcReply(BaseModel):
    """Inbound JSON-RPC reply correlated to a pending request."""

    id: int | str
    result: Any = None
    error: JsonRpcError | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def from_envelope(cls, envelope: Any) -> "JsonRpcReply | None":
        """
        Parse a decoded envelope into a reply.

        Returns None for anything that is not a reply: non-objects, messages
        without an id, and server-initiated requests.
        """
        if not isinstance(envelope, dict):
            return None
        reply_id = envelope.get("id")
        if reply_id is None or isinstance(reply_id, bool):
            return None
        if not isinstance(reply_id, (int, str)):
            return None
        if "method" in envelope:
            return None

        raw_error = envelope.get("error")
        error = None
        if raw_error is not None:
            if isinstance(raw_error, dict):
                error = JsonRpcError(
                    code=raw_error.get("code") if isinstance(raw_error.get("code"), int) else None,
                    message=str(raw_error.get("message") or "MCP error"),
                    data=raw_error.get("data"),
                )
            else:
                error = JsonRpcError(message=str(raw_error))
        return cls(id=reply_id, result=envelope.get("result"), error=error)


# =============================================================================
# TOOLS
# =============================================================================


def make_tool_id(server_id: str, tool_name: str) -> str:
    """Build the composite id that addresses a tool on one server."""
    return f"{server_id}{TOOL_ID_SEPARATOR}{tool_name}"


def split_tool_id(
    tool_id: str, server_ids: Iterable[str] | None = None
) -> tuple[str, str] | None:
    """
    Split a composite id into server id and tool name.

    With ``server_ids`` the longest id followed by the separator wins, so a
    server id ending in "_" still splits back. Without them the id is split
    at the first separator. Returns None for plain names.
    """
    if server_ids is not None:
        candidates = [
            sid
            for sid in server_ids
            if sid
            and tool_id.startswith(sid + TOOL_ID_SEPARATOR)
            and len(tool_id) > len(sid) + len(TOOL_ID_SEPARATOR)
        ]
        if not candidates:
            return None
        server_id = max(candidates, key=len)
        return server_id, tool_id[len(server_id) + len(TOOL_ID_SEPARATOR) :]

    server_id, sep, tool_name = tool_id.partition(TOOL_ID_SEPARATOR)
    if not sep or not server_id or not tool_name:
        return None
    return server_id, tool_name


def summarize_input_schema(schema: Any) -> str:
    """Render required properties of a JSON schema as ``{ key: type }``."""
    if not isinstance(schema, dict):
        return ""
    props = schema.get("properties") if isinstance(schema.get("properties"), dict) else {}
    required = schema.get("required") if isinstance(schema.get("required"), list) else []

    parts = []
    for key in required:
        spec = props.get(key) if isinstance(props.get(key), dict) else {}
        prop_type = spec.get("type") if isinstance(spec.get("type"), str) else "any"
        parts.append(f"{key}: {prop_type}")
    return "{ " + ", ".join(parts) + " }" if parts else "{}"


class MCPTool(BaseModel):
    """A tool exposed by a remote server, tagged with its owner."""

    name: str = Field(..., description="Tool name as known to its server")
    description: str = Field("", description="Tool description")
    input_schema: dict[str, Any] = Field(
        default_factory=dict, description="JSON Schema for tool inputs"
    )
    server_id: str = Field("", description="ID of the server hosting this tool")
    server_name: str = Field("", description="Display name of the hosting server")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def tool_id(self) -> str:
        return make_tool_id(self.server_id, self.name) if self.server_id else self.name

    @property
    def args_summary(self) -> str:
        return summarize_input_schema(self.input_schema)

    @classmethod
    def from_wire(cls, data: dict[str, Any], server_id: str = "", server_name: str = "") -> "MCPTool":
        """Build from a ``tools/list`` entry."""
        description = data.get("description")
        schema = data.get("inputSchema")
        return cls(
            name=data["name"],
            description=description.strip() if isinstance(description, str) else "",
            input_schema=schema if isinstance(schema, dict) else {},
            server_id=server_id,
            server_name=server_name,
        )

    def tagged(self, server_id: str, server_name: str = "") -> "MCPTool":
        return self.model_copy(update={"server_id": server_id, "server_name": server_name})


class ToolCallCommand(BaseModel):
    """A single tool call extracted from model output."""

    name: str = Field(..., description="Plain or composite tool name")
    args: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")


# =============================================================================
# TOOL RESULTS
# =============================================================================


class ToolSource(str, Enum):
    """Where a tool ran."""

    LOCAL = "local"
    REMOTE = "remote"


class ToolFile(BaseModel):
    """A binary attachment returned by a tool (e.g. a screenshot)."""

    data: str = Field(..., description="Data URL or base64 payload")
    mime_type: str = Field("image/png", description="MIME type of the payload")
    name: str = Field("", description="Suggested file name")


class ToolResult(BaseModel):
    """Normalized tool output: text plus ordered files."""

    text: str = ""
    files: list[ToolFile] = Field(default_factory=list)
    source: ToolSource = ToolSource.REMOTE


def _extract_text(content: list[Any]) -> str:
    return "".join(
        part["text"]
        for part in content
        if isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text"), str)
    )


def _extract_files(content: list[Any]) -> list[ToolFile]:
    files = []
    for part in content:
        if not isinstance(part, dict) or part.get("type") != "image":
            continue
        data = part.get("data")
        if not isinstance(data, str) or not data:
            continue
        mime_type = part.get("mimeType") or "image/png"
        if not data.startswith("data:"):
            data = f"data:{mime_type};base64,{data}"
        extension = "png" if "png" in mime_type else "img"
        files.append(
            ToolFile(
                data=data,
                mime_type=mime_type,
                name=f"mcp-image-{int(time.time() * 1000)}.{extension}",
            )
        )
    return files


def normalize_tool_result(result: Any, source: ToolSource = ToolSource.REMOTE) -> ToolResult:
    """
    Normalize a ``tools/call`` result to text plus files.

    Accepts a list of typed content parts, a bare string, or an object with a
    ``text`` field; anything else is rendered as indented JSON.
    """
    if isinstance(result, str):
        return ToolResult(text=result, source=source)

    if isinstance(result, dict):
        content = result.get("content")
        if isinstance(content, list):
            return ToolResult(
                text=_extract_text(content),
                files=_extract_files(content),
                source=source,
            )
        if isinstance(result.get("text"), str):
            return ToolResult(text=result["text"], source=source)

    try:
        text = json.dumps(result, indent=2)
    except (TypeError, ValueError):
        text = str(result)
    return ToolResult(text=text, source=source)
