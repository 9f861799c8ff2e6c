"""Mock tool implementations for testing."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

ToolHandler = Callable[[dict[str, Any]], Awaitable[Any]]


@dataclass
class MockTool:
    """A tool served by MockMCPServer; the handler returns a ``tools/call`` result."""

    name: str
    description: str
    handler: ToolHandler
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def text_result(text: str) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


async def _search(args: dict[str, Any]) -> dict[str, Any]:
    query = args.get("query", "")
    return text_result(
        f"Mock search results for: {query}\n"
        f"1. Result 1 - A relevant article about {query}\n"
        f"2. Result 2 - Another resource on {query}"
    )


async def _weather(args: dict[str, Any]) -> dict[str, Any]:
    return text_result("Sunny")


async def _screenshot(args: dict[str, Any]) -> dict[str, Any]:
    return {
        "content": [
            {"type": "text", "text": "Captured "},
            {"type": "text", "text": "screen"},
            {"type": "image", "data": "iVBORw0KGgo=", "mimeType": "image/png"},
        ]
    }


def create_default_mock_tools() -> list[MockTool]:
    """Default tool set: search, weather and an image-producing screenshot."""
    return [
        MockTool(
            name="search",
            description="Search the web for information",
            handler=_search,
            input_schema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search query"},
                    "max_results": {"type": "integer", "default": 5},
                },
                "required": ["query"],
            },
        ),
        MockTool(
            name="weather",
            description="Current weather for a city",
            handler=_weather,
            input_schema={
                "type": "object",
                "properties": {"city": {"type": "string"}},
                "required": ["city"],
            },
        ),
        MockTool(
            name="screenshot",
            description="Capture the remote screen",
            handler=_screenshot,
        ),
    ]
