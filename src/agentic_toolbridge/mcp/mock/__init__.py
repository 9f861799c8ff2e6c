"""Mock MCP server for testing."""

from .server import MockMCPServer
from .tools import MockTool, create_default_mock_tools, text_result
from .transport import FakeTransport, MockTransportFactory

__all__ = [
    "MockMCPServer",
    "MockTool",
    "create_default_mock_tools",
    "text_result",
    "FakeTransport",
    "MockTransportFactory",
]
