"""Application settings via environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from agentic_toolbridge.config.servers import MCPServerConfig


DEFAULT_PROTOCOL_VERSIONS = ["2024-11-05", "2024-10-07", "2024-06-20"]


class Settings(BaseSettings):
    """Application settings via environment variables."""

    # Client identity sent during the initialize handshake
    client_name: str = "agentic-toolbridge"
    client_version: str = "0.1.0"

    # MCP protocol
    mcp_protocol_versions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_PROTOCOL_VERSIONS)
    )  # Newest first
    mcp_handshake_backoff_seconds: float = 0.15
    mcp_request_timeout_seconds: float = 30.0
    mcp_sse_endpoint_timeout_seconds: float = 10.0
    mcp_idle_timeout_seconds: float = 120.0  # 2 minutes
    mcp_tools_cache_ttl_seconds: float = 300.0  # 5 minutes

    # How a plain tool name exposed by several servers is resolved
    mcp_ambiguous_tool_policy: Literal["first_match", "error"] = "first_match"

    # Remote servers (JSON list in MCP_SERVERS)
    mcp_servers: list[MCPServerConfig] = Field(default_factory=list)

    # Agent loop
    agent_max_iterations: int = 10

    # Logging
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
