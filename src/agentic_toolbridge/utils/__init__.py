"""Utility modules."""

from agentic_toolbridge.utils.logging import get_logger, preview, setup_logging

__all__ = ["get_logger", "preview", "setup_logging"]
