"""Extraction of a single tool call from model output."""

import json
import re
from typing import Any

from agentic_toolbridge.mcp.models import ToolCallCommand

# ```json ... ``` or a bare ``` ... ``` block
_FENCED_BLOCK = re.compile(r"```[A-Za-z]*[ \t]*\n?(.*?)```", re.DOTALL)

_decoder = json.JSONDecoder()


def _command_from(obj: Any) -> ToolCallCommand | None:
    if not isinstance(obj, dict):
        return None
    name = obj.get("tool")
    if not isinstance(name, str) or not name.strip():
        return None
    args = obj.get("args")
    return ToolCallCommand(name=name.strip(), args=args if isinstance(args, dict) else {})


def _scan_objects(text: str) -> ToolCallCommand | None:
    """Decode JSON objects starting at each ``{`` and return the first command."""
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = _decoder.raw_decode(text, start)
        except ValueError:
            obj = None
        command = _command_from(obj)
        if command is not None:
            return command
        start = text.find("{", start + 1)
    return None


def parse_tool_command(text: str | None) -> ToolCallCommand | None:
    """
    Find the first tool call in model output.

    Fenced code blocks are checked first, in order; then raw inline JSON
    anywhere in the text. A tool call is an object with a string ``tool``
    key and an optional object ``args``.

    Returns:
        The command, or None if the text carries no tool call
    """
    if not text:
        return None

    for match in _FENCED_BLOCK.finditer(text):
        command = _scan_objects(match.group(1))
        if command is not None:
            return command

    return _scan_objects(text)
