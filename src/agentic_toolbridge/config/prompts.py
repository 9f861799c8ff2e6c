"""Prompt templates for the agent loop."""

# =============================================================================
# TOOL-CALL PREAMBLES
# =============================================================================

LOCAL_TOOLS_PREAMBLE = """[System: Browser Control Enabled]
You can act on the current page by replying with exactly one JSON tool call:
```json
{{ "tool": "tool_name", "args": {{ /* ... */ }} }}
```
Reply without a tool call once the task is complete.

Local Tools:
{tool_lines}
"""

EXTERNAL_TOOLS_HEADER = """[System: External MCP Tools Enabled]
You may call external tools using the same JSON tool-call format:
```json
{ "tool": "tool_name", "args": { /* ... */ } }
```

External Tools:"""

PAGE_CONTEXT_BLOCK = "Webpage Context:\n```text\n{page_context}\n```\n\n"

SNAPSHOT_BLOCK = (
    "\n[Current Page Accessibility Tree (Structured Vision)]:\n```text\n{snapshot}\n```\n"
)

SNAPSHOT_UNAVAILABLE = (
    "\n[System: Could not capture initial snapshot. You may need to navigate "
    "to a page or use 'take_snapshot' manually.]\n"
)

QUESTION_PREFIX = "Question: "

# =============================================================================
# FEEDBACK LOOP
# =============================================================================

TOOL_OUTPUT_PROMPT = """[Tool Output from {tool_name}]:
```
{output}
```

(Proceed with the next step or confirm completion)"""

TOOL_OUTPUT_HISTORY = """\U0001f6e0️ **Tool Output:**
```
{output}
```

*(Proceeding to step {next_step})*"""

TOOL_ERROR_OUTPUT = "Error executing tool: {error}"
