"""System prompt and bootstrap text shown to the model."""

import json

from vibe_agent.parser import PARAMETERS_MARKER, TOOL_CALL_MARKER
from vibe_agent.registry import ToolRegistry

DEFAULT_PREAMBLE = (
    "You are an AI assistant that helps users modify webpages through code "
    "editing. You have access to tools that allow you to read and write CSS "
    "and JavaScript code for the current webpage vibe."
)

PROTOCOL_INSTRUCTIONS = f"""IMPORTANT INSTRUCTIONS:
1. To use a tool, respond with exactly this format:
   {TOOL_CALL_MARKER} tool_name
   {PARAMETERS_MARKER} {{"param1": "value1", "param2": "value2"}}
   You may request several tools in one reply, one block per tool.
2. CRITICAL: You cannot use read and write tools in the same request. This ensures you can see the results of read operations before making write operations.
3. Workflow:
   - First, use read tools to understand the current state
   - Then, in a separate request, use write tools to make modifications
4. When writing JavaScript, never wait for DOM loaded events. Your script already runs after the DOM is loaded.
5. When you have completed the request, reply without any tool calls and give a clear summary of what was accomplished.
6. If a tool reports an error, try to fix it or suggest alternatives."""

BOOTSTRAP_TEMPLATE = """User Request: {request}

Please analyze this request and use the available tools to help modify the current webpage vibe. You can read existing CSS/JS code, make modifications, and save updated code.

Start by reading the existing code to understand the current state, then proceed with the requested modifications."""


def render_tool_catalogue(registry: ToolRegistry) -> str:
    entries = []
    for meta in registry.describe_all():
        kind = "write" if meta["is_write"] else "read"
        entries.append(
            f"- {meta['name']} ({kind}): {meta['description']}\n"
            f"  Parameters: {json.dumps(meta['schema'], indent=2)}"
        )
    return "\n\n".join(entries)


def build_system_prompt(registry: ToolRegistry, preamble: str = DEFAULT_PREAMBLE) -> str:
    return (
        f"{preamble}\n\n"
        f"Available Tools:\n{render_tool_catalogue(registry)}\n\n"
        f"{PROTOCOL_INSTRUCTIONS}"
    )


def build_initial_request(request: str, template: str = BOOTSTRAP_TEMPLATE) -> str:
    return template.format(request=request)
