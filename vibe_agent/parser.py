"""Tool-call parser for free-form model output.

The model is instructed to request tools with a line-oriented protocol:

    TOOL_CALL: save_css
    PARAMETERS: {"code": "body { color: red; }"}

A reply may contain any number of such blocks. Everything here is pure
text processing: no registry lookups, no side effects.
"""

import json
import logging
import re
from typing import Optional

from vibe_agent.execution import ToolCall

logger = logging.getLogger(__name__)

TOOL_CALL_MARKER = "TOOL_CALL:"
PARAMETERS_MARKER = "PARAMETERS:"
TOOL_RESULT_PREFIX = "Tool Result ("

# How many lines after a TOOL_CALL directive are searched for its PARAMETERS
PARAMETERS_LOOKAHEAD = 20

_NAME_DECORATIONS = "`*'\""
_BLANK_RUNS = re.compile(r"\n\s*\n\s*\n")


class _JsonScanner:
    """Quote-aware brace counter fed one chunk of text at a time."""

    def __init__(self):
        self.depth = 0
        self.in_string = False
        self.escaped = False

    def feed(self, text: str) -> int:
        """Consume text. Returns the index just past the brace that closes
        the object, or -1 if the object is still open."""
        for i, ch in enumerate(text):
            if self.in_string:
                if self.escaped:
                    self.escaped = False
                elif ch == "\\":
                    self.escaped = True
                elif ch == '"':
                    self.in_string = False
                continue

            if ch == '"':
                self.in_string = True
            elif ch == "{":
                self.depth += 1
            elif ch == "}":
                self.depth -= 1
                if self.depth == 0:
                    return i + 1
        return -1


def _starts_directive(line: str) -> bool:
    """True if the line holds a TOOL_CALL marker outside any string literal."""
    marker_at = line.find(TOOL_CALL_MARKER)
    if marker_at == -1:
        return False
    quote_at = line.find('"')
    return quote_at == -1 or marker_at < quote_at


def _clean_name(text: str) -> str:
    tokens = text.split()
    if not tokens:
        return ""
    return tokens[0].strip(_NAME_DECORATIONS)


def _find_parameters(lines: list[str], start: int) -> Optional[tuple[int, int]]:
    """Locate the PARAMETERS marker belonging to the directive above ``start``.

    Returns (line index, column after the marker) or None.
    """
    for i in range(start, min(start + PARAMETERS_LOOKAHEAD, len(lines))):
        line = lines[i]
        if not line.strip():
            break
        column = line.find(PARAMETERS_MARKER)
        marker_at = line.find(TOOL_CALL_MARKER)
        # A TOOL_CALL marker after PARAMETERS belongs to the JSON payload
        if column != -1 and (marker_at == -1 or column < marker_at):
            return i, column + len(PARAMETERS_MARKER)
        if _starts_directive(line):
            break
    return None


def _collect_json_object(
    lines: list[str], line_index: int, column: int
) -> tuple[Optional[str], Optional[str], int]:
    """Extract the JSON object literal starting at lines[line_index][column:].

    Returns (json text or None, error or None, index of the next unread line).
    """
    text = lines[line_index][column:]
    index = line_index
    if not text.strip():
        index += 1
        if (
            index >= len(lines)
            or not lines[index].strip()
            or TOOL_CALL_MARKER in lines[index]
        ):
            return None, "PARAMETERS directive is not followed by a JSON object", index

        text = lines[index]

    text = text.lstrip()
    if not text.startswith("{"):
        return None, "PARAMETERS directive is not followed by a JSON object", index + 1

    scanner = _JsonScanner()
    end = scanner.feed(text)
    if end != -1:
        return text[:end], None, index + 1

    chunks = [text]
    for i in range(index + 1, len(lines)):
        line = lines[i]
        # A new directive outside a string means this object was never closed
        if not scanner.in_string and _starts_directive(line):
            return None, "Unterminated JSON object in PARAMETERS", i

        chunk = "\n" + line
        end = scanner.feed(chunk)
        if end != -1:
            chunks.append(chunk[:end])
            return "".join(chunks), None, i + 1
        chunks.append(chunk)

    return None, "Unterminated JSON object in PARAMETERS", len(lines)


def _extract_parameters(
    lines: list[str], line_index: int, column: int
) -> tuple[dict, Optional[str], int]:
    json_text, error, next_index = _collect_json_object(lines, line_index, column)
    if json_text is None:
        logger.warning(f"Failed to extract parameters: {error}")
        return {}, error, next_index

    try:
        parameters = json.loads(json_text, strict=False)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse parameters JSON: {e}")
        return {}, f"Invalid PARAMETERS JSON: {e}", next_index

    return parameters, None, next_index


def parse_tool_calls(text: str) -> list[ToolCall]:
    """Extract every TOOL_CALL directive from a model reply, in source order.

    A directive without a PARAMETERS block gets empty parameters. Malformed
    PARAMETERS JSON also yields empty parameters, with ``parse_error`` set,
    so the call still reaches the tool and the model hears about the error.
    """
    if not isinstance(text, str) or not text:
        return []

    lines = text.split("\n")
    calls: list[ToolCall] = []
    i = 0

    while i < len(lines):
        line = lines[i]
        if not _starts_directive(line):
            i += 1
            continue
        marker_at = line.find(TOOL_CALL_MARKER)

        name_start = marker_at + len(TOOL_CALL_MARKER)
        remainder = line[name_start:]
        inline_params = remainder.find(PARAMETERS_MARKER)

        if inline_params != -1:
            name = _clean_name(remainder[:inline_params])
            location = (i, name_start + inline_params + len(PARAMETERS_MARKER))
        else:
            name = _clean_name(remainder)
            location = _find_parameters(lines, i + 1)

        if location is None:
            parameters, error, next_index = {}, None, i + 1
        else:
            parameters, error, next_index = _extract_parameters(lines, *location)

        if name:
            calls.append(ToolCall(name=name, parameters=parameters, parse_error=error))
        else:
            logger.debug(f"Ignoring TOOL_CALL directive without a name on line {i + 1}")

        i = max(next_index, i + 1)

    return calls


def parse_tool_call(text: str) -> Optional[ToolCall]:
    calls = parse_tool_calls(text)
    return calls[0] if calls else None


def format_tool_calls(calls: list[ToolCall]) -> str:
    """Render parsed calls as a numbered list for logs."""
    if not calls:
        return "No tool calls found"

    lines = []
    for index, call in enumerate(calls, start=1):
        status = "error" if call.parse_error else "ok"
        lines.append(
            f"{index}. [{status}] {call.name}: {json.dumps(call.parameters, default=str)}"
        )
    return "\n".join(lines)


def format_tool_result(tool_name: str, payload: dict) -> str:
    """Render one tool result block as folded back into the conversation."""
    return f"{TOOL_RESULT_PREFIX}{tool_name}): {json.dumps(payload, indent=2, default=str)}"


def _open_payload(text: str) -> Optional[_JsonScanner]:
    """Start scanning a JSON payload. Returns the scanner if it is still open."""
    scanner = _JsonScanner()
    if scanner.feed(text) == -1:
        return scanner
    return None


def strip_tool_artifacts(content: str) -> str:
    """Remove directives, PARAMETERS payloads and tool result blocks.

    Used to show a clean assistant message. Runs of blank lines left behind
    are collapsed to a single blank line.
    """
    if not isinstance(content, str) or not content:
        return ""

    kept = []
    in_directive = False
    payload: Optional[_JsonScanner] = None

    for line in content.split("\n"):
        if payload is not None:
            if payload.feed("\n" + line) != -1:
                payload = None
            continue

        if TOOL_CALL_MARKER in line:
            in_directive = True
            continue

        if line.strip().startswith(TOOL_RESULT_PREFIX):
            in_directive = False
            brace = line.find("{")
            if brace != -1:
                payload = _open_payload(line[brace:])
            continue

        if in_directive:
            if not line.strip():
                in_directive = False
                continue

            column = line.find(PARAMETERS_MARKER)
            if column != -1:
                brace = line.find("{", column)
            elif line.lstrip().startswith("{"):
                brace = line.find("{")
            else:
                brace = -1

            if brace != -1:
                payload = _open_payload(line[brace:])
                in_directive = False
            continue

        kept.append(line)

    cleaned = _BLANK_RUNS.sub("\n\n", "\n".join(kept))
    return cleaned.strip()
