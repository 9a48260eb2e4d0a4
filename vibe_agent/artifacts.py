"""Reference tools for the two code artifacts of a vibe: CSS and JavaScript.

All tools of a session share one ArtifactContext, set by the caller before a
run, so that read and save tools agree on which artifact they act on.
Persistence goes through an ArtifactStore.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pydantic import Field

from vibe_agent.exceptions import ToolExecutionError
from vibe_agent.tools import Tool, ToolInput

_NO_ARTIFACT = "No vibe is currently being edited. Please select one first."

_CSS_RULE = re.compile(r"[^{}]+\{[^{}]*\}")
_CSS_AT_STATEMENT = re.compile(r"^@[^{}]+;")
_CSS_FEATURES = [
    (re.compile(r"@media"), "media queries"),
    (re.compile(r"@keyframes|animation"), "animations"),
    (re.compile(r"@import"), "imports"),
    (re.compile(r"@font-face"), "custom fonts"),
    (re.compile(r"var\(--[\w-]+\)"), "CSS variables"),
    (re.compile(r"grid", re.IGNORECASE), "CSS Grid"),
    (re.compile(r"flex", re.IGNORECASE), "Flexbox"),
    (re.compile(r"transition"), "transitions"),
    (re.compile(r"linear-gradient|radial-gradient"), "gradients"),
]
_JS_FUNCTION = re.compile(r"\bfunction\b|=>")
_BRACKET_PAIRS = {")": "(", "]": "[", "}": "{"}


@dataclass
class Artifact:
    id: str
    name: str
    description: str = ""
    css_code: str = ""
    js_code: str = ""
    enabled: bool = True
    created_at: datetime = field(default_factory=datetime.now)


class ArtifactStore:
    async def save(self, artifact: Artifact) -> None:
        raise NotImplementedError


class InMemoryArtifactStore(ArtifactStore):
    def __init__(self):
        self.artifacts: dict[str, Artifact] = {}
        self.save_count = 0

    async def save(self, artifact: Artifact) -> None:
        self.artifacts[artifact.id] = artifact
        self.save_count += 1


@dataclass
class ArtifactContext:
    """The artifact under edit, shared by every tool of a session."""

    current: Optional[Artifact] = None

    def require(self) -> Artifact:
        if self.current is None:
            raise ToolExecutionError(_NO_ARTIFACT)
        return self.current


def check_css(css: str) -> Optional[str]:
    """Basic CSS sanity check. Returns an error message or None."""
    if not css.strip():
        return None

    opening = css.count("{")
    closing = css.count("}")
    if opening != closing:
        return f"Mismatched braces: {opening} opening, {closing} closing"

    if not (_CSS_RULE.search(css) or _CSS_AT_STATEMENT.match(css.strip())):
        return "CSS does not contain valid rule structure"
    return None


def check_js(code: str) -> Optional[str]:
    """Check that brackets balance outside strings and comments."""
    stack = []
    quote = None
    i = 0
    while i < len(code):
        ch = code[i]
        if quote:
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                quote = None
        elif code.startswith("//", i):
            newline = code.find("\n", i)
            i = len(code) if newline == -1 else newline
            continue
        elif code.startswith("/*", i):
            end = code.find("*/", i + 2)
            if end == -1:
                return "Unterminated block comment"
            i = end + 2
            continue
        elif ch in "'\"`":
            quote = ch
        elif ch in "([{":
            stack.append(ch)
        elif ch in _BRACKET_PAIRS:
            if not stack or stack.pop() != _BRACKET_PAIRS[ch]:
                return f"Unexpected '{ch}' at offset {i}"
        i += 1

    if quote:
        return "Unterminated string literal"
    if stack:
        return f"Unclosed '{stack[-1]}'"
    return None


def _code_metadata(code: str) -> dict:
    lines = code.split("\n")
    return {
        "length": len(code),
        "line_count": len(lines),
        "non_empty_line_count": sum(1 for line in lines if line.strip()),
    }


class ReadInput(ToolInput):
    include_metadata: bool = Field(
        default=False,
        description="Whether to include metadata about the code (size, line counts, features)",
    )


class SaveInput(ToolInput):
    code: str = Field(description="The code to save")
    append: bool = Field(
        default=False,
        description="Whether to append to existing code (true) or replace it (false)",
    )


class ReadCSSTool(Tool):
    name = "read_css"
    description = (
        "Read CSS code from the current vibe under edit. Returns the current "
        "CSS code and optionally metadata about it."
    )
    input_model = ReadInput

    def __init__(self, context: ArtifactContext):
        self.context = context

    async def run(self, include_metadata: bool = False) -> dict:
        artifact = self.context.require()
        code = artifact.css_code or ""
        result = {"code": code, "is_empty": not code.strip()}
        if include_metadata:
            metadata = _code_metadata(code)
            metadata["rule_count"] = code.count("{")
            metadata["features"] = sorted(
                {label for pattern, label in _CSS_FEATURES if pattern.search(code)}
            )
            result["metadata"] = metadata
        return self.success(result, artifact_id=artifact.id, artifact_name=artifact.name)


class ReadJSTool(Tool):
    name = "read_js"
    description = (
        "Read JavaScript code from the current vibe under edit. Returns the "
        "current JavaScript code and optionally metadata about it."
    )
    input_model = ReadInput

    def __init__(self, context: ArtifactContext):
        self.context = context

    async def run(self, include_metadata: bool = False) -> dict:
        artifact = self.context.require()
        code = artifact.js_code or ""
        result = {"code": code, "is_empty": not code.strip()}
        if include_metadata:
            metadata = _code_metadata(code)
            metadata["function_count"] = len(_JS_FUNCTION.findall(code))
            result["metadata"] = metadata
        return self.success(result, artifact_id=artifact.id, artifact_name=artifact.name)


class SaveCSSTool(Tool):
    name = "save_css"
    description = (
        "Save CSS code to the current vibe under edit. Can either replace "
        "existing CSS code or append to it."
    )
    input_model = SaveInput
    is_write = True

    def __init__(self, context: ArtifactContext, store: ArtifactStore):
        self.context = context
        self.store = store

    async def run(self, code: str, append: bool = False):
        artifact = self.context.require()

        error = check_css(code)
        if error:
            raise ToolExecutionError(
                f"Invalid CSS syntax: {error}", {"syntax_error": error}
            )

        if append and artifact.css_code:
            artifact.css_code += "\n\n" + code
        else:
            artifact.css_code = code
        await self.store.save(artifact)

        return self.success(
            {
                "message": "CSS code appended successfully"
                if append
                else "CSS code saved successfully",
                "code_length": len(code),
                "total_code_length": len(artifact.css_code),
                "rules_added": code.count("{"),
            },
            artifact_id=artifact.id,
            operation="append" if append else "replace",
        )


class SaveJSTool(Tool):
    name = "save_js"
    description = (
        "Save JavaScript code to the current vibe under edit. Can either "
        "replace existing JavaScript code or append to it."
    )
    input_model = SaveInput
    is_write = True

    def __init__(self, context: ArtifactContext, store: ArtifactStore):
        self.context = context
        self.store = store

    async def run(self, code: str, append: bool = False):
        artifact = self.context.require()

        error = check_js(code)
        if error:
            raise ToolExecutionError(
                f"Invalid JavaScript syntax: {error}", {"syntax_error": error}
            )

        if append and artifact.js_code:
            artifact.js_code += "\n\n" + code
        else:
            artifact.js_code = code
        await self.store.save(artifact)

        return self.success(
            {
                "message": "JavaScript code appended successfully"
                if append
                else "JavaScript code saved successfully",
                "code_length": len(code),
                "total_code_length": len(artifact.js_code),
            },
            artifact_id=artifact.id,
            operation="append" if append else "replace",
        )


def artifact_tools(context: ArtifactContext, store: ArtifactStore) -> list[Tool]:
    """The read and save tools for both artifacts, sharing one context."""
    return [
        ReadCSSTool(context),
        ReadJSTool(context),
        SaveCSSTool(context, store),
        SaveJSTool(context, store),
    ]
