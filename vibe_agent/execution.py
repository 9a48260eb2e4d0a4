from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from vibe_agent.memory import ConversationMemory


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    MAX_ITERATIONS = "max_iterations"
    ABORTED = "aborted"


@dataclass
class Message:
    role: str  # "system" | "user" | "assistant"
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass
class ToolCall:
    name: str
    parameters: dict = field(default_factory=dict)
    parse_error: Optional[str] = None  # set when the PARAMETERS block was malformed


@dataclass
class ToolExecutionResult:
    success: bool
    tool_name: str
    data: Any = None
    error: Optional[str] = None
    timestamp: str = field(default_factory=utc_timestamp)
    context: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Shape reported back to the model inside a tool result block."""
        payload: dict[str, Any] = {"success": self.success}
        if self.success:
            payload["data"] = self.data
        else:
            payload["error"] = self.error
        payload["tool"] = self.tool_name
        payload["timestamp"] = self.timestamp
        payload.update(self.context)
        return payload


@dataclass
class ConversationState:
    memory: "ConversationMemory"
    max_iterations: int = 10
    iteration_count: int = 0
    aborted: bool = False
    state: LoopState = LoopState.IDLE


@dataclass
class Execution:
    input: str
    state: LoopState = LoopState.RUNNING
    success: bool = False
    response: str = ""
    error: Optional[str] = None
    aborted: bool = False
    messages: list[Message] = field(default_factory=list)
    tool_results: list[ToolExecutionResult] = field(default_factory=list)
    iterations: int = 0
