from dataclasses import dataclass
from typing import Optional

from vibe_agent.execution import Message


@dataclass
class ModelResponse:
    success: bool
    content: str = ""
    error: Optional[str] = None

    @classmethod
    def ok(cls, content: str) -> "ModelResponse":
        return cls(success=True, content=content)

    @classmethod
    def fail(cls, error: str) -> "ModelResponse":
        return cls(success=False, error=error)


class ModelAdaptor:
    """Transport to a text-completion model.

    Implementations handle their own retries; a non-success response (or a
    raised exception) ends the current agent run.
    """

    def is_ready(self) -> bool:
        return True

    async def send_conversation(self, messages: list[Message]) -> ModelResponse:
        """Send the full role-tagged conversation and return the reply text."""
        raise NotImplementedError
