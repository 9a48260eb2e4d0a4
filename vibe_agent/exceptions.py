from typing import Any, Optional


class VibeAgentError(Exception):
    """Base exception for vibe-agent errors."""


class ToolNotFound(VibeAgentError):
    """Raised when a tool name is not present in the registry."""


class ToolExecutionError(VibeAgentError):
    """Raised by a tool's run() to report a domain failure.

    The message and context end up in the failure result shown to the model.
    """

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class TransportError(VibeAgentError):
    """Raised when the model transport returns a malformed reply."""


class SettingsError(VibeAgentError):
    """Raised when settings cannot be loaded or are invalid."""
