"""Hook system for vibe-agent.

Observers get notified of loop progress without touching the Agent code:
user input, model replies, each tool call and its result, history trimming
and the final outcome of a run.

Architecture:
- HookRegistry is the CORE implementation
- Decorator (@hooks.on, @agent.hook) and Middleware are convenience wrappers
- Everything goes through HookRegistry
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class HookEvent(str, Enum):
    """Available hook points in agent execution."""

    USER_INPUT = "user_input"
    ASSISTANT_REPLY = "assistant_reply"

    BEFORE_TOOL_CALL = "before_tool_call"
    AFTER_TOOL_CALL = "after_tool_call"

    HISTORY_TRIMMED = "history_trimmed"

    LOOP_COMPLETED = "loop_completed"
    LOOP_ABORTED = "loop_aborted"


# ============================================================================
# Hook Event Data Classes
# ============================================================================


@dataclass
class UserInputEventData:
    """Called when a user request enters the conversation."""

    agent: Any  # Agent instance
    content: str
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class AssistantReplyEventData:
    """Called after the model returns a reply."""

    content: str
    iteration: int
    response_time_ms: float
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class BeforeToolCallEventData:
    """Called before executing a tool."""

    tool_name: str
    parameters: Dict[str, Any]
    iteration: int
    tool_index: int  # 1-based position in the batch
    total_tools: int
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class AfterToolCallEventData:
    """Called once a tool result is available, success or failure."""

    tool_name: str
    result: Any  # ToolExecutionResult
    iteration: int
    tool_index: int
    total_tools: int
    execution_time_ms: float
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class HistoryTrimmedEventData:
    """Called when old messages were evicted to respect the size budget."""

    message: str
    evicted_count: int
    initial_size: int
    final_size: int
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class LoopCompletedEventData:
    """Called when a run ends as completed, failed or max_iterations."""

    execution: Any  # Execution instance
    total_time_ms: float
    timestamp: datetime = field(default_factory=datetime.now)


@dataclass
class LoopAbortedEventData:
    """Called when a run stops because abort() was requested."""

    execution: Any
    message: str
    timestamp: datetime = field(default_factory=datetime.now)


# ============================================================================
# Hook Registry
# ============================================================================


class HookRegistry:
    """Central registry for all hooks.

    Supports both decorator-style and direct registration.

    Usage:
        hooks = HookRegistry()

        @hooks.on('after_tool_call')
        async def log_tool(event):
            print(f"Tool: {event.tool_name}")

        # Or direct registration
        async def my_hook(event):
            pass
        hooks.register_handler('after_tool_call', my_hook)
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {
            event.value: [] for event in HookEvent
        }

    def on(self, hook_name: str):
        """Decorator for registering hook handlers.

        Args:
            hook_name: Name of the hook (e.g., 'after_tool_call')

        Returns:
            Decorator function
        """

        def decorator(func: Callable) -> Callable:
            self.register_handler(hook_name, func)
            return func

        return decorator

    def register_handler(self, hook_name: str, handler: Callable) -> None:
        """Register a hook handler.

        Args:
            hook_name: Name of the hook
            handler: Async function to call

        Raises:
            ValueError: If hook_name is not valid
        """
        if hook_name not in self._handlers:
            valid_hooks = [e.value for e in HookEvent]
            raise ValueError(
                f"Invalid hook name '{hook_name}'. Valid hooks: {valid_hooks}"
            )
        self._handlers[hook_name].append(handler)

    async def trigger(self, hook_name: str, event_data: Any) -> None:
        """Execute all handlers for a hook, in registration order.

        Args:
            hook_name: Name of the hook
            event_data: Event data to pass to handlers
        """
        handlers = self._handlers.get(hook_name, [])

        for handler in handlers:
            try:
                await handler(event_data)
            except Exception as e:
                # Log but don't fail execution
                logger.warning(f"Hook '{hook_name}' raised exception: {e}")

    def has_handlers(self, hook_name: str) -> bool:
        """Check if hook has any registered handlers."""
        return len(self._handlers.get(hook_name, [])) > 0

    def clear(self) -> None:
        """Clear all handlers (useful for testing)."""
        for hook_name in self._handlers:
            self._handlers[hook_name] = []


# ============================================================================
# Middleware Base Class (Optional, for stateful handlers)
# ============================================================================


class Middleware:
    """Base class for middleware (stateful hook handlers).

    Override methods for hooks you want to handle.

    Usage:
        class ProgressPrinter(Middleware):
            async def after_tool_call(self, event):
                print(f"Tool: {event.tool_name}")

        agent = Agent(model=model, registry=registry, middlewares=[ProgressPrinter()])
    """

    async def user_input(self, event: UserInputEventData) -> None:
        pass

    async def assistant_reply(self, event: AssistantReplyEventData) -> None:
        pass

    async def before_tool_call(self, event: BeforeToolCallEventData) -> None:
        pass

    async def after_tool_call(self, event: AfterToolCallEventData) -> None:
        pass

    async def history_trimmed(self, event: HistoryTrimmedEventData) -> None:
        pass

    async def loop_completed(self, event: LoopCompletedEventData) -> None:
        pass

    async def loop_aborted(self, event: LoopAbortedEventData) -> None:
        pass
