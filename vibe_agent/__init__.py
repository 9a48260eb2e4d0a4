from vibe_agent.adaptors.openai import OpenAIAdaptor
from vibe_agent.agent import Agent
from vibe_agent.artifacts import (
    Artifact,
    ArtifactContext,
    ArtifactStore,
    InMemoryArtifactStore,
    ReadCSSTool,
    ReadJSTool,
    SaveCSSTool,
    SaveJSTool,
    artifact_tools,
)
from vibe_agent.exceptions import (
    SettingsError,
    ToolExecutionError,
    ToolNotFound,
    TransportError,
    VibeAgentError,
)
from vibe_agent.execution import (
    ConversationState,
    Execution,
    LoopState,
    Message,
    ToolCall,
    ToolExecutionResult,
)
from vibe_agent.hooks import (
    AfterToolCallEventData,
    AssistantReplyEventData,
    BeforeToolCallEventData,
    HistoryTrimmedEventData,
    HookEvent,
    HookRegistry,
    LoopAbortedEventData,
    LoopCompletedEventData,
    Middleware,
    UserInputEventData,
)
from vibe_agent.memory import ConversationMemory, TrimResult
from vibe_agent.model import ModelAdaptor, ModelResponse
from vibe_agent.parser import parse_tool_call, parse_tool_calls, strip_tool_artifacts
from vibe_agent.registry import ToolRegistry
from vibe_agent.settings import (
    EnvSettingsProvider,
    Settings,
    SettingsProvider,
    SizePolicy,
    StaticSettingsProvider,
)
from vibe_agent.tools import Tool, ToolInput

__all__ = [
    # Core
    "Agent",
    "ConversationMemory",
    "ConversationState",
    "Execution",
    "LoopState",
    "Message",
    "ModelAdaptor",
    "ModelResponse",
    "OpenAIAdaptor",
    "Tool",
    "ToolCall",
    "ToolExecutionResult",
    "ToolInput",
    "ToolRegistry",
    "TrimResult",
    # Parser
    "parse_tool_call",
    "parse_tool_calls",
    "strip_tool_artifacts",
    # Settings
    "EnvSettingsProvider",
    "Settings",
    "SettingsProvider",
    "SizePolicy",
    "StaticSettingsProvider",
    # Artifacts
    "Artifact",
    "ArtifactContext",
    "ArtifactStore",
    "InMemoryArtifactStore",
    "ReadCSSTool",
    "ReadJSTool",
    "SaveCSSTool",
    "SaveJSTool",
    "artifact_tools",
    # Hooks
    "HookRegistry",
    "HookEvent",
    "Middleware",
    # Hook Event Data
    "UserInputEventData",
    "AssistantReplyEventData",
    "BeforeToolCallEventData",
    "AfterToolCallEventData",
    "HistoryTrimmedEventData",
    "LoopCompletedEventData",
    "LoopAbortedEventData",
    # Exceptions
    "VibeAgentError",
    "SettingsError",
    "ToolExecutionError",
    "ToolNotFound",
    "TransportError",
]
