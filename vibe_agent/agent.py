import asyncio
import inspect
import logging
import time
from typing import Iterable, Optional, Union

from vibe_agent.exceptions import ToolNotFound
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
from vibe_agent.memory import ConversationMemory
from vibe_agent.model import ModelAdaptor, ModelResponse
from vibe_agent.parser import format_tool_calls, format_tool_result, parse_tool_calls
from vibe_agent.prompt import build_initial_request, build_system_prompt
from vibe_agent.registry import ToolRegistry
from vibe_agent.settings import SettingsProvider, load_size_policy
from vibe_agent.tools import Tool

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10
DEFAULT_CRITICAL_TOOLS = ("save_css", "save_js")

ABORT_MESSAGE = "Task was stopped by user"

MIXED_USAGE_ADVISORY = """MIXED TOOL USAGE DETECTED

You cannot use read and write tools in the same request. Write operations must wait until you have seen the results of the read operations.

Read tools requested: {read_tools}
Write tools requested: {write_tools}

Only the read operations have been executed. Please make your write operations in a separate request after reviewing the read results."""


class Agent:
    """Drives the tool-calling loop for one conversation session.

    Each iteration sends the conversation to the model, parses TOOL_CALL
    directives from the reply, runs the requested tools one after another
    and folds their results back into the conversation. A reply without
    directives ends the run.

    Args:
        model: Transport used to talk to the model.
        registry: Tools available in this session, as a ToolRegistry or a list.
        max_iterations: Upper bound on model calls per run.
        critical_tools: Tool names whose failure ends the run as failed.
        settings_provider: Source of the size limits, read once per session.
        system_prompt: Overrides the prompt built from the tool catalogue.
        name: Label used in logs.
        hooks: Shared HookRegistry; one is created when omitted.
        middlewares: Stateful observers registered on the hooks.
    """

    def __init__(
        self,
        model: ModelAdaptor,
        registry: Union[ToolRegistry, list[Tool], None] = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        critical_tools: Iterable[str] = DEFAULT_CRITICAL_TOOLS,
        settings_provider: Optional[SettingsProvider] = None,
        system_prompt: Optional[str] = None,
        name: str = "Agent",
        hooks: Optional[HookRegistry] = None,
        middlewares: Optional[list[Middleware]] = None,
    ):
        self.model = model
        if isinstance(registry, ToolRegistry):
            self.registry = registry
        else:
            self.registry = ToolRegistry(registry or [])
        self.critical_tools = frozenset(critical_tools)
        self.settings_provider = settings_provider
        self.system_prompt = system_prompt
        self.name = name

        self.state = ConversationState(
            memory=ConversationMemory(), max_iterations=max_iterations
        )
        self._settings_loaded = False

        self.hooks = hooks if hooks is not None else HookRegistry()
        if middlewares:
            self._register_middlewares(middlewares)

    def _register_middlewares(self, middlewares: list[Middleware]) -> None:
        """Convert middleware instances to HookRegistry handlers."""
        hook_names = [e.value for e in HookEvent]
        for middleware in middlewares:
            for hook_name in hook_names:
                handler = getattr(middleware, hook_name, None)
                if handler is not None and inspect.iscoroutinefunction(handler):
                    self.hooks.register_handler(hook_name, handler)

    def hook(self, hook_name: str):
        """Decorator for registering hooks directly on agent.

        Usage:
            agent = Agent(model=model, registry=registry)

            @agent.hook('after_tool_call')
            async def log_tool(event):
                print(f"Tool: {event.tool_name}")
        """
        return self.hooks.on(hook_name)

    @property
    def max_iterations(self) -> int:
        return self.state.max_iterations

    @property
    def conversation_history(self) -> list[Message]:
        return self.state.memory.messages

    def get_available_tools(self) -> list[dict]:
        return self.registry.describe_all()

    def abort(self) -> None:
        """Request the running loop to stop. Safe to call from any task."""
        logger.info(f"{self.name}: abort requested")
        self.state.aborted = True

    def reset(self) -> None:
        """Forget the conversation so the next run starts fresh."""
        self.state.memory.reset()
        self.state.iteration_count = 0
        self.state.aborted = False
        self.state.state = LoopState.IDLE

    def run(self, user_input: str, reset_history: bool = False) -> Execution:
        """Run agent synchronously."""
        return asyncio.run(self.run_async(user_input, reset_history=reset_history))

    async def run_async(self, user_input: str, reset_history: bool = False) -> Execution:
        """Run the loop for one user request.

        The conversation is kept between calls unless ``reset_history`` is
        set; a fresh conversation wraps the request in the bootstrap prompt.
        An abort requested before the run gets to its first check still
        stops it; the flag is cleared once a run ends.
        """
        start_time = time.time()
        state = self.state
        state.iteration_count = 0
        state.state = LoopState.RUNNING
        execution = Execution(input=user_input)

        await self._load_settings()

        if not self.model.is_ready():
            return await self._finish(
                execution,
                LoopState.FAILED,
                start_time,
                error="Model transport is not ready. Configure a model provider first.",
            )

        fresh = reset_history or len(state.memory) == 0
        if fresh:
            state.memory.reset()
        state.memory.ensure_system_prompt(
            self.system_prompt or build_system_prompt(self.registry)
        )

        content = build_initial_request(user_input) if fresh else user_input
        await self._append(Message(role="user", content=content))
        await self.hooks.trigger(
            "user_input", UserInputEventData(agent=self, content=user_input)
        )

        while True:
            if state.aborted:
                return await self._finish_aborted(execution)

            if state.iteration_count >= state.max_iterations:
                return await self._finish(
                    execution,
                    LoopState.MAX_ITERATIONS,
                    start_time,
                    error=(
                        f"Maximum iterations ({state.max_iterations}) reached "
                        "without completion"
                    ),
                )

            state.iteration_count += 1
            iteration = state.iteration_count
            logger.debug(f"{self.name}: iteration {iteration}")

            model_start = time.time()
            try:
                response = await self.model.send_conversation(state.memory.messages)
            except Exception as e:
                response = ModelResponse.fail(str(e))
            model_time = (time.time() - model_start) * 1000

            if not response.success:
                logger.error(f"{self.name}: model call failed: {response.error}")
                return await self._finish(
                    execution,
                    LoopState.FAILED,
                    start_time,
                    error=f"Model call failed at iteration {iteration}: {response.error}",
                )

            reply = response.content or ""
            await self._append(Message(role="assistant", content=reply))
            await self.hooks.trigger(
                "assistant_reply",
                AssistantReplyEventData(
                    content=reply, iteration=iteration, response_time_ms=model_time
                ),
            )

            if state.aborted:
                return await self._finish_aborted(execution)

            tool_calls = parse_tool_calls(reply)
            if not tool_calls:
                execution.response = reply
                return await self._finish(execution, LoopState.COMPLETED, start_time)

            logger.debug(f"Parsed tool calls:\n{format_tool_calls(tool_calls)}")

            to_execute, advisory = self._separate_read_write(tool_calls)
            results, failed_critical = await self._execute_batch(
                to_execute, iteration, execution
            )

            blocks = [format_tool_result(r.tool_name, r.to_dict()) for r in results]
            if advisory:
                blocks.insert(0, advisory)
            if blocks:
                await self._append(Message(role="user", content="\n\n".join(blocks)))

            if failed_critical:
                return await self._finish(
                    execution,
                    LoopState.FAILED,
                    start_time,
                    error=f"Critical tool(s) failed: {', '.join(failed_critical)}",
                )

    async def _load_settings(self) -> None:
        if self._settings_loaded:
            return
        self.state.memory.policy = await load_size_policy(self.settings_provider)
        self._settings_loaded = True

    async def _append(self, message: Message) -> None:
        trim = self.state.memory.append(message)
        if trim.trimmed:
            await self.hooks.trigger(
                "history_trimmed",
                HistoryTrimmedEventData(
                    message=trim.message or "",
                    evicted_count=trim.evicted_count,
                    initial_size=trim.initial_size,
                    final_size=trim.final_size,
                ),
            )

    def _separate_read_write(
        self, tool_calls: list[ToolCall]
    ) -> tuple[list[ToolCall], Optional[str]]:
        """Apply the mixed-usage rule.

        Returns the calls to execute and, when a turn mixes read and write
        tools, the advisory explaining why the writes were withheld.
        """
        read_calls = []
        write_calls = []
        for call in tool_calls:
            is_write = self.registry.is_write(call.name)
            if is_write is None:
                continue
            if is_write:
                write_calls.append(call)
            else:
                read_calls.append(call)

        if read_calls and write_calls:
            advisory = MIXED_USAGE_ADVISORY.format(
                read_tools=", ".join(c.name for c in read_calls),
                write_tools=", ".join(c.name for c in write_calls),
            )
            logger.info(f"{self.name}: mixed read/write turn, withholding writes")
            return read_calls, advisory

        return tool_calls, None

    async def _execute_batch(
        self, tool_calls: list[ToolCall], iteration: int, execution: Execution
    ) -> tuple[list[ToolExecutionResult], list[str]]:
        """Run calls in order. Stops early on abort or a critical failure."""
        results: list[ToolExecutionResult] = []
        failed_critical: list[str] = []
        total = len(tool_calls)

        for index, call in enumerate(tool_calls, start=1):
            if self.state.aborted:
                logger.info(f"{self.name}: aborted before executing '{call.name}'")
                break

            await self.hooks.trigger(
                "before_tool_call",
                BeforeToolCallEventData(
                    tool_name=call.name,
                    parameters=call.parameters,
                    iteration=iteration,
                    tool_index=index,
                    total_tools=total,
                ),
            )

            tool_start = time.time()
            result = await self._execute_tool(call)
            tool_time = (time.time() - tool_start) * 1000

            await self.hooks.trigger(
                "after_tool_call",
                AfterToolCallEventData(
                    tool_name=call.name,
                    result=result,
                    iteration=iteration,
                    tool_index=index,
                    total_tools=total,
                    execution_time_ms=tool_time,
                ),
            )

            results.append(result)
            execution.tool_results.append(result)

            if not result.success and call.name in self.critical_tools:
                logger.error(
                    f"{self.name}: critical tool '{call.name}' failed: {result.error}"
                )
                failed_critical.append(call.name)
                break

        return results, failed_critical

    async def _execute_tool(self, call: ToolCall) -> ToolExecutionResult:
        try:
            tool = self.registry.find(call.name)
        except ToolNotFound as e:
            return ToolExecutionResult(
                success=False,
                tool_name=call.name,
                error=str(e),
                context={"available_tools": self.registry.names()},
            )

        logger.debug(f"Executing tool '{call.name}' with parameters: {call.parameters}")
        try:
            result = await tool.execute(call.parameters)
        except Exception as e:
            logger.warning(f"Tool '{call.name}' raised from execute(): {e}")
            result = tool.failure(f"Tool execution failed: {e}")

        if call.parse_error and not result.success:
            result.context.setdefault("parse_error", call.parse_error)
        return result

    async def _finish(
        self,
        execution: Execution,
        state: LoopState,
        start_time: float,
        error: Optional[str] = None,
    ) -> Execution:
        self.state.state = state
        self.state.aborted = False
        execution.state = state
        execution.success = state == LoopState.COMPLETED
        execution.error = error
        execution.messages = self.state.memory.messages
        execution.iterations = self.state.iteration_count

        if error:
            logger.info(f"{self.name}: run ended as {state.value}: {error}")
        else:
            logger.info(f"{self.name}: run ended as {state.value}")

        total_time = (time.time() - start_time) * 1000
        await self.hooks.trigger(
            "loop_completed",
            LoopCompletedEventData(execution=execution, total_time_ms=total_time),
        )
        return execution

    async def _finish_aborted(self, execution: Execution) -> Execution:
        self.state.state = LoopState.ABORTED
        self.state.aborted = False
        execution.state = LoopState.ABORTED
        execution.success = True
        execution.aborted = True
        execution.response = ABORT_MESSAGE
        execution.messages = self.state.memory.messages
        execution.iterations = self.state.iteration_count

        logger.info(f"{self.name}: run stopped by user")
        await self.hooks.trigger(
            "loop_aborted",
            LoopAbortedEventData(execution=execution, message=ABORT_MESSAGE),
        )
        return execution
