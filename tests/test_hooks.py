"""Tests for hook system."""

import pytest
from pydantic import BaseModel

from vibe_agent.agent import Agent
from vibe_agent.execution import LoopState
from vibe_agent.hooks import (
    AfterToolCallEventData,
    BeforeToolCallEventData,
    HookEvent,
    HookRegistry,
    Middleware,
    UserInputEventData,
)
from vibe_agent.model import ModelAdaptor, ModelResponse
from vibe_agent.tools import Tool


# --- Test fixtures ---


ECHO_CALL = 'Let me echo that.\nTOOL_CALL: echo\nPARAMETERS: {"text": "hello"}'


class ScriptedModel(ModelAdaptor):
    def __init__(self, replies: list[str]):
        self.replies = replies
        self.call_count = 0

    async def send_conversation(self, messages):
        reply = self.replies[min(self.call_count, len(self.replies) - 1)]
        self.call_count += 1
        return ModelResponse.ok(reply)


class EchoInput(BaseModel):
    text: str


class EchoTool(Tool):
    name = "echo"
    description = "Echoes input"
    input_model = EchoInput

    async def run(self, text: str) -> str:
        return f"echo: {text}"


class FailingTool(Tool):
    name = "failing_tool"
    description = "A tool that always fails"

    async def run(self, **kwargs) -> str:
        raise Exception("Tool failed intentionally")


# --- HookRegistry Tests ---


class TestHookRegistryBasic:
    @pytest.mark.asyncio
    async def test_hook_registration_and_triggering(self):
        registry = HookRegistry()
        events = []

        @registry.on("user_input")
        async def capture_event(event):
            events.append(event)

        await registry.trigger("user_input", UserInputEventData(agent=None, content="test"))

        assert len(events) == 1
        assert events[0].content == "test"

    @pytest.mark.asyncio
    async def test_handlers_run_in_registration_order(self):
        registry = HookRegistry()
        order = []

        async def first(event):
            order.append("first")

        async def second(event):
            order.append("second")

        registry.register_handler("user_input", first)
        registry.register_handler("user_input", second)
        await registry.trigger("user_input", UserInputEventData(agent=None, content="x"))

        assert order == ["first", "second"]

    def test_invalid_hook_name(self):
        registry = HookRegistry()
        with pytest.raises(ValueError, match="Invalid hook name"):
            registry.register_handler("before_run", lambda event: None)

    @pytest.mark.asyncio
    async def test_handler_exception_is_swallowed(self):
        registry = HookRegistry()
        seen = []

        @registry.on("user_input")
        async def broken(event):
            raise RuntimeError("observer bug")

        @registry.on("user_input")
        async def healthy(event):
            seen.append(event.content)

        await registry.trigger("user_input", UserInputEventData(agent=None, content="x"))

        assert seen == ["x"]

    def test_has_handlers_and_clear(self):
        registry = HookRegistry()

        @registry.on("loop_completed")
        async def done(event):
            pass

        assert registry.has_handlers("loop_completed") is True
        assert registry.has_handlers("loop_aborted") is False
        registry.clear()
        assert registry.has_handlers("loop_completed") is False

    def test_every_event_is_registrable(self):
        registry = HookRegistry()
        for event in HookEvent:
            registry.register_handler(event.value, lambda e: None)
            assert registry.has_handlers(event.value)


# --- Integration with Agent ---


class TestAgentHooks:
    @pytest.mark.asyncio
    async def test_event_order_for_tool_turn(self):
        agent = Agent(
            model=ScriptedModel([ECHO_CALL, "Done: echo: hello"]),
            registry=[EchoTool()],
        )
        events = []

        for event in HookEvent:

            async def record(data, name=event.value):
                events.append(name)

            agent.hooks.register_handler(event.value, record)

        execution = await agent.run_async("Echo hello")

        assert execution.state == LoopState.COMPLETED
        assert events == [
            "user_input",
            "assistant_reply",
            "before_tool_call",
            "after_tool_call",
            "assistant_reply",
            "loop_completed",
        ]

    @pytest.mark.asyncio
    async def test_tool_call_event_data(self):
        agent = Agent(
            model=ScriptedModel([ECHO_CALL, "Done"]),
            registry=[EchoTool()],
        )
        before_events: list[BeforeToolCallEventData] = []
        after_events: list[AfterToolCallEventData] = []

        @agent.hook("before_tool_call")
        async def before(event):
            before_events.append(event)

        @agent.hook("after_tool_call")
        async def after(event):
            after_events.append(event)

        await agent.run_async("Echo hello")

        assert before_events[0].tool_name == "echo"
        assert before_events[0].parameters == {"text": "hello"}
        assert before_events[0].iteration == 1
        assert before_events[0].tool_index == 1
        assert before_events[0].total_tools == 1
        assert after_events[0].result.success is True
        assert after_events[0].result.data == "echo: hello"
        assert after_events[0].execution_time_ms >= 0

    @pytest.mark.asyncio
    async def test_after_tool_call_reports_failures(self):
        agent = Agent(
            model=ScriptedModel(["TOOL_CALL: failing_tool\nPARAMETERS: {}", "Handled"]),
            registry=[FailingTool()],
        )
        results = []

        @agent.hook("after_tool_call")
        async def after(event):
            results.append(event.result)

        execution = await agent.run_async("Try it")

        assert execution.success is True
        assert results[0].success is False
        assert "Tool failed intentionally" in results[0].error

    @pytest.mark.asyncio
    async def test_loop_completed_carries_execution(self):
        agent = Agent(model=ScriptedModel(["All done."]))
        finished = []

        @agent.hook("loop_completed")
        async def done(event):
            finished.append(event)

        await agent.run_async("Hi")

        assert finished[0].execution.response == "All done."
        assert finished[0].total_time_ms >= 0

    @pytest.mark.asyncio
    async def test_loop_completed_fires_on_max_iterations(self):
        agent = Agent(model=ScriptedModel([ECHO_CALL]), registry=[EchoTool()], max_iterations=2)
        finished = []

        @agent.hook("loop_completed")
        async def done(event):
            finished.append(event.execution.state)

        await agent.run_async("Loop forever")

        assert finished == [LoopState.MAX_ITERATIONS]

    @pytest.mark.asyncio
    async def test_loop_aborted_fires(self):
        agent = Agent(model=ScriptedModel(["Thinking..."]))
        aborted = []
        completed = []

        @agent.hook("assistant_reply")
        async def stop(event):
            agent.abort()

        @agent.hook("loop_aborted")
        async def on_abort(event):
            aborted.append(event.message)

        @agent.hook("loop_completed")
        async def on_complete(event):
            completed.append(event)

        execution = await agent.run_async("Go")

        assert execution.aborted is True
        assert aborted == ["Task was stopped by user"]
        assert completed == []

    @pytest.mark.asyncio
    async def test_failing_hook_does_not_break_run(self):
        agent = Agent(model=ScriptedModel(["Fine."]))

        @agent.hook("assistant_reply")
        async def broken(event):
            raise ValueError("observer bug")

        execution = await agent.run_async("Hi")

        assert execution.success is True
        assert execution.response == "Fine."


# --- Middleware ---


class TestMiddleware:
    @pytest.mark.asyncio
    async def test_middleware_receives_events(self):
        class ToolCounter(Middleware):
            def __init__(self):
                self.tools = []
                self.finished = False

            async def after_tool_call(self, event):
                self.tools.append(event.tool_name)

            async def loop_completed(self, event):
                self.finished = True

        counter = ToolCounter()
        agent = Agent(
            model=ScriptedModel([ECHO_CALL, "Done"]),
            registry=[EchoTool()],
            middlewares=[counter],
        )

        await agent.run_async("Echo hello")

        assert counter.tools == ["echo"]
        assert counter.finished is True

    def test_middleware_registers_every_hook(self):
        agent = Agent(model=ScriptedModel(["x"]), middlewares=[Middleware()])
        for event in HookEvent:
            assert agent.hooks.has_handlers(event.value)

    @pytest.mark.asyncio
    async def test_shared_registry(self):
        hooks = HookRegistry()
        seen = []

        @hooks.on("user_input")
        async def capture(event):
            seen.append(event.content)

        agent = Agent(model=ScriptedModel(["ok"]), hooks=hooks)
        await agent.run_async("shared")

        assert agent.hooks is hooks
        assert seen == ["shared"]
