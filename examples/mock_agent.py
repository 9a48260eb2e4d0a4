#!/usr/bin/env python3
"""Minimal working example of vibe-agent with scripted model replies.

This example runs WITHOUT an API key. A scripted ModelAdaptor plays the
part of the model: it reads the current CSS, tries to read and save in the
same turn (which the loop refuses), then saves and summarizes.

Run:
    python examples/mock_agent.py
"""

from vibe_agent import (
    Agent,
    Artifact,
    ArtifactContext,
    InMemoryArtifactStore,
    Middleware,
    ModelAdaptor,
    ModelResponse,
    artifact_tools,
    strip_tool_artifacts,
)

SCRIPT = [
    # Read first
    'Let me look at the current styles.\n'
    'TOOL_CALL: read_css\n'
    'PARAMETERS: {"include_metadata": true}',
    # Mixed turn: only the read runs, the save is withheld
    'TOOL_CALL: read_js\n'
    'PARAMETERS: {}\n'
    'TOOL_CALL: save_css\n'
    'PARAMETERS: {"code": "body { background: #111; }"}',
    # Write on its own
    'Now saving the dark theme.\n'
    'TOOL_CALL: save_css\n'
    'PARAMETERS: {\n'
    '  "code": "body { background: #111; color: #ddd; }",\n'
    '  "append": true\n'
    '}',
    "The page now uses a dark background with light grey text.",
]


class ScriptedModel(ModelAdaptor):
    """Replays SCRIPT in order, one reply per model call."""

    def __init__(self, replies: list[str]):
        self.replies = replies
        self.call_count = 0

    async def send_conversation(self, messages):
        if self.call_count >= len(self.replies):
            return ModelResponse.ok("(Scripted model ran out of replies)")
        reply = self.replies[self.call_count]
        self.call_count += 1
        return ModelResponse.ok(reply)


class TracePrinter(Middleware):
    async def assistant_reply(self, event):
        text = strip_tool_artifacts(event.content) or "(tool calls only)"
        print(f"\n[iteration {event.iteration}] model: {text}")

    async def after_tool_call(self, event):
        result = event.result
        outcome = "ok" if result.success else f"failed: {result.error}"
        print(f"  {event.tool_index}/{event.total_tools} {event.tool_name} -> {outcome}")

    async def history_trimmed(self, event):
        print(f"  {event.message}")


def main() -> int:
    vibe = Artifact(id="vibe-1", name="Night mode", css_code="body { color: black; }")
    store = InMemoryArtifactStore()

    agent = Agent(
        model=ScriptedModel(SCRIPT),
        registry=artifact_tools(ArtifactContext(current=vibe), store),
        middlewares=[TracePrinter()],
    )

    execution = agent.run("Make this page dark.")

    print(f"\nState: {execution.state.value}")
    print(f"Iterations: {execution.iterations}")
    print(f"Tool results: {len(execution.tool_results)}")
    print(f"Saves: {store.save_count}")
    print(f"\nFinal CSS:\n{vibe.css_code}")
    print(f"\nResponse: {execution.response}")
    return 0 if execution.success else 1


if __name__ == "__main__":
    raise SystemExit(main())
