"""Minimal vibe-agent example with a hook. Requires OPENAI_API_KEY."""

import logging
import os

from vibe_agent import (
    Agent,
    Artifact,
    ArtifactContext,
    EnvSettingsProvider,
    InMemoryArtifactStore,
    OpenAIAdaptor,
    artifact_tools,
)

logging.basicConfig(level=logging.INFO)

vibe = Artifact(id="vibe-1", name="Reading mode", css_code="body { font-size: 16px; }")
context = ArtifactContext(current=vibe)
store = InMemoryArtifactStore()

agent = Agent(
    model=OpenAIAdaptor(api_key=os.environ["OPENAI_API_KEY"], model="gpt-4.1-mini"),
    registry=artifact_tools(context, store),
    settings_provider=EnvSettingsProvider(),
)


@agent.hook("after_tool_call")
async def on_tool_call(event):
    status = "ok" if event.result.success else event.result.error
    print(f"[hook] {event.tool_name}({event.parameters}) -> {status}")


if __name__ == "__main__":
    result = agent.run("Make the page dark with light grey text.")
    print(result.response)
    print("\nSaved CSS:\n" + vibe.css_code)
