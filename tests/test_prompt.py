from vibe_agent.artifacts import ArtifactContext, InMemoryArtifactStore, artifact_tools
from vibe_agent.prompt import (
    DEFAULT_PREAMBLE,
    build_initial_request,
    build_system_prompt,
    render_tool_catalogue,
)
from vibe_agent.registry import ToolRegistry


def vibe_registry():
    return ToolRegistry(artifact_tools(ArtifactContext(), InMemoryArtifactStore()))


class TestToolCatalogue:
    def test_lists_tools_with_kind(self):
        catalogue = render_tool_catalogue(vibe_registry())
        assert "- read_css (read):" in catalogue
        assert "- save_js (write):" in catalogue
        assert '"include_metadata"' in catalogue

    def test_empty_registry(self):
        assert render_tool_catalogue(ToolRegistry()) == ""


class TestSystemPrompt:
    def test_contains_preamble_catalogue_and_protocol(self):
        prompt = build_system_prompt(vibe_registry())
        assert prompt.startswith(DEFAULT_PREAMBLE)
        assert "Available Tools:" in prompt
        assert "TOOL_CALL: tool_name" in prompt
        assert 'PARAMETERS: {"param1": "value1", "param2": "value2"}' in prompt

    def test_custom_preamble(self):
        prompt = build_system_prompt(ToolRegistry(), preamble="You edit themes.")
        assert prompt.startswith("You edit themes.")


class TestInitialRequest:
    def test_wraps_request(self):
        text = build_initial_request("Make it {dark}")
        assert text.startswith("User Request: Make it {dark}\n\n")
        assert "reading the existing code" in text

    def test_custom_template(self):
        assert build_initial_request("hi", template="Q: {request}") == "Q: hi"
