"""OpenAI API adaptor for vibe-agent."""

import os
from typing import Optional

import httpx

from vibe_agent.exceptions import TransportError
from vibe_agent.execution import Message
from vibe_agent.model import ModelAdaptor, ModelResponse


class OpenAIAdaptor(ModelAdaptor):
    """OpenAI-compatible model adaptor.

    Supports OpenAI API and compatible endpoints (local models, proxies, etc.).
    Tools are not sent as native function definitions: the model requests
    them through TOOL_CALL directives described in the system prompt.

    Args:
        api_key: OpenAI API key. Falls back to OPENAI_API_KEY environment variable.
        model: Model name (default: gpt-5-mini).
        base_url: Base URL for the API (default: https://api.openai.com/v1).
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-5-mini",
        base_url: Optional[str] = None,
        timeout: float = 60.0,
    ):
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not self.api_key:
            raise ValueError(
                "OpenAI API key not provided. "
                "Pass api_key argument or set OPENAI_API_KEY environment variable."
            )

        self.model = model
        self.base_url = base_url or "https://api.openai.com/v1"
        self.timeout = timeout

    async def send_conversation(self, messages: list[Message]) -> ModelResponse:
        """Call the chat completions endpoint with the full conversation.

        Args:
            messages: List of Message objects from vibe-agent.

        Returns:
            ModelResponse; transport and API errors are reported as a
            non-success response rather than raised.
        """
        payload = {
            "model": self.model,
            "messages": self._convert_messages(messages),
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    timeout=self.timeout,
                )
        except httpx.HTTPError as e:
            return ModelResponse.fail(f"OpenAI request failed: {e}")

        if response.status_code != 200:
            try:
                error_msg = response.json().get("error", {}).get("message", "Unknown error")
            except ValueError:
                error_msg = f"HTTP {response.status_code}"
            return ModelResponse.fail(f"OpenAI API error: {error_msg}")

        try:
            return ModelResponse.ok(self._parse_response(response.json()))
        except (TransportError, ValueError) as e:
            return ModelResponse.fail(str(e))

    def _convert_messages(self, messages: list[Message]) -> list[dict]:
        """Convert vibe-agent Message objects to OpenAI format."""
        return [{"role": msg.role, "content": msg.content} for msg in messages]

    def _parse_response(self, data: dict) -> str:
        """Extract the reply text from an OpenAI API response.

        Raises:
            TransportError: If the response format is unexpected.
        """
        if not data.get("choices"):
            raise TransportError("OpenAI response missing 'choices' field")

        message = data["choices"][0].get("message") or {}
        return message.get("content") or ""
