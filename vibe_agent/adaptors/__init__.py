"""Model adaptors for vibe-agent.

This module provides implementations of ModelAdaptor for model providers.
"""

from vibe_agent.adaptors.openai import OpenAIAdaptor

__all__ = ["OpenAIAdaptor"]
