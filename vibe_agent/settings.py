"""Size settings for conversation memory.

Limits are configured in model tokens and converted to a byte budget with a
fixed multiplier, since memory bounds are enforced on UTF-8 bytes.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from vibe_agent.exceptions import SettingsError

logger = logging.getLogger(__name__)

BYTES_PER_TOKEN = 4

DEFAULT_MAX_MESSAGE_BYTES = 10 * 1024
DEFAULT_MAX_HISTORY_BYTES = 100 * 1024

MAX_MESSAGE_SIZE_ENV = "VIBE_AGENT_MAX_MESSAGE_SIZE"
MAX_CONVERSATION_SIZE_ENV = "VIBE_AGENT_MAX_CONVERSATION_SIZE"


class Settings(BaseModel):
    """User-tunable limits, in tokens."""

    max_individual_message_size: int = Field(default=5000, gt=0)
    max_conversation_size: int = Field(default=25000, gt=0)


@dataclass(frozen=True)
class SizePolicy:
    max_message_bytes: int = DEFAULT_MAX_MESSAGE_BYTES
    max_history_bytes: int = DEFAULT_MAX_HISTORY_BYTES

    @classmethod
    def from_settings(cls, settings: Settings) -> "SizePolicy":
        return cls(
            max_message_bytes=settings.max_individual_message_size * BYTES_PER_TOKEN,
            max_history_bytes=settings.max_conversation_size * BYTES_PER_TOKEN,
        )


class SettingsProvider:
    async def get_settings(self) -> Settings:
        """Return the current settings. May raise SettingsError."""
        raise NotImplementedError


class StaticSettingsProvider(SettingsProvider):
    def __init__(self, settings: Optional[Settings] = None, **overrides):
        self.settings = settings or Settings(**overrides)

    async def get_settings(self) -> Settings:
        return self.settings


class EnvSettingsProvider(SettingsProvider):
    """Reads limits from environment variables, falling back to defaults.

    Args:
        message_size_var: Variable holding the per-message limit in tokens.
        conversation_size_var: Variable holding the history limit in tokens.
    """

    def __init__(
        self,
        message_size_var: str = MAX_MESSAGE_SIZE_ENV,
        conversation_size_var: str = MAX_CONVERSATION_SIZE_ENV,
    ):
        self.message_size_var = message_size_var
        self.conversation_size_var = conversation_size_var

    async def get_settings(self) -> Settings:
        values = {}
        for field_name, var in (
            ("max_individual_message_size", self.message_size_var),
            ("max_conversation_size", self.conversation_size_var),
        ):
            raw = os.environ.get(var)
            if raw is not None:
                values[field_name] = raw

        try:
            return Settings(**values)
        except ValidationError as e:
            raise SettingsError(f"Invalid size settings in environment: {e}") from e


async def load_size_policy(provider: Optional[SettingsProvider]) -> SizePolicy:
    """Build the size policy for a session, keeping defaults on any failure."""
    if provider is None:
        return SizePolicy()

    try:
        settings = await provider.get_settings()
    except Exception as e:
        logger.warning(f"Failed to load settings, using default size limits: {e}")
        return SizePolicy()

    return SizePolicy.from_settings(settings)
