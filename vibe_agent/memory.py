"""Byte-bounded conversation log.

Two independent bounds apply on every append:

- per-message truncation to ``max_message_bytes`` with a notice appended so
  the model knows its context was shortened;
- whole-history trimming to ``max_history_bytes`` by evicting the oldest
  non-system messages.

System messages are never evicted. When only one non-system message is left
the history may stay above budget; that is the accepted floor.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

from vibe_agent.execution import Message
from vibe_agent.settings import SizePolicy

logger = logging.getLogger(__name__)

TRUNCATION_NOTICE = (
    "\n\n[Content truncated due to exceeding {limit} bytes limit. "
    "Try using a more specific tool or parameter]"
)

# Worst-case UTF-8 width, used when content cannot be measured in bytes
_MAX_BYTES_PER_CHAR = 4


def byte_length(text: str) -> int:
    return len(text.encode("utf-8", errors="surrogatepass"))


def _cut_to_bytes(text: str, max_bytes: int) -> str:
    return text.encode("utf-8")[:max_bytes].decode("utf-8", errors="ignore")


@dataclass
class TrimResult:
    trimmed: bool
    evicted_count: int
    initial_size: int
    final_size: int
    initial_count: int
    final_count: int
    message: Optional[str] = None


class ConversationMemory:
    def __init__(
        self,
        policy: Optional[SizePolicy] = None,
        messages: Optional[list[Message]] = None,
    ):
        self.policy = policy or SizePolicy()
        self._messages: list[Message] = list(messages or [])

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def reset(self) -> None:
        self._messages = []

    def truncate(self, content: str) -> str:
        """Shorten content to fit the per-message byte budget."""
        max_bytes = self.policy.max_message_bytes
        notice = TRUNCATION_NOTICE.format(limit=max_bytes)

        try:
            encoded = content.encode("utf-8")
        except UnicodeEncodeError:
            # Lone surrogates: cut by characters, assuming the widest encoding
            if byte_length(content) <= max_bytes:
                return content
            approx_chars = max_bytes // _MAX_BYTES_PER_CHAR - len(notice)
            if approx_chars <= 0:
                return _cut_to_bytes(notice, max_bytes)
            return content[:approx_chars] + notice

        if len(encoded) <= max_bytes:
            return content

        allowed = max_bytes - byte_length(notice)
        if allowed <= 0:
            return _cut_to_bytes(notice, max_bytes)

        # errors="ignore" drops a multi-byte sequence split by the cut
        head = encoded[:allowed].decode("utf-8", errors="ignore")
        return head + notice

    def size_bytes(self) -> int:
        """UTF-8 size of the serialized message list."""
        serialized = json.dumps(
            [message.to_dict() for message in self._messages],
            ensure_ascii=False,
            separators=(",", ":"),
        )
        return byte_length(serialized)

    def ensure_system_prompt(self, content: str) -> None:
        if not self._messages or self._messages[0].role != "system":
            self._messages.insert(0, Message(role="system", content=content))

    def append(self, message: Message) -> TrimResult:
        """Truncate, append and trim. Never fails."""
        self._messages.append(
            Message(role=message.role, content=self.truncate(message.content))
        )
        return self.trim()

    def _evictable_count(self) -> int:
        return sum(1 for m in self._messages if m.role != "system")

    def trim(self) -> TrimResult:
        """Evict oldest non-system messages until the history fits."""
        max_bytes = self.policy.max_history_bytes
        initial_size = self.size_bytes()
        initial_count = len(self._messages)
        evicted = 0
        size = initial_size

        while size > max_bytes and self._evictable_count() > 1:
            oldest = next(i for i, m in enumerate(self._messages) if m.role != "system")
            del self._messages[oldest]
            evicted += 1
            size = self.size_bytes()

        final_count = len(self._messages)
        notice = None
        if evicted:
            notice = (
                f"Conversation history trimmed: removed {evicted} oldest messages "
                f"to stay under the size limit. History reduced from {initial_count} "
                f"to {final_count} messages ({round(initial_size / 1024)}KB -> "
                f"{round(size / 1024)}KB)."
            )
            logger.debug(notice)

        return TrimResult(
            trimmed=evicted > 0,
            evicted_count=evicted,
            initial_size=initial_size,
            final_size=size,
            initial_count=initial_count,
            final_count=final_count,
            message=notice,
        )
