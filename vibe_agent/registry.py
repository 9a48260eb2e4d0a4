import logging
from typing import Iterable, Iterator, Optional

from vibe_agent.exceptions import ToolNotFound
from vibe_agent.tools import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Name-keyed collection of tools available to one session.

    Registering a second tool under an existing name replaces the first one.

    Usage:
        registry = ToolRegistry([ReadCSSTool(context), SaveCSSTool(context, store)])
        agent = Agent(model=model, registry=registry)
    """

    def __init__(self, tools: Optional[Iterable[Tool]] = None):
        self._tools: dict[str, Tool] = {}
        if tools:
            self.register_all(tools)

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            logger.warning(f"Tool '{tool.name}' already registered, replacing it")
        self._tools[tool.name] = tool

    def register_all(self, tools: Iterable[Tool]) -> None:
        for tool in tools:
            self.register(tool)

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def find(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFound(f"Tool '{name}' not found")
        return tool

    def names(self) -> list[str]:
        return list(self._tools)

    def describe_all(self) -> list[dict]:
        return [tool.describe() for tool in self._tools.values()]

    def is_write(self, name: str) -> Optional[bool]:
        """Return the tool's write flag, or None for an unknown name."""
        tool = self._tools.get(name)
        if tool is None:
            return None
        return tool.is_write

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(list(self._tools.values()))

    def __len__(self) -> int:
        return len(self._tools)
