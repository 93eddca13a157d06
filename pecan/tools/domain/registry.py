"""ToolRegistry — name-keyed map of tools and their backend definitions."""

from typing import Any, TypeAlias

from pecan.tools.domain.errors import ToolNotFoundError
from pecan.tools.domain.tool import Tool

ToolDefinition: TypeAlias = dict[str, Any]


class ToolRegistry:
    """Holds tools keyed by name. New tools are added by registration only."""

    def __init__(self, tools: list[Tool] | None = None) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool=tool)

    def register(self, tool: Tool) -> None:
        """Register a tool, replacing any existing tool with the same name."""
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)

    def get(self, name: str) -> Tool:
        """
        Return the tool registered under name.

        Raises:
            ToolNotFoundError: if no tool has that name.
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name=name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def names(self) -> list[str]:
        return list(self._tools)

    def definitions(self) -> list[ToolDefinition]:
        """Return OpenAI-style function definitions for every registered tool."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }
            for tool in self._tools.values()
        ]
