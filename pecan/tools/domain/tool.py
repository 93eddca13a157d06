"""Tool Protocol — structural interface for every invocable capability."""

from typing import Any, Protocol, TypeAlias

JsonValue: TypeAlias = Any
JsonSchema: TypeAlias = dict[str, Any]


class Tool(Protocol):
    """Structural interface satisfied by any tool implementation.

    call() may perform I/O and may raise; the turn engine converts any failure
    into tool-role error content instead of aborting the turn.
    """

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def parameters(self) -> JsonSchema: ...

    async def call(self, arguments: JsonValue) -> JsonValue: ...
