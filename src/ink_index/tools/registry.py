"""Name-to-handler table for ink.* tools."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

ToolHandler = Callable[[dict[str, object]], dict[str, object]]


@dataclass(slots=True, frozen=True)
class ToolDispatchError(Exception):
    """Tool failure carrying a stable error code for the response envelope."""

    code: str
    message: str


class ToolRegistry:
    """Named tool handlers kept in registration order."""

    def __init__(self) -> None:
        self._handlers: dict[str, ToolHandler] = {}

    def register(self, name: str, handler: ToolHandler) -> None:
        """Add a handler; registering the same name twice is a programming error."""
        if name in self._handlers:
            raise ValueError(f"Tool already registered: {name}")
        self._handlers[name] = handler

    def names(self) -> tuple[str, ...]:
        """Tool names in registration order."""
        return tuple(self._handlers)

    def dispatch(self, name: str, arguments: dict[str, object]) -> dict[str, object]:
        """Run the named handler, raising UNKNOWN_TOOL when it is not registered."""
        try:
            handler = self._handlers[name]
        except KeyError:
            raise ToolDispatchError(code="UNKNOWN_TOOL", message=f"Unknown tool: {name}") from None
        return handler(arguments)
