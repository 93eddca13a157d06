"""Argument helpers shared by the built-in tools."""

from typing import Any

from pecan.tools.domain.errors import InvalidToolArgumentsError


def require_object(tool: str, arguments: Any) -> dict[str, Any]:
    if not isinstance(arguments, dict):
        raise InvalidToolArgumentsError(
            name=tool, reason="arguments must be a JSON object"
        )
    return arguments


def require_str(tool: str, arguments: dict[str, Any], key: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value:
        raise InvalidToolArgumentsError(name=tool, reason=f"missing '{key}'")
    return value
