"""${ENV_VAR} substitution over raw YAML data."""

import os
import re
from collections.abc import Callable
from typing import TypeAlias

_ENV_VAR = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

RawValue: TypeAlias = (
    str | int | float | bool | None | list["RawValue"] | dict[str, "RawValue"]
)


def _map_strings(data: RawValue, fn: Callable[[str], str]) -> RawValue:
    if isinstance(data, str):
        return fn(data)
    if isinstance(data, list):
        return [_map_strings(item, fn) for item in data]
    if isinstance(data, dict):
        return {key: _map_strings(value, fn) for key, value in data.items()}
    return data


def missing_vars(data: RawValue) -> list[str]:
    """Names of referenced env vars that are unset, in first-seen order."""
    seen: list[str] = []

    def record(text: str) -> str:
        for name in _ENV_VAR.findall(text):
            if name not in os.environ and name not in seen:
                seen.append(name)
        return text

    _map_strings(data, record)
    return seen


def interpolate(data: RawValue) -> RawValue:
    """Substitute every ${ENV_VAR}; call missing_vars() first."""
    return _map_strings(data, lambda text: _ENV_VAR.sub(_lookup, text))


def _lookup(match: re.Match[str]) -> str:
    return os.environ[match.group(1)]
