"""``${ENV_VAR}`` substitution over parsed YAML data."""

import os
import re
from collections.abc import Callable
from typing import Any

_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _walk_strings(data: Any, visit: Callable[[str], Any]) -> Any:
    """Rebuild *data* with every string replaced by ``visit(string)``."""
    if isinstance(data, str):
        return visit(data)
    if isinstance(data, list):
        return [_walk_strings(item, visit) for item in data]
    if isinstance(data, dict):
        return {key: _walk_strings(value, visit) for key, value in data.items()}
    return data


def find_missing_env_vars(data: Any) -> list[str]:
    """Names of referenced variables that are unset, first occurrence order."""
    missing: dict[str, None] = {}

    def collect(text: str) -> str:
        for name in _REFERENCE.findall(text):
            if name not in os.environ:
                missing[name] = None
        return text

    _walk_strings(data, collect)
    return list(missing)


def expand_env_vars(data: Any) -> Any:
    """Substitute every reference; call find_missing_env_vars first."""
    return _walk_strings(
        data, lambda text: _REFERENCE.sub(lambda m: os.environ[m.group(1)], text)
    )
