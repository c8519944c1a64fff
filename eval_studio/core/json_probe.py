"""Total accessors over untyped JSON payloads.

Judge output, rule checks and per-side metadata arrive as free-form JSON whose
shape depends on the evaluation mode and on the backend version. Every helper
here returns ``None`` (or an empty list) on a shape mismatch instead of
raising, so callers can chain lookups without guarding each step.
"""

import math
from typing import Any, TypeAlias

JsonRecord: TypeAlias = dict[str, Any]


def as_record(value: Any) -> JsonRecord | None:
    """Return *value* when it is a JSON object, else None."""
    if isinstance(value, dict):
        return value
    return None


def as_number(value: Any) -> float | None:
    """Return a finite float from a number or a non-blank numeric string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        if not value.strip():
            return None
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    if math.isfinite(number):
        return number
    return None


def as_boolean(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    return None


def as_string(value: Any) -> str | None:
    """Return *value* when it is a string with non-whitespace content."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def as_string_array(value: Any) -> list[str]:
    """Return the non-blank string entries of a JSON array, else an empty list."""
    if not isinstance(value, list):
        return []
    return [item for item in value if as_string(item) is not None]


def probe(value: Any, *path: str) -> Any:
    """Follow *path* through nested objects, returning None at the first miss."""
    current = value
    for key in path:
        record = as_record(current)
        if record is None:
            return None
        current = record.get(key)
    return current
