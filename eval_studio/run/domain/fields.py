"""Lenient field types for backend payloads.

Backend payloads are read, never trusted: a malformed scalar is coerced to
``None`` (or zero for counters) rather than failing validation.
"""

from typing import Annotated, Any

from pydantic import BeforeValidator

from eval_studio.core.json_probe import as_boolean, as_number, as_string


def _to_count(value: Any) -> int:
    number = as_number(value)
    if number is None or number < 0:
        return 0
    return int(number)


def _to_id(value: Any) -> int | None:
    number = as_number(value)
    if number is None or not number.is_integer():
        return None
    return int(number)


def _to_text(value: Any) -> str | None:
    if isinstance(value, int | float) and not isinstance(value, bool):
        try:
            return str(value)
        except ValueError:
            # int above the interpreter's digit limit
            return None
    return as_string(value)


LenientNumber = Annotated[float | None, BeforeValidator(as_number)]
LenientBool = Annotated[bool | None, BeforeValidator(as_boolean)]
LenientString = Annotated[str | None, BeforeValidator(_to_text)]
LenientCount = Annotated[int, BeforeValidator(_to_count)]
LenientId = Annotated[int | None, BeforeValidator(_to_id)]
