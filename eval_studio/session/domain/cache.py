"""Last-viewed-run cache port and its key scheme."""

from typing import Any, Protocol

from eval_studio.core.json_probe import as_number

KEY_PREFIX = "prompt-eval-run"


def last_viewed_run_key(workspace_id: int, prompt_id: int) -> str:
    return f"{KEY_PREFIX}:{workspace_id}:{prompt_id}"


def parse_stored_run_id(raw: Any) -> int | None:
    """A stored value counts only if it is a positive whole number."""
    number = as_number(raw)
    if number is None or number <= 0 or not number.is_integer():
        return None
    return int(number)


class LastViewedRunCache(Protocol):
    """Remembers which run was last opened for a prompt.

    Reads are optional (None means nothing remembered). Writes are idempotent;
    writing None forgets the entry.
    """

    def read(self, workspace_id: int, prompt_id: int) -> int | None: ...

    def write(self, workspace_id: int, prompt_id: int, run_id: int | None) -> None: ...
