"""In-process LastViewedRunCache."""

from eval_studio.session.domain.cache import last_viewed_run_key, parse_stored_run_id


class InMemoryLastViewedRunCache:
    """Satisfies the LastViewedRunCache protocol structurally."""

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}

    def read(self, workspace_id: int, prompt_id: int) -> int | None:
        raw = self._entries.get(last_viewed_run_key(workspace_id, prompt_id))
        return parse_stored_run_id(raw)

    def write(self, workspace_id: int, prompt_id: int, run_id: int | None) -> None:
        key = last_viewed_run_key(workspace_id, prompt_id)
        if run_id is None:
            self._entries.pop(key, None)
        else:
            if parse_stored_run_id(run_id) is None:
                raise ValueError(f"run id must be a positive integer, got {run_id!r}")
            self._entries[key] = str(run_id)
