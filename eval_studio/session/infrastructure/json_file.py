"""LastViewedRunCache backed by a small JSON object on disk."""

import json
from pathlib import Path
from typing import Any

from eval_studio.core.json_probe import as_record
from eval_studio.session.domain.cache import last_viewed_run_key, parse_stored_run_id
from eval_studio.session.infrastructure.errors import SessionStoreError


class JsonFileLastViewedRunCache:
    """Stores ``{key: run_id}`` in one JSON file.

    A missing or unparseable file reads as empty. Satisfies the
    LastViewedRunCache protocol structurally.
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    def _load(self) -> dict[str, Any]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return {}
        try:
            return as_record(json.loads(text)) or {}
        except json.JSONDecodeError:
            return {}

    def read(self, workspace_id: int, prompt_id: int) -> int | None:
        raw = self._load().get(last_viewed_run_key(workspace_id, prompt_id))
        return parse_stored_run_id(raw)

    def write(self, workspace_id: int, prompt_id: int, run_id: int | None) -> None:
        entries = self._load()
        key = last_viewed_run_key(workspace_id, prompt_id)
        if run_id is None:
            if key not in entries:
                return
            del entries[key]
        else:
            if parse_stored_run_id(run_id) is None:
                raise ValueError(f"run id must be a positive integer, got {run_id!r}")
            entries[key] = run_id
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(entries, indent=2), encoding="utf-8")
        except OSError as exc:
            raise SessionStoreError(self._path, str(exc)) from exc
