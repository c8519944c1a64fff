"""Error types raised by session infrastructure."""

from pathlib import Path

from eval_studio.core.errors import EvalStudioError


class SessionStoreError(EvalStudioError):
    """Raised when the session file cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Failed to save session file {path}: {reason}")
