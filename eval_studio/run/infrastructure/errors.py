"""Error types raised by run infrastructure."""

from pathlib import Path

from eval_studio.core.errors import EvalStudioError


class RunFileError(EvalStudioError):
    """Raised when an exported run or case-list file cannot be read."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to read {path}: {reason}")
