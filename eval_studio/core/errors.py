"""Base exception class for all eval-studio-specific errors."""


class EvalStudioError(Exception):
    """Base class for all eval-studio errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable
