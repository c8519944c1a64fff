"""Error types raised by the evaluation service client."""

from eval_studio.core.errors import EvalStudioError

OWNER_ONLY_MESSAGE = "only workspace owners can change release criteria"
GENERIC_SAVE_MESSAGE = "the release criteria could not be saved"


class ApiRequestError(EvalStudioError):
    """Raised when a request fails at the transport or HTTP level.

    ``status_code`` is None for transport failures (connect, timeout), which
    are retriable; 5xx responses are retriable too.
    """

    def __init__(
        self,
        action: str,
        reason: str,
        status_code: int | None = None,
        server_message: str | None = None,
    ) -> None:
        self.action = action
        self.status_code = status_code
        self.server_message = server_message
        status = f"HTTP {status_code}: " if status_code is not None else ""
        retriable = status_code is None or status_code >= 500
        super().__init__(f"Failed to {action}: {status}{reason}", retriable=retriable)


class ApiResponseError(EvalStudioError):
    """Raised when a response body does not have the expected shape."""

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        super().__init__(f"Failed to {action}: unexpected response: {reason}")


class CriteriaValidationError(EvalStudioError):
    """Raised before submission when a criteria draft is not a valid update."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to save release criteria: {reason}")


class CriteriaPermissionError(EvalStudioError):
    """Raised when the service rejects a criteria update with 403."""

    def __init__(self) -> None:
        super().__init__(f"Failed to save release criteria: {OWNER_ONLY_MESSAGE}")


class CriteriaSaveError(EvalStudioError):
    """Raised for any other criteria update failure."""

    def __init__(self, message: str | None = None, retriable: bool = False) -> None:
        super().__init__(
            f"Failed to save release criteria: {message or GENERIC_SAVE_MESSAGE}",
            retriable=retriable,
        )


class RunRequestValidationError(EvalStudioError):
    """Raised before submission when a run cannot be started as requested."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to start evaluation run: {reason}")
