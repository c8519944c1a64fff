"""Error types raised by config infrastructure."""

from pathlib import Path

from eval_studio.core.errors import EvalStudioError


class MissingEnvVarsError(EvalStudioError):
    """Raised when the config references environment variables that are unset."""

    def __init__(self, missing_vars: list[str]) -> None:
        self.missing_vars = missing_vars
        super().__init__(
            "Failed to load config: missing environment variables: "
            + ", ".join(sorted(missing_vars))
        )


class ConfigValidationError(EvalStudioError):
    """Raised when the config does not match the StudioConfig schema."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to validate config: {reason}")


class ConfigLoadError(EvalStudioError):
    """Raised when the config file cannot be read or parsed as YAML."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to load config {path}: {reason}")
