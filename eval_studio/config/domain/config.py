"""StudioConfig — the root configuration object for the eval-studio client."""

from pathlib import Path

from pydantic import BaseModel, Field


class ApiConfig(BaseModel, frozen=True):
    """Where the evaluation service lives and how to authenticate."""

    base_url: str = Field(min_length=1)
    token: str | None = None
    timeout_seconds: float = Field(default=30.0, gt=0)


class PollingConfig(BaseModel, frozen=True):
    run_interval_seconds: float = Field(default=2.0, gt=0)
    cases_interval_seconds: float = Field(default=3.0, gt=0)
    page_size: int = Field(default=200, ge=1, le=1000)


class AnalysisConfig(BaseModel, frozen=True):
    trend_window: int = Field(default=10, ge=1)


class SessionConfig(BaseModel, frozen=True):
    path: Path = Path("~/.eval-studio/session.json")

    @property
    def resolved_path(self) -> Path:
        return self.path.expanduser()


class StudioConfig(BaseModel, frozen=True):
    """Root configuration; only ``api`` is required."""

    api: ApiConfig
    workspace_id: int | None = Field(default=None, gt=0)
    prompt_id: int | None = Field(default=None, gt=0)
    polling: PollingConfig = PollingConfig()
    analysis: AnalysisConfig = AnalysisConfig()
    session: SessionConfig = SessionConfig()
