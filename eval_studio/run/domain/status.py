"""Evaluation mode and lifecycle status vocabularies."""

from enum import StrEnum
from typing import Annotated, Any

from pydantic import BeforeValidator


class EvalMode(StrEnum):
    CANDIDATE_ONLY = "CANDIDATE_ONLY"
    COMPARE_ACTIVE = "COMPARE_ACTIVE"


class RunStatus(StrEnum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    # a status this client does not know; treated as finished
    UNKNOWN = "UNKNOWN"

    @property
    def is_pending(self) -> bool:
        return self in (RunStatus.QUEUED, RunStatus.RUNNING)

    @property
    def is_terminal(self) -> bool:
        return not self.is_pending


class CaseStatus(StrEnum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    OK = "OK"
    ERROR = "ERROR"
    SKIPPED = "SKIPPED"

    @property
    def is_pending(self) -> bool:
        return self in (CaseStatus.QUEUED, CaseStatus.RUNNING)

    @property
    def is_terminal(self) -> bool:
        return not self.is_pending


def coerce_mode(value: Any) -> EvalMode:
    """Unknown or missing modes are read as single-candidate runs."""
    if isinstance(value, str) and value.strip().upper() == EvalMode.COMPARE_ACTIVE:
        return EvalMode.COMPARE_ACTIVE
    return EvalMode.CANDIDATE_ONLY


def coerce_run_status(value: Any) -> RunStatus:
    """A missing status reads as QUEUED; an unrecognised one as UNKNOWN.

    UNKNOWN is terminal, so a status added by a newer backend stops polling
    instead of polling forever.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return RunStatus.QUEUED
    if isinstance(value, str):
        try:
            return RunStatus(value.strip().upper())
        except ValueError:
            pass
    return RunStatus.UNKNOWN


def coerce_case_status(value: Any) -> CaseStatus:
    """Unknown or missing statuses are read as QUEUED."""
    if isinstance(value, str):
        try:
            return CaseStatus(value.strip().upper())
        except ValueError:
            pass
    return CaseStatus.QUEUED


LenientMode = Annotated[EvalMode, BeforeValidator(coerce_mode)]
LenientRunStatus = Annotated[RunStatus, BeforeValidator(coerce_run_status)]
LenientCaseStatus = Annotated[CaseStatus, BeforeValidator(coerce_case_status)]
