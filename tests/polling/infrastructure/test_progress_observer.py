"""Tests for polling/infrastructure/progress_observer.py (output disabled)."""

from eval_studio.polling.infrastructure.progress_observer import (
    ProgressPollingObserver,
)


class TestProgressPollingObserver:
    def test_tracks_latest_progress(self) -> None:
        observer = ProgressPollingObserver(disabled=True)

        observer.polling_started(
            run_id=1, run_interval_seconds=2.0, cases_interval_seconds=3.0
        )
        observer.run_refreshed(
            run_id=1, status="RUNNING", processed_cases=4, total_cases=10
        )

        assert observer.last_status == "RUNNING"
        assert observer.processed_cases == 4
        assert observer.total_cases == 10

    def test_restart_resets_progress(self) -> None:
        observer = ProgressPollingObserver(disabled=True)
        observer.run_refreshed(
            run_id=1, status="COMPLETED", processed_cases=10, total_cases=10
        )

        observer.polling_started(
            run_id=2, run_interval_seconds=2.0, cases_interval_seconds=3.0
        )

        assert observer.last_status is None
        assert observer.processed_cases == 0

    def test_stop_without_start_is_safe(self) -> None:
        observer = ProgressPollingObserver(disabled=True)

        observer.polling_stopped(run_id=1, status=None, reason="teardown")
        observer.refresh_failed(run_id=1, resource="run", reason="x", retriable=False)

        assert observer.last_status is None
