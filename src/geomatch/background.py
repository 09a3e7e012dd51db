"""Off-request dispatch of job matching."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor

import structlog

from .core.scoring import MatchResult
from .pipeline import MatchOrchestrator


class BackgroundMatcher:
    """Run ``MatchOrchestrator.match_job`` on a worker pool.

    Submission never blocks on matching and never raises matching errors;
    failures are logged and the future resolves to an empty list.
    """

    def __init__(self, orchestrator: MatchOrchestrator, *, max_workers: int = 2) -> None:
        self._orchestrator = orchestrator
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="geomatch-jobs",
        )
        self._logger = structlog.get_logger(__name__)

    def on_job_created(self, job_id: str) -> Future[list[MatchResult]]:
        return self._submit(job_id, trigger="created")

    def on_job_updated(self, job_id: str) -> Future[list[MatchResult]]:
        """Invalidate a job's stored matches, then recompute them."""
        return self._submit(job_id, trigger="updated", invalidate=True)

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "BackgroundMatcher":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    def _submit(
        self,
        job_id: str,
        *,
        trigger: str,
        invalidate: bool = False,
    ) -> Future[list[MatchResult]]:
        self._logger.info("job_matching.submitted", job_id=job_id, trigger=trigger)
        return self._executor.submit(self._run, job_id, trigger, invalidate)

    def _run(self, job_id: str, trigger: str, invalidate: bool) -> list[MatchResult]:
        try:
            if invalidate:
                self._orchestrator.invalidate_job(job_id)
            results = self._orchestrator.match_job(job_id)
        except Exception:  # noqa: BLE001 - no caller to report to
            self._logger.error(
                "job_matching.failed",
                job_id=job_id,
                trigger=trigger,
                exc_info=True,
            )
            return []
        self._logger.info(
            "job_matching.completed",
            job_id=job_id,
            trigger=trigger,
            matches=len(results),
        )
        return results
