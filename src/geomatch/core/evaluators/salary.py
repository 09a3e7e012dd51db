"""Salary expectation evaluation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...schemas import Candidate, JobPosting


@dataclass
class SalaryConfig:
    """Configuration for salary matching."""

    # Used as the gap denominator when the posting states no positive offer.
    reference_floor: float = 10_000.0


class SalaryEvaluator:
    """Compare a candidate's expected salary with the posting's offer."""

    method = "salary"

    def __init__(self, *, config: SalaryConfig | None = None) -> None:
        self._config = config or SalaryConfig()

    def evaluate(self, candidate: Candidate, context: dict[str, Any]) -> dict[str, Any]:
        job: JobPosting = context["job"]
        expected = candidate.expected_salary
        job_range = self._job_range(job)

        if expected is None or job_range is None:
            return self._build_response(
                score=1.0,
                expected=expected,
                job_range=job_range,
                status="not_specified",
            )

        gap = self._gap_amount(expected, job_range)
        if gap == 0:
            return self._build_response(
                score=1.0,
                expected=expected,
                job_range=job_range,
                status="within_offer",
                gap=0.0,
            )

        reference = self._reference_salary(job_range)
        score = 1.0 - min(1.0, gap / reference)
        return self._build_response(
            score=score,
            expected=expected,
            job_range=job_range,
            status="above_offer",
            gap=gap,
            reference=reference,
        )

    @staticmethod
    def _job_range(job: JobPosting) -> tuple[float | None, float] | None:
        ceiling = job.offer_ceiling
        if ceiling is None:
            return None
        floor = job.offer_floor
        if floor is not None and floor > ceiling:
            floor, ceiling = ceiling, floor
        return floor, ceiling

    @staticmethod
    def _gap_amount(expected: float, job_range: tuple[float | None, float]) -> float:
        _, ceiling = job_range
        return max(0.0, expected - ceiling)

    def _reference_salary(self, job_range: tuple[float | None, float]) -> float:
        _, ceiling = job_range
        return ceiling if ceiling > 0 else self._config.reference_floor

    def _build_response(
        self,
        *,
        score: float,
        expected: float | None,
        job_range: tuple[float | None, float] | None,
        status: str,
        gap: float | None = None,
        reference: float | None = None,
    ) -> dict[str, Any]:
        return {
            "method": self.method,
            "scores": {"salary": score},
            "metadata": {
                "expected_salary": expected,
                "job_range": job_range,
                "status": status,
                "gap_amount": gap,
                "reference_salary": reference,
            },
        }
