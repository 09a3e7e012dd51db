"""Availability evaluation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ...schemas import Availability, Candidate


def _default_scores() -> dict[Availability, float]:
    return {
        Availability.IMMEDIATE: 1.0,
        Availability.WITHIN_WEEK: 0.66,
        Availability.WITHIN_MONTH: 0.33,
        Availability.NOT_AVAILABLE: 0.0,
    }


@dataclass
class AvailabilityConfig:
    """Score assigned to each availability level."""

    scores: dict[Availability, float] = field(default_factory=_default_scores)


class AvailabilityEvaluator:
    """Score how soon a candidate can start."""

    method = "availability"

    def __init__(self, *, config: AvailabilityConfig | None = None) -> None:
        self._config = config or AvailabilityConfig()

    def evaluate(self, candidate: Candidate, context: dict[str, Any]) -> dict[str, Any]:
        availability = candidate.availability
        score = 0.0 if availability is None else self._config.scores.get(availability, 0.0)
        return {
            "method": self.method,
            "scores": {"availability": score},
            "metadata": {
                "availability": availability.value if availability else None,
            },
        }
