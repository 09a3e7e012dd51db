"""Core matching engine components."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

# NOTE: keep imports explicit for export clarity.
from .geo import distance, haversine_km, validate_coordinates
from .qualification import CandidateQualifier, JobQualifier, Qualified
from .radius import RadiusPolicy
from .ranking import RankedPage, RankedResultBuilder
from .scoring import EvaluationResult, MatchResult, MatchScorer, ScoreBreakdown


@runtime_checkable
class Evaluator(Protocol):
    """Evaluator contract for computing one sub-score."""

    method: str

    def evaluate(self, candidate: Any, context: dict) -> dict:
        """Return evaluation results for a candidate against ``context['job']``."""


__all__ = [
    "CandidateQualifier",
    "EvaluationResult",
    "Evaluator",
    "JobQualifier",
    "MatchResult",
    "MatchScorer",
    "Qualified",
    "RadiusPolicy",
    "RankedPage",
    "RankedResultBuilder",
    "ScoreBreakdown",
    "distance",
    "haversine_km",
    "validate_coordinates",
]
