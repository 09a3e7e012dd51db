"""Weighted multi-factor match scoring."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Iterable

from ..errors import InvalidRecord
from ..schemas import Candidate, JobPosting
from .evaluators import (
    AvailabilityEvaluator,
    ExperienceEvaluator,
    LocationEvaluator,
    SalaryEvaluator,
    SkillOverlapEvaluator,
)
from .geo import round_distance


@dataclass(slots=True)
class EvaluationResult:
    """Normalized evaluator output."""

    method: str
    scores: dict[str, float]
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class ScoreBreakdown:
    skill: float
    location: float
    salary: float
    availability: float
    experience: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(slots=True)
class MatchResult:
    """Scored (subject, counterpart) pair.

    ``distance_km`` keeps full precision for ordering; ``to_dict`` rounds it
    for display.
    """

    subject_id: str
    counterpart_id: str
    distance_km: float
    score: float
    breakdown: ScoreBreakdown
    counterpart_verified: bool = False
    evaluations: list[EvaluationResult] = field(default_factory=list)

    def to_dict(self, *, include_details: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "subject_id": self.subject_id,
            "counterpart_id": self.counterpart_id,
            "distance_km": round_distance(self.distance_km),
            "score": self.score,
            "score_breakdown": self.breakdown.as_dict(),
            "counterpart_verified": self.counterpart_verified,
        }
        if include_details:
            payload["evaluations"] = [asdict(item) for item in self.evaluations]
        return payload


class MatchScorer:
    """Coordinates sub-score evaluators and aggregates the weighted score."""

    DEFAULT_WEIGHTS: dict[str, float] = {
        "skill": 0.40,
        "location": 0.25,
        "salary": 0.20,
        "availability": 0.10,
        "experience": 0.05,
    }

    def __init__(
        self,
        evaluators: Iterable[Any] | None = None,
        *,
        score_weights: dict[str, float] | None = None,
    ) -> None:
        self._evaluators = list(evaluators) if evaluators is not None else [
            SkillOverlapEvaluator(),
            LocationEvaluator(),
            SalaryEvaluator(),
            AvailabilityEvaluator(),
            ExperienceEvaluator(),
        ]
        weights = self.DEFAULT_WEIGHTS.copy()
        if score_weights:
            weights.update(score_weights)
        self._score_weights = self._validated_weights(weights)

    @property
    def weights(self) -> dict[str, float]:
        return dict(self._score_weights)

    def score(
        self,
        subject: Candidate | JobPosting,
        counterpart: Candidate | JobPosting,
        *,
        distance_km: float,
        radius_km: float,
    ) -> MatchResult:
        """Score one pair; either side may be the candidate."""
        candidate, job = self._orient(subject, counterpart)
        context = {"job": job, "distance_km": distance_km, "radius_km": radius_km}

        evaluations: list[EvaluationResult] = []
        subscores: dict[str, float] = {}
        for evaluator in self._evaluators:
            normalized = self._normalize_evaluation_result(
                evaluator.evaluate(candidate, context)
            )
            evaluations.append(normalized)
            subscores.update(normalized.scores)

        breakdown = ScoreBreakdown(
            **{key: subscores.get(key, 0.0) for key in self.DEFAULT_WEIGHTS}
        )
        return MatchResult(
            subject_id=subject.id,
            counterpart_id=counterpart.id,
            distance_km=distance_km,
            score=self._compute_weighted_score(breakdown.as_dict()),
            breakdown=breakdown,
            counterpart_verified=bool(counterpart.verified),
            evaluations=evaluations,
        )

    @staticmethod
    def _orient(
        subject: Candidate | JobPosting,
        counterpart: Candidate | JobPosting,
    ) -> tuple[Candidate, JobPosting]:
        for entity in (subject, counterpart):
            if not getattr(entity, "id", None):
                raise InvalidRecord("missing id", record_id=None)
        if isinstance(subject, Candidate) and isinstance(counterpart, JobPosting):
            return subject, counterpart
        if isinstance(subject, JobPosting) and isinstance(counterpart, Candidate):
            return counterpart, subject
        raise InvalidRecord(
            "expected a candidate and a job posting, got "
            f"{type(subject).__name__} and {type(counterpart).__name__}",
            record_id=getattr(counterpart, "id", None),
        )

    @staticmethod
    def _normalize_evaluation_result(payload: dict[str, Any]) -> EvaluationResult:
        method = payload.get("method")
        scores = payload.get("scores") or {}
        metadata = payload.get("metadata") or {}
        if method is None:
            raise ValueError("Evaluator result must include 'method'.")
        if not isinstance(scores, dict):
            raise ValueError("Evaluator result 'scores' must be a mapping.")
        return EvaluationResult(
            method=str(method),
            scores={k: min(1.0, max(0.0, float(v))) for k, v in scores.items()},
            metadata=dict(metadata),
        )

    def _compute_weighted_score(self, scores: dict[str, float]) -> float:
        return sum(
            scores.get(metric, 0.0) * weight
            for metric, weight in self._score_weights.items()
        )

    def _validated_weights(self, weights: dict[str, float]) -> dict[str, float]:
        unknown = set(weights) - set(self.DEFAULT_WEIGHTS)
        if unknown:
            raise ValueError(f"Unknown score weights: {sorted(unknown)}")
        if any(value < 0 for value in weights.values()):
            raise ValueError("Score weights must be non-negative.")
        if not math.isclose(sum(weights.values()), 1.0, abs_tol=1e-9):
            raise ValueError(
                f"Score weights must sum to 1.0, got {sum(weights.values())!r}."
            )
        return weights
