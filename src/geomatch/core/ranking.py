"""Ordering and pagination of scored matches."""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

import structlog

from ..errors import InvalidRecord
from .qualification import Qualified
from .scoring import MatchResult

ScoringFn = Callable[[Qualified], MatchResult]

logger = structlog.get_logger(__name__)


def sort_key(result: MatchResult) -> tuple[float, float, bool, str]:
    """Score desc, distance asc, verified first, then counterpart id asc."""
    return (
        -result.score,
        result.distance_km,
        not result.counterpart_verified,
        result.counterpart_id,
    )


@dataclass(slots=True)
class RankedPage:
    """One page of ranked matches plus pagination metadata."""

    results: list[MatchResult]
    total: int
    total_pages: int
    page: int
    page_size: int
    skipped: list[str | None] = field(default_factory=list)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [result.to_dict() for result in self.results],
            "total": self.total,
            "total_pages": self.total_pages,
            "page": self.page,
            "page_size": self.page_size,
            "has_next_page": self.has_next_page,
            "has_prev_page": self.has_prev_page,
        }


class RankedResultBuilder:
    """Score qualified entities, order them totally and cut a page."""

    def __init__(
        self,
        *,
        default_page_size: int = 10,
        max_page_size: int = 100,
        scoring_workers: int | None = None,
    ) -> None:
        if max_page_size < 1:
            raise ValueError("max_page_size must be at least 1")
        self._max_page_size = max_page_size
        self._default_page_size = min(max(1, default_page_size), max_page_size)
        self._scoring_workers = scoring_workers

    @property
    def max_page_size(self) -> int:
        return self._max_page_size

    def score_all(
        self,
        qualified: Sequence[Qualified],
        scoring_fn: ScoringFn,
    ) -> tuple[list[MatchResult], list[str | None]]:
        """Score every entity; malformed ones are logged and their ids returned."""
        if self._scoring_workers and self._scoring_workers > 1 and len(qualified) > 1:
            with ThreadPoolExecutor(max_workers=self._scoring_workers) as pool:
                outcomes = list(pool.map(lambda item: self._score_one(item, scoring_fn), qualified))
        else:
            outcomes = [self._score_one(item, scoring_fn) for item in qualified]

        scored: list[MatchResult] = []
        skipped: list[str | None] = []
        for item, outcome in zip(qualified, outcomes):
            if isinstance(outcome, InvalidRecord):
                skipped.append(outcome.record_id or getattr(item.entity, "id", None))
                continue
            scored.append(outcome)

        return scored, skipped

    @staticmethod
    def order(scored: Sequence[MatchResult]) -> list[MatchResult]:
        return sorted(scored, key=sort_key)

    def rank(
        self,
        qualified: Sequence[Qualified],
        scoring_fn: ScoringFn,
    ) -> tuple[list[MatchResult], list[str | None]]:
        """Return every scored match in final order and the ids of skipped records."""
        scored, skipped = self.score_all(qualified, scoring_fn)
        return self.order(scored), skipped

    def build(
        self,
        qualified: Sequence[Qualified],
        scoring_fn: ScoringFn,
        page: int = 1,
        page_size: int | None = None,
    ) -> RankedPage:
        ranked, skipped = self.rank(qualified, scoring_fn)
        result = self.paginate(ranked, page=page, page_size=page_size)
        result.skipped = skipped
        return result

    def paginate(
        self,
        ranked: Sequence[MatchResult],
        *,
        page: int = 1,
        page_size: int | None = None,
    ) -> RankedPage:
        page_num, size = self._clamp(page, page_size)
        total = len(ranked)
        offset = (page_num - 1) * size
        return RankedPage(
            results=list(ranked[offset:offset + size]),
            total=total,
            total_pages=math.ceil(total / size),
            page=page_num,
            page_size=size,
        )

    def _clamp(self, page: int, page_size: int | None) -> tuple[int, int]:
        size = self._default_page_size if page_size is None else int(page_size)
        return max(1, int(page)), min(max(1, size), self._max_page_size)

    @staticmethod
    def _score_one(item: Qualified, scoring_fn: ScoringFn) -> MatchResult | InvalidRecord:
        try:
            return scoring_fn(item)
        except InvalidRecord as exc:
            logger.warning(
                "record.invalid",
                record_id=exc.record_id,
                reason=exc.reason,
                stage="scoring",
            )
            return exc
