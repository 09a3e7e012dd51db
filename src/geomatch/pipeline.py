"""Matching pipeline assembly and execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, TypeVar

import structlog

from .core import (
    CandidateQualifier,
    JobQualifier,
    MatchResult,
    MatchScorer,
    Qualified,
    RadiusPolicy,
    RankedPage,
    RankedResultBuilder,
    validate_coordinates,
)
from .core.qualification import parse_record
from .errors import RepositoryUnavailable
from .repositories import (
    CandidateRepository,
    JobRepository,
    MatchSink,
    SubscriptionLookup,
)
from .schemas import (
    Candidate,
    CandidateFilters,
    CandidateSearchRequest,
    GeoPoint,
    JobPosting,
    JobSearchRequest,
    SubscriptionTier,
)

T = TypeVar("T")
SearchT = TypeVar("SearchT", CandidateSearchRequest, JobSearchRequest)

SEARCH_PROFILE_ID = "search"
ANONYMOUS_SEEKER_ID = "anonymous"


class Stage(str, Enum):
    IDLE = "idle"
    RADIUS_RESOLVED = "radius_resolved"
    FETCHED = "fetched"
    QUALIFIED = "qualified"
    SCORED = "scored"
    RANKED = "ranked"
    DELIVERED = "delivered"


_STAGE_ORDER = tuple(Stage)


class StageTracker:
    """Linear stage progression for one pipeline run."""

    def __init__(self, run: str, logger: Any) -> None:
        self._run = run
        self._logger = logger
        self.stage = Stage.IDLE
        self.history: list[Stage] = [Stage.IDLE]

    def advance(self, stage: Stage, **context: Any) -> None:
        expected = _STAGE_ORDER[_STAGE_ORDER.index(self.stage) + 1]
        if stage is not expected:
            raise RuntimeError(f"{self._run}: cannot move from {self.stage.value} to {stage.value}")
        self._enter(stage, context)

    def deliver_empty(self, **context: Any) -> None:
        """Short-circuit to ``DELIVERED`` when nothing qualified."""
        self._enter(Stage.DELIVERED, {"short_circuit": True, **context})

    def _enter(self, stage: Stage, context: dict[str, Any]) -> None:
        self.stage = stage
        self.history.append(stage)
        self._logger.debug("pipeline.stage", run=self._run, stage=stage.value, **context)


@dataclass(slots=True)
class SearchResponse:
    """Ranked page returned to a synchronous search caller."""

    page: RankedPage
    search_radius_used: float
    tier: SubscriptionTier
    stages: list[Stage] = field(default_factory=list)

    @property
    def results(self) -> list[MatchResult]:
        return self.page.results

    @property
    def total(self) -> int:
        return self.page.total

    @property
    def total_pages(self) -> int:
        return self.page.total_pages

    def to_dict(self) -> dict[str, Any]:
        payload = self.page.to_dict()
        payload["search_radius_used"] = self.search_radius_used
        payload["tier"] = self.tier.value
        return payload


class MatchOrchestrator:
    """End-to-end matching orchestrator.

    Holds no mutable state of its own; concurrent calls only share the
    repositories passed in.
    """

    def __init__(
        self,
        *,
        candidates: CandidateRepository,
        jobs: JobRepository,
        subscriptions: SubscriptionLookup,
        sink: MatchSink | None = None,
        radius_policy: RadiusPolicy | None = None,
        scorer: MatchScorer | None = None,
        builder: RankedResultBuilder | None = None,
        candidate_qualifier: CandidateQualifier | None = None,
        job_qualifier: JobQualifier | None = None,
        top_n: int = 50,
    ) -> None:
        self._candidates = candidates
        self._jobs = jobs
        self._subscriptions = subscriptions
        self._sink = sink
        self._radius = radius_policy or RadiusPolicy()
        self._scorer = scorer or MatchScorer()
        self._builder = builder or RankedResultBuilder()
        self._candidate_qualifier = candidate_qualifier or CandidateQualifier()
        self._job_qualifier = job_qualifier or JobQualifier()
        self._top_n = top_n
        self._logger = structlog.get_logger(__name__)

    def search_candidates(
        self,
        request: CandidateSearchRequest | Mapping[str, Any],
        *,
        caller_id: str | None = None,
    ) -> SearchResponse:
        """Rank job seekers around a point for an employer."""
        request, origin = self._parse_search(CandidateSearchRequest, request)

        tracker = StageTracker("search_candidates", self._logger)
        tier = SubscriptionTier(self._call("tier_of", self._subscriptions.tier_of, caller_id))
        radius = self._radius.resolve_radius(request.radius_km, tier)
        tracker.advance(Stage.RADIUS_RESOLVED, tier=tier.value, radius_km=radius)

        if request.job_id is not None:
            subject = self._load_job(request.job_id)
        else:
            subject = JobPosting(
                id=SEARCH_PROFILE_ID,
                required_skill_ids=request.filters.skills,
                salary_max=request.filters.max_salary,
                location=origin,
            )

        records = self._call(
            "find_candidates_in_box",
            self._candidates.find_candidates_in_box,
            origin.latitude,
            origin.longitude,
            radius,
            request.filters.model_dump(mode="json", exclude_none=True),
        )
        tracker.advance(Stage.FETCHED, fetched=len(records))

        qualified = self._candidate_qualifier.qualify(
            records, request.filters, origin=origin, radius_km=radius
        )
        return self._rank_and_deliver(
            tracker,
            qualified,
            lambda item: self._scorer.score(
                subject, item.entity, distance_km=item.distance_km, radius_km=radius
            ),
            page=request.page,
            page_size=request.page_size,
            radius=radius,
            tier=tier,
        )

    def search_jobs(
        self,
        request: JobSearchRequest | Mapping[str, Any],
        *,
        caller_id: str | None = None,
    ) -> SearchResponse:
        """Rank active job postings around a point for a seeker."""
        request, origin = self._parse_search(JobSearchRequest, request)

        tracker = StageTracker("search_jobs", self._logger)
        tier = SubscriptionTier(
            self._call("tier_of", self._subscriptions.tier_of, caller_id or request.seeker_id)
        )
        radius = self._radius.resolve_radius(request.radius_km, tier)
        tracker.advance(Stage.RADIUS_RESOLVED, tier=tier.value, radius_km=radius)

        if request.seeker_id is not None:
            subject = self._load_candidate(request.seeker_id)
        else:
            subject = Candidate(id=ANONYMOUS_SEEKER_ID, location=origin)

        records = self._call(
            "find_jobs_in_box",
            self._jobs.find_jobs_in_box,
            origin.latitude,
            origin.longitude,
            radius,
            request.filters.model_dump(mode="json", exclude_none=True),
        )
        tracker.advance(Stage.FETCHED, fetched=len(records))

        qualified = self._job_qualifier.qualify(
            records, request.filters, origin=origin, radius_km=radius
        )
        return self._rank_and_deliver(
            tracker,
            qualified,
            lambda item: self._scorer.score(
                subject, item.entity, distance_km=item.distance_km, radius_km=radius
            ),
            page=request.page,
            page_size=request.page_size,
            radius=radius,
            tier=tier,
        )

    def match_job(self, job_id: str) -> list[MatchResult]:
        """Compute and persist the top matches for a newly created or edited job."""
        job = self._load_job(job_id)
        if not job.is_matchable or job.location is None:
            self._logger.info(
                "job_matching.skipped",
                job_id=job.id,
                status=job.status.value,
                has_location=job.location is not None,
            )
            return []

        tracker = StageTracker("match_job", self._logger)
        tier = SubscriptionTier(self._call("tier_of", self._subscriptions.tier_of, job.employer_id))
        radius = self._radius.cap_for(tier)
        tracker.advance(Stage.RADIUS_RESOLVED, tier=tier.value, radius_km=radius)

        filters = CandidateFilters(skills=job.required_skill_ids)
        records = self._call(
            "find_candidates_in_box",
            self._candidates.find_candidates_in_box,
            job.location.latitude,
            job.location.longitude,
            radius,
            filters.model_dump(mode="json", exclude_none=True),
        )
        tracker.advance(Stage.FETCHED, fetched=len(records))

        qualified = self._candidate_qualifier.qualify(
            records, filters, origin=job.location, radius_km=radius
        )
        tracker.advance(Stage.QUALIFIED, qualified=len(qualified))

        scored, skipped = self._builder.score_all(
            qualified,
            lambda item: self._scorer.score(
                job, item.entity, distance_km=item.distance_km, radius_km=radius
            ),
        )
        tracker.advance(Stage.SCORED, scored=len(scored), skipped=len(skipped))

        top = self._builder.order(scored)[: self._top_n]
        tracker.advance(Stage.RANKED, kept=len(top))

        if self._sink is not None:
            written = self._call("persist_matches", self._sink.persist_matches, job.id, top)
            self._logger.info("matches.persisted", job_id=job.id, count=written)
        tracker.advance(Stage.DELIVERED)
        return top

    def invalidate_job(self, job_id: str) -> int:
        if self._sink is None:
            return 0
        removed = self._call("invalidate_job", self._sink.invalidate_job, job_id)
        self._logger.info("matches.invalidated", job_id=job_id, removed=removed)
        return removed

    def on_candidate_updated(self, candidate_id: str) -> int:
        """Drop stored matches naming a seeker whose skills or location changed."""
        if self._sink is None:
            return 0
        removed = self._call("invalidate_candidate", self._sink.invalidate_candidate, candidate_id)
        self._logger.info("matches.invalidated", candidate_id=candidate_id, removed=removed)
        return removed

    def _rank_and_deliver(
        self,
        tracker: StageTracker,
        qualified: list[Qualified],
        scoring_fn: Callable[[Qualified], MatchResult],
        *,
        page: int,
        page_size: int | None,
        radius: float,
        tier: SubscriptionTier,
    ) -> SearchResponse:
        tracker.advance(Stage.QUALIFIED, qualified=len(qualified))
        if not qualified:
            tracker.deliver_empty()
            return SearchResponse(
                page=self._builder.paginate([], page=page, page_size=page_size),
                search_radius_used=radius,
                tier=tier,
                stages=list(tracker.history),
            )

        scored, skipped = self._builder.score_all(qualified, scoring_fn)
        tracker.advance(Stage.SCORED, scored=len(scored), skipped=len(skipped))

        ranked = self._builder.order(scored)
        tracker.advance(Stage.RANKED, ranked=len(ranked))

        result_page = self._builder.paginate(ranked, page=page, page_size=page_size)
        result_page.skipped = skipped
        tracker.advance(Stage.DELIVERED, returned=len(result_page.results))
        return SearchResponse(
            page=result_page,
            search_radius_used=radius,
            tier=tier,
            stages=list(tracker.history),
        )

    @staticmethod
    def _parse_search(
        model: type[SearchT],
        request: SearchT | Mapping[str, Any],
    ) -> tuple[SearchT, GeoPoint]:
        """Validate origin and radius as typed client errors, then the rest."""
        raw: Mapping[str, Any] = request.model_dump() if isinstance(request, model) else request
        origin = validate_coordinates(raw.get("latitude"), raw.get("longitude"))
        if raw.get("radius_km") is not None:
            RadiusPolicy.validate_radius(raw["radius_km"])
        return model.model_validate(request), origin

    def _load_job(self, job_id: str) -> JobPosting:
        raw = self._call("get_job", self._jobs.get_job, job_id)
        if raw is None:
            raise LookupError(f"Unknown job: {job_id!r}")
        return parse_record(JobPosting, raw)

    def _load_candidate(self, candidate_id: str) -> Candidate:
        raw = self._call("get_candidate", self._candidates.get_candidate, candidate_id)
        if raw is None:
            raise LookupError(f"Unknown candidate: {candidate_id!r}")
        return parse_record(Candidate, raw)

    def _call(self, operation: str, func: Callable[..., T], *args: Any) -> T:
        try:
            return func(*args)
        except RepositoryUnavailable:
            self._logger.error("repository.unavailable", operation=operation)
            raise
        except OSError as exc:
            self._logger.error("repository.unavailable", operation=operation, error=str(exc))
            raise RepositoryUnavailable(f"{operation} failed: {exc}") from exc
