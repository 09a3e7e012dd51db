from __future__ import annotations

import pytest
from pydantic import ValidationError

from geomatch.core import MatchScorer, RadiusPolicy, RankedResultBuilder
from geomatch.errors import InvalidCoordinates, InvalidRadius, RepositoryUnavailable
from geomatch.pipeline import MatchOrchestrator, Stage
from geomatch.repositories import (
    InMemoryCandidateRepository,
    InMemoryJobRepository,
    InMemoryMatchStore,
    InMemorySubscriptionDirectory,
)
from geomatch.schemas import CandidateSearchRequest

BANGALORE = (12.9716, 77.5946)
KM_PER_DEGREE = 111.19


def north_of_origin(km: float) -> dict:
    return {"latitude": BANGALORE[0] + km / KM_PER_DEGREE, "longitude": BANGALORE[1]}


def candidate_row(candidate_id: str, km: float, **overrides) -> dict:
    row = {
        "id": candidate_id,
        "role": "job_seeker",
        "skills": ["python", "sql"],
        "availability": "immediate",
        "expected_salary": 30_000,
        "experience_years": 3,
        **north_of_origin(km),
    }
    row.update(overrides)
    return row


def job_row(job_id: str, km: float, **overrides) -> dict:
    row = {
        "id": job_id,
        "employer_id": "E-1",
        "title": "Data Engineer",
        "description": "Pipelines in python",
        "required_skill_ids": ["python", "sql"],
        "salary_max": 40_000,
        "experience_required": 2,
        **north_of_origin(km),
    }
    row.update(overrides)
    return row


class RecordingCandidateRepository(InMemoryCandidateRepository):
    def __init__(self, records=()) -> None:
        super().__init__(records)
        self.calls: list[tuple] = []

    def find_candidates_in_box(self, center_lat, center_lon, radius_km, hard_filters):
        self.calls.append((center_lat, center_lon, radius_km, dict(hard_filters)))
        return super().find_candidates_in_box(center_lat, center_lon, radius_km, hard_filters)


class BrokenJobRepository(InMemoryJobRepository):
    def find_jobs_in_box(self, center_lat, center_lon, radius_km, hard_filters):
        raise ConnectionError("database is down")


def build_orchestrator(
    *,
    candidates=(),
    jobs=(),
    tiers=None,
    sink=None,
    top_n: int = 50,
) -> MatchOrchestrator:
    candidate_repo = (
        candidates
        if isinstance(candidates, InMemoryCandidateRepository)
        else InMemoryCandidateRepository(candidates)
    )
    job_repo = jobs if isinstance(jobs, InMemoryJobRepository) else InMemoryJobRepository(jobs)
    return MatchOrchestrator(
        candidates=candidate_repo,
        jobs=job_repo,
        subscriptions=InMemorySubscriptionDirectory(tiers or {}),
        sink=sink,
        radius_policy=RadiusPolicy(),
        scorer=MatchScorer(),
        builder=RankedResultBuilder(),
        top_n=top_n,
    )


def search_at_origin(**extra) -> dict:
    return {"latitude": BANGALORE[0], "longitude": BANGALORE[1], **extra}


def test_free_tier_radius_is_clamped():
    orchestrator = build_orchestrator(
        candidates=[candidate_row("near", 2), candidate_row("mid", 40), candidate_row("far", 300)],
        tiers={"emp-free": "free", "emp-premium": "premium"},
    )

    free = orchestrator.search_candidates(search_at_origin(radius_km=500), caller_id="emp-free")
    premium = orchestrator.search_candidates(search_at_origin(radius_km=500), caller_id="emp-premium")

    assert free.search_radius_used == 10
    assert [r.counterpart_id for r in free.results] == ["near"]
    assert premium.search_radius_used == 100
    assert [r.counterpart_id for r in premium.results] == ["near", "mid"]
    assert all(r.distance_km <= 100 for r in premium.results)


def test_anonymous_caller_gets_free_tier():
    orchestrator = build_orchestrator(candidates=[candidate_row("near", 2)])

    response = orchestrator.search_candidates(search_at_origin())

    assert response.tier.value == "free"
    assert response.search_radius_used == 10


@pytest.mark.parametrize(
    ("request_extra", "error"),
    [
        ({"radius_km": 0}, InvalidRadius),
        ({"radius_km": -5}, InvalidRadius),
        ({"latitude": 100.0}, InvalidCoordinates),
        ({"longitude": -181.0}, InvalidCoordinates),
        ({"latitude": "north"}, InvalidCoordinates),
        ({"latitude": True}, InvalidCoordinates),
        ({"longitude": None}, InvalidCoordinates),
        ({"radius_km": "far"}, InvalidRadius),
        ({"radius_km": True}, InvalidRadius),
    ],
)
def test_invalid_input_is_rejected_before_repository_access(request_extra, error):
    repository = RecordingCandidateRepository([candidate_row("near", 2)])
    orchestrator = build_orchestrator(candidates=repository)

    with pytest.raises(error):
        orchestrator.search_candidates(search_at_origin(**request_extra))

    assert repository.calls == []


def test_hard_filters_reach_the_repository():
    repository = RecordingCandidateRepository([candidate_row("near", 2)])
    orchestrator = build_orchestrator(candidates=repository)

    orchestrator.search_candidates(
        search_at_origin(filters={"skills": "python", "verified_only": True})
    )

    (_, _, radius_km, hard_filters), = repository.calls
    assert radius_km == 10
    assert hard_filters["skills"] == ["python"]
    assert hard_filters["verified_only"] is True


def test_record_without_id_is_skipped():
    broken = candidate_row("x", 1)
    del broken["id"]
    orchestrator = build_orchestrator(candidates=[candidate_row("a", 1), broken, candidate_row("b", 3)])

    response = orchestrator.search_candidates(search_at_origin())

    assert [r.counterpart_id for r in response.results] == ["a", "b"]
    assert response.total == 2


def test_search_candidates_against_a_job():
    orchestrator = build_orchestrator(
        candidates=[
            candidate_row("generalist", 1, skills=["excel"]),
            candidate_row("specialist", 4),
        ],
        jobs=[job_row("J-1", 0)],
    )

    response = orchestrator.search_candidates(search_at_origin(job_id="J-1"))

    assert [r.counterpart_id for r in response.results] == ["specialist", "generalist"]
    assert response.results[0].subject_id == "J-1"
    assert response.results[0].breakdown.skill == 1.0


def test_unknown_job_raises_lookup_error():
    orchestrator = build_orchestrator()
    with pytest.raises(LookupError):
        orchestrator.search_candidates(search_at_origin(job_id="missing"))


def test_search_jobs_for_seeker():
    orchestrator = build_orchestrator(
        candidates=[candidate_row("S-1", 0, expected_salary=45_000)],
        jobs=[
            job_row("closed", 1, status="closed"),
            job_row("underpaid", 2, salary_max=20_000),
            job_row("good", 3),
            job_row("remote-ish", 60),
        ],
    )

    response = orchestrator.search_jobs(search_at_origin(seeker_id="S-1"))

    assert [r.counterpart_id for r in response.results] == ["good", "underpaid"]
    assert response.results[0].subject_id == "S-1"
    assert response.results[0].breakdown.salary < 1.0


def test_search_jobs_filters():
    orchestrator = build_orchestrator(
        jobs=[
            job_row("full", 1),
            job_row("part", 1, job_type="part_time"),
            job_row("chef", 1, title="Chef", description="Kitchen"),
        ]
    )

    by_type = orchestrator.search_jobs(search_at_origin(filters={"job_type": "part_time"}))
    by_keyword = orchestrator.search_jobs(search_at_origin(filters={"keyword": "kitchen"}))
    by_salary = orchestrator.search_jobs(search_at_origin(filters={"min_salary": 50_000}))

    assert [r.counterpart_id for r in by_type.results] == ["part"]
    assert [r.counterpart_id for r in by_keyword.results] == ["chef"]
    assert by_salary.results == []


def test_repository_failure_is_wrapped():
    orchestrator = build_orchestrator(jobs=BrokenJobRepository())

    with pytest.raises(RepositoryUnavailable) as excinfo:
        orchestrator.search_jobs(search_at_origin())

    assert excinfo.value.retryable is True
    assert excinfo.value.status_code == 503


def test_empty_search_short_circuits():
    orchestrator = build_orchestrator(candidates=[candidate_row("far", 50)])

    response = orchestrator.search_candidates(search_at_origin(page=3))

    assert response.results == []
    assert response.total == 0
    assert response.to_dict()["search_radius_used"] == 10
    assert response.stages == [
        Stage.IDLE,
        Stage.RADIUS_RESOLVED,
        Stage.FETCHED,
        Stage.QUALIFIED,
        Stage.DELIVERED,
    ]


def test_full_run_visits_every_stage_in_order():
    orchestrator = build_orchestrator(candidates=[candidate_row("near", 1)])

    response = orchestrator.search_candidates(search_at_origin())

    assert response.stages == list(Stage)


def test_pagination_metadata():
    orchestrator = build_orchestrator(
        candidates=[candidate_row(f"C-{idx:02d}", idx * 0.3) for idx in range(25)]
    )

    response = orchestrator.search_candidates(search_at_origin(page=2, page_size=10))
    payload = response.to_dict()

    assert payload["total"] == 25
    assert payload["total_pages"] == 3
    assert payload["has_next_page"] is True
    assert payload["has_prev_page"] is True
    assert [r["counterpart_id"] for r in payload["results"]] == [f"C-{idx:02d}" for idx in range(10, 20)]


def test_match_job_persists_top_matches():
    sink = InMemoryMatchStore()
    orchestrator = build_orchestrator(
        candidates=[candidate_row(f"C-{idx}", idx * 2) for idx in range(6)]
        + [candidate_row("no-skill", 1, skills=["excel"])],
        jobs=[job_row("J-1", 0)],
        tiers={"E-1": "premium"},
        sink=sink,
        top_n=3,
    )

    results = orchestrator.match_job("J-1")

    assert [r.counterpart_id for r in results] == ["C-0", "C-1", "C-2"]
    stored = sink.matches_for_job("J-1")
    assert [row["counterpart_id"] for row in stored] == ["C-0", "C-1", "C-2"]


def test_match_job_is_idempotent():
    sink = InMemoryMatchStore()
    orchestrator = build_orchestrator(
        candidates=[candidate_row("C-1", 1), candidate_row("C-2", 2)],
        jobs=[job_row("J-1", 0)],
        sink=sink,
    )

    orchestrator.match_job("J-1")
    first = [(row["counterpart_id"], row["score"]) for row in sink.matches_for_job("J-1")]
    orchestrator.match_job("J-1")
    second = [(row["counterpart_id"], row["score"]) for row in sink.matches_for_job("J-1")]

    assert first == second
    assert len(second) == 2


def test_match_job_uses_employer_radius():
    sink = InMemoryMatchStore()
    orchestrator = build_orchestrator(
        candidates=[candidate_row("near", 5), candidate_row("far", 50)],
        jobs=[job_row("J-1", 0)],
        sink=sink,
    )

    results = orchestrator.match_job("J-1")

    assert [r.counterpart_id for r in results] == ["near"]


def test_inactive_job_is_not_matched():
    sink = InMemoryMatchStore()
    orchestrator = build_orchestrator(
        candidates=[candidate_row("C-1", 1)],
        jobs=[job_row("J-1", 0, status="draft")],
        sink=sink,
    )

    assert orchestrator.match_job("J-1") == []
    assert sink.matches_for_job("J-1") == []


def test_invalidation_hooks():
    sink = InMemoryMatchStore()
    orchestrator = build_orchestrator(
        candidates=[candidate_row("C-1", 1), candidate_row("C-2", 2)],
        jobs=[job_row("J-1", 0)],
        sink=sink,
    )
    orchestrator.match_job("J-1")

    assert orchestrator.on_candidate_updated("C-1") == 1
    assert [row["counterpart_id"] for row in sink.matches_for_job("J-1")] == ["C-2"]
    assert orchestrator.invalidate_job("J-1") == 1
    assert sink.matches_for_job("J-1") == []


def test_invalidation_without_sink_is_a_no_op():
    orchestrator = build_orchestrator()
    assert orchestrator.invalidate_job("J-1") == 0
    assert orchestrator.on_candidate_updated("C-1") == 0


@pytest.mark.parametrize(
    ("request_extra", "error"),
    [
        ({"latitude": "north"}, InvalidCoordinates),
        ({"radius_km": "far"}, InvalidRadius),
        ({"radius_km": False}, InvalidRadius),
    ],
)
def test_job_search_rejects_non_numeric_input(request_extra, error):
    orchestrator = build_orchestrator(jobs=BrokenJobRepository())

    with pytest.raises(error):
        orchestrator.search_jobs(search_at_origin(**request_extra))


def test_boolean_radius_is_rejected_on_request_model():
    with pytest.raises(ValidationError):
        CandidateSearchRequest(latitude=BANGALORE[0], longitude=BANGALORE[1], radius_km=True)


def test_out_of_range_record_coordinates_are_skipped():
    orchestrator = build_orchestrator(
        candidates=[candidate_row("a", 1), candidate_row("bad", 0, latitude=95.0)]
    )

    response = orchestrator.search_candidates(search_at_origin())

    assert [r.counterpart_id for r in response.results] == ["a"]
