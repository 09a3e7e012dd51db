"""Hard pass/fail qualification of repository records."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Mapping, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from ..errors import InvalidRecord
from ..schemas import (
    Candidate,
    CandidateFilters,
    GeoPoint,
    JobFilters,
    JobPosting,
    Role,
)
from .geo import distance

ModelT = TypeVar("ModelT", bound=BaseModel)
EntityT = TypeVar("EntityT", Candidate, JobPosting)

logger = structlog.get_logger(__name__)


@dataclass(slots=True, frozen=True)
class Qualified(Generic[EntityT]):
    """Entity that passed every hard filter, with its distance to the origin."""

    entity: EntityT
    distance_km: float


def parse_record(model: type[ModelT], record: ModelT | Mapping[str, Any]) -> ModelT:
    """Validate a raw record, raising ``InvalidRecord`` when it is malformed."""
    if isinstance(record, model):
        return record
    record_id = record.get("id") if isinstance(record, Mapping) else None
    if not isinstance(record, Mapping):
        raise InvalidRecord(f"expected a mapping, got {type(record).__name__}")
    try:
        return model.model_validate(dict(record))
    except ValidationError as exc:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
        raise InvalidRecord(f"invalid fields: {', '.join(fields)}", record_id=record_id) from exc


Check = Callable[[Any, Any], bool]


class _Qualifier(Generic[EntityT]):
    model: type[EntityT]
    checks: tuple[tuple[str, Check], ...] = ()

    def qualify(
        self,
        records: Iterable[EntityT | Mapping[str, Any]],
        filters: Any,
        *,
        origin: GeoPoint,
        radius_km: float,
    ) -> list[Qualified[EntityT]]:
        """Apply the hard filters in order; the first failing one excludes."""
        qualified: list[Qualified[EntityT]] = []
        excluded: Counter[str] = Counter()

        for record in records:
            try:
                entity = parse_record(self.model, record)
            except InvalidRecord as exc:
                logger.warning(
                    "record.invalid",
                    kind=self.model.__name__,
                    record_id=exc.record_id,
                    reason=exc.reason,
                )
                excluded["invalid"] += 1
                continue

            failed = next(
                (name for name, check in self.checks if not check(entity, filters)),
                None,
            )
            if failed is not None:
                excluded[failed] += 1
                continue

            if entity.location is None:
                excluded["no_location"] += 1
                continue
            km = distance(origin, entity.location)
            if km > radius_km:
                excluded["distance"] += 1
                continue

            qualified.append(Qualified(entity=entity, distance_km=km))

        logger.debug(
            "qualification.done",
            kind=self.model.__name__,
            qualified=len(qualified),
            excluded=dict(excluded),
        )
        return qualified


def _candidate_active(candidate: Candidate, _: CandidateFilters) -> bool:
    return candidate.is_active and not candidate.is_banned


def _candidate_role(candidate: Candidate, _: CandidateFilters) -> bool:
    return candidate.role is Role.JOB_SEEKER


def _candidate_skills(candidate: Candidate, filters: CandidateFilters) -> bool:
    if not filters.skills:
        return True
    return not candidate.skill_ids.isdisjoint(filters.skills)


def _candidate_availability(candidate: Candidate, filters: CandidateFilters) -> bool:
    return filters.availability is None or candidate.availability == filters.availability


def _candidate_verified(candidate: Candidate, filters: CandidateFilters) -> bool:
    return not filters.verified_only or candidate.verified


def _candidate_salary(candidate: Candidate, filters: CandidateFilters) -> bool:
    if filters.max_salary is None or candidate.expected_salary is None:
        return True
    return candidate.expected_salary <= filters.max_salary


class CandidateQualifier(_Qualifier[Candidate]):
    """Qualify job seekers for an employer-side search."""

    model = Candidate
    checks = (
        ("inactive", _candidate_active),
        ("role", _candidate_role),
        ("skills", _candidate_skills),
        ("availability", _candidate_availability),
        ("verified", _candidate_verified),
        ("salary", _candidate_salary),
    )


def _job_active(job: JobPosting, _: JobFilters) -> bool:
    return job.is_matchable


def _job_type(job: JobPosting, filters: JobFilters) -> bool:
    return filters.job_type is None or job.job_type == filters.job_type


def _job_min_salary(job: JobPosting, filters: JobFilters) -> bool:
    if filters.min_salary is None:
        return True
    ceiling = job.offer_ceiling
    return ceiling is not None and ceiling >= filters.min_salary


def _job_keyword(job: JobPosting, filters: JobFilters) -> bool:
    keyword = (filters.keyword or "").strip().lower()
    if not keyword:
        return True
    haystacks = (job.title, job.description, job.location_name or "")
    return any(keyword in text.lower() for text in haystacks)


class JobQualifier(_Qualifier[JobPosting]):
    """Qualify job postings for a seeker-side search."""

    model = JobPosting
    checks = (
        ("inactive", _job_active),
        ("job_type", _job_type),
        ("salary", _job_min_salary),
        ("keyword", _job_keyword),
    )


__all__ = [
    "CandidateQualifier",
    "JobQualifier",
    "Qualified",
    "parse_record",
]
