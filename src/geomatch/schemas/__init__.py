"""Pydantic schema definitions for marketplace records and search requests."""

from __future__ import annotations

from .candidate import (
    Availability,
    Candidate,
    CandidateSkill,
    ProficiencyLevel,
    Role,
    SubscriptionTier,
)
from .common import GeoPoint
from .job import JobPosting, JobStatus, JobType
from .search import (
    CandidateFilters,
    CandidateSearchRequest,
    JobFilters,
    JobSearchRequest,
)

__all__ = [
    "Availability",
    "Candidate",
    "CandidateFilters",
    "CandidateSearchRequest",
    "CandidateSkill",
    "GeoPoint",
    "JobFilters",
    "JobPosting",
    "JobSearchRequest",
    "JobStatus",
    "JobType",
    "ProficiencyLevel",
    "Role",
    "SubscriptionTier",
]
