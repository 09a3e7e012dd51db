"""Search request schemas exposed to the rest of the application."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .candidate import Availability
from .common import coerce_identifier
from .job import JobType


class CandidateFilters(BaseModel):
    """Hard filters for a candidate search."""

    skills: list[str] = Field(default_factory=list)
    availability: Availability | None = None
    verified_only: bool = False
    max_salary: float | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("skills", mode="before")
    @classmethod
    def _normalize_skills(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]
        return [coerce_identifier(item) for item in value]


class JobFilters(BaseModel):
    """Hard filters for a job search."""

    job_type: JobType | None = None
    min_salary: float | None = Field(default=None, ge=0)
    keyword: str | None = Field(default=None, max_length=100)

    model_config = ConfigDict(extra="forbid")


class _SearchRequest(BaseModel):
    latitude: float
    longitude: float
    radius_km: float | None = None
    page: int = 1
    page_size: int | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("latitude", "longitude", "radius_km", mode="before")
    @classmethod
    def _reject_bool(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("expected a number, got a boolean")
        return value


class CandidateSearchRequest(_SearchRequest):
    """Employer-side search for nearby job seekers."""

    filters: CandidateFilters = Field(default_factory=CandidateFilters)
    job_id: str | None = None


class JobSearchRequest(_SearchRequest):
    """Seeker-side search for nearby job postings."""

    filters: JobFilters = Field(default_factory=JobFilters)
    seeker_id: str | None = None
