from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from .common import GeoPoint, coerce_identifier, fold_coordinates

_LEADING_NUMBER = re.compile(r"\d+(?:\.\d+)?")


class JobType(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    FREELANCE = "freelance"
    INTERNSHIP = "internship"


class JobStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"
    EXPIRED = "expired"


class JobPosting(BaseModel):
    """Job posting projection consumed by the matching engine."""

    id: str
    employer_id: str | None = None
    title: str = ""
    description: str = ""
    location_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("location_name", "location_text"),
    )
    required_skill_ids: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("required_skill_ids", "skills"),
    )
    location: GeoPoint | None = None
    salary: float | None = Field(default=None, ge=0)
    salary_min: float | None = Field(default=None, ge=0)
    salary_max: float | None = Field(default=None, ge=0)
    job_type: JobType = JobType.FULL_TIME
    status: JobStatus = JobStatus.ACTIVE
    experience_required: float | None = Field(default=None, ge=0)
    verified: bool = Field(
        default=False,
        validation_alias=AliasChoices("verified", "employer_verified"),
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _fold_location(cls, data: Any) -> Any:
        return fold_coordinates(data, text_field="location_name")

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> str:
        return coerce_identifier(value)

    @field_validator("employer_id", mode="before")
    @classmethod
    def _normalize_employer_id(cls, value: Any) -> str | None:
        return None if value is None else coerce_identifier(value)

    @field_validator("required_skill_ids", mode="before")
    @classmethod
    def _normalize_skill_ids(cls, value: Any) -> list[str]:
        if value is None:
            return []
        ids: list[str] = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("skill_id", item.get("id"))
            ids.append(coerce_identifier(item))
        return ids

    @field_validator("experience_required", mode="before")
    @classmethod
    def _parse_experience(cls, value: Any) -> Any:
        # Free-text values such as "2-3 years" keep their leading figure.
        if isinstance(value, str):
            match = _LEADING_NUMBER.search(value)
            return float(match.group()) if match else None
        return value

    @property
    def is_matchable(self) -> bool:
        return self.status is JobStatus.ACTIVE

    @property
    def offer_floor(self) -> float | None:
        return self.salary_min if self.salary_min is not None else self.salary

    @property
    def offer_ceiling(self) -> float | None:
        """Highest salary the posting offers, if any is stated."""
        for value in (self.salary_max, self.salary, self.salary_min):
            if value is not None:
                return value
        return None
