from __future__ import annotations

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


class Role(str, Enum):
    ADMIN = "admin"
    EMPLOYER = "employer"
    JOB_SEEKER = "job_seeker"


class SubscriptionTier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"


class Availability(str, Enum):
    IMMEDIATE = "immediate"
    WITHIN_WEEK = "within_week"
    WITHIN_MONTH = "within_month"
    NOT_AVAILABLE = "not_available"


class ProficiencyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class CandidateSkill(BaseModel):
    """Skill held by a job seeker."""

    skill_id: str
    proficiency_level: ProficiencyLevel | None = None
    years_of_experience: float | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def _accept_bare_id(cls, data: Any) -> Any:
        if isinstance(data, (str, int)) and not isinstance(data, bool):
            return {"skill_id": data}
        return data

    @field_validator("skill_id", mode="before")
    @classmethod
    def _normalize_skill_id(cls, value: Any) -> str:
        return coerce_identifier(value)


class Candidate(BaseModel):
    """Job seeker projection consumed by the matching engine."""

    id: str
    role: Role = Role.JOB_SEEKER
    is_active: bool = True
    is_banned: bool = False
    skills: list[CandidateSkill] = Field(default_factory=list)
    location: GeoPoint | None = None
    area: str | None = None
    availability: Availability | None = None
    expected_salary: float | None = Field(default=None, ge=0)
    experience_years: float | None = Field(default=None, ge=0)
    verified: bool = Field(
        default=False,
        validation_alias=AliasChoices("verified", "exam_verified"),
    )
    subscription_tier: SubscriptionTier = Field(
        default=SubscriptionTier.FREE,
        validation_alias=AliasChoices("subscription_tier", "subscription_status"),
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _fold_location(cls, data: Any) -> Any:
        return fold_coordinates(data, text_field="area")

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> str:
        return coerce_identifier(value)

    @property
    def skill_ids(self) -> frozenset[str]:
        return frozenset(skill.skill_id for skill in self.skills)

    @property
    def years_of_experience(self) -> float:
        """Declared total experience, else the longest per-skill experience."""
        if self.experience_years is not None:
            return self.experience_years
        per_skill = [
            skill.years_of_experience
            for skill in self.skills
            if skill.years_of_experience is not None
        ]
        return max(per_skill, default=0.0)
