"""Pydantic configuration schema for CLI YAML input."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

WEIGHT_KEYS = ("skill", "location", "salary", "availability", "experience")


class RadiusConfig(BaseModel):
    free_km: float | None = Field(default=None, gt=0)
    premium_km: float | None = Field(default=None, gt=0)

    model_config = ConfigDict(extra="forbid")


class ScoringConfig(BaseModel):
    weights: dict[str, float] | None = None
    salary_reference_floor: float | None = Field(default=None, gt=0)

    model_config = ConfigDict(extra="forbid")

    @field_validator("weights")
    @classmethod
    def _known_weight_keys(cls, value: dict[str, float] | None) -> dict[str, float] | None:
        if value is None:
            return value
        unknown = sorted(set(value) - set(WEIGHT_KEYS))
        if unknown:
            raise ValueError(f"Unknown score weights: {unknown}")
        return value


class RankingConfig(BaseModel):
    default_page_size: int | None = Field(default=None, ge=1)
    max_page_size: int | None = Field(default=None, ge=1)
    scoring_workers: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


class MatchingConfig(BaseModel):
    top_n: int | None = Field(default=None, ge=1)
    background_workers: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    radius: RadiusConfig = Field(default_factory=RadiusConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)

    model_config = ConfigDict(extra="forbid")

    def to_settings(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        for section in ("radius", "scoring", "ranking", "matching"):
            values = getattr(self, section).model_dump(exclude_none=True)
            if values:
                settings[section] = values
        return settings


def load_config(raw: Any) -> AppConfig:
    if not isinstance(raw, dict):
        raise ValidationError.from_exception_data(
            "AppConfig",
            [{"type": "dict_type", "loc": ("config",), "input": raw}],
        )
    return AppConfig.model_validate(raw)

