"""Configuration management utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RadiusSettings(BaseSettings):
    """Tier radius caps, read from the environment."""

    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    free_search_radius_km: float = Field(default=10.0, gt=0)
    premium_search_radius_km: float = Field(default=100.0, gt=0)


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping; an empty document yields an empty mapping."""
    with path.open("r", encoding="utf-8") as handle:
        loaded = yaml.safe_load(handle) or {}
    if not isinstance(loaded, dict):
        raise ValueError(f"{path} must contain a YAML mapping")
    return loaded


__all__ = ["RadiusSettings", "load_yaml"]
