"""Shared schema building blocks."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """Latitude/longitude pair in decimal degrees."""

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    model_config = ConfigDict(extra="forbid", frozen=True)


def coerce_identifier(value: Any) -> str:
    """Normalize integer or string identifiers to a non-empty string."""
    if isinstance(value, bool) or value is None:
        raise ValueError("identifier is required")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    raise ValueError(f"invalid identifier {value!r}")


def fold_coordinates(data: Any, *, text_field: str) -> Any:
    """Accept flat ``latitude``/``longitude`` columns as a ``location`` point.

    Store rows carry a free-text ``location`` next to the coordinate columns;
    that text is moved to ``text_field``.
    """
    if not isinstance(data, dict):
        return data
    folded = dict(data)
    if isinstance(folded.get("location"), str):
        text = folded.pop("location")
        folded.setdefault(text_field, text)
    if "latitude" not in folded and "longitude" not in folded:
        return folded
    latitude = folded.pop("latitude", None)
    longitude = folded.pop("longitude", None)
    if "location" in folded:
        return folded
    if latitude is None or longitude is None:
        folded["location"] = None
    else:
        folded["location"] = {"latitude": latitude, "longitude": longitude}
    return folded
