"""Error taxonomy for the matching engine."""

from __future__ import annotations

from typing import Any


class GeoMatchError(Exception):
    """Base class for matching engine errors."""

    status_code: int = 500
    retryable: bool = False


class InvalidCoordinates(GeoMatchError, ValueError):
    """Latitude or longitude outside the valid range."""

    status_code = 400

    def __init__(self, latitude: Any, longitude: Any, message: str | None = None) -> None:
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(message or f"Invalid coordinates: ({latitude!r}, {longitude!r})")


class InvalidRadius(GeoMatchError, ValueError):
    """Requested radius is not a positive number."""

    status_code = 400

    def __init__(self, radius: Any) -> None:
        self.radius = radius
        super().__init__(f"Radius must be a positive number, got {radius!r}")


class InvalidRecord(GeoMatchError, ValueError):
    """Source record is missing required identifiers or is malformed."""

    def __init__(self, reason: str, *, record_id: Any = None) -> None:
        self.reason = reason
        self.record_id = record_id
        super().__init__(f"Invalid record {record_id!r}: {reason}")


class RepositoryUnavailable(GeoMatchError, RuntimeError):
    """Backing store could not be reached."""

    status_code = 503
    retryable = True


__all__ = [
    "GeoMatchError",
    "InvalidCoordinates",
    "InvalidRadius",
    "InvalidRecord",
    "RepositoryUnavailable",
]
