"""Repository contracts consumed by the engine and in-process implementations."""

from __future__ import annotations

import json
import math
import threading
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol, Sequence, runtime_checkable

import pendulum
import structlog
from pydantic import BaseModel

from .core.geo import bounding_box, haversine_km
from .core.scoring import MatchResult
from .schemas import GeoPoint, SubscriptionTier

Record = dict[str, Any]

logger = structlog.get_logger(__name__)


@runtime_checkable
class CandidateRepository(Protocol):
    def find_candidates_in_box(
        self,
        center_lat: float,
        center_lon: float,
        radius_km: float,
        hard_filters: Mapping[str, Any],
    ) -> list[Record]:
        """Return candidate rows with coordinates and a ``distance_km`` column."""

    def get_candidate(self, candidate_id: str) -> Record | None:
        """Return one candidate row or ``None``."""


@runtime_checkable
class JobRepository(Protocol):
    def find_jobs_in_box(
        self,
        center_lat: float,
        center_lon: float,
        radius_km: float,
        hard_filters: Mapping[str, Any],
    ) -> list[Record]:
        """Return job rows with coordinates and a ``distance_km`` column."""

    def get_job(self, job_id: str) -> Record | None:
        """Return one job row or ``None``."""


@runtime_checkable
class SubscriptionLookup(Protocol):
    def tier_of(self, user_id: str | None) -> SubscriptionTier:
        """Return the subscription tier of a user."""


@runtime_checkable
class MatchSink(Protocol):
    def persist_matches(self, job_id: str, results: Sequence[MatchResult]) -> int:
        """Upsert results keyed by ``(job_id, counterpart_id)``; return rows written."""

    def invalidate_job(self, job_id: str) -> int:
        """Drop stored matches of a job; return rows removed."""

    def invalidate_candidate(self, candidate_id: str) -> int:
        """Drop stored matches naming a candidate; return rows removed."""


def _as_record(item: Mapping[str, Any] | BaseModel) -> Record:
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json")
    return dict(item)


def _coordinates(record: Mapping[str, Any]) -> tuple[Any, Any] | None:
    location = record.get("location")
    if isinstance(location, Mapping):
        lat, lon = location.get("latitude"), location.get("longitude")
    else:
        lat, lon = record.get("latitude"), record.get("longitude")
    if lat is None or lon is None:
        return None
    return lat, lon


class _InMemoryGeoTable:
    """Linear bounding-box scan over rows held in memory."""

    def __init__(self, records: Iterable[Mapping[str, Any] | BaseModel] = ()) -> None:
        self._rows: list[Record] = [_as_record(item) for item in records]
        self._lock = threading.Lock()

    def add(self, record: Mapping[str, Any] | BaseModel) -> None:
        with self._lock:
            self._rows.append(_as_record(record))

    def get(self, record_id: str) -> Record | None:
        with self._lock:
            rows = list(self._rows)
        for row in rows:
            if str(row.get("id")) == str(record_id):
                return dict(row)
        return None

    def within(self, center_lat: float, center_lon: float, radius_km: float) -> list[Record]:
        center = GeoPoint(latitude=center_lat, longitude=center_lon)
        min_lat, max_lat, min_lon, max_lon = bounding_box(center, radius_km)
        with self._lock:
            rows = list(self._rows)

        found: list[Record] = []
        for row in rows:
            coords = _coordinates(row)
            if coords is None:
                continue
            try:
                lat, lon = float(coords[0]), float(coords[1])
            except (TypeError, ValueError):
                lat = lon = math.nan
            if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
                # Left for qualification to report as an invalid record.
                found.append(dict(row))
                continue
            if not (min_lat <= lat <= max_lat and min_lon <= lon <= max_lon):
                continue
            km = haversine_km(center_lat, center_lon, lat, lon)
            if km <= radius_km:
                found.append({**row, "distance_km": km})
        found.sort(key=lambda row: row.get("distance_km", float("inf")))
        return found


class InMemoryCandidateRepository(_InMemoryGeoTable):
    """Candidate rows held in memory; hard filters are left to qualification."""

    def find_candidates_in_box(
        self,
        center_lat: float,
        center_lon: float,
        radius_km: float,
        hard_filters: Mapping[str, Any],
    ) -> list[Record]:
        return self.within(center_lat, center_lon, radius_km)

    def get_candidate(self, candidate_id: str) -> Record | None:
        return self.get(candidate_id)


class InMemoryJobRepository(_InMemoryGeoTable):
    """Job rows held in memory; hard filters are left to qualification."""

    def find_jobs_in_box(
        self,
        center_lat: float,
        center_lon: float,
        radius_km: float,
        hard_filters: Mapping[str, Any],
    ) -> list[Record]:
        return self.within(center_lat, center_lon, radius_km)

    def get_job(self, job_id: str) -> Record | None:
        return self.get(job_id)


class InMemorySubscriptionDirectory:
    """Tier lookup backed by a mapping; unknown and anonymous users are free."""

    def __init__(self, tiers: Mapping[str, SubscriptionTier | str] | None = None) -> None:
        self._tiers = {
            str(user_id): SubscriptionTier(tier) for user_id, tier in (tiers or {}).items()
        }

    def tier_of(self, user_id: str | None) -> SubscriptionTier:
        if user_id is None:
            return SubscriptionTier.FREE
        return self._tiers.get(str(user_id), SubscriptionTier.FREE)


def _stored_order(row: Mapping[str, Any]) -> tuple[float, float, bool, str]:
    return (
        -float(row["score"]),
        float(row["distance_km"]),
        not row.get("counterpart_verified", False),
        str(row["counterpart_id"]),
    )


class InMemoryMatchStore:
    """Match rows keyed by ``(job_id, counterpart_id)``."""

    def __init__(self) -> None:
        self._rows: dict[tuple[str, str], Record] = {}
        self._lock = threading.Lock()

    def persist_matches(self, job_id: str, results: Sequence[MatchResult]) -> int:
        computed_at = pendulum.now("UTC").to_iso8601_string()
        with self._lock:
            for result in results:
                row = result.to_dict()
                row["job_id"] = str(job_id)
                row["computed_at"] = computed_at
                self._rows[(str(job_id), result.counterpart_id)] = row
            self._flush()
        return len(results)

    def matches_for_job(self, job_id: str) -> list[Record]:
        with self._lock:
            rows = [dict(row) for (jid, _), row in self._rows.items() if jid == str(job_id)]
        return sorted(rows, key=_stored_order)

    def invalidate_job(self, job_id: str) -> int:
        return self._remove(lambda key: key[0] == str(job_id))

    def invalidate_candidate(self, candidate_id: str) -> int:
        return self._remove(lambda key: key[1] == str(candidate_id))

    def _remove(self, predicate: Any) -> int:
        with self._lock:
            doomed = [key for key in self._rows if predicate(key)]
            for key in doomed:
                del self._rows[key]
            if doomed:
                self._flush()
        return len(doomed)

    def _flush(self) -> None:
        """Hook for persistent subclasses; called with the lock held."""


class JsonMatchStore(InMemoryMatchStore):
    """Match store persisted to a single JSON document."""

    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if self._path.exists():
            raw_text = self._path.read_text(encoding="utf-8").strip()
            for row in json.loads(raw_text) if raw_text else []:
                self._rows[(str(row["job_id"]), str(row["counterpart_id"]))] = row

    def _flush(self) -> None:
        payload = sorted(self._rows.values(), key=lambda row: (row["job_id"], *_stored_order(row)))
        self._path.write_text(
            json.dumps(payload, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


class RecordLoadError(ValueError):
    """Raised when a JSONL record file contains unreadable lines."""

    def __init__(self, errors: list[str], partial: list[Record]):
        super().__init__("Record loading failed")
        self.errors = errors
        self.partial = partial

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"Record loading failed: {self.errors}"


class JsonlRecordLoader:
    """Load raw records, one JSON object per line."""

    def load(self, path: Path) -> list[Record]:
        records: list[Record] = []
        errors: list[str] = []
        with path.open("r", encoding="utf-8") as handle:
            for idx, line in enumerate(handle, start=1):
                raw = line.strip()
                if not raw:
                    continue
                try:
                    record = json.loads(raw)
                except json.JSONDecodeError as exc:
                    errors.append(f"line {idx}: invalid JSON ({exc})")
                    continue
                if not isinstance(record, dict):
                    errors.append(f"line {idx}: expected an object")
                    continue
                records.append(record)
        if errors:
            raise RecordLoadError(errors, records)
        return records

    def load_lenient(self, path: Path) -> list[Record]:
        """Load what can be read and log the rest."""
        try:
            return self.load(path)
        except RecordLoadError as exc:
            logger.warning("records.partial_load", path=str(path), errors=exc.errors)
            return exc.partial
