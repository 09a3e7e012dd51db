"""Proximity evaluation."""

from __future__ import annotations

from typing import Any

from ...schemas import Candidate


class LocationEvaluator:
    """Linear decay from 1.0 at the origin to 0.0 at the search radius."""

    method = "location"

    def evaluate(self, candidate: Candidate, context: dict[str, Any]) -> dict[str, Any]:
        distance_km = float(context["distance_km"])
        radius_km = float(context["radius_km"])
        if radius_km <= 0:
            score = 1.0 if distance_km <= 0 else 0.0
        else:
            score = min(1.0, max(0.0, 1.0 - distance_km / radius_km))

        return {
            "method": self.method,
            "scores": {"location": score},
            "metadata": {"distance_km": distance_km, "radius_km": radius_km},
        }
