"""Subscription-tier radius policy."""

from __future__ import annotations

import math
from numbers import Real

from ..errors import InvalidRadius
from ..schemas import SubscriptionTier


class RadiusPolicy:
    """Clamp requested search radii to the caller's tier cap."""

    DEFAULT_CAPS: dict[SubscriptionTier, float] = {
        SubscriptionTier.FREE: 10,
        SubscriptionTier.PREMIUM: 100,
    }

    def __init__(
        self,
        *,
        free_km: float | None = None,
        premium_km: float | None = None,
    ) -> None:
        caps = self.DEFAULT_CAPS.copy()
        if free_km is not None:
            caps[SubscriptionTier.FREE] = self.validate_radius(free_km)
        if premium_km is not None:
            caps[SubscriptionTier.PREMIUM] = self.validate_radius(premium_km)
        self._caps = caps

    def cap_for(self, tier: SubscriptionTier | str) -> float:
        return self._caps[SubscriptionTier(tier)]

    def resolve_radius(
        self,
        requested_km: float | None,
        tier: SubscriptionTier | str,
    ) -> float:
        """Return the radius to search with; never above the tier cap."""
        cap = self.cap_for(tier)
        if requested_km is None:
            return cap
        return min(self.validate_radius(requested_km), cap)

    @staticmethod
    def validate_radius(radius: object) -> float:
        """Raise ``InvalidRadius`` unless ``radius`` is a positive number."""
        if (
            isinstance(radius, bool)
            or not isinstance(radius, Real)
            or math.isnan(radius)
            or radius <= 0
        ):
            raise InvalidRadius(radius)
        return radius
