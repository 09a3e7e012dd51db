from __future__ import annotations

import pytest

from geomatch.core import RadiusPolicy
from geomatch.errors import InvalidRadius
from geomatch.schemas import SubscriptionTier


def test_default_caps():
    policy = RadiusPolicy()
    assert policy.cap_for(SubscriptionTier.FREE) == 10
    assert policy.cap_for("premium") == 100


def test_absent_request_uses_tier_cap():
    policy = RadiusPolicy()
    assert policy.resolve_radius(None, SubscriptionTier.FREE) == 10
    assert policy.resolve_radius(None, SubscriptionTier.PREMIUM) == 100


def test_free_tier_request_of_500_is_clamped_to_10():
    policy = RadiusPolicy()
    assert policy.resolve_radius(500, SubscriptionTier.FREE) == 10


def test_smaller_request_is_honoured():
    policy = RadiusPolicy()
    assert policy.resolve_radius(5, SubscriptionTier.FREE) == 5
    assert policy.resolve_radius(42.5, SubscriptionTier.PREMIUM) == 42.5


@pytest.mark.parametrize("tier", list(SubscriptionTier))
@pytest.mark.parametrize("requested", [None, 1, 9.99, 10, 11, 100, 101, 10_000])
def test_resolved_radius_never_exceeds_cap(tier, requested):
    policy = RadiusPolicy()
    assert policy.resolve_radius(requested, tier) <= policy.cap_for(tier)


@pytest.mark.parametrize("requested", [0, -5, -0.1, "ten", True, float("nan")])
def test_non_positive_or_non_numeric_radius_is_rejected(requested):
    with pytest.raises(InvalidRadius):
        RadiusPolicy().resolve_radius(requested, SubscriptionTier.PREMIUM)


def test_configured_caps():
    policy = RadiusPolicy(free_km=25, premium_km=250)
    assert policy.resolve_radius(500, SubscriptionTier.FREE) == 25
    assert policy.resolve_radius(500, SubscriptionTier.PREMIUM) == 250


def test_invalid_configured_cap_rejected():
    with pytest.raises(InvalidRadius):
        RadiusPolicy(free_km=0)
