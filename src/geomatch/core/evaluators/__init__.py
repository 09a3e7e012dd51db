"""Sub-score evaluators for the match scorer."""

from .availability import AvailabilityConfig, AvailabilityEvaluator
from .experience import ExperienceEvaluator
from .location import LocationEvaluator
from .salary import SalaryConfig, SalaryEvaluator
from .skill import SkillOverlapEvaluator

__all__ = [
    "AvailabilityConfig",
    "AvailabilityEvaluator",
    "ExperienceEvaluator",
    "LocationEvaluator",
    "SalaryConfig",
    "SalaryEvaluator",
    "SkillOverlapEvaluator",
]
