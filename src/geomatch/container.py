"""Dependency injection container for the matching engine."""

from __future__ import annotations

from dependency_injector import containers, providers

from .background import BackgroundMatcher
from .config import RadiusSettings
from .core import (
    CandidateQualifier,
    JobQualifier,
    MatchScorer,
    RadiusPolicy,
    RankedResultBuilder,
)
from .core.evaluators import (
    AvailabilityEvaluator,
    ExperienceEvaluator,
    LocationEvaluator,
    SalaryConfig,
    SalaryEvaluator,
    SkillOverlapEvaluator,
)
from .pipeline import MatchOrchestrator
from .repositories import (
    InMemoryCandidateRepository,
    InMemoryJobRepository,
    InMemoryMatchStore,
    InMemorySubscriptionDirectory,
)


def build_radius_policy(
    settings: RadiusSettings,
    free_km: float | None = None,
    premium_km: float | None = None,
) -> RadiusPolicy:
    """Radius caps from the environment, overridden by explicit config values."""
    return RadiusPolicy(
        free_km=free_km if free_km is not None else settings.free_search_radius_km,
        premium_km=premium_km if premium_km is not None else settings.premium_search_radius_km,
    )


class MatchingContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    config = providers.Configuration()

    radius_settings = providers.Singleton(RadiusSettings)

    radius_policy = providers.Singleton(
        build_radius_policy,
        settings=radius_settings,
        free_km=config.radius.free_km,
        premium_km=config.radius.premium_km,
    )

    skill_evaluator = providers.Singleton(SkillOverlapEvaluator)
    location_evaluator = providers.Singleton(LocationEvaluator)
    salary_evaluator = providers.Singleton(SalaryEvaluator)
    availability_evaluator = providers.Singleton(AvailabilityEvaluator)
    experience_evaluator = providers.Singleton(ExperienceEvaluator)

    evaluators = providers.List(
        skill_evaluator,
        location_evaluator,
        salary_evaluator,
        availability_evaluator,
        experience_evaluator,
    )

    match_scorer = providers.Singleton(
        MatchScorer,
        evaluators=evaluators,
        score_weights=config.scoring.weights,
    )

    result_builder = providers.Singleton(RankedResultBuilder)
    candidate_qualifier = providers.Singleton(CandidateQualifier)
    job_qualifier = providers.Singleton(JobQualifier)

    candidate_repository = providers.Singleton(InMemoryCandidateRepository)
    job_repository = providers.Singleton(InMemoryJobRepository)
    subscription_lookup = providers.Singleton(InMemorySubscriptionDirectory)
    match_sink = providers.Singleton(InMemoryMatchStore)

    orchestrator = providers.Factory(
        MatchOrchestrator,
        candidates=candidate_repository,
        jobs=job_repository,
        subscriptions=subscription_lookup,
        sink=match_sink,
        radius_policy=radius_policy,
        scorer=match_scorer,
        builder=result_builder,
        candidate_qualifier=candidate_qualifier,
        job_qualifier=job_qualifier,
    )

    background_matcher = providers.Singleton(
        BackgroundMatcher,
        orchestrator=orchestrator,
    )


def create_container(*, settings: dict | None = None) -> MatchingContainer:
    """Instantiate container with optional overrides."""

    container = MatchingContainer()

    if not settings:
        return container

    container.config.override(settings)

    scoring_settings = settings.get("scoring", {}) if isinstance(settings, dict) else {}
    if "salary_reference_floor" in scoring_settings:
        salary_config = SalaryConfig(reference_floor=scoring_settings["salary_reference_floor"])
        container.salary_evaluator.override(
            providers.Singleton(SalaryEvaluator, config=salary_config)
        )

    ranking_settings = settings.get("ranking", {}) if isinstance(settings, dict) else {}
    if ranking_settings:
        container.result_builder.override(
            providers.Singleton(RankedResultBuilder, **ranking_settings)
        )

    matching_settings = settings.get("matching", {}) if isinstance(settings, dict) else {}
    if "top_n" in matching_settings:
        container.orchestrator.add_kwargs(top_n=matching_settings["top_n"])
    if "background_workers" in matching_settings:
        container.background_matcher.add_kwargs(
            max_workers=matching_settings["background_workers"]
        )

    return container
