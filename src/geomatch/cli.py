"""Typer CLI entrypoint for the matching engine."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from dependency_injector import providers
from pydantic import ValidationError

from .config import load_yaml
from .container import MatchingContainer, create_container
from .errors import GeoMatchError
from .logging import configure_logging
from .repositories import (
    InMemoryCandidateRepository,
    InMemoryJobRepository,
    InMemorySubscriptionDirectory,
    JsonlRecordLoader,
    JsonMatchStore,
)
from .schemas import Availability, JobType, SubscriptionTier
from .schemas.config import load_config

app = typer.Typer(help="Geo-aware job/candidate matching CLI.")

DEFAULT_CALLER_ID = "cli"


def _load_settings(config: Path | None) -> dict[str, Any]:
    if not config:
        return {}
    try:
        return load_config(load_yaml(config)).to_settings()
    except (ValueError, ValidationError) as exc:
        raise typer.BadParameter(str(exc), param_name="config") from exc


def _build_container(
    *,
    config: Path | None,
    log_level: str,
    candidates: Path | None = None,
    jobs: Path | None = None,
    tiers: dict[str, SubscriptionTier] | None = None,
    store: Path | None = None,
) -> MatchingContainer:
    configure_logging(log_level)
    container = create_container(settings=_load_settings(config))
    loader = JsonlRecordLoader()

    if candidates is not None:
        container.candidate_repository.override(
            providers.Object(InMemoryCandidateRepository(loader.load_lenient(candidates)))
        )
    if jobs is not None:
        container.job_repository.override(
            providers.Object(InMemoryJobRepository(loader.load_lenient(jobs)))
        )
    if tiers:
        container.subscription_lookup.override(
            providers.Object(InMemorySubscriptionDirectory(tiers))
        )
    if store is not None:
        container.match_sink.override(providers.Object(JsonMatchStore(store)))
    return container


def _emit(payload: Any, output: Path | None) -> None:
    rendered = json.dumps(payload, ensure_ascii=False, indent=2)
    if output is None:
        typer.echo(rendered)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(rendered, encoding="utf-8")


def _fail(exc: Exception) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    status = getattr(exc, "status_code", 500)
    raise typer.Exit(code=2 if 400 <= status < 500 else 1)


@app.command("search-candidates")
def search_candidates(
    candidates: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidates JSONL path."),
    latitude: float = typer.Option(..., "--lat", help="Search origin latitude."),
    longitude: float = typer.Option(..., "--lon", help="Search origin longitude."),
    radius: Optional[float] = typer.Option(None, help="Requested radius in km (clamped to the tier cap)."),
    skills: Optional[str] = typer.Option(None, help="Comma-separated skill ids (any match)."),
    availability: Optional[Availability] = typer.Option(None, help="Required availability."),
    verified_only: bool = typer.Option(False, "--verified-only", help="Only exam-verified candidates."),
    max_salary: Optional[float] = typer.Option(None, help="Expected salary ceiling."),
    job_id: Optional[str] = typer.Option(None, help="Score against this job instead of the filters."),
    jobs: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="Jobs JSONL path."),
    page: int = typer.Option(1, help="Page number (1-based)."),
    page_size: Optional[int] = typer.Option(None, help="Results per page."),
    tier: SubscriptionTier = typer.Option(SubscriptionTier.FREE, help="Caller subscription tier."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("WARNING", help="Log level for structured logging."),
    output: Optional[Path] = typer.Option(None, dir_okay=False, help="Write JSON here instead of stdout."),
) -> None:
    """Rank job seekers near a point."""
    container = _build_container(
        config=config,
        log_level=log_level,
        candidates=candidates,
        jobs=jobs,
        tiers={DEFAULT_CALLER_ID: tier},
    )
    request = {
        "latitude": latitude,
        "longitude": longitude,
        "radius_km": radius,
        "page": page,
        "page_size": page_size,
        "job_id": job_id,
        "filters": {
            "skills": skills,
            "availability": availability,
            "verified_only": verified_only,
            "max_salary": max_salary,
        },
    }
    try:
        response = container.orchestrator().search_candidates(request, caller_id=DEFAULT_CALLER_ID)
    except (GeoMatchError, LookupError) as exc:
        _fail(exc)
    _emit(response.to_dict(), output)


@app.command("search-jobs")
def search_jobs(
    jobs: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Jobs JSONL path."),
    latitude: float = typer.Option(..., "--lat", help="Search origin latitude."),
    longitude: float = typer.Option(..., "--lon", help="Search origin longitude."),
    radius: Optional[float] = typer.Option(None, help="Requested radius in km (clamped to the tier cap)."),
    job_type: Optional[JobType] = typer.Option(None, help="Required job type."),
    min_salary: Optional[float] = typer.Option(None, help="Minimum offered salary."),
    keyword: Optional[str] = typer.Option(None, help="Title, description or location keyword."),
    seeker_id: Optional[str] = typer.Option(None, help="Score against this seeker's profile."),
    candidates: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="Candidates JSONL path."),
    page: int = typer.Option(1, help="Page number (1-based)."),
    page_size: Optional[int] = typer.Option(None, help="Results per page."),
    tier: SubscriptionTier = typer.Option(SubscriptionTier.FREE, help="Caller subscription tier."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("WARNING", help="Log level for structured logging."),
    output: Optional[Path] = typer.Option(None, dir_okay=False, help="Write JSON here instead of stdout."),
) -> None:
    """Rank active job postings near a point."""
    container = _build_container(
        config=config,
        log_level=log_level,
        candidates=candidates,
        jobs=jobs,
        tiers={DEFAULT_CALLER_ID: tier},
    )
    request = {
        "latitude": latitude,
        "longitude": longitude,
        "radius_km": radius,
        "page": page,
        "page_size": page_size,
        "seeker_id": seeker_id,
        "filters": {"job_type": job_type, "min_salary": min_salary, "keyword": keyword},
    }
    try:
        response = container.orchestrator().search_jobs(request, caller_id=DEFAULT_CALLER_ID)
    except (GeoMatchError, LookupError) as exc:
        _fail(exc)
    _emit(response.to_dict(), output)


@app.command("match-job")
def match_job(
    job_id: str = typer.Option(..., help="Job to compute matches for."),
    jobs: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Jobs JSONL path."),
    candidates: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidates JSONL path."),
    store: Path = typer.Option(..., dir_okay=False, resolve_path=True, help="Match store JSON path."),
    employer_tier: SubscriptionTier = typer.Option(SubscriptionTier.FREE, help="Employer subscription tier."),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: str = typer.Option("INFO", help="Log level for structured logging."),
) -> None:
    """Compute and store the top candidate matches for a job."""
    container = _build_container(
        config=config,
        log_level=log_level,
        candidates=candidates,
        jobs=jobs,
        store=store,
    )
    orchestrator = container.orchestrator()
    try:
        raw_job = container.job_repository().get_job(job_id)
        employer_id = (raw_job or {}).get("employer_id")
        if employer_id is not None:
            container.subscription_lookup.override(
                providers.Object(InMemorySubscriptionDirectory({str(employer_id): employer_tier}))
            )
            orchestrator = container.orchestrator()
        results = orchestrator.match_job(job_id)
    except (GeoMatchError, LookupError) as exc:
        _fail(exc)
    typer.echo(f"Stored {len(results)} matches for job {job_id} in {store}.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
