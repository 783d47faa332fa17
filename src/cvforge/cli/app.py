from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
import uvicorn

from cvforge.api.app import create_app
from cvforge.config import get_settings
from cvforge.core.orchestrator import ApplicationOrchestrator
from cvforge.db.init import init_database
from cvforge.db.repositories import Repository
from cvforge.db.session import SessionLocal
from cvforge.errors import FetchError, MissingCredentialError
from cvforge.llm.availability import available_models
from cvforge.llm.catalog import display_name, provider_for
from cvforge.logging_config import configure_logging
from cvforge.types import CandidateProfile

app = typer.Typer(help="CVForge CLI")
settings_app = typer.Typer(help="Per-user provider settings")

app.add_typer(settings_app, name="settings")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level")) -> None:
    if verbose:
        configure_logging("DEBUG")


@app.command("init")
def init_cmd(user: str | None = typer.Option(None, "--user", help="Also create this user")) -> None:
    """Initialize database and directories."""
    configure_logging()
    result = init_database()
    if user:
        with SessionLocal() as db:
            repo = Repository(db)
            if repo.get_user(user) is None:
                repo.create_user(user)
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@app.command("fetch")
def fetch_cmd(url: str = typer.Option(..., "--url")) -> None:
    """Fetch a job posting and print it as JSON."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        try:
            job = ApplicationOrchestrator(db).fetch_job_details(url)
        except FetchError as exc:
            raise typer.BadParameter(str(exc), param_hint="--url") from exc
        typer.echo(job.model_dump_json(indent=2))


@app.command("generate")
def generate_cmd(
    user: str = typer.Option(..., "--user"),
    provider: str = typer.Option(..., "--provider"),
    url: str = typer.Option(..., "--url"),
    model: str | None = typer.Option(None, "--model"),
    profile_file: Path | None = typer.Option(None, "--profile", exists=True, readable=True),
    save: bool = typer.Option(False, "--save"),
) -> None:
    """Fetch a job, then generate a cover letter and a tailored résumé for it."""
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        orchestrator = ApplicationOrchestrator(db)
        if profile_file is not None:
            profile = CandidateProfile.model_validate_json(profile_file.read_text(encoding="utf-8"))
        else:
            profile = orchestrator.repo.get_profile(user)
        if profile is None:
            raise typer.BadParameter(f"user {user} not found", param_hint="--user")

        try:
            job = orchestrator.fetch_job_details(url)
            cover_letter, result = asyncio.run(
                orchestrator.generate_application(user, provider, profile, job, model)
            )
        except (FetchError, MissingCredentialError, ValueError) as exc:
            typer.echo(str(exc), err=True)
            raise typer.Exit(code=1) from exc

        output = {
            "job": job.model_dump(mode="json"),
            "cover_letter": cover_letter,
            "tailored_profile": result.profile.model_dump(mode="json", exclude_none=True),
            "detected_company_name": result.detected_company_name,
            "detected_job_title": result.detected_job_title,
        }
        if save:
            saved = orchestrator.save_application(user, job, profile, cover_letter, result.profile)
            output["application_id"] = saved.id
        typer.echo(json.dumps(output, indent=2))


@settings_app.command("set")
def settings_set(
    user: str = typer.Option(..., "--user"),
    key: list[str] = typer.Option([], "--key", help="provider=api-key, blank key removes it"),
    default_model: str | None = typer.Option(None, "--default-model"),
) -> None:
    configure_logging()
    ensure_initialized()
    api_keys: dict[str, str] = {}
    for item in key:
        provider, sep, value = item.partition("=")
        if not sep or not provider.strip():
            raise typer.BadParameter(f"expected provider=key, got {item!r}", param_hint="--key")
        api_keys[provider.strip().lower()] = value

    with SessionLocal() as db:
        try:
            stored = Repository(db).save_user_settings(user, api_keys, default_model)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--user") from exc
        typer.echo(
            json.dumps(
                {
                    "user_id": stored.user_id,
                    "configured_providers": sorted(stored.api_keys),
                    "default_model": stored.default_model,
                },
                indent=2,
            )
        )


@app.command("models")
def models_cmd() -> None:
    """List cloud models and any installed local models."""
    configure_logging()
    cache = available_models(None, get_settings())
    typer.echo(
        json.dumps(
            [
                {"id": model.value, "provider": provider_for(model).value, "display_name": display_name(model)}
                for model in cache.models
            ],
            indent=2,
        )
    )


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    app_instance = create_app()
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
