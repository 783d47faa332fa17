from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from cvforge.api.deps import get_db
from cvforge.api.schemas import (
    ApplicationResponse,
    GenerateRequest,
    GenerateResponse,
    JobFetchRequest,
    ModelListResponse,
    ModelResponse,
    SaveApplicationRequest,
    UserSettingsRequest,
    UserSettingsResponse,
)
from cvforge.config import get_settings
from cvforge.core.orchestrator import ApplicationOrchestrator
from cvforge.db.repositories import Repository
from cvforge.errors import FetchError, MissingCredentialError
from cvforge.llm.availability import available_models
from cvforge.llm.catalog import display_name, provider_for
from cvforge.types import GeneratedApplication, JobPosting

router = APIRouter(prefix="/api", tags=["api"])


def _application_response(application: GeneratedApplication) -> ApplicationResponse:
    return ApplicationResponse(
        id=application.id,
        user_id=application.user_id,
        job=application.job_posting,
        candidate_profile_id=application.candidate_profile_id,
        cover_letter=application.cover_letter_content,
        tailored_resume_json=application.tailored_resume_json,
        created_at=application.created_at,
    )


@router.post("/jobs/fetch", response_model=JobPosting)
def fetch_job(payload: JobFetchRequest, db: Session = Depends(get_db)) -> JobPosting:
    orchestrator = ApplicationOrchestrator(db)
    try:
        return orchestrator.fetch_job_details(payload.url)
    except FetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.post("/applications/generate", response_model=GenerateResponse)
async def generate_application(payload: GenerateRequest, db: Session = Depends(get_db)) -> GenerateResponse:
    orchestrator = ApplicationOrchestrator(db)
    profile = payload.profile or orchestrator.repo.get_profile(payload.user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")

    try:
        cover_letter, result = await orchestrator.generate_application(
            payload.user_id,
            payload.provider,
            profile,
            payload.job,
            payload.model,
        )
    except MissingCredentialError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return GenerateResponse(
        cover_letter=cover_letter,
        tailored_profile=result.profile,
        detected_company_name=result.detected_company_name,
        detected_job_title=result.detected_job_title,
    )


@router.post("/applications", response_model=ApplicationResponse)
def save_application(payload: SaveApplicationRequest, db: Session = Depends(get_db)) -> ApplicationResponse:
    orchestrator = ApplicationOrchestrator(db)
    profile = orchestrator.repo.get_profile(payload.user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")

    saved = orchestrator.save_application(
        payload.user_id,
        payload.job,
        profile,
        payload.cover_letter,
        payload.tailored_profile,
    )
    return _application_response(saved)


@router.get("/applications/{application_id}", response_model=ApplicationResponse)
def get_application(application_id: int, db: Session = Depends(get_db)) -> ApplicationResponse:
    application = Repository(db).get_application(application_id)
    if application is None:
        raise HTTPException(status_code=404, detail="Application not found")
    return _application_response(application)


@router.delete("/applications/{application_id}")
def delete_application(application_id: int, db: Session = Depends(get_db)) -> dict:
    if not Repository(db).delete_application(application_id):
        raise HTTPException(status_code=404, detail="Application not found")
    return {"deleted": application_id}


@router.get("/users/{user_id}/applications", response_model=list[ApplicationResponse])
def list_applications(user_id: str, db: Session = Depends(get_db)) -> list[ApplicationResponse]:
    return [_application_response(item) for item in Repository(db).list_applications(user_id)]


@router.put("/users/{user_id}/settings", response_model=UserSettingsResponse)
def save_user_settings(
    user_id: str,
    payload: UserSettingsRequest,
    db: Session = Depends(get_db),
) -> UserSettingsResponse:
    try:
        stored = Repository(db).save_user_settings(user_id, payload.api_keys, payload.default_model)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc

    return UserSettingsResponse(
        user_id=stored.user_id,
        configured_providers=sorted(stored.api_keys),
        default_model=stored.default_model,
    )


@router.get("/models", response_model=ModelListResponse)
def list_models(request: Request) -> ModelListResponse:
    cache = available_models(getattr(request.app.state, "model_cache", None), get_settings())
    request.app.state.model_cache = cache
    return ModelListResponse(
        models=[
            ModelResponse(id=model.value, provider=provider_for(model).value, display_name=display_name(model))
            for model in cache.models
        ],
        expires_at=cache.expires_at,
    )
