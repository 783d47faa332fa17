from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from cvforge.types import CandidateProfile, JobPosting


class JobFetchRequest(BaseModel):
    url: str


class GenerateRequest(BaseModel):
    user_id: str
    provider: str
    job: JobPosting
    model: str | None = None
    profile: CandidateProfile | None = None


class GenerateResponse(BaseModel):
    cover_letter: str
    tailored_profile: CandidateProfile
    detected_company_name: str | None = None
    detected_job_title: str | None = None


class SaveApplicationRequest(BaseModel):
    user_id: str
    job: JobPosting
    cover_letter: str
    tailored_profile: CandidateProfile


class ApplicationResponse(BaseModel):
    id: int
    user_id: str
    job: JobPosting
    candidate_profile_id: int | None = None
    cover_letter: str
    tailored_resume_json: str
    created_at: datetime | None = None


class UserSettingsRequest(BaseModel):
    api_keys: dict[str, str] = Field(default_factory=dict)
    default_model: str | None = None


class UserSettingsResponse(BaseModel):
    user_id: str
    configured_providers: list[str]
    default_model: str | None = None


class ModelResponse(BaseModel):
    id: str
    provider: str
    display_name: str


class ModelListResponse(BaseModel):
    models: list[ModelResponse]
    expires_at: datetime
