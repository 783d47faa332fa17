from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Skill(BaseModel):
    name: str
    category: str = ""


class Experience(BaseModel):
    company_name: str = ""
    job_title: str = ""
    start_date: date | None = None
    end_date: date | None = None
    is_current_role: bool = False
    description: str = ""
    location: str = ""


class Education(BaseModel):
    institution_name: str = ""
    degree: str = ""
    start_date: date | None = None
    end_date: date | None = None
    description: str = ""


class Project(BaseModel):
    name: str = ""
    role: str = ""
    start_date: date | None = None
    end_date: date | None = None
    description: str = ""
    technologies: str = ""
    link: str = ""


class Language(BaseModel):
    name: str
    proficiency: str = ""


class Interest(BaseModel):
    name: str


class CandidateProfile(BaseModel):
    id: int | None = None
    user_id: str = ""

    full_name: str = ""
    title: str = ""
    email: str = ""
    phone_number: str = ""
    linkedin_url: str = ""
    portfolio_url: str = ""
    location: str = ""
    professional_summary: str = ""

    work_experience: list[Experience] = Field(default_factory=list)
    educations: list[Education] = Field(default_factory=list)
    skills: list[Skill] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    languages: list[Language] = Field(default_factory=list)
    interests: list[Interest] = Field(default_factory=list)


class JobPosting(BaseModel):
    id: int | None = None
    title: str = ""
    company_name: str = ""
    description: str = ""
    url: str = ""
    date_posted: datetime = Field(default_factory=datetime.now)


class TailoredResumeResult(BaseModel):
    profile: CandidateProfile
    detected_company_name: str | None = None
    detected_job_title: str | None = None


class ResumeOutcome(BaseModel):
    """Result of a résumé generation: either tailored by the model or the untouched fallback."""

    kind: Literal["tailored", "fallback"]
    result: TailoredResumeResult
    reason: str = ""

    @property
    def is_fallback(self) -> bool:
        return self.kind == "fallback"

    @classmethod
    def tailored(cls, result: TailoredResumeResult) -> ResumeOutcome:
        return cls(kind="tailored", result=result)

    @classmethod
    def fallback(cls, profile: CandidateProfile, job: JobPosting, reason: str) -> ResumeOutcome:
        return cls(
            kind="fallback",
            result=TailoredResumeResult(
                profile=profile,
                detected_company_name=job.company_name,
                detected_job_title=job.title,
            ),
            reason=reason,
        )


class GenerationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature: float = 0.7
    max_tokens: int | None = None

    @field_validator("temperature")
    @classmethod
    def validate_temperature(cls, value: float) -> float:
        if value < 0 or value > 2:
            raise ValueError("temperature must be between 0 and 2")
        return value


class UserSettings(BaseModel):
    user_id: str
    api_keys: dict[str, str] = Field(default_factory=dict)
    default_model: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def api_key_for(self, provider: str) -> str:
        return self.api_keys.get(provider, "")


class GeneratedApplication(BaseModel):
    id: int | None = None
    user_id: str
    job_posting: JobPosting
    candidate_profile_id: int | None = None
    cover_letter_content: str = ""
    tailored_resume_json: str = ""
    created_at: datetime | None = None
