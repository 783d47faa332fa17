from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cvforge.errors import ParseError
from cvforge.types import CandidateProfile, JobPosting, ResumeOutcome, Skill, TailoredResumeResult

logger = logging.getLogger(__name__)

DEFAULT_SKILL_CATEGORY = "General"

_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DetectedJobDetails(_Envelope):
    company_name: str | None = Field(default=None, alias="companyname")
    job_title: str | None = Field(default=None, alias="jobtitle")


class SkillGroup(_Envelope):
    category: str | None = Field(default=None, alias="category")
    names: list[str] | None = Field(default=None, alias="names")


class TailoredProfilePayload(_Envelope):
    title: str | None = Field(default=None, alias="title")
    skills: list[SkillGroup] | None = Field(default=None, alias="skills")


class TailoredResumePayload(_Envelope):
    detected_job_details: DetectedJobDetails | None = Field(default=None, alias="detectedjobdetails")
    tailored_profile: TailoredProfilePayload | None = Field(default=None, alias="tailoredprofile")


def strip_code_fences(text: str) -> str:
    return _FENCE_PATTERN.sub("", text).strip()


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key).lower(): _lower_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


def _flatten_skills(groups: list[SkillGroup]) -> list[Skill]:
    skills: list[Skill] = []
    for group in groups:
        category = (group.category or "").strip() or DEFAULT_SKILL_CATEGORY
        for name in group.names or []:
            if isinstance(name, str) and name.strip():
                skills.append(Skill(name=name.strip(), category=category))
    return skills


def parse_tailored_resume(raw_text: str, original: CandidateProfile) -> TailoredResumeResult:
    """Merge a model's résumé JSON into a copy of ``original``.

    Only the title and the skill list are taken from the model. Contact details,
    summary, work history, education, projects, languages and interests always
    come from ``original``.
    """
    cleaned = strip_code_fences(raw_text or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse AI JSON response: {exc}", raw_text=raw_text) from exc

    if not isinstance(data, dict):
        raise ParseError("AI JSON response is not an object", raw_text=raw_text)

    try:
        payload = TailoredResumePayload.model_validate(_lower_keys(data))
    except ValidationError as exc:
        raise ParseError(f"AI JSON response has an unexpected shape: {exc}", raw_text=raw_text) from exc

    details = payload.detected_job_details or DetectedJobDetails()
    tailored = payload.tailored_profile
    title = (tailored.title or "").strip() if tailored else ""
    skill_groups = tailored.skills if tailored else None

    profile = original.model_copy(deep=True)
    if title:
        profile.title = title
    if skill_groups is not None:
        profile.skills = _flatten_skills(skill_groups)

    return TailoredResumeResult(
        profile=profile,
        detected_company_name=details.company_name,
        detected_job_title=details.job_title,
    )


def tailor_from_response(raw_text: str, original: CandidateProfile, job: JobPosting) -> ResumeOutcome:
    try:
        return ResumeOutcome.tailored(parse_tailored_resume(raw_text, original))
    except ParseError as exc:
        logger.warning("Unparseable résumé response; keeping the original profile (%s)", exc.__cause__ or exc)
        return ResumeOutcome.fallback(original, job, reason=str(exc))
