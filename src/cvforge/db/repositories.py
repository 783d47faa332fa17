from __future__ import annotations

import base64
import binascii
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from cvforge.db.base import utcnow
from cvforge.db.models import (
    CandidateProfileRow,
    EducationRow,
    ExperienceRow,
    GeneratedApplicationRow,
    InterestRow,
    JobPostingRow,
    LanguageRow,
    ProjectRow,
    SkillRow,
    User,
    UserSettingsRow,
)
from cvforge.types import CandidateProfile, GeneratedApplication, JobPosting, UserSettings

logger = logging.getLogger(__name__)


def encode_api_key(value: str) -> str:
    """Obfuscate an API key for storage. This is base64, not encryption."""
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def decode_api_key(value: str) -> str:
    try:
        return base64.b64decode(value.encode("ascii"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        return ""


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def create_user(self, user_id: str, email: str = "") -> User:
        user = User(id=user_id, email=email)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_user(self, user_id: str) -> User | None:
        return self.session.get(User, user_id)

    def _profile_row(self, user_id: str) -> CandidateProfileRow | None:
        return self.session.scalar(select(CandidateProfileRow).where(CandidateProfileRow.user_id == user_id))

    def get_profile(self, user_id: str) -> CandidateProfile | None:
        """Return the user's profile, creating an empty one on first access.

        Returns ``None`` when the user does not exist.
        """
        row = self._profile_row(user_id)
        if row is None:
            if self.get_user(user_id) is None:
                return None
            row = CandidateProfileRow(user_id=user_id)
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        return CandidateProfile.model_validate(row, from_attributes=True)

    def save_profile(self, profile: CandidateProfile) -> CandidateProfile:
        row = self.session.get(CandidateProfileRow, profile.id) if profile.id else None
        if row is None:
            row = self._profile_row(profile.user_id)
        if row is None:
            if self.get_user(profile.user_id) is None:
                raise ValueError(f"user {profile.user_id} does not exist")
            row = CandidateProfileRow(user_id=profile.user_id)
            self.session.add(row)

        for key in (
            "full_name",
            "title",
            "email",
            "phone_number",
            "linkedin_url",
            "portfolio_url",
            "location",
            "professional_summary",
        ):
            setattr(row, key, getattr(profile, key))

        row.work_experience = [
            ExperienceRow(sort_order=index, **item.model_dump()) for index, item in enumerate(profile.work_experience)
        ]
        row.educations = [
            EducationRow(sort_order=index, **item.model_dump()) for index, item in enumerate(profile.educations)
        ]
        row.skills = [SkillRow(sort_order=index, **item.model_dump()) for index, item in enumerate(profile.skills)]
        row.projects = [
            ProjectRow(sort_order=index, **item.model_dump()) for index, item in enumerate(profile.projects)
        ]
        row.languages = [
            LanguageRow(sort_order=index, **item.model_dump()) for index, item in enumerate(profile.languages)
        ]
        row.interests = [
            InterestRow(sort_order=index, **item.model_dump()) for index, item in enumerate(profile.interests)
        ]

        self.session.commit()
        self.session.refresh(row)
        return CandidateProfile.model_validate(row, from_attributes=True)

    def delete_profile(self, user_id: str) -> bool:
        row = self._profile_row(user_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.commit()
        return True

    def save_application(self, application: GeneratedApplication) -> GeneratedApplication:
        if self.get_user(application.user_id) is None:
            raise ValueError(f"user {application.user_id} does not exist")

        job = application.job_posting
        job_row = JobPostingRow(
            title=job.title,
            company_name=job.company_name,
            description=job.description,
            url=job.url,
            date_posted=job.date_posted,
        )
        row = GeneratedApplicationRow(
            user_id=application.user_id,
            job_posting=job_row,
            candidate_profile_id=application.candidate_profile_id,
            cover_letter_content=application.cover_letter_content,
            tailored_resume_json=application.tailored_resume_json,
            created_at=application.created_at or utcnow(),
        )
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return self._application_to_domain(row)

    def get_application(self, application_id: int) -> GeneratedApplication | None:
        row = self.session.get(GeneratedApplicationRow, application_id)
        return self._application_to_domain(row) if row else None

    def list_applications(self, user_id: str) -> list[GeneratedApplication]:
        statement = (
            select(GeneratedApplicationRow)
            .where(GeneratedApplicationRow.user_id == user_id)
            .order_by(GeneratedApplicationRow.created_at.desc(), GeneratedApplicationRow.id.desc())
        )
        return [self._application_to_domain(row) for row in self.session.scalars(statement).all()]

    def delete_application(self, application_id: int) -> bool:
        row = self.session.get(GeneratedApplicationRow, application_id)
        if row is None:
            return False
        job_row = row.job_posting
        self.session.delete(row)
        if job_row is not None:
            self.session.delete(job_row)
        self.session.commit()
        return True

    def get_user_settings(self, user_id: str) -> UserSettings | None:
        row = self.session.scalar(select(UserSettingsRow).where(UserSettingsRow.user_id == user_id))
        if row is None:
            return None
        return self._settings_to_domain(row)

    def save_user_settings(
        self,
        user_id: str,
        api_keys: dict[str, str],
        default_model: str | None,
    ) -> UserSettings:
        """Store keys per provider; a blank key removes the stored one."""
        row = self.session.scalar(select(UserSettingsRow).where(UserSettingsRow.user_id == user_id))
        if row is None:
            if self.get_user(user_id) is None:
                raise ValueError(f"user {user_id} does not exist")
            row = UserSettingsRow(user_id=user_id, encoded_api_keys_json={})
            self.session.add(row)

        encoded = dict(row.encoded_api_keys_json or {})
        for provider, key in api_keys.items():
            if key and key.strip():
                encoded[provider] = encode_api_key(key.strip())
            else:
                encoded.pop(provider, None)

        row.encoded_api_keys_json = encoded
        row.default_model = default_model or None
        self.session.commit()
        self.session.refresh(row)

        return self._settings_to_domain(row)

    @staticmethod
    def _settings_to_domain(row: UserSettingsRow) -> UserSettings:
        api_keys: dict[str, str] = {}
        for provider, encoded in (row.encoded_api_keys_json or {}).items():
            decoded = decode_api_key(encoded) if encoded else ""
            if decoded:
                api_keys[provider] = decoded
            elif encoded:
                logger.warning("Discarding undecodable API key provider=%s user=%s", provider, row.user_id)

        return UserSettings(
            user_id=row.user_id,
            api_keys=api_keys,
            default_model=row.default_model,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    @staticmethod
    def _application_to_domain(row: GeneratedApplicationRow) -> GeneratedApplication:
        return GeneratedApplication(
            id=row.id,
            user_id=row.user_id,
            job_posting=JobPosting.model_validate(row.job_posting, from_attributes=True),
            candidate_profile_id=row.candidate_profile_id,
            cover_letter_content=row.cover_letter_content,
            tailored_resume_json=row.tailored_resume_json,
            created_at=row.created_at,
        )
