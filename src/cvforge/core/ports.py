from __future__ import annotations

from typing import Protocol

from cvforge.types import CandidateProfile, GeneratedApplication, UserSettings


class ProfileStore(Protocol):
    def get_profile(self, user_id: str) -> CandidateProfile | None: ...

    def save_profile(self, profile: CandidateProfile) -> CandidateProfile: ...

    def get_application(self, application_id: int) -> GeneratedApplication | None: ...

    def save_application(self, application: GeneratedApplication) -> GeneratedApplication: ...

    def delete_application(self, application_id: int) -> bool: ...


class SettingsStore(Protocol):
    def get_user_settings(self, user_id: str) -> UserSettings | None: ...

    def save_user_settings(
        self,
        user_id: str,
        api_keys: dict[str, str],
        default_model: str | None,
    ) -> UserSettings: ...


class PdfRenderer(Protocol):
    def render_resume(self, profile: CandidateProfile) -> bytes: ...

    def render_cover_letter(
        self,
        text: str,
        profile: CandidateProfile,
        job_title: str,
        company_name: str,
    ) -> bytes: ...
