from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from cvforge.config import Settings, get_settings
from cvforge.core.job_fetcher import fetch_job_posting
from cvforge.core.ports import PdfRenderer
from cvforge.db.repositories import Repository
from cvforge.llm.availability import is_local_available
from cvforge.llm.catalog import AIModel, AIProvider
from cvforge.llm.factory import ProviderFactory
from cvforge.llm.providers import ProviderAdapter
from cvforge.types import (
    CandidateProfile,
    GeneratedApplication,
    JobPosting,
    ResumeOutcome,
    TailoredResumeResult,
)

logger = logging.getLogger(__name__)


class ApplicationOrchestrator:
    """Fetch a job, generate the cover letter and résumé, and persist the result."""

    def __init__(
        self,
        session: Session,
        *,
        settings: Settings | None = None,
        factory: ProviderFactory | None = None,
        fetcher: Callable[..., JobPosting] = fetch_job_posting,
        renderer: PdfRenderer | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.repo = Repository(session)
        self.factory = factory or ProviderFactory(
            self.repo,
            self.settings,
            local_probe=lambda: is_local_available(self.settings),
        )
        self.fetcher = fetcher
        self.renderer = renderer

    def fetch_job_details(self, url: str) -> JobPosting:
        logger.info("Fetching job posting url=%s", url)
        return self.fetcher(
            url,
            timeout_sec=self.settings.fetch_timeout_sec,
            user_agent=self.settings.fetch_user_agent,
        )

    async def generate_application(
        self,
        user_id: str,
        provider: AIProvider | str,
        profile: CandidateProfile,
        job: JobPosting,
        model: AIModel | str | None = None,
    ) -> tuple[str, TailoredResumeResult]:
        adapter = await asyncio.to_thread(self.factory.resolve, provider, user_id, model)
        logger.info(
            "Generating application user=%s provider=%s model=%s serial=%s",
            user_id,
            adapter.provider.value,
            adapter.model,
            adapter.serial_only,
        )

        try:
            if adapter.serial_only:
                cover_letter, outcome = await self._generate_serial(adapter, profile, job)
            else:
                cover_letter, outcome = await self._generate_concurrent(adapter, profile, job)
        except Exception:
            logger.exception("Application generation failed user=%s provider=%s", user_id, adapter.provider.value)
            raise

        if outcome.kind == "fallback":
            logger.warning(
                "Using original profile for tailored resume provider=%s reason=%s",
                adapter.provider.value,
                outcome.reason,
            )
        logger.info("Application generated user=%s provider=%s", user_id, adapter.provider.value)
        return cover_letter, outcome.result

    @staticmethod
    async def _generate_serial(
        adapter: ProviderAdapter,
        profile: CandidateProfile,
        job: JobPosting,
    ) -> tuple[str, ResumeOutcome]:
        cover_letter = await adapter.generate_cover_letter(profile, job)
        outcome = await adapter.generate_tailored_resume(profile, job)
        return cover_letter, outcome

    @staticmethod
    async def _generate_concurrent(
        adapter: ProviderAdapter,
        profile: CandidateProfile,
        job: JobPosting,
    ) -> tuple[str, ResumeOutcome]:
        cover_letter, outcome = await asyncio.gather(
            adapter.generate_cover_letter(profile, job),
            adapter.generate_tailored_resume(profile, job),
            return_exceptions=True,
        )
        for result in (cover_letter, outcome):
            if isinstance(result, BaseException):
                raise result
        return cover_letter, outcome

    def save_application(
        self,
        user_id: str,
        job: JobPosting,
        profile: CandidateProfile,
        cover_letter: str,
        tailored_profile: CandidateProfile,
    ) -> GeneratedApplication:
        application = GeneratedApplication(
            user_id=user_id,
            job_posting=job,
            candidate_profile_id=profile.id,
            cover_letter_content=cover_letter,
            tailored_resume_json=tailored_profile.model_dump_json(exclude_none=True),
            created_at=datetime.now(UTC),
        )
        saved = self.repo.save_application(application)
        logger.info("Saved application id=%s user=%s", saved.id, user_id)
        return saved

    def render_documents(
        self,
        cover_letter: str,
        tailored_profile: CandidateProfile,
        job: JobPosting,
    ) -> tuple[bytes, bytes]:
        """Return ``(cover_letter_pdf, resume_pdf)`` from the configured renderer."""
        if self.renderer is None:
            raise RuntimeError("no PDF renderer configured")
        cover_pdf = self.renderer.render_cover_letter(cover_letter, tailored_profile, job.title, job.company_name)
        resume_pdf = self.renderer.render_resume(tailored_profile)
        return cover_pdf, resume_pdf
