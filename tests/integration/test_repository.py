from __future__ import annotations

from datetime import date, datetime

import pytest
from sqlalchemy import func, select

from cvforge.db.models import ExperienceRow, JobPostingRow, SkillRow, UserSettingsRow
from cvforge.db.repositories import Repository, decode_api_key, encode_api_key
from cvforge.types import CandidateProfile, Experience, GeneratedApplication, JobPosting, Skill


def _job() -> JobPosting:
    return JobPosting(
        title="Backend Engineer",
        company_name="Acme Co",
        description="# Backend Engineer\n\nBuild APIs.",
        url="https://example.com/job",
        date_posted=datetime(2024, 3, 1, 12, 0),
    )


def test_profile_is_created_lazily_for_known_user(db_session) -> None:
    repo = Repository(db_session)
    repo.create_user("u1", "u1@example.com")

    profile = repo.get_profile("u1")

    assert profile is not None
    assert profile.id is not None
    assert profile.user_id == "u1"
    assert profile.skills == []
    assert repo.get_profile("u1").id == profile.id
    assert repo.get_profile("ghost") is None


def test_save_profile_replaces_child_lists_in_order(db_session) -> None:
    repo = Repository(db_session)
    repo.create_user("u1")
    profile = repo.get_profile("u1")

    profile.full_name = "Ada Lovelace"
    profile.skills = [Skill(name="Python", category="Backend"), Skill(name="SQL", category="Data")]
    profile.work_experience = [
        Experience(company_name="Initech", job_title="Developer", start_date=date(2020, 1, 1), is_current_role=True)
    ]
    repo.save_profile(profile)

    profile.skills = [Skill(name="Go", category="Backend")]
    saved = repo.save_profile(profile)

    assert saved.full_name == "Ada Lovelace"
    assert [s.name for s in saved.skills] == ["Go"]
    assert saved.work_experience[0].start_date == date(2020, 1, 1)
    assert db_session.scalar(select(func.count()).select_from(SkillRow)) == 1


def test_delete_profile_cascades_children(db_session) -> None:
    repo = Repository(db_session)
    repo.create_user("u1")
    profile = repo.get_profile("u1")
    profile.work_experience = [Experience(company_name="Initech"), Experience(company_name="Globex")]
    repo.save_profile(profile)

    assert repo.delete_profile("u1") is True
    assert db_session.scalar(select(func.count()).select_from(ExperienceRow)) == 0
    assert repo.delete_profile("u1") is False


def test_save_profile_for_unknown_user_fails(db_session) -> None:
    with pytest.raises(ValueError):
        Repository(db_session).save_profile(CandidateProfile(user_id="ghost"))


def test_application_round_trip_and_delete(db_session) -> None:
    repo = Repository(db_session)
    repo.create_user("u1")
    profile = repo.get_profile("u1")

    saved = repo.save_application(
        GeneratedApplication(
            user_id="u1",
            job_posting=_job(),
            candidate_profile_id=profile.id,
            cover_letter_content="Dear Hiring Manager",
            tailored_resume_json='{"title":"Senior"}',
        )
    )

    loaded = repo.get_application(saved.id)
    assert loaded is not None
    assert loaded.job_posting.title == "Backend Engineer"
    assert loaded.job_posting.company_name == "Acme Co"
    assert loaded.cover_letter_content == "Dear Hiring Manager"
    assert loaded.candidate_profile_id == profile.id
    assert [item.id for item in repo.list_applications("u1")] == [saved.id]
    assert repo.list_applications("u2") == []

    assert repo.delete_application(saved.id) is True
    assert repo.get_application(saved.id) is None
    assert db_session.scalar(select(func.count()).select_from(JobPostingRow)) == 0
    assert repo.delete_application(saved.id) is False


def test_save_application_for_unknown_user_fails(db_session) -> None:
    with pytest.raises(ValueError):
        Repository(db_session).save_application(GeneratedApplication(user_id="ghost", job_posting=_job()))


def test_user_settings_are_stored_encoded(db_session) -> None:
    repo = Repository(db_session)
    repo.create_user("u1")

    stored = repo.save_user_settings("u1", {"openai": " sk-test ", "groq": "gsk"}, "gpt-4o-mini")

    assert stored.api_keys == {"openai": "sk-test", "groq": "gsk"}
    assert stored.default_model == "gpt-4o-mini"
    row = db_session.scalar(select(UserSettingsRow))
    assert row.encoded_api_keys_json["openai"] == encode_api_key("sk-test")
    assert "sk-test" not in row.encoded_api_keys_json.values()


def test_blank_key_removes_provider(db_session) -> None:
    repo = Repository(db_session)
    repo.create_user("u1")
    repo.save_user_settings("u1", {"openai": "sk", "gemini": "g"}, None)

    updated = repo.save_user_settings("u1", {"openai": ""}, "gemini-2.0-flash")

    assert updated.api_keys == {"gemini": "g"}
    assert repo.get_user_settings("u1").default_model == "gemini-2.0-flash"


def test_user_settings_edge_cases(db_session) -> None:
    repo = Repository(db_session)
    assert repo.get_user_settings("ghost") is None
    with pytest.raises(ValueError):
        repo.save_user_settings("ghost", {"openai": "sk"}, None)
    assert decode_api_key("%%%not-base64") == ""
    assert decode_api_key(encode_api_key("sk-ü")) == "sk-ü"


def test_saved_settings_match_a_fresh_read(db_session) -> None:
    repo = Repository(db_session)
    repo.create_user("u1")

    saved = repo.save_user_settings("u1", {"anthropic": "sk-ant"}, None)

    assert saved == repo.get_user_settings("u1")
    assert saved.user_id == "u1"
    assert saved.default_model is None
