from __future__ import annotations

from datetime import date

from cvforge.types import CandidateProfile, JobPosting

COVER_LETTER_SYSTEM_PROMPT = (
    "You are a professional career coach and expert copywriter. "
    "Your goal is to write a compelling, professional, and tailored cover letter "
    "based on the candidate's profile and the job description provided."
)

RESUME_TAILORING_SYSTEM_PROMPT = (
    "You are a professional career coach and expert copywriter. "
    "Your goal is to rewrite the candidate's CV to highlight experience relevant to this specific job. "
    "You MUST return the result as a valid JSON object matching the CandidateProfile structure."
)

RESUME_INSTRUCTIONS = """
IMPORTANT: DO NOT USE EM-DASHES (—) IN THE JSON. ONLY USE HYPHENS (-).
CRITICAL: Return the result as a valid JSON object matching the following structure.
Do NOT include personal contact details (Name, Email, Phone, etc.) in the JSON. Only return the tailored content.
IMPORTANT: Analyze the job description to extract the true Company Name and Job Title.
Include ALL skills from the candidate's profile. Organize them into relevant categories for this job, placing the most important ones at the top.
{
  "DetectedJobDetails": { "CompanyName": "...", "JobTitle": "..." },
  "TailoredProfile": { "Title": "...", "Skills": [ { "Category": "...", "Names": ["..."] } ] }
}
""".strip()

COVER_LETTER_INSTRUCTIONS = """
IMPORTANT: Return the result as PLAIN TEXT. Do NOT use JSON or Markdown code blocks.
Write a professional cover letter.
TONE: Adopt a professional tone suitable for Danish/Scandinavian business culture: Direct, concise, humble but confident, and focused on the value the candidate brings to the company.
CRITICAL INSTRUCTIONS:
1. Do NOT include the CANDIDATE'S contact header (Name, Email, Phone). This is added automatically.
2. DO include the CURRENT DATE (as provided above) and the COMPANY'S details at the top.
3. Include a professional, concise SUBJECT line (e.g., 'RE: Application for [Job Title]'). Do NOT clutter the subject with the source.
4. Start with a professional salutation (e.g., 'Dear Hiring Manager,' or 'Dear [Name],').
5. Write the body of the letter. CRITICAL: In the VERY FIRST sentence, explicitly mention where the job was found: {source_hint}
6. End with 'Sincerely,' followed by the candidate's name: {candidate_name}.
7. Do NOT use placeholders like '[Your Name]', '[Your Address]'.
""".strip()

_SOURCE_FROM_URL = (
    "base it on the Job URL (e.g., '...as advertised on LinkedIn', '...on Indeed', "
    "or '...on your company website')."
)
_SOURCE_WITHOUT_URL = "no Job URL was provided, so use '...as advertised'."


def _month_year(value: date | None) -> str:
    return value.strftime("%b %Y") if value else ""


def _year(value: date | None) -> str:
    return value.strftime("%Y") if value else ""


def build_prompt(
    profile: CandidateProfile,
    job: JobPosting,
    *,
    is_resume: bool = False,
    today: date | None = None,
) -> str:
    """Build the user prompt for a cover letter or a tailored résumé.

    Contact details (name aside, which signs the letter) are never included:
    only the summary, skills, work history and education are shared with the model.
    """
    current = today or date.today()
    lines = [
        f"Job Title: {job.title}",
        f"Company: {job.company_name}",
        f"Job URL: {job.url}",
        f"Job Description: {job.description}",
        f"Current Date: {current.strftime('%B %d, %Y')}",
        "",
        "Candidate Profile:",
        f"Professional Summary: {profile.professional_summary}",
    ]

    if profile.skills:
        lines.append("Skills: " + ", ".join(skill.name for skill in profile.skills))

    if profile.work_experience:
        lines.append("Work Experience:")
        for exp in profile.work_experience:
            end = "Present" if exp.is_current_role else _month_year(exp.end_date)
            lines.append(f"- {exp.job_title} at {exp.company_name} ({_month_year(exp.start_date)} - {end})")
            lines.append(f"  {exp.description}")

    if profile.educations:
        lines.append("Education:")
        for edu in profile.educations:
            lines.append(
                f"- {edu.degree} from {edu.institution_name} ({_year(edu.start_date)} - {_year(edu.end_date)})"
            )

    lines.append("")

    if is_resume:
        lines.append(RESUME_INSTRUCTIONS)
    else:
        source_hint = _SOURCE_FROM_URL if job.url.strip() else _SOURCE_WITHOUT_URL
        lines.append(
            COVER_LETTER_INSTRUCTIONS.format(source_hint=source_hint, candidate_name=profile.full_name)
        )

    return "\n".join(lines) + "\n"


def system_prompt(*, is_resume: bool) -> str:
    return RESUME_TAILORING_SYSTEM_PROMPT if is_resume else COVER_LETTER_SYSTEM_PROMPT
