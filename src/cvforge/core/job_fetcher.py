from __future__ import annotations

import logging
from datetime import datetime
from html import unescape
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from readability import Document
from readability.readability import Unparseable

from cvforge.config import get_settings
from cvforge.core.html_markdown import collapse_blank_lines, html_to_markdown
from cvforge.errors import FetchError
from cvforge.types import JobPosting

logger = logging.getLogger(__name__)


DEFAULT_TITLE = "Imported Job"
MIN_READABLE_CHARS = 140
BOILERPLATE_TAGS = ["script", "style", "noscript", "iframe", "svg", "nav", "footer"]


def fetch_job_posting(url: str, timeout_sec: int | None = None, user_agent: str | None = None) -> JobPosting:
    """Download ``url`` and turn it into a ``JobPosting``.

    Timeout and user agent default to the fetch values in ``Settings``.
    """
    settings = get_settings()
    timeout_sec = timeout_sec or settings.fetch_timeout_sec
    user_agent = user_agent or settings.fetch_user_agent

    url = (url or "").strip()
    if not url:
        raise FetchError("URL cannot be empty.", url=url)

    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise FetchError(f"Invalid job URL: {url}", url=url)

    try:
        response = requests.get(url, timeout=timeout_sec, headers={"User-Agent": user_agent})
        response.raise_for_status()
        return parse_job_posting(response.text, url)
    except Exception as exc:
        logger.warning("Failed to fetch job URL %s: %s", url, exc)
        raise FetchError(f"Failed to scrape job posting: {exc}", url=url) from exc


def parse_job_posting(page_html: str, url: str, *, now: datetime | None = None) -> JobPosting:
    markdown, article_title = extract_main_content(page_html, url)
    markdown = collapse_blank_lines(markdown)

    title, company = extract_metadata(BeautifulSoup(page_html, "html.parser"))
    if not title and article_title:
        title = article_title

    if title and not markdown.lower().startswith(f"# {title}".lower()):
        markdown = f"# {title}\n\n{markdown}"

    return JobPosting(
        url=url,
        title=title or DEFAULT_TITLE,
        company_name=company,
        description=markdown.strip(),
        date_posted=now or datetime.now(),
    )


def extract_main_content(page_html: str, url: str = "") -> tuple[str, str]:
    """Return the page's main content as markdown plus the article title readability found.

    When readability is not confident, the whole body minus navigation, footers
    and embedded media is converted instead.
    """
    summary_html = ""
    article_title = ""
    try:
        document = Document(page_html, url=url or None)
        summary_html = document.summary(html_partial=True)
        article_title = document.short_title() or ""
    except Unparseable as exc:
        logger.info("Readability could not parse %s: %s", url, exc)

    if is_readable(summary_html):
        return html_to_markdown(summary_html), article_title.strip()

    logger.warning("Readability extraction not confident for %s; converting the page body", url)
    soup = BeautifulSoup(page_html, "html.parser")
    for tag in soup(BOILERPLATE_TAGS):
        tag.decompose()
    return html_to_markdown(soup), article_title.strip()


def is_readable(summary_html: str) -> bool:
    if not summary_html:
        return False
    text = BeautifulSoup(summary_html, "html.parser").get_text(" ", strip=True)
    return len(text) >= MIN_READABLE_CHARS


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def extract_metadata(soup: BeautifulSoup) -> tuple[str, str]:
    """Best-effort (title, company) from Open Graph, meta and ``<title>`` tags.

    The full title is kept as-is, separators such as
    "Department | Job Title | Location" included.
    """
    og_title = _meta_content(soup, property="og:title")
    meta_title = _meta_content(soup, name="title")
    title_tag = soup.find("title")
    html_title = unescape(title_tag.get_text()).strip() if title_tag else ""
    company = _meta_content(soup, property="og:site_name")

    return og_title or meta_title or html_title, company
