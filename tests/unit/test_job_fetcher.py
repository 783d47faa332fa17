from __future__ import annotations

import logging
from datetime import datetime

import pytest
import requests
from bs4 import BeautifulSoup

from cvforge.config import get_settings
from cvforge.core.job_fetcher import DEFAULT_TITLE, extract_metadata, fetch_job_posting, parse_job_posting
from cvforge.errors import FetchError

JOB_PAGE = """
<html>
<head>
  <title>Careers | Backend Engineer | Copenhagen</title>
  <meta property="og:title" content="Backend Engineer">
  <meta property="og:site_name" content="Acme Co">
</head>
<body>
  <nav><a href="/">Home</a> <a href="/about">About us</a></nav>
  <article>
    <h2>What you will do</h2>
    <p>You will design, build and operate the services behind our payments platform,
    working closely with product and data teams to ship reliable features every week.</p>
    <p>We run Python, PostgreSQL and Kafka in production and care deeply about testing,
    observability and pragmatic engineering.</p>
    <ul><li>Own APIs end to end</li><li>Mentor other engineers</li></ul>
  </article>
  <footer>Copyright Acme Co</footer>
</body>
</html>
"""


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


def test_fetch_reads_open_graph_title_and_company(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs))
        return FakeResponse(JOB_PAGE)

    monkeypatch.setattr("cvforge.core.job_fetcher.requests.get", fake_get)

    job = fetch_job_posting("https://example.com/job")

    assert job.title == "Backend Engineer"
    assert job.company_name == "Acme Co"
    assert job.url == "https://example.com/job"
    assert job.description.startswith("# Backend Engineer")
    assert "PostgreSQL" in job.description
    assert "\n\n\n" not in job.description
    assert calls[0][1]["timeout"] == 30
    assert calls[0][1]["headers"]["User-Agent"] == get_settings().fetch_user_agent


@pytest.mark.parametrize("url", ["", "   ", "not a url", "ftp://example.com/job"])
def test_fetch_rejects_empty_or_invalid_url(url: str) -> None:
    with pytest.raises(FetchError):
        fetch_job_posting(url)


def test_fetch_wraps_http_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "cvforge.core.job_fetcher.requests.get",
        lambda url, **kwargs: FakeResponse("gone", status_code=404),
    )

    with pytest.raises(FetchError) as exc_info:
        fetch_job_posting("https://example.com/missing")

    assert "Failed to scrape job posting" in str(exc_info.value)
    assert exc_info.value.url == "https://example.com/missing"
    assert isinstance(exc_info.value.__cause__, requests.HTTPError)


def test_fetch_wraps_connection_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(url, **kwargs):
        raise requests.ConnectionError("connection refused")

    monkeypatch.setattr("cvforge.core.job_fetcher.requests.get", boom)

    with pytest.raises(FetchError):
        fetch_job_posting("https://example.com/job")


def test_short_page_falls_back_to_body_without_boilerplate() -> None:
    html = (
        "<html><head><title>Dev &amp; Ops</title></head><body>"
        "<nav>Home About</nav><p>Short role</p><footer>Legal</footer></body></html>"
    )
    job = parse_job_posting(html, "https://example.com/short", now=datetime(2024, 1, 1))

    assert job.title == "Dev & Ops"
    assert job.company_name == ""
    assert "Short role" in job.description
    assert "Home About" not in job.description
    assert "Legal" not in job.description
    assert job.date_posted == datetime(2024, 1, 1)


def test_page_without_any_title_uses_default() -> None:
    job = parse_job_posting("<html><body><p>Hello</p></body></html>", "https://example.com/x")
    assert job.title == DEFAULT_TITLE


def test_metadata_precedence() -> None:
    soup = BeautifulSoup(
        '<head><title>Page title</title><meta name="title" content="Meta title"></head>',
        "html.parser",
    )
    assert extract_metadata(soup) == ("Meta title", "")


def test_body_fallback_is_logged_as_warning(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="cvforge.core.job_fetcher"):
        parse_job_posting("<html><body><p>Short role</p></body></html>", "https://example.com/short")

    assert any(
        record.levelno == logging.WARNING and "converting the page body" in record.getMessage()
        for record in caplog.records
    )


def test_explicit_fetch_options_override_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_get(url, **kwargs):
        calls.append(kwargs)
        return FakeResponse(JOB_PAGE)

    monkeypatch.setattr("cvforge.core.job_fetcher.requests.get", fake_get)

    fetch_job_posting("https://example.com/job", timeout_sec=5, user_agent="cvforge-test")

    assert calls[0]["timeout"] == 5
    assert calls[0]["headers"]["User-Agent"] == "cvforge-test"
