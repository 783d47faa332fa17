from __future__ import annotations

from cvforge.core.html_markdown import collapse_blank_lines, html_to_markdown


def test_headings_paragraphs_and_emphasis() -> None:
    html = "<h2>About   the role</h2><p>You will <b>own</b> the <em>billing</em> API.</p>"
    assert html_to_markdown(html) == "## About the role\n\nYou will **own** the *billing* API."


def test_nested_lists_are_indented() -> None:
    html = "<ul><li>Python<ul><li>FastAPI</li></ul></li><li>SQL</li></ul><ol><li>Apply</li><li>Interview</li></ol>"
    assert html_to_markdown(html) == "- Python\n  - FastAPI\n- SQL\n\n1. Apply\n2. Interview"


def test_links_and_bare_urls() -> None:
    html = (
        '<p><a href="https://acme.test/jobs">Careers</a> '
        '<a href="https://acme.test">https://acme.test</a> '
        '<a href="javascript:void(0)">Apply</a></p>'
    )
    assert html_to_markdown(html) == "[Careers](https://acme.test/jobs) https://acme.test Apply"


def test_scripts_styles_and_comments_are_dropped() -> None:
    html = (
        "<div><script>var x = 1;</script><style>p {}</style>"
        "<!-- tracking --><p>Visible</p></div>"
    )
    assert html_to_markdown(html) == "Visible"


def test_tables_become_pipe_tables() -> None:
    html = "<table><tr><th>Level</th><th>Salary</th></tr><tr><td>Senior</td><td>90k</td></tr></table>"
    assert html_to_markdown(html) == "| Level | Salary |\n| --- | --- |\n| Senior | 90k |"


def test_collapse_blank_lines() -> None:
    assert collapse_blank_lines("a\n\n\n\nb\n \n \n\nc") == "a\n\nb\n\nc"
    assert collapse_blank_lines("a\n\nb") == "a\n\nb"
