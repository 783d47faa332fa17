from __future__ import annotations

import re

from bs4 import BeautifulSoup
from bs4.element import Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

_WHITESPACE = re.compile(r"\s+")
_EXCESS_NEWLINES = re.compile(r"(\r?\n\s*){3,}")
_LEADING_SPACE = re.compile(r"^ (?=\S)")

_HEADINGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}
_BLOCKS = {
    "p",
    "div",
    "section",
    "article",
    "main",
    "header",
    "aside",
    "form",
    "figure",
    "figcaption",
    "dl",
    "dt",
    "dd",
    "address",
}
_DROPPED = {"script", "style", "noscript", "template", "head"}


def collapse_blank_lines(text: str) -> str:
    """Collapse runs of three or more line breaks into a single blank line."""
    return _EXCESS_NEWLINES.sub("\n\n", text)


def html_to_markdown(html: str | Tag) -> str:
    """Convert an HTML fragment to GitHub-flavoured markdown.

    Unknown tags are bypassed (their children are kept), comments are removed and
    links whose text equals their target are written as bare URLs.
    """
    root = html if isinstance(html, Tag) else BeautifulSoup(html, "html.parser")
    text = _render_children(root, list_depth=0)
    lines = [_LEADING_SPACE.sub("", line.rstrip()) for line in text.splitlines()]
    return collapse_blank_lines("\n".join(lines)).strip()


def _render_children(node: Tag, list_depth: int) -> str:
    return "".join(_render(child, list_depth) for child in node.children)


def _render(node, list_depth: int) -> str:
    if isinstance(node, (Comment, Declaration, Doctype, ProcessingInstruction)):
        return ""
    if isinstance(node, NavigableString):
        return _WHITESPACE.sub(" ", str(node))
    if not isinstance(node, Tag):
        return ""

    name = (node.name or "").lower()
    if name in _DROPPED:
        return ""

    if name in _HEADINGS:
        content = _inline(node, list_depth)
        return f"\n\n{'#' * _HEADINGS[name]} {content}\n\n" if content else ""
    if name in _BLOCKS:
        content = _render_children(node, list_depth).strip()
        return f"\n\n{content}\n\n" if content else ""
    if name == "br":
        return "\n"
    if name == "hr":
        return "\n\n---\n\n"
    if name in {"strong", "b"}:
        content = _inline(node, list_depth)
        return f"**{content}**" if content else ""
    if name in {"em", "i"}:
        content = _inline(node, list_depth)
        return f"*{content}*" if content else ""
    if name == "code":
        return f"`{node.get_text()}`"
    if name == "pre":
        return f"\n\n```\n{node.get_text().strip(chr(10))}\n```\n\n"
    if name == "a":
        return _render_link(node, list_depth)
    if name == "img":
        alt = (node.get("alt") or "").strip()
        return f"![{alt}]({node.get('src', '')})" if node.get("src") else ""
    if name in {"ul", "ol"}:
        return _render_list(node, list_depth)
    if name == "li":
        return _render_children(node, list_depth)
    if name == "blockquote":
        content = _render_children(node, list_depth).strip()
        quoted = "\n".join(f"> {line}" if line else ">" for line in content.splitlines())
        return f"\n\n{quoted}\n\n" if content else ""
    if name == "table":
        return _render_table(node)
    return _render_children(node, list_depth)


def _inline(node: Tag, list_depth: int) -> str:
    return _WHITESPACE.sub(" ", _render_children(node, list_depth)).strip()


def _render_link(node: Tag, list_depth: int) -> str:
    text = _inline(node, list_depth)
    href = (node.get("href") or "").strip()
    if not href or href.startswith(("javascript:", "#")):
        return text
    if not text or text == href or text == href.removeprefix("mailto:"):
        return href
    return f"[{text}]({href})"


def _render_list(node: Tag, list_depth: int) -> str:
    ordered = node.name == "ol"
    items: list[str] = []
    index = 1
    for child in node.find_all("li", recursive=False):
        body = _render_children(child, list_depth + 1).strip()
        if not body:
            continue
        marker = f"{index}." if ordered else "-"
        first, *rest = body.splitlines()
        items.append(f"{marker} {first.strip()}")
        items.extend(f"  {line}" if line.strip() else "" for line in rest)
        index += 1
    if not items:
        return ""
    return "\n\n" + "\n".join(items) + "\n\n" if list_depth == 0 else "\n" + "\n".join(items) + "\n"


def _render_table(node: Tag) -> str:
    rows: list[list[str]] = []
    for tr in node.find_all("tr"):
        cells = [_WHITESPACE.sub(" ", cell.get_text(" ")).strip() for cell in tr.find_all(["th", "td"])]
        if any(cells):
            rows.append(cells)
    if not rows:
        return ""

    width = max(len(row) for row in rows)
    rows = [row + [""] * (width - len(row)) for row in rows]
    lines = ["| " + " | ".join(rows[0]) + " |", "| " + " | ".join(["---"] * width) + " |"]
    lines.extend("| " + " | ".join(row) + " |" for row in rows[1:])
    return "\n\n" + "\n".join(lines) + "\n\n"
