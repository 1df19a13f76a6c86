"""HTML to `AcquiredContent` extraction.

Extraction model:
    - `title`: text of the first `<title>` element.
    - `content`: full text of `<body>` (whole document when no body exists).
      Script/style/noscript/template elements are dropped before reading text.
    - `url`: `href` of `link[rel=canonical]`, or `""`.

Modes:
    - `body` (default): plain BeautifulSoup text extraction, no whitespace
      cleanup beyond what the parser yields.
    - `article`: `trafilatura` main-content extraction, falling back to body
      text when trafilatura finds nothing.

Failure handling:
    Never raises for malformed markup. Any field that cannot be extracted is
    returned as an empty string.
"""

from __future__ import annotations

import logging
from typing import Literal

import trafilatura
from bs4 import BeautifulSoup

from clai.retrieval.web.models import AcquiredContent


logger = logging.getLogger(__name__)

ExtractMode = Literal["body", "article"]

_NON_VISIBLE_TAGS = ["script", "style", "noscript", "template"]


def _parse(html: str) -> BeautifulSoup | None:
    try:
        return BeautifulSoup(html or "", "html.parser")
    except Exception:
        logger.warning("HTML parsing failed; returning empty extraction")
        return None


def _title_text(soup: BeautifulSoup) -> str:
    tag = soup.find("title")
    return tag.get_text() if tag is not None else ""


def _canonical_url(soup: BeautifulSoup) -> str:
    tag = soup.select_one('link[rel="canonical"]')
    if tag is None:
        return ""
    href = tag.get("href")
    return href if isinstance(href, str) else ""


def _body_text(soup: BeautifulSoup) -> str:
    for tag in soup.find_all(_NON_VISIBLE_TAGS):
        tag.decompose()
    root = soup.body if soup.body is not None else soup
    return root.get_text()


def _article_text(html: str) -> str:
    try:
        return trafilatura.extract(
            html,
            include_comments=False,
            include_tables=True,
            include_images=False,
            include_links=False,
            output_format="txt",
        ) or ""
    except Exception:
        logger.warning("trafilatura extraction failed; falling back to body text")
        return ""


def extract_html(html: str, mode: ExtractMode = "body") -> AcquiredContent:
    """Extract title, visible text, and canonical URL from raw markup.

    Args:
        html: Raw document markup. May be malformed or empty.
        mode: `"body"` for full body text, `"article"` for main-content text.

    Returns:
        `AcquiredContent` with empty strings for unextractable fields.
    """
    soup = _parse(html)
    if soup is None:
        return AcquiredContent(title="", content="", url="")

    title = _title_text(soup)
    canonical = _canonical_url(soup)

    content = ""
    if mode == "article":
        content = _article_text(html)
    if not content:
        content = _body_text(soup)

    return AcquiredContent(title=title, content=content, url=canonical)
