"""Heuristic URL-versus-query classification for user input.

Classification policy:
    Input is a URL when it contains no whitespace and has a minimal domain shape
    (`<non-space>.<2+ letters>`), optionally followed by a port, path, query, or
    fragment so followed links such as `https://bun.sh/docs` are fetched
    directly. Everything else is a search query.

Known edge cases:
    The check is loose enough for bare domains such as `bun.sh` to pass. A
    single dotted token such as `node.js` or `index.html` is classified as a URL; the
    fetch stage then fails or returns unrelated content, which degrades the
    answer but never raises.
"""

from __future__ import annotations

import re

from clai.retrieval.web.models import ClassifiedInput


_DOMAIN_SHAPE = re.compile(r"^\S+\.[a-z]{2,}(?:[:/?#]\S*)?$", re.IGNORECASE)
_SCHEMES = ("http://", "https://")


def looks_like_url(text: str) -> bool:
    """Return whether `text` should be fetched directly instead of searched."""
    if not text or any(ch.isspace() for ch in text):
        return False
    return bool(_DOMAIN_SHAPE.match(text))


def normalize_url(url: str) -> str:
    """Prefix `https://` to scheme-less input.

    Idempotent: already prefixed URLs are returned unchanged.
    """
    if url.startswith(_SCHEMES):
        return url
    return f"https://{url}"


def classify_input(text: str) -> ClassifiedInput:
    """Classify raw user input as a navigable URL or a search query.

    Args:
        text: Raw user input.

    Returns:
        `ClassifiedInput` with the normalized URL or the stripped query.
    """
    text = text or ""
    if looks_like_url(text):
        return ClassifiedInput(kind="url", value=normalize_url(text))
    return ClassifiedInput(kind="query", value=text.strip())
