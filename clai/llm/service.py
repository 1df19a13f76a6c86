"""Summarization entrypoints over an injected `LLMClient`.

Architectural role:
    Bridges prompt construction (`clai.prompting`) to transport
    (`clai.llm.client`). The client is always passed in by the caller.

Model call flow:
    content/query -> token-budget trim -> prompt -> `complete_structured` ->
    `SummaryResult`.

Token behavior:
    Combined web content is trimmed to `PROMPT_TOKEN_BUDGET` using a
    characters-per-token estimate, keeping the head and tail of the text.

Determinism:
    Prompt construction and trimming are deterministic for fixed inputs.
    Generated output remains non-deterministic because inference runs remotely.
"""

import logging

from clai.core.summary_types import SummaryLink, SummaryResult
from clai.llm.client import LLMClient
from clai.llm.provider_config import CHARS_PER_TOKEN_ESTIMATE, PROMPT_TOKEN_BUDGET
from clai.prompting.prompt_builder import (
    QUERY_SCHEMA,
    WEB_PAGE_SCHEMA,
    build_query_prompt,
    build_web_page_prompt,
)


logger = logging.getLogger(__name__)

_TRUNCATION_MARKER = "\n\n[TRUNCATED: PROMPT TOKEN BUDGET]\n\n"


def estimate_tokens(text: str) -> int:
    """Estimate token count with a fixed characters-per-token ratio.

    Edge cases:
        - Empty input returns `0`.
        - Non-empty strings return at least `1`.
    """
    if not text:
        return 0
    return max(1, len(text) // CHARS_PER_TOKEN_ESTIMATE)


def enforce_token_budget(text: str, budget: int = PROMPT_TOKEN_BUDGET) -> str:
    """Trim text that exceeds the token budget estimate.

    Args:
        text: Content to be embedded in a prompt.
        budget: Token budget for that content.

    Returns:
        Original text if within budget, otherwise head and tail joined by a
        truncation marker.

    Edge cases:
        Budgets too small to fit the marker and a tail fall back to plain head
        truncation. The result never exceeds
        `budget * CHARS_PER_TOKEN_ESTIMATE` characters.
    """
    if not text or estimate_tokens(text) <= budget:
        return text or ""

    max_chars = max(0, budget * CHARS_PER_TOKEN_ESTIMATE)
    head_budget = int(max_chars * 0.55)
    tail_budget = max_chars - head_budget - len(_TRUNCATION_MARKER)
    # The marker must leave room for a non-empty tail.
    if tail_budget <= 0:
        trimmed = text[:max_chars]
    else:
        head = text[:head_budget].rstrip()
        tail = text[-tail_budget:].lstrip()
        trimmed = f"{head}{_TRUNCATION_MARKER}{tail}"

    logger.warning(
        "Content exceeded token budget (estimate=%d budget=%d); trimmed to %d chars",
        estimate_tokens(text),
        budget,
        len(trimmed),
    )
    return trimmed


def _to_summary(raw: dict) -> SummaryResult:
    links = []
    for item in raw.get("links") or []:
        if isinstance(item, dict) and item.get("url"):
            links.append(SummaryLink(name=str(item.get("name") or item["url"]), url=str(item["url"])))
    return SummaryResult(textual=str(raw.get("textual") or ""), links=tuple(links))


def summarize_web_page(content: str, client: LLMClient) -> SummaryResult:
    """Summarize acquired web content and extract its meaningful links.

    Raises:
        LLMError: Propagated from the client.
    """
    prompt = build_web_page_prompt(enforce_token_budget(content))
    raw = client.complete_structured(prompt, WEB_PAGE_SCHEMA, temperature=0.3)
    return _to_summary(raw)


def summarize_query(query: str, client: LLMClient) -> SummaryResult:
    """Answer a query from model knowledge when no web content is used.

    Raises:
        LLMError: Propagated from the client.
    """
    raw = client.complete_structured(build_query_prompt(query), QUERY_SCHEMA, temperature=0.7)
    return _to_summary(raw)
