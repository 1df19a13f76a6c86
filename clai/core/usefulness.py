"""Rule-based usefulness gate for acquired web content.

Purpose:
    Decide which `AcquiredContent` records are worth sending to the model.
    Error pages and near-empty pages are dropped so the engine can fall back
    to a knowledge-only answer instead.

Validation model:
    - Minimum content length (strictly longer than `MIN_CONTENT_LENGTH`).
    - Case-sensitive substring denylist of error/placeholder phrases.

Placement:
    Applied by `clai.core.engine` after acquisition. `WebAcquisitionModule`
    itself returns every fetched record unfiltered.

Bypass risk:
    Substring matching is brittle in both directions: real articles that
    mention "error" or "404" are dropped, and error pages phrased differently
    pass. The phrases are module constants so deployments can override them.
"""

from typing import Iterable

from clai.retrieval.web.models import AcquiredContent


MIN_CONTENT_LENGTH = 200

ERROR_PHRASES = (
    "Wikipedia does not have an article",
    "page not found",
    "404",
    "error",
)


def is_useful(
    item: AcquiredContent,
    min_length: int = MIN_CONTENT_LENGTH,
    error_phrases: Iterable[str] = ERROR_PHRASES,
) -> bool:
    """Return whether an acquired record should be summarized.

    Evaluation order:
        1. Content not longer than `min_length` -> reject.
        2. Any error phrase present in content -> reject.
        3. Otherwise accept.
    """
    content = item.content or ""
    if len(content) <= min_length:
        return False
    return not any(phrase in content for phrase in error_phrases)


def filter_useful(items: Iterable[AcquiredContent]) -> list[AcquiredContent]:
    """Keep only useful records, preserving their order."""
    return [item for item in items if is_useful(item)]
