"""Concurrent, failure-isolated fetch and extraction of candidate URLs.

Concurrency model:
    One fetch+extract task per URL, all started together on the running event
    loop. The stage settles every task before returning; a failing task never
    cancels or aborts its siblings.

Result contract:
    Returns the successfully acquired records only. Order is not part of the
    contract; consumers must treat the list as an unordered subset of the input.

Failure model:
    Transport errors, timeouts, non-OK statuses, non-text content types, and
    extraction errors drop that single URL and are logged. An optional
    per-URL deadline caps the total time spent on one fetch.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, Sequence, TypeVar

from clai.retrieval.web.extractor import ExtractMode, extract_html
from clai.retrieval.web.models import AcquiredContent
from clai.retrieval.web.request_layer import BrowserRequester


logger = logging.getLogger(__name__)

T = TypeVar("T")

_TEXT_CONTENT_TYPES = ("text/", "application/xhtml+xml", "application/xml")


class FetchError(Exception):
    """A single candidate URL could not be fetched or extracted."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


async def settle_successes(
    items: Sequence[str],
    operation: Callable[[str], Awaitable[T]],
) -> list[T]:
    """Run `operation` for every item concurrently and keep the successes.

    Failures are logged per item and dropped. A cancelled task re-raises
    `asyncio.CancelledError` instead of being counted as a failure.
    """
    results = await asyncio.gather(
        *(operation(item) for item in items),
        return_exceptions=True,
    )

    successes: list[T] = []
    for item, result in zip(items, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            logger.warning("Error scraping %s: %s", item, _describe_failure(result))
            continue
        successes.append(result)
    return successes


def _describe_failure(exc: BaseException) -> str:
    # httpx timeouts often carry an empty message.
    message = str(exc)
    name = type(exc).__name__
    return f"{name}: {message}" if message else name


def _is_text_response(content_type: str) -> bool:
    # Servers that omit the header are assumed to send HTML.
    if not content_type:
        return True
    return content_type.lower().startswith(_TEXT_CONTENT_TYPES)


async def fetch_one(
    url: str,
    requester: BrowserRequester,
    extract_mode: ExtractMode = "body",
) -> AcquiredContent:
    """Fetch one page and extract it.

    The record URL is always the URL that was fetched, so sources reported to
    the caller match the candidates that produced them. The extractor's
    canonical link is discarded here.

    Raises:
        FetchError: Non-OK status or non-text response.
        httpx.HTTPError: Transport failures and timeouts.
    """
    response = await requester.request(url)
    if not response.is_success:
        raise FetchError(url, f"HTTP {response.status_code}")

    content_type = response.headers.get("content-type", "")
    if not _is_text_response(content_type):
        raise FetchError(url, f"non-text content type {content_type!r}")

    extracted = extract_html(response.text, mode=extract_mode)
    return AcquiredContent(title=extracted.title, content=extracted.content, url=url)


async def fetch_all(
    urls: Iterable[str],
    requester: BrowserRequester,
    extract_mode: ExtractMode = "body",
    deadline_seconds: float | None = None,
) -> list[AcquiredContent]:
    """Fetch and extract every candidate URL concurrently.

    Args:
        urls: Candidate URLs for this acquisition call.
        requester: Browser-shaped request layer bound to the call's client.
        extract_mode: Extraction mode passed to `extract_html`.
        deadline_seconds: Total wall-clock limit per URL, on top of the
            client's per-phase timeouts. `None` disables it.

    Returns:
        One `AcquiredContent` per successful URL, in no guaranteed order.
    """
    url_list = list(urls)
    if not url_list:
        return []

    async def operation(url: str) -> AcquiredContent:
        try:
            return await asyncio.wait_for(
                fetch_one(url, requester, extract_mode),
                timeout=deadline_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise FetchError(url, f"no complete response within {deadline_seconds}s") from exc

    acquired = await settle_successes(url_list, operation)
    logger.info("Fetched %d of %d candidate URLs", len(acquired), len(url_list))
    return acquired
