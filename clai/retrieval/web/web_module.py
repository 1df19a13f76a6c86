"""Web content acquisition for URL or free-text input.

Architectural role:
    Entry point of the retrieval layer. Turns one user input into zero or more
    `AcquiredContent` records that the core engine filters and summarizes.

Acquisition strategy:
    1. Classify input as a navigable URL or a search query.
    2. Queries go through `FallbackOrchestrator` (SearXNG -> Google scrape ->
       DuckDuckGo -> Wikipedia -> optional emergency URL guesses).
    3. Candidate URLs are fetched concurrently with per-URL failure isolation.
    4. Each page is reduced to title, visible text, and source URL.

Ranking logic:
    None. The winning provider's order is kept, and the fetch stage does not
    promise any ordering of its output.

Failure model:
    `acquire` never raises for provider, orchestration, or fetch failures. Total
    failure is an empty list, which tells the caller to answer without web
    context.

Resource model:
    A fresh `httpx.AsyncClient` is opened per call and closed afterwards. No
    cookies, sessions, or caches survive between calls.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any

import httpx

from clai.retrieval.web.classifier import classify_input
from clai.retrieval.web.extractor import ExtractMode
from clai.retrieval.web.fetcher import fetch_all
from clai.retrieval.web.models import AcquiredContent
from clai.retrieval.web.orchestrator import OrchestratorExhaustedError, build_orchestrator
from clai.retrieval.web.providers import SEARX_INSTANCES
from clai.retrieval.web.request_layer import BrowserRequester, create_http_client


logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class WebModuleConfig:
    """Runtime configuration for `WebAcquisitionModule`.

    Fields are read from environment variables at import time.

    Relevant environment variables:
        - `WEB_TIMEOUT_SECONDS` (per connect, read, write and pool phase)
        - `WEB_FETCH_DEADLINE_SECONDS` (total time for one page fetch)
        - `WEB_MAX_RESULTS`
        - `WEB_EXTRACT_MODE` (`body` or `article`)
        - `WEB_EMERGENCY_FALLBACK`
        - `WEB_SEARX_INSTANCES` (comma-separated)
    """

    timeout_seconds: float = float(os.getenv("WEB_TIMEOUT_SECONDS", "12"))
    fetch_deadline_seconds: float = float(os.getenv("WEB_FETCH_DEADLINE_SECONDS", "30"))
    max_results: int = min(5, max(1, int(os.getenv("WEB_MAX_RESULTS", "3"))))
    extract_mode: ExtractMode = (
        "article" if os.getenv("WEB_EXTRACT_MODE", "body").strip().lower() == "article" else "body"
    )
    emergency_fallback: bool = _env_bool("WEB_EMERGENCY_FALLBACK", "true")
    searx_instances: tuple[str, ...] = _env_list("WEB_SEARX_INSTANCES", SEARX_INSTANCES)


class WebAcquisitionModule:
    """Acquire web content for one user input per call.

    Args:
        config: Network and provider configuration.
        transport: Optional `httpx` transport override, used by tests to serve
            canned responses without network access.
    """

    def __init__(
        self,
        config: WebModuleConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or WebModuleConfig()
        self._transport = transport

    def acquire_sync(self, text: str) -> list[AcquiredContent]:
        """Synchronous wrapper for `acquire`.

        Edge cases:
            Calling from an already running event loop propagates the
            `asyncio.run` limitation.
        """
        return self._run_async(self.acquire(text))

    async def acquire(self, text: str) -> list[AcquiredContent]:
        """Return acquired content for a URL or search query.

        Args:
            text: Raw user input.

        Returns:
            Successfully fetched records; `[]` on empty input or total failure.
        """
        if not text or not text.strip():
            return []

        try:
            async with self._client() as client:
                requester = BrowserRequester(client)
                try:
                    urls = await self._candidate_urls(text, requester)
                except OrchestratorExhaustedError as exc:
                    logger.warning("No candidate URLs for %r: %s", text, exc)
                    return []

                return await fetch_all(
                    urls,
                    requester,
                    extract_mode=self.config.extract_mode,
                    deadline_seconds=self.config.fetch_deadline_seconds,
                )
        except Exception:
            logger.exception("Web acquisition failed for input=%r", text)
            return []

    async def search(self, query: str) -> list[str]:
        """Resolve a query to candidate URLs without fetching them.

        Raises:
            OrchestratorExhaustedError: Every provider failed and the emergency
                fallback is disabled.
        """
        async with self._client() as client:
            orchestrator = build_orchestrator(
                BrowserRequester(client),
                searx_instances=self.config.searx_instances,
                max_results=self.config.max_results,
                emergency_fallback=self.config.emergency_fallback,
            )
            return await orchestrator.resolve_query(query)

    async def _candidate_urls(self, text: str, requester: BrowserRequester) -> list[str]:
        classified = classify_input(text)
        if classified.is_url:
            logger.info("Input classified as URL: %s", classified.value)
            return [classified.value]

        orchestrator = build_orchestrator(
            requester,
            searx_instances=self.config.searx_instances,
            max_results=self.config.max_results,
            emergency_fallback=self.config.emergency_fallback,
        )
        return await orchestrator.resolve_query(classified.value)

    def _client(self) -> httpx.AsyncClient:
        return create_http_client(self.config.timeout_seconds, transport=self._transport)

    def _run_async(self, coroutine: Any) -> Any:
        return asyncio.run(coroutine)
