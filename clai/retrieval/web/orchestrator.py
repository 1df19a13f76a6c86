"""First-success fallback across search provider adapters.

Control-flow model:
    Adapters are tried strictly in sequence, in the order given. The first
    adapter that returns a non-empty list wins and no later adapter is invoked.
    Candidate lists from different adapters are never merged.

Determinism:
    For a fixed query and fixed adapter availability, the same adapter always
    wins. Priority order encodes decreasing specificity, not result quality.

Failure handling:
    `ProviderError` from an adapter is logged under the adapter name and the next
    adapter is tried. Blocked failures are logged separately so automation
    detection is distinguishable from empty results. When every adapter fails and
    no emergency adapter is configured, `OrchestratorExhaustedError` is raised.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence, TypeVar

from clai.retrieval.web.providers import (
    DEFAULT_MAX_RESULTS,
    DuckDuckGoAdapter,
    EmergencyAdapter,
    GoogleScrapeAdapter,
    ProviderAdapter,
    ProviderBlockedError,
    ProviderError,
    SearxAdapter,
    SEARX_INSTANCES,
    WikipediaAdapter,
)
from clai.retrieval.web.request_layer import BrowserRequester


logger = logging.getLogger(__name__)

T = TypeVar("T")
A = TypeVar("A")


class OrchestratorExhaustedError(Exception):
    """Every provider adapter failed and no emergency adapter was configured."""

    def __init__(self, failures: Sequence[ProviderError]) -> None:
        names = ", ".join(f.provider for f in failures) or "none"
        super().__init__(f"All search providers failed ({names})")
        self.failures = list(failures)


async def first_success(
    candidates: Sequence[A],
    attempt: Callable[[A], Awaitable[T]],
    on_failure: Callable[[A, ProviderError], None] | None = None,
) -> tuple[A, T] | None:
    """Run `attempt` over `candidates` in order and stop at the first success.

    Args:
        candidates: Ordered items to try.
        attempt: Coroutine factory; raises `ProviderError` to signal failure.
        on_failure: Optional callback invoked for every failed candidate.

    Returns:
        `(winning_candidate, result)` or `None` when every candidate failed.
    """
    for candidate in candidates:
        try:
            return candidate, await attempt(candidate)
        except ProviderError as exc:
            if on_failure is not None:
                on_failure(candidate, exc)
    return None


class FallbackOrchestrator:
    """Resolve a query to candidate URLs via ordered provider adapters.

    Args:
        adapters: Real search adapters in priority order.
        emergency: Optional non-failing adapter consulted last.
    """

    def __init__(
        self,
        adapters: Sequence[ProviderAdapter],
        emergency: ProviderAdapter | None = None,
    ) -> None:
        self.adapters = list(adapters)
        self.emergency = emergency

    @property
    def chain(self) -> list[ProviderAdapter]:
        return self.adapters + ([self.emergency] if self.emergency is not None else [])

    async def resolve_query(self, query: str) -> list[str]:
        """Return the candidate URLs of the first adapter that succeeds.

        Raises:
            OrchestratorExhaustedError: All adapters failed and no emergency
                adapter is configured.
        """
        failures: list[ProviderError] = []

        async def attempt(adapter: ProviderAdapter) -> list[str]:
            try:
                urls = await adapter.resolve(query)
            except ProviderError:
                raise
            except Exception as exc:
                raise ProviderError(adapter.name, f"unexpected error: {exc!r}") from exc
            if not urls:
                raise ProviderError(adapter.name, "returned no candidate URLs")
            return urls

        def record(adapter: ProviderAdapter, exc: ProviderError) -> None:
            failures.append(exc)
            if isinstance(exc, ProviderBlockedError):
                logger.warning("Search provider %s blocked: %s", adapter.name, exc.reason)
            else:
                logger.warning("Search provider %s failed: %s", adapter.name, exc.reason)

        outcome = await first_success(self.chain, attempt, on_failure=record)
        if outcome is None:
            raise OrchestratorExhaustedError(failures)

        winner, urls = outcome
        logger.info("Search provider %s found %d results", winner.name, len(urls))
        return urls


def default_adapters(
    requester: BrowserRequester,
    searx_instances: Sequence[str] = SEARX_INSTANCES,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[ProviderAdapter]:
    """Build the real adapters in their contractual priority order."""
    return [
        SearxAdapter(requester, instances=searx_instances, max_results=max_results),
        GoogleScrapeAdapter(requester, max_results=max_results),
        DuckDuckGoAdapter(requester, max_results=max_results),
        WikipediaAdapter(requester, max_results=max_results),
    ]


def build_orchestrator(
    requester: BrowserRequester,
    searx_instances: Sequence[str] = SEARX_INSTANCES,
    max_results: int = DEFAULT_MAX_RESULTS,
    emergency_fallback: bool = True,
) -> FallbackOrchestrator:
    return FallbackOrchestrator(
        default_adapters(requester, searx_instances, max_results),
        emergency=EmergencyAdapter(max_results) if emergency_fallback else None,
    )
