"""Core request orchestration: acquire, filter, summarize.

Architectural role:
    Provides the execution pipeline used by CLI/HTTP adapters to turn one user
    input (URL or free-text query) into a `SummaryOutput`.

Control-flow model:
    1. Without crawling, answer the query directly from model knowledge.
    2. With crawling, acquire web content for the input.
    3. Keep only useful records (`clai.core.usefulness`).
    4. Summarize the combined useful content, citing its URLs as sources.
    5. If nothing useful was acquired, fall back to the knowledge-only answer.

Interaction surface:
    - Retrieval: any object implementing `AcquirerProtocol`, by default
      `WebAcquisitionModule`.
    - LLM: an explicitly passed `LLMClient`; nothing here caches a client.

Error handling strategy:
    Acquisition never raises by contract, so web failures only change which
    prompt is used. `LLMError` from the model call propagates to the adapter.

Determinism:
    Filtering and prompt assembly are deterministic for fixed inputs. Web
    retrieval and model output are not.
"""

import asyncio
import logging
from typing import Protocol

from clai.core.summary_types import KNOWLEDGE_BASE_SOURCE, SummaryOutput, SummaryResult
from clai.core.usefulness import filter_useful
from clai.llm.client import LLMClient
from clai.llm.service import summarize_query, summarize_web_page
from clai.prompting.prompt_builder import combine_sources
from clai.retrieval.web.models import AcquiredContent


logger = logging.getLogger(__name__)


class AcquirerProtocol(Protocol):
    """Minimal async interface required for web-grounded answers."""

    async def acquire(self, text: str) -> list[AcquiredContent]:
        """Return acquired content for a URL or query; `[]` on failure."""
        ...


def _default_acquirer() -> AcquirerProtocol:
    # Imported lazily so knowledge-only runs never touch the retrieval stack.
    from clai.retrieval.web.web_module import WebAcquisitionModule

    return WebAcquisitionModule()


def _to_output(result: SummaryResult, sources: list[str]) -> SummaryOutput:
    return SummaryOutput(summary=result.textual.strip(), links=result.links, sources=sources)


async def answer_from_knowledge(text: str, client: LLMClient) -> SummaryOutput:
    """Answer without web content; sources name the model knowledge base."""
    result = await asyncio.to_thread(summarize_query, text, client)
    return _to_output(result, [KNOWLEDGE_BASE_SOURCE])


async def analyze(
    text: str,
    client: LLMClient,
    use_crawling: bool = False,
    acquirer: AcquirerProtocol | None = None,
) -> SummaryOutput:
    """Analyze a URL or query and return a summary with links and sources.

    Args:
        text: URL or search query.
        client: Model client used for every completion in this call.
        use_crawling: Acquire web content before summarizing.
        acquirer: Optional acquisition override; defaults to a fresh
            `WebAcquisitionModule`.

    Returns:
        `SummaryOutput` whose `sources` lists the useful page URLs, or the
        knowledge-base label when the answer is not web-grounded.

    Raises:
        LLMError: The model call failed.
    """
    if not use_crawling:
        return await answer_from_knowledge(text, client)

    module = acquirer or _default_acquirer()
    acquired = await module.acquire(text)
    useful = filter_useful(acquired)

    if useful:
        logger.info("Summarizing %d of %d acquired pages", len(useful), len(acquired))
        combined = combine_sources(useful)
        result = await asyncio.to_thread(summarize_web_page, combined, client)
        return _to_output(result, [item.url for item in useful])

    logger.info("No scraped data available - falling back to model knowledge")
    return await answer_from_knowledge(text, client)
