"""Search provider adapters that turn a free-text query into candidate URLs.

Architectural role:
    Each adapter wraps exactly one search backend and exposes the same async
    `resolve(query) -> list[str]` contract. `FallbackOrchestrator` tries them in
    fixed priority order and keeps the first non-empty answer.

Priority order (most specific first):
    1. `SearxAdapter`: public SearXNG mirrors, JSON API.
    2. `GoogleScrapeAdapter`: HTML scrape of a Google results page.
    3. `DuckDuckGoAdapter`: DuckDuckGo instant-answer API.
    4. `WikipediaAdapter`: Wikipedia opensearch API.
    5. `EmergencyAdapter`: offline URL guesses from query tokens.

Failure model:
    Adapters raise `ProviderError` when they cannot produce usable URLs and
    `ProviderBlockedError` when the backend answered with an anti-automation
    page. An empty list is never returned as success. Block detection is a
    per-adapter `is_blocked(raw_text) -> bool` predicate so signatures can be
    swapped without touching orchestration.

Network policy:
    Every request goes through `BrowserRequester`; one request per endpoint per
    call, no retries.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, Iterable, Protocol
from urllib.parse import quote, unquote, urlparse

import httpx
from bs4 import BeautifulSoup

from clai.retrieval.web.request_layer import BrowserRequester


logger = logging.getLogger(__name__)

BlockPredicate = Callable[[str], bool]

DEFAULT_MAX_RESULTS = 3

# Hard cap for the meta-search, scrape and emergency adapters. `WEB_MAX_RESULTS`
# may raise the API adapters up to 5 but never these.
SCRAPE_RESULT_CAP = 3

SEARX_INSTANCES: tuple[str, ...] = (
    "https://searx.be",
    "https://search.sapti.me",
    "https://searx.tiekoetter.com",
    "https://searx.prvcy.eu",
)

# Static-asset, CDN, and ad-serving hosts that show up in meta-search results
# but never carry readable content.
SEARX_DENYLIST: tuple[str, ...] = (
    "cloudflare.com",
    "cdnjs.cloudflare.com",
    "jsdelivr.net",
    "unpkg.com",
    "akamaihd.net",
    "gstatic.com",
    "googleusercontent.com",
    "doubleclick.net",
    "googlesyndication.com",
    "googleadservices.com",
    "adservice.google.com",
    "amazon-adsystem.com",
)

# Encyclopedia results are left to `WikipediaAdapter`.
ENCYCLOPEDIA_DOMAINS: tuple[str, ...] = ("wikipedia.org",)

GOOGLE_EXCLUDED_DOMAINS: tuple[str, ...] = (
    "google.com",
    "googleusercontent.com",
    "youtube.com",
)

SEARX_BLOCK_PHRASES: tuple[str, ...] = (
    "too many requests",
    "rate limit exceeded",
    "<title>captcha",
)

GOOGLE_BLOCK_PHRASES: tuple[str, ...] = (
    "our systems have detected unusual traffic",
    "detected unusual traffic from your computer network",
    "/sorry/index",
    "g-recaptcha",
    "to continue, please type the characters",
    "please click here if you are not redirected within a few seconds",
)

DUCKDUCKGO_BLOCK_PHRASES: tuple[str, ...] = (
    "redirected to the non-javascript site",
    "non-javascript site",
    "if this error persists, please let us know",
)

WIKIPEDIA_BLOCK_PHRASES: tuple[str, ...] = (
    "too many requests",
    "wikimedia error",
    "our servers are currently under maintenance",
    "you are making too many requests",
)

_GOOGLE_REDIRECT = re.compile(r"/url\?q=([^&]+)")


class ProviderError(Exception):
    """A provider adapter could not produce usable candidate URLs."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class ProviderBlockedError(ProviderError):
    """The provider answered with an anti-automation challenge or notice."""


class ProviderAdapter(Protocol):
    """Contract shared by all search backends."""

    name: str

    async def resolve(self, query: str) -> list[str]:
        ...


def phrase_block_predicate(phrases: Iterable[str]) -> BlockPredicate:
    """Build a case-insensitive substring predicate over raw response text."""
    lowered = tuple(p.lower() for p in phrases)

    def is_blocked(raw: str) -> bool:
        text = (raw or "").lower()
        return any(p in text for p in lowered)

    return is_blocked


def is_http_url(url: Any) -> bool:
    """Return whether `url` is a syntactically valid absolute HTTP(S) URL."""
    if not isinstance(url, str):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def host_matches(url: str, domains: Iterable[str]) -> bool:
    """Return whether the URL host equals or is a subdomain of any domain."""
    try:
        host = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    return any(host == d or host.endswith("." + d) for d in domains)


def unique_capped(urls: Iterable[str], limit: int) -> list[str]:
    """Deduplicate preserving first-seen order and cap at `limit`."""
    out: list[str] = []
    seen: set[str] = set()
    for url in urls:
        if url in seen:
            continue
        seen.add(url)
        out.append(url)
        if len(out) >= limit:
            break
    return out


# =========================================================
# META-SEARCH (SearXNG mirrors)
# =========================================================

class SearxAdapter:
    """Query public SearXNG mirrors in turn; first usable mirror wins.

    A mirror is skipped when the request fails, the status is not OK, the body
    matches a block signature, the JSON is unreadable, or no result survives
    filtering. Exhausting every mirror raises; if every mirror was blocked the
    raised error is `ProviderBlockedError`.
    """

    name = "searx"
    considered_results = 5

    def __init__(
        self,
        requester: BrowserRequester,
        instances: Iterable[str] = SEARX_INSTANCES,
        max_results: int = DEFAULT_MAX_RESULTS,
        is_blocked: BlockPredicate | None = None,
    ) -> None:
        self._requester = requester
        self._instances = tuple(i.rstrip("/") for i in instances)
        self._max_results = min(max_results, SCRAPE_RESULT_CAP)
        self._is_blocked = is_blocked or phrase_block_predicate(SEARX_BLOCK_PHRASES)

    async def resolve(self, query: str) -> list[str]:
        blocked = 0
        for instance in self._instances:
            try:
                response = await self._requester.request(
                    f"{instance}/search",
                    headers={"Accept": "application/json"},
                    params={"q": query, "format": "json", "categories": "general"},
                )
            except httpx.HTTPError as exc:
                logger.debug("SearX instance %s unreachable: %s", instance, exc)
                continue

            data = None
            if response.is_success:
                try:
                    data = response.json()
                except ValueError:
                    data = None

            # Block pages come back as HTML (often with 429), never as JSON.
            if data is None:
                if self._is_blocked(response.text):
                    blocked += 1
                    logger.debug("SearX instance %s blocked the request", instance)
                else:
                    logger.debug(
                        "SearX instance %s returned unusable response (HTTP %s)",
                        instance,
                        response.status_code,
                    )
                continue

            urls = self._filter_results(data, instance)
            if urls:
                return urls

        if self._instances and blocked == len(self._instances):
            raise ProviderBlockedError(self.name, "all instances blocked the request")
        raise ProviderError(self.name, "all instances failed")

    def _filter_results(self, data: Any, instance: str) -> list[str]:
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            return []

        own_host = (urlparse(instance).hostname or "").lower()
        denied = SEARX_DENYLIST + ENCYCLOPEDIA_DOMAINS + ((own_host,) if own_host else ())

        candidates = (
            item.get("url")
            for item in results[: self.considered_results]
            if isinstance(item, dict)
        )
        usable = (
            url for url in candidates
            if is_http_url(url) and not host_matches(url, denied)
        )
        return unique_capped(usable, self._max_results)


# =========================================================
# WEB SEARCH HTML SCRAPE (Google)
# =========================================================

class GoogleScrapeAdapter:
    """Scrape result links from a Google search results page.

    Two link shapes are collected, redirect-wrapped first:
        - `/url?q=<target>&...`: the wrapped target is URL-decoded.
        - bare `http...` outbound links.
    """

    name = "google"
    search_url = "https://www.google.com/search"

    def __init__(
        self,
        requester: BrowserRequester,
        max_results: int = DEFAULT_MAX_RESULTS,
        is_blocked: BlockPredicate | None = None,
    ) -> None:
        self._requester = requester
        self._max_results = min(max_results, SCRAPE_RESULT_CAP)
        self._is_blocked = is_blocked or phrase_block_predicate(GOOGLE_BLOCK_PHRASES)

    async def resolve(self, query: str) -> list[str]:
        try:
            response = await self._requester.request(
                self.search_url,
                params={"q": query, "num": 10},
            )
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"request failed: {exc}") from exc

        html = response.text
        # Google serves its captcha page with 429, so check signatures first.
        if self._is_blocked(html):
            raise ProviderBlockedError(self.name, "automation block page detected")
        if not response.is_success:
            raise ProviderError(self.name, f"HTTP {response.status_code}")

        urls = unique_capped(self.parse_result_links(html), self._max_results)
        if not urls:
            raise ProviderError(self.name, "no search results found in response")
        return urls

    @staticmethod
    def _allowed(url: str) -> bool:
        return is_http_url(url) and not host_matches(url, GOOGLE_EXCLUDED_DOMAINS)

    @classmethod
    def parse_result_links(cls, html: str) -> list[str]:
        """Return candidate result URLs in page order, duplicates included."""
        soup = BeautifulSoup(html or "", "html.parser")
        urls: list[str] = []

        for anchor in soup.select('a[href^="/url?q="]'):
            match = _GOOGLE_REDIRECT.search(anchor.get("href") or "")
            if not match:
                continue
            target = unquote(match.group(1))
            if cls._allowed(target):
                urls.append(target)

        for anchor in soup.select('a[href^="http"]'):
            href = anchor.get("href") or ""
            if cls._allowed(href):
                urls.append(href)

        return urls


# =========================================================
# INSTANT-ANSWER API (DuckDuckGo)
# =========================================================

class DuckDuckGoAdapter:
    """Use the DuckDuckGo instant-answer API.

    Success requires an `AbstractURL` or a related-topic `FirstURL`. A
    "redirect to the non-JavaScript site" notice counts as a block even when the
    HTTP status is 200.
    """

    name = "duckduckgo"
    api_url = "https://api.duckduckgo.com/"
    related_topics = 2

    def __init__(
        self,
        requester: BrowserRequester,
        max_results: int = DEFAULT_MAX_RESULTS,
        is_blocked: BlockPredicate | None = None,
    ) -> None:
        self._requester = requester
        self._max_results = max_results
        self._is_blocked = is_blocked or phrase_block_predicate(DUCKDUCKGO_BLOCK_PHRASES)

    async def resolve(self, query: str) -> list[str]:
        try:
            response = await self._requester.request(
                self.api_url,
                headers={"Accept": "application/json"},
                params={"q": query, "format": "json", "no_html": 1, "skip_disambig": 1},
            )
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"request failed: {exc}") from exc

        body = response.text
        if self._is_blocked(body):
            raise ProviderBlockedError(self.name, "non-JavaScript redirect notice")
        if not response.is_success:
            raise ProviderError(self.name, f"HTTP {response.status_code}")

        # The API answers with `application/x-javascript`, so decode manually.
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ProviderError(self.name, "response is not JSON") from exc
        if not isinstance(data, dict):
            raise ProviderError(self.name, "unexpected response shape")

        urls: list[str] = []
        abstract_url = data.get("AbstractURL")
        if is_http_url(abstract_url):
            urls.append(abstract_url)

        topics = data.get("RelatedTopics")
        if isinstance(topics, list):
            for topic in topics[: self.related_topics]:
                first_url = topic.get("FirstURL") if isinstance(topic, dict) else None
                if is_http_url(first_url):
                    urls.append(first_url)

        urls = unique_capped(urls, self._max_results)
        if not urls:
            raise ProviderError(self.name, "no search results found in response")
        return urls


# =========================================================
# ENCYCLOPEDIA API (Wikipedia opensearch)
# =========================================================

class WikipediaAdapter:
    """Resolve through the Wikipedia opensearch API.

    The API returns `[query, titles, descriptions, urls]`; only the fourth
    element is used and only `https://` entries are kept. Block signatures are
    checked only on responses that did not parse as JSON, since article titles
    can contain the same phrases.
    """

    name = "wikipedia"
    api_url = "https://en.wikipedia.org/w/api.php"

    def __init__(
        self,
        requester: BrowserRequester,
        max_results: int = DEFAULT_MAX_RESULTS,
        is_blocked: BlockPredicate | None = None,
    ) -> None:
        self._requester = requester
        self._max_results = max_results
        self._is_blocked = is_blocked or phrase_block_predicate(WIKIPEDIA_BLOCK_PHRASES)

    async def resolve(self, query: str) -> list[str]:
        try:
            response = await self._requester.request(
                self.api_url,
                headers={"Accept": "application/json"},
                params={
                    "action": "opensearch",
                    "search": query,
                    "limit": self._max_results,
                    "namespace": 0,
                    "format": "json",
                },
            )
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, f"request failed: {exc}") from exc

        data = None
        if response.is_success:
            try:
                data = response.json()
            except ValueError:
                data = None

        if data is None:
            if self._is_blocked(response.text):
                raise ProviderBlockedError(self.name, "rate limit or error page")
            if not response.is_success:
                raise ProviderError(self.name, f"HTTP {response.status_code}")
            raise ProviderError(self.name, "response is not JSON")

        if not isinstance(data, list) or len(data) < 4 or not isinstance(data[3], list):
            raise ProviderError(self.name, "unexpected response shape")

        urls = unique_capped(
            (u for u in data[3] if isinstance(u, str) and u.startswith("https://")),
            self._max_results,
        )
        if not urls:
            raise ProviderError(self.name, "no articles found")
        return urls


# =========================================================
# EMERGENCY CONSTRUCTOR (offline)
# =========================================================

def _encode_component(text: str) -> str:
    # Matches the unreserved set of JavaScript's encodeURIComponent.
    return quote(text, safe="-_.!~*'()")


class EmergencyAdapter:
    """Guess plausible URLs from query tokens without any network call.

    Never raises and never returns an empty list.
    """

    name = "emergency"

    def __init__(self, max_results: int = DEFAULT_MAX_RESULTS) -> None:
        self._max_results = min(max_results, SCRAPE_RESULT_CAP)

    @staticmethod
    def tokens(query: str) -> list[str]:
        cleaned = re.sub(r"[^a-z0-9\s]", "", (query or "").lower()).strip()
        return [word for word in cleaned.split() if len(word) > 2]

    def build_candidates(self, query: str) -> list[str]:
        query = (query or "").strip()
        slug = re.sub(r"\s+", "_", query)
        article = f"https://en.wikipedia.org/wiki/{_encode_component(slug)}"
        words = self.tokens(query)
        if not words:
            return [article]

        main_word = words[0]
        candidates = [article]
        if len(main_word) > 3:
            candidates.append(f"https://{main_word}.com")
            candidates.append(f"https://www.{main_word}.org")
        candidates.append(f"https://www.reddit.com/search/?q={_encode_component(query)}")
        return candidates[: self._max_results]

    async def resolve(self, query: str) -> list[str]:
        candidates = self.build_candidates(query)
        logger.info("Emergency fallback returning: %s", ", ".join(candidates))
        return candidates
