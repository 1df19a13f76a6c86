"""Browser-shaped outbound HTTP requests.

Architectural role:
    Single choke point for every network call made by provider adapters and the
    fetch stage. Attaches a realistic browser header set and rotates the
    User-Agent on each call so a burst of requests does not share a stable
    fingerprint.

Request policy:
    - One best-effort request per invocation. No retry, no rate limiting.
    - Callers must not loop retries against the same endpoint.
    - Caller-supplied headers override the defaults (case-insensitive).

Timeouts:
    Enforced by the underlying `httpx.AsyncClient` built in `create_http_client`.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BrowserProfile:
    """User-Agent string plus the client hints that browser actually sends.

    Firefox and Safari do not emit `Sec-CH-UA*` headers, so their profiles carry
    none; Chromium-based profiles carry a brand list matching their version.
    """

    user_agent: str
    client_hints: Mapping[str, str] = field(default_factory=dict)


_CHROME_HINTS = '"Google Chrome";v="131", "Chromium";v="131", "Not_A Brand";v="24"'
_EDGE_HINTS = '"Microsoft Edge";v="131", "Chromium";v="131", "Not_A Brand";v="24"'


def _chromium_hints(brands: str, platform: str) -> dict[str, str]:
    return {
        "Sec-CH-UA": brands,
        "Sec-CH-UA-Mobile": "?0",
        "Sec-CH-UA-Platform": f'"{platform}"',
    }


BROWSER_PROFILES: tuple[BrowserProfile, ...] = (
    # Chrome on macOS
    BrowserProfile(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
        _chromium_hints(_CHROME_HINTS, "macOS"),
    ),
    # Chrome on Windows
    BrowserProfile(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
        _chromium_hints(_CHROME_HINTS, "Windows"),
    ),
    # Firefox on macOS
    BrowserProfile(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:132.0) Gecko/20100101 Firefox/132.0",
    ),
    # Firefox on Windows
    BrowserProfile(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:132.0) Gecko/20100101 Firefox/132.0",
    ),
    # Safari on macOS
    BrowserProfile(
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/18.1 Safari/605.1.15",
    ),
    # Edge on Windows
    BrowserProfile(
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36 Edg/131.0.0.0",
        _chromium_hints(_EDGE_HINTS, "Windows"),
    ),
)

USER_AGENTS: tuple[str, ...] = tuple(profile.user_agent for profile in BROWSER_PROFILES)

# Headers shared by every profile. `br` is left out because httpx only decodes
# brotli when the optional `brotli` package is installed.
BASE_HEADERS: dict[str, str] = {
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Cache-Control": "max-age=0",
}


def create_http_client(
    timeout_seconds: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Build the async transport used for one acquisition call.

    Args:
        timeout_seconds: Per-request timeout applied to connect/read/write/pool.
        transport: Optional transport override (tests use `httpx.MockTransport`).

    Returns:
        Redirect-following `httpx.AsyncClient`. The caller owns closing it.
    """
    return httpx.AsyncClient(
        timeout=timeout_seconds,
        follow_redirects=True,
        transport=transport,
    )


class BrowserRequester:
    """Issue single GET requests that look like a desktop browser navigation.

    Args:
        client: Shared async client for the current acquisition call.
        rng: Random source for profile rotation; injectable for deterministic
            tests. Defaults to the module-level `random` functions.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        rng: random.Random | None = None,
        profiles: tuple[BrowserProfile, ...] = BROWSER_PROFILES,
    ) -> None:
        if not profiles:
            raise ValueError("At least one browser profile is required")
        self._client = client
        self._rng = rng or random
        self._profiles = profiles

    def pick_profile(self) -> BrowserProfile:
        return self._rng.choice(self._profiles)

    def build_headers(self, overrides: Mapping[str, str] | None = None) -> httpx.Headers:
        """Compose default browser headers with a freshly rotated profile.

        Args:
            overrides: Caller headers; these replace defaults with the same name
                regardless of case.

        Returns:
            Case-insensitive header collection ready to send.
        """
        profile = self.pick_profile()
        headers = httpx.Headers(BASE_HEADERS)
        headers["User-Agent"] = profile.user_agent
        headers.update(profile.client_hints)
        if overrides:
            headers.update(overrides)
        return headers

    async def request(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        """Perform one GET request with browser-like headers.

        Raises:
            httpx.HTTPError: Transport failures and timeouts propagate unchanged;
                status codes are not checked here.
        """
        response = await self._client.get(
            url,
            headers=self.build_headers(headers),
            params=params,
        )
        logger.debug("GET %s -> %s", response.request.url, response.status_code)
        return response
