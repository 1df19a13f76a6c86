"""Unit tests for search provider adapters."""

import json

import httpx
import pytest

from clai.retrieval.web.providers import (
    DuckDuckGoAdapter,
    EmergencyAdapter,
    GoogleScrapeAdapter,
    ProviderBlockedError,
    ProviderError,
    SearxAdapter,
    WikipediaAdapter,
    host_matches,
    phrase_block_predicate,
    unique_capped,
)


GOOGLE_RESULTS = """
<html><body>
  <a href="/url?q=https%3A%2F%2Fexample.com%2Fgiraffe&amp;sa=U&amp;ved=1">Giraffe</a>
  <a href="/url?q=https://www.youtube.com/watch%3Fv%3Dabc&amp;sa=U">Video</a>
  <a href="/url?q=https://maps.google.com/&amp;sa=U">Maps</a>
  <a href="/url?q=https://example.com/giraffe&amp;sa=U">Duplicate</a>
  <a href="https://docs.example.org/animals">Direct</a>
  <a href="https://accounts.google.com/login">Sign in</a>
  <a href="https://zoo.example.net/">Zoo</a>
  <a href="https://fourth.example.net/">Fourth</a>
</body></html>
"""

GOOGLE_BLOCK_PAGE = """
<html><body>
<div>Our systems have detected unusual traffic from your computer network.</div>
<form action="/sorry/index"><div class="g-recaptcha"></div></form>
</body></html>
"""


def _searx_payload(*urls):
    return {"results": [{"url": url, "title": url} for url in urls]}


@pytest.mark.unit
class TestHelpers:
    def test_host_matches_subdomains_only(self):
        assert host_matches("https://en.wikipedia.org/wiki/X", ["wikipedia.org"])
        assert host_matches("https://wikipedia.org/", ["wikipedia.org"])
        assert not host_matches("https://notwikipedia.org/", ["wikipedia.org"])

    def test_unique_capped_preserves_order(self):
        assert unique_capped(["a", "b", "a", "c", "d"], 3) == ["a", "b", "c"]

    def test_phrase_predicate_is_case_insensitive(self):
        is_blocked = phrase_block_predicate(["Unusual Traffic"])

        assert is_blocked("we saw UNUSUAL traffic")
        assert not is_blocked("all good")
        assert not is_blocked(None)


@pytest.mark.unit
@pytest.mark.asyncio
class TestSearxAdapter:
    async def test_first_responsive_mirror_wins_with_filtering(self, make_requester):
        seen_hosts = []

        def handler(request):
            seen_hosts.append(request.url.host)
            if request.url.host == "searx.one":
                return httpx.Response(500, text="oops")
            return httpx.Response(
                200,
                json=_searx_payload(
                    "https://en.wikipedia.org/wiki/Giraffe",
                    "https://searx.two/about",
                    "https://cdnjs.cloudflare.com/lib.js",
                    "https://example.com/giraffe",
                    "https://example.com/giraffe",
                    "ftp://files.example.com/giraffe",
                    "https://late.example.com/ignored-beyond-five",
                ),
            )

        adapter = SearxAdapter(
            make_requester(handler),
            instances=["https://searx.one", "https://searx.two", "https://searx.three"],
        )

        urls = await adapter.resolve("giraffe height")

        assert urls == ["https://example.com/giraffe"]
        assert seen_hosts == ["searx.one", "searx.two"]

    async def test_sends_json_search_request(self, make_requester):
        captured = {}

        def handler(request):
            captured["request"] = request
            return httpx.Response(200, json=_searx_payload("https://a.example/1"))

        adapter = SearxAdapter(make_requester(handler), instances=["https://searx.one/"])
        await adapter.resolve("giraffe")

        request = captured["request"]
        assert request.url.path == "/search"
        assert request.url.params["format"] == "json"
        assert request.url.params["categories"] == "general"
        assert request.headers["Accept"] == "application/json"

    async def test_caps_at_three_results(self, make_requester):
        payload = _searx_payload(*(f"https://site{i}.example/" for i in range(5)))
        adapter = SearxAdapter(
            make_requester(lambda request: httpx.Response(200, json=payload)),
            instances=["https://searx.one"],
        )

        assert len(await adapter.resolve("q")) == 3

    async def test_larger_configured_limit_still_caps_at_three(self, make_requester):
        payload = _searx_payload(*(f"https://site{i}.example/" for i in range(5)))
        adapter = SearxAdapter(
            make_requester(lambda request: httpx.Response(200, json=payload)),
            instances=["https://searx.one"],
            max_results=5,
        )

        assert len(await adapter.resolve("q")) == 3

    async def test_empty_filtered_results_move_to_next_mirror(self, make_requester):
        def handler(request):
            if request.url.host == "searx.one":
                return httpx.Response(200, json=_searx_payload("https://en.wikipedia.org/wiki/A"))
            return httpx.Response(200, json=_searx_payload("https://b.example/"))

        adapter = SearxAdapter(
            make_requester(handler),
            instances=["https://searx.one", "https://searx.two"],
        )

        assert await adapter.resolve("q") == ["https://b.example/"]

    async def test_all_mirrors_failing_raises(self, make_requester):
        def handler(request):
            if request.url.host == "searx.one":
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, text="<html>not json</html>")

        adapter = SearxAdapter(
            make_requester(handler),
            instances=["https://searx.one", "https://searx.two"],
        )

        with pytest.raises(ProviderError) as exc_info:
            await adapter.resolve("q")

        assert not isinstance(exc_info.value, ProviderBlockedError)
        assert exc_info.value.provider == "searx"

    async def test_all_mirrors_blocked_raises_blocked(self, make_requester):
        adapter = SearxAdapter(
            make_requester(lambda request: httpx.Response(429, text="<h1>Too Many Requests</h1>")),
            instances=["https://searx.one", "https://searx.two"],
        )

        with pytest.raises(ProviderBlockedError):
            await adapter.resolve("q")


@pytest.mark.unit
@pytest.mark.asyncio
class TestGoogleScrapeAdapter:
    async def test_extracts_redirect_and_bare_links(self, make_requester):
        captured = {}

        def handler(request):
            captured["request"] = request
            return httpx.Response(200, html=GOOGLE_RESULTS)

        adapter = GoogleScrapeAdapter(make_requester(handler))

        urls = await adapter.resolve("giraffe height")

        assert urls == [
            "https://example.com/giraffe",
            "https://docs.example.org/animals",
            "https://zoo.example.net/",
        ]
        assert captured["request"].url.params["q"] == "giraffe height"
        assert captured["request"].url.params["num"] == "10"

    async def test_block_page_rejects_instead_of_empty_success(self, make_requester):
        adapter = GoogleScrapeAdapter(
            make_requester(lambda request: httpx.Response(200, html=GOOGLE_BLOCK_PAGE))
        )

        with pytest.raises(ProviderBlockedError):
            await adapter.resolve("giraffe")

    async def test_block_page_with_429_is_blocked(self, make_requester):
        adapter = GoogleScrapeAdapter(
            make_requester(lambda request: httpx.Response(429, html=GOOGLE_BLOCK_PAGE))
        )

        with pytest.raises(ProviderBlockedError):
            await adapter.resolve("giraffe")

    async def test_no_results_is_plain_failure(self, make_requester):
        adapter = GoogleScrapeAdapter(
            make_requester(lambda request: httpx.Response(200, html="<html><body>nothing</body></html>"))
        )

        with pytest.raises(ProviderError) as exc_info:
            await adapter.resolve("giraffe")

        assert not isinstance(exc_info.value, ProviderBlockedError)

    async def test_larger_configured_limit_still_caps_at_three(self, make_requester):
        links = "".join(f'<a href="https://site{i}.example/">{i}</a>' for i in range(5))
        adapter = GoogleScrapeAdapter(
            make_requester(lambda request: httpx.Response(200, html=links)),
            max_results=5,
        )

        assert len(await adapter.resolve("giraffe")) == 3

    async def test_block_predicate_is_pluggable(self, make_requester):
        adapter = GoogleScrapeAdapter(
            make_requester(lambda request: httpx.Response(200, html=GOOGLE_RESULTS + "custom-wall")),
            is_blocked=lambda raw: "custom-wall" in raw,
        )

        with pytest.raises(ProviderBlockedError):
            await adapter.resolve("giraffe")

    async def test_transport_error_is_provider_error(self, make_requester):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(ProviderError):
            await GoogleScrapeAdapter(make_requester(handler)).resolve("giraffe")


@pytest.mark.unit
class TestGoogleResultParsing:
    def test_decodes_wrapped_target(self):
        links = GoogleScrapeAdapter.parse_result_links(
            '<a href="/url?q=https%3A%2F%2Fexample.com%2Fa%3Fb%3D1&amp;sa=U">x</a>'
        )

        assert links == ["https://example.com/a?b=1"]

    def test_keeps_page_order_and_duplicates(self):
        links = GoogleScrapeAdapter.parse_result_links(GOOGLE_RESULTS)

        assert links[0] == "https://example.com/giraffe"
        assert links.count("https://example.com/giraffe") == 2


@pytest.mark.unit
@pytest.mark.asyncio
class TestDuckDuckGoAdapter:
    @staticmethod
    def _response(payload, status=200):
        return httpx.Response(
            status,
            content=json.dumps(payload).encode(),
            headers={"content-type": "application/x-javascript"},
        )

    async def test_abstract_and_related_topics(self, make_requester):
        payload = {
            "AbstractURL": "https://en.wikipedia.org/wiki/Giraffe",
            "RelatedTopics": [
                {"FirstURL": "https://duckduckgo.com/Okapi", "Text": "Okapi"},
                {"Name": "Group", "Topics": [{"FirstURL": "https://duckduckgo.com/Nested"}]},
                {"FirstURL": "https://duckduckgo.com/Third", "Text": "Third"},
            ],
        }
        adapter = DuckDuckGoAdapter(make_requester(lambda request: self._response(payload)))

        urls = await adapter.resolve("giraffe")

        assert urls == ["https://en.wikipedia.org/wiki/Giraffe", "https://duckduckgo.com/Okapi"]

    async def test_related_topics_alone_are_enough(self, make_requester):
        payload = {"AbstractURL": "", "RelatedTopics": [{"FirstURL": "https://duckduckgo.com/A"}]}
        adapter = DuckDuckGoAdapter(make_requester(lambda request: self._response(payload)))

        assert await adapter.resolve("a") == ["https://duckduckgo.com/A"]

    async def test_empty_answer_fails(self, make_requester):
        payload = {"AbstractURL": "", "RelatedTopics": []}
        adapter = DuckDuckGoAdapter(make_requester(lambda request: self._response(payload)))

        with pytest.raises(ProviderError):
            await adapter.resolve("zzzz")

    async def test_non_javascript_notice_is_blocked(self, make_requester):
        notice = "<html>You are being redirected to the non-JavaScript site.</html>"
        adapter = DuckDuckGoAdapter(
            make_requester(lambda request: httpx.Response(200, html=notice))
        )

        with pytest.raises(ProviderBlockedError):
            await adapter.resolve("giraffe")

    async def test_non_json_body_fails(self, make_requester):
        adapter = DuckDuckGoAdapter(
            make_requester(lambda request: httpx.Response(200, text="not json"))
        )

        with pytest.raises(ProviderError):
            await adapter.resolve("giraffe")


@pytest.mark.unit
@pytest.mark.asyncio
class TestWikipediaAdapter:
    async def test_uses_fourth_element_https_urls(self, make_requester):
        captured = {}

        def handler(request):
            captured["request"] = request
            return httpx.Response(
                200,
                json=[
                    "giraffe",
                    ["Giraffe", "Giraffe (insecure)"],
                    ["", ""],
                    ["https://en.wikipedia.org/wiki/Giraffe", "http://insecure.example/giraffe"],
                ],
            )

        urls = await WikipediaAdapter(make_requester(handler)).resolve("giraffe")

        assert urls == ["https://en.wikipedia.org/wiki/Giraffe"]
        assert captured["request"].url.params["action"] == "opensearch"
        assert captured["request"].url.params["search"] == "giraffe"

    async def test_no_articles_fails(self, make_requester):
        adapter = WikipediaAdapter(
            make_requester(lambda request: httpx.Response(200, json=["zzzz", [], [], []]))
        )

        with pytest.raises(ProviderError):
            await adapter.resolve("zzzz")

    async def test_unexpected_shape_fails(self, make_requester):
        adapter = WikipediaAdapter(
            make_requester(lambda request: httpx.Response(200, json={"error": {"code": "badvalue"}}))
        )

        with pytest.raises(ProviderError):
            await adapter.resolve("giraffe")

    async def test_http_error_status_fails(self, make_requester):
        adapter = WikipediaAdapter(make_requester(lambda request: httpx.Response(503, text="down")))

        with pytest.raises(ProviderError) as exc_info:
            await adapter.resolve("giraffe")

        assert not isinstance(exc_info.value, ProviderBlockedError)

    async def test_rate_limit_page_is_blocked(self, make_requester):
        page = "<html><title>Wikimedia Error</title>Too many requests.</html>"
        adapter = WikipediaAdapter(make_requester(lambda request: httpx.Response(429, html=page)))

        with pytest.raises(ProviderBlockedError):
            await adapter.resolve("giraffe")

    async def test_block_predicate_is_pluggable(self, make_requester):
        adapter = WikipediaAdapter(
            make_requester(lambda request: httpx.Response(200, text="custom-wall")),
            is_blocked=lambda raw: "custom-wall" in raw,
        )

        with pytest.raises(ProviderBlockedError):
            await adapter.resolve("giraffe")

    async def test_titles_matching_block_phrases_are_not_blocks(self, make_requester):
        payload = [
            "too many requests",
            ["Too Many Requests (song)"],
            [""],
            ["https://en.wikipedia.org/wiki/Too_Many_Requests_(song)"],
        ]
        adapter = WikipediaAdapter(make_requester(lambda request: httpx.Response(200, json=payload)))

        assert await adapter.resolve("too many requests") == [
            "https://en.wikipedia.org/wiki/Too_Many_Requests_(song)"
        ]


@pytest.mark.unit
class TestEmergencyAdapter:
    def test_builds_urls_from_main_token(self):
        urls = EmergencyAdapter().build_candidates("giraffe height facts")

        assert urls == [
            "https://en.wikipedia.org/wiki/giraffe_height_facts",
            "https://giraffe.com",
            "https://www.giraffe.org",
        ]

    def test_short_main_token_skips_domain_guesses(self):
        urls = EmergencyAdapter().build_candidates("cat facts")

        assert urls == [
            "https://en.wikipedia.org/wiki/cat_facts",
            "https://www.reddit.com/search/?q=cat%20facts",
        ]

    def test_tokens_are_lowercased_alphanumeric_and_longer_than_two(self):
        assert EmergencyAdapter.tokens("How TALL is a Giraffe?!") == ["how", "tall", "giraffe"]

    def test_never_empty(self):
        urls = EmergencyAdapter().build_candidates("?? !!")

        assert len(urls) == 1
        assert urls[0].startswith("https://en.wikipedia.org/wiki/")

    def test_larger_configured_limit_still_caps_at_three(self):
        assert len(EmergencyAdapter(max_results=5).build_candidates("giraffe height facts")) == 3

    @pytest.mark.asyncio
    async def test_resolve_has_no_network_dependency(self):
        urls = await EmergencyAdapter().resolve("giraffe height facts")

        assert any("giraffe" in url and url.startswith("https://") for url in urls)
