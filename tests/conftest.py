"""Shared test fixtures and helpers."""

import random
from pathlib import Path
import sys

import httpx
import pytest
import pytest_asyncio


REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from clai.retrieval.web.request_layer import BrowserRequester  # noqa: E402


PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <title>{title}</title>
  {head_extra}
  <style>body {{ color: red; }}</style>
</head>
<body>
  <h1>{title}</h1>
  <p>{body}</p>
  <script>var tracking = "should not appear";</script>
</body>
</html>
"""


def html_page(title="Giraffe", body="Giraffes are the tallest living animals.", head_extra=""):
    return PAGE_TEMPLATE.format(title=title, body=body, head_extra=head_extra)


class CyclingRng:
    """Deterministic stand-in for `random` that walks through a sequence."""

    def __init__(self, start=0):
        self.position = start

    def choice(self, seq):
        item = seq[self.position % len(seq)]
        self.position += 1
        return item


@pytest.fixture
def seeded_rng():
    return random.Random(1234)


@pytest_asyncio.fixture
async def make_requester():
    """Build `BrowserRequester` instances backed by `httpx.MockTransport`."""
    clients = []

    def factory(handler, rng=None):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
        clients.append(client)
        return BrowserRequester(client, rng=rng or random.Random(0))

    yield factory

    for client in clients:
        await client.aclose()


@pytest.fixture
def cycling_rng():
    """Factory for `CyclingRng` instances."""
    return CyclingRng


@pytest.fixture
def page():
    """Factory for small HTML documents."""
    return html_page
