"""
HTTP API adapter for clai.

Architectural role:
- Expose acquisition and analysis over JSON endpoints.
- Enforce adapter-level input validation.
- Delegate work to `WebAcquisitionModule` and `clai.core.engine.analyze`.

Endpoint responsibilities:
- `GET /health`: liveness probe.
- `POST /v1/acquire`: return acquired content records for an input.
- `POST /v1/analyze`: return summary, links, and sources for an input.

Input validation behavior:
- Blank `input` -> HTTP 400.
- No resolvable model client for `/v1/analyze` -> HTTP 503.

Error handling strategy:
- Acquisition never raises; total failure is an empty `results` list.
- Model failures are logged and mapped to HTTP 502 with a sanitized message.

Dependency wiring:
- `get_llm_client` and `get_acquirer` are FastAPI dependencies so tests and
  deployments can override them via `app.dependency_overrides`.
"""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from clai.core.engine import AcquirerProtocol, analyze
from clai.llm.client import LLMClient, LLMError
from clai.retrieval.web.web_module import WebAcquisitionModule


logger = logging.getLogger(__name__)

app = FastAPI(title="clai")


# ============================================================
# Request Schemas
# ============================================================

class AcquireRequest(BaseModel):
    input: str


class AnalyzeRequest(BaseModel):
    input: str
    crawl: bool = True


# ============================================================
# Dependencies
# ============================================================

def get_llm_client():
    """Resolve the model client from environment; `None` when unavailable."""
    try:
        return LLMClient.from_env()
    except LLMError as e:
        logger.warning("LLM client unavailable: %s", e)
        return None


def get_acquirer() -> AcquirerProtocol:
    return WebAcquisitionModule()


def _bad_input():
    return JSONResponse(status_code=400, content={"error": "No input provided"})


# ============================================================
# Endpoints
# ============================================================

@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/v1/acquire")
async def acquire(body: AcquireRequest, acquirer: AcquirerProtocol = Depends(get_acquirer)):
    """Return every acquired record, unfiltered."""
    if not body.input.strip():
        return _bad_input()

    records = await acquirer.acquire(body.input)
    return {
        "input": body.input,
        "results": [record.to_dict() for record in records],
    }


@app.post("/v1/analyze")
async def analyze_input(
    body: AnalyzeRequest,
    client=Depends(get_llm_client),
    acquirer: AcquirerProtocol = Depends(get_acquirer),
):
    """Summarize web content for the input, or answer from model knowledge."""
    if not body.input.strip():
        return _bad_input()

    if client is None:
        return JSONResponse(status_code=503, content={"error": "Model client is not configured."})

    try:
        result = await analyze(body.input, client, use_crawling=body.crawl, acquirer=acquirer)
    except LLMError as e:
        logger.exception("Analysis failed for input=%r", body.input)
        return JSONResponse(status_code=502, content={"error": str(e)})

    return result.to_dict()
