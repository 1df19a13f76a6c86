"""Data contracts for the web acquisition pipeline.

Architectural role:
    Defines the records exchanged between the input classifier, provider
    adapters, fetch stage, and the caller of `WebAcquisitionModule.acquire`.

Ownership:
    `AcquiredContent` records are created once per successfully fetched URL and
    are immutable afterwards. Candidate URLs are plain strings and live only for
    the duration of one acquisition call.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Literal


InputKind = Literal["url", "query"]


@dataclass(frozen=True)
class AcquiredContent:
    """Structured result of fetching and extracting one page.

    Attributes:
        title: Text of the document `<title>` element, or `""`.
        content: Visible text of the document body, or `""`.
        url: Source URL. The fetch stage records the URL it fetched;
            `extract_html` on its own reports the canonical link or `""`.
    """

    title: str
    content: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class ClassifiedInput:
    """Outcome of input classification.

    Attributes:
        kind: `"url"` when the input is navigable as-is, `"query"` otherwise.
        value: Normalized URL for `"url"`, stripped query text for `"query"`.
    """

    kind: InputKind
    value: str

    @property
    def is_url(self) -> bool:
        return self.kind == "url"
