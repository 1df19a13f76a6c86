"""Summary data contracts shared by `clai.llm.service` and `clai.core.engine`.

Architectural role:
    `SummaryResult` is what one model call returns; `SummaryOutput` is what
    `engine.analyze` hands to the CLI and HTTP adapters, with the list of sources
    the summary was grounded on.

Determinism:
    The data classes are purely structural and state-free.
"""

from dataclasses import asdict, dataclass, field


KNOWLEDGE_BASE_SOURCE = "OpenAI Knowledge Base"


@dataclass(frozen=True)
class SummaryLink:
    """One link extracted or recommended by the model."""

    name: str
    url: str


@dataclass(frozen=True)
class SummaryResult:
    """Structured model response.

    Attributes:
        textual: Markdown summary or answer.
        links: Links the model extracted from content or recommended.
    """

    textual: str
    links: tuple[SummaryLink, ...] = ()


@dataclass(frozen=True)
class SummaryOutput:
    """Final analysis result returned to interface adapters.

    Attributes:
        summary: Trimmed summary text.
        links: Links from the model response.
        sources: URLs of the useful acquired pages, or the knowledge-base label
            when the answer was not grounded on web content.
    """

    summary: str
    links: tuple[SummaryLink, ...] = ()
    sources: list[str] = field(default_factory=list)

    @property
    def grounded(self) -> bool:
        return self.sources != [KNOWLEDGE_BASE_SOURCE]

    def to_dict(self) -> dict:
        return asdict(self)
