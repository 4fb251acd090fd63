"""Crawl domain models shared by the API, the job store and the services.

Field names are snake_case in Python and camelCase on the wire, which is
what the polling client reads.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JobStatus(str, Enum):
    """Crawl job lifecycle. Transitions only move forward."""

    PENDING = "pending"
    CRAWLING = "crawling"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)

    def can_transition_to(self, new: "JobStatus") -> bool:
        """Whether moving from this status to ``new`` keeps the order monotonic."""
        if self.is_terminal:
            return False
        return _STATUS_RANK[new] >= _STATUS_RANK[self]


_STATUS_RANK = {
    JobStatus.PENDING: 0,
    JobStatus.CRAWLING: 1,
    JobStatus.PROCESSING: 2,
    JobStatus.COMPLETED: 3,
    JobStatus.ERROR: 3,
}


class PageCategory(str, Enum):
    MAIN_NAVIGATION = "Main Navigation"
    GETTING_STARTED = "Getting Started"
    API_DOCUMENTATION = "API Documentation"
    TUTORIAL = "Tutorial"
    DOCUMENTATION = "Documentation"
    REFERENCE = "Reference"
    BLOG = "Blog"
    LEGAL = "Legal"


class CrawlRequest(CamelModel):
    """Input for one crawl. Immutable once the crawl starts."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    url: str
    max_depth: int = Field(default=3, ge=1)
    include_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()
    respect_robots_txt: bool = True  # Advisory only

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        value = value.strip()
        if not value or not value.startswith("http"):
            raise ValueError("Invalid URL provided")
        return value


class ProcessedPage(CamelModel):
    """One successfully extracted and classified page."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    url: str
    title: str = "Untitled"
    content: str
    category: PageCategory
    importance: float = Field(ge=0.0, le=1.0)
    # ContentExtractor drops pages below settings.min_word_count (50) before building one
    word_count: int = Field(ge=0)
    last_modified: datetime = Field(default_factory=utcnow)


class CrawlError(CamelModel):
    url: str
    error: str
    timestamp: datetime = Field(default_factory=utcnow)


class LlmsTxtStructure(CamelModel):
    pages: list[ProcessedPage] = Field(default_factory=list)


class HeuristicMetadata(CamelModel):
    """Metadata for output synthesized without a language model."""

    kind: Literal["heuristic"] = "heuristic"
    website_url: str
    generated_at: datetime = Field(default_factory=utcnow)
    total_pages: int = 0
    categories: list[str] = Field(default_factory=list)


class AiGeneratedMetadata(HeuristicMetadata):
    """Metadata for output whose summary prose came from a language model."""

    kind: Literal["ai_generated"] = "ai_generated"  # type: ignore[assignment]
    ai_content: str


LlmsTxtMetadata = Annotated[
    HeuristicMetadata | AiGeneratedMetadata,
    Field(discriminator="kind"),
]


class LlmsTxtContent(CamelModel):
    """Synthesized artifact: pages sorted by importance plus metadata."""

    structure: LlmsTxtStructure
    metadata: LlmsTxtMetadata

    @property
    def pages(self) -> list[ProcessedPage]:
        return self.structure.pages

    @property
    def is_ai_generated(self) -> bool:
        return isinstance(self.metadata, AiGeneratedMetadata)


class CrawlProgress(CamelModel):
    """Polled state of one crawl job."""

    job_id: str
    status: JobStatus = JobStatus.PENDING
    total_pages: int = 0
    processed_pages: int = 0
    current_page: str = ""
    errors: list[CrawlError] = Field(default_factory=list)
    estimated_time_remaining: int = 0
    generated_content: LlmsTxtContent | None = None
    timestamp: datetime = Field(default_factory=utcnow)
