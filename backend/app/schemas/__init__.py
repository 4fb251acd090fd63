"""Pydantic models for the crawl domain."""

from app.schemas.crawl import (
    AiGeneratedMetadata,
    CrawlError,
    CrawlProgress,
    CrawlRequest,
    HeuristicMetadata,
    JobStatus,
    LlmsTxtContent,
    LlmsTxtStructure,
    PageCategory,
    ProcessedPage,
)
from app.schemas.results import (
    CrawlResultListResponse,
    CrawlResultResponse,
    CrawlStats,
    DomainCheckResponse,
    DomainStatusListResponse,
    DomainStatusResponse,
)

__all__ = [
    "AiGeneratedMetadata",
    "CrawlError",
    "CrawlProgress",
    "CrawlRequest",
    "CrawlResultListResponse",
    "CrawlResultResponse",
    "CrawlStats",
    "DomainCheckResponse",
    "DomainStatusListResponse",
    "DomainStatusResponse",
    "HeuristicMetadata",
    "JobStatus",
    "LlmsTxtContent",
    "LlmsTxtStructure",
    "PageCategory",
    "ProcessedPage",
]
