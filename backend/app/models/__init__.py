"""SQLAlchemy models."""

from app.models.crawl_result import CrawlResult
from app.models.domain_status import DomainStatus

__all__ = [
    "CrawlResult",
    "DomainStatus",
]
