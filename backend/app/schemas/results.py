"""Response models for stored crawl results and domain status."""

from datetime import datetime

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from app.schemas.crawl import CamelModel


class ORMCamelModel(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class CrawlResultResponse(ORMCamelModel):
    id: int
    url: str
    llms_txt: str
    llms_full_txt: str
    ip_address: str | None = None
    created_at: datetime


class CrawlStats(CamelModel):
    total_crawls: int
    today_crawls: int
    unique_ips: int
    unique_urls: int


class CrawlResultListResponse(CamelModel):
    results: list[CrawlResultResponse]
    stats: CrawlStats


class DomainStatusResponse(ORMCamelModel):
    id: int = 0
    domain: str
    has_llms_txt: bool = False
    last_checked: datetime | None = None
    created_at: datetime | None = None


class DomainStatusListResponse(CamelModel):
    domains: list[DomainStatusResponse]
    needs_update: bool


class DomainCheckResponse(CamelModel):
    checked: int
    domains: list[DomainStatusResponse]
