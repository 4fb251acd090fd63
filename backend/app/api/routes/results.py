"""Stored crawl result listing."""

from datetime import datetime, timezone

from fastapi import APIRouter

from app.api.deps import DbSession
from app.models import CrawlResult
from app.repositories import PostgresCrawlResultRepository
from app.schemas import CrawlResultListResponse, CrawlResultResponse, CrawlStats

router = APIRouter()

RESULT_LIST_LIMIT = 100


def summarize_results(results: list[CrawlResult], now: datetime | None = None) -> CrawlStats:
    """Counts over the listed results; "today" starts at UTC midnight."""
    now = now or datetime.now(timezone.utc)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    def created(result: CrawlResult) -> datetime:
        value = result.created_at
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    return CrawlStats(
        total_crawls=len(results),
        today_crawls=sum(1 for r in results if created(r) >= midnight),
        unique_ips=len({r.ip_address for r in results}),
        unique_urls=len({r.url for r in results}),
    )


@router.get("/crawl-results", response_model=CrawlResultListResponse)
async def list_crawl_results(db: DbSession) -> CrawlResultListResponse:
    """Latest crawl results with summary statistics."""
    results = await PostgresCrawlResultRepository(db).get_latest(RESULT_LIST_LIMIT)

    return CrawlResultListResponse(
        results=[CrawlResultResponse.model_validate(r) for r in results],
        stats=summarize_results(results),
    )
