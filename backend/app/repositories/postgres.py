"""PostgreSQL repository implementations."""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models import CrawlResult, DomainStatus


class PostgresCrawlResultRepository:
    """PostgreSQL implementation of crawl result repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, result: CrawlResult) -> CrawlResult:
        """Append a crawl result."""
        self.session.add(result)
        await self.session.flush()
        return result

    async def get_latest(self, limit: int = 100) -> list[CrawlResult]:
        """Get the most recent results, newest first."""
        result = await self.session.execute(
            select(CrawlResult).order_by(CrawlResult.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def get_distinct_urls(self) -> list[str]:
        """Get every source URL that has at least one result."""
        result = await self.session.execute(
            select(CrawlResult.url).group_by(CrawlResult.url)
        )
        return list(result.scalars().all())


class PostgresDomainStatusRepository:
    """PostgreSQL implementation of domain status repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_domain(self, domain: str) -> DomainStatus | None:
        result = await self.session.execute(
            select(DomainStatus).where(DomainStatus.domain == domain)
        )
        return result.scalar_one_or_none()

    async def get_all(self) -> list[DomainStatus]:
        """Get all statuses, most recently checked first."""
        result = await self.session.execute(
            select(DomainStatus).order_by(DomainStatus.last_checked.desc().nulls_last())
        )
        return list(result.scalars().all())

    async def upsert(self, domain: str, has_llms_txt: bool) -> DomainStatus:
        """Insert or update the probe outcome for a domain."""
        status = await self.get_by_domain(domain)
        if status is None:
            status = DomainStatus(domain=domain, created_at=datetime.now(timezone.utc))
            self.session.add(status)
        status.mark_checked(has_llms_txt)
        await self.session.flush()
        return status


class PostgresResultStore:
    """Persists finished crawl output in its own short-lived session."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def save(
        self,
        url: str,
        llms_txt: str,
        llms_full_txt: str,
        ip_address: str | None,
    ) -> None:
        async with self.session_factory() as session:
            repo = PostgresCrawlResultRepository(session)
            await repo.save(
                CrawlResult(
                    url=url,
                    llms_txt=llms_txt,
                    llms_full_txt=llms_full_txt,
                    ip_address=ip_address or "unknown",
                )
            )
            await session.commit()
