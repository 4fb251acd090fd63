"""Liveness probe for published llms.txt files on crawled domains."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.models import DomainStatus
from app.repositories import PostgresCrawlResultRepository, PostgresDomainStatusRepository

logger = logging.getLogger(__name__)


def unique_domains(urls: list[str]) -> list[str]:
    """Hostnames of ``urls`` in first-seen order; unparsable URLs are skipped."""
    domains = []
    for url in urls:
        try:
            hostname = urlparse(url).hostname
        except ValueError:
            continue
        if hostname:
            domains.append(hostname)
    return list(dict.fromkeys(domains))


def needs_update(statuses: list[DomainStatus], stale_after: timedelta, now: datetime | None = None) -> bool:
    """True if any domain was never checked or was checked too long ago."""
    now = now or datetime.now(timezone.utc)
    return any(
        status.last_checked is None or now - _aware(status.last_checked) > stale_after
        for status in statuses
    )


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class DomainChecker:
    """Issues ``HEAD https://{domain}/llms.txt`` and records the outcome.

    Any fetch failure counts as "no llms.txt"; the probe never raises for
    an individual domain.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = settings.domain_check_timeout_seconds
        self.user_agent = settings.user_agent
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": self.user_agent},
            transport=self.transport,
        )

    async def has_llms_txt(self, client: httpx.AsyncClient, domain: str) -> bool:
        try:
            response = await client.head(f"https://{domain}/llms.txt")
            return response.is_success
        except httpx.HTTPError as e:
            logger.info(f"Error checking {domain}: {e}")
            return False

    async def check_domains(self, domains: list[str]) -> dict[str, bool]:
        """Probe all domains concurrently."""
        async with self._client() as client:
            results = await asyncio.gather(
                *(self.has_llms_txt(client, domain) for domain in domains)
            )
        return dict(zip(domains, results))

    async def check_all(self, session: AsyncSession) -> list[DomainStatus]:
        """Probe every domain seen in crawl results and upsert its status."""
        urls = await PostgresCrawlResultRepository(session).get_distinct_urls()
        domains = unique_domains(urls)
        logger.info(f"Checking llms.txt on {len(domains)} domains")

        outcomes = await self.check_domains(domains)

        repo = PostgresDomainStatusRepository(session)
        statuses = [
            await repo.upsert(domain, has_llms_txt)
            for domain, has_llms_txt in outcomes.items()
        ]
        found = sum(1 for s in statuses if s.has_llms_txt)
        logger.info(f"Domain check finished: {found}/{len(statuses)} publish llms.txt")
        return statuses
