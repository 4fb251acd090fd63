"""Background execution of one crawl job, from pending to a terminal status."""

import asyncio
import logging
import time
from typing import Protocol

from app.config import Settings
from app.schemas import CrawlError, CrawlProgress, CrawlRequest, JobStatus, LlmsTxtContent
from app.services.crawler import BrowserProvider, CrawlerService
from app.services.job_store import JobStore
from app.services.llm_curator import LLMCurator
from app.services.llms_txt_generator import LlmsTxtGenerator, get_generator

logger = logging.getLogger(__name__)


class ResultStore(Protocol):
    async def save(
        self,
        url: str,
        llms_txt: str,
        llms_full_txt: str,
        ip_address: str | None,
    ) -> None: ...


def estimate_time_remaining(processed: int, total: int, elapsed_seconds: float) -> int:
    """Seconds left at the current page rate.

    The page total is assumed to be at least twice what has been processed.
    """
    if processed <= 0 or elapsed_seconds <= 0:
        return 0
    rate = processed / elapsed_seconds
    estimated_total = max(total, processed * 2)
    return round((estimated_total - processed) / rate)


def describe_timeout(seconds: float) -> str:
    if seconds >= 60 and seconds % 60 == 0:
        minutes = int(seconds // 60)
        return f"{minutes} minute{'s' if minutes != 1 else ''}"
    return f"{seconds:g} seconds"


class ProgressReporter:
    """Crawler progress callback that writes to the job store.

    The crawler calls it synchronously; each write is scheduled as a task
    so the traversal never waits on the store. ``drain()`` must be awaited
    before the next lifecycle transition.
    """

    def __init__(self, store: JobStore, job_id: str):
        self.store = store
        self.job_id = job_id
        self.crawler: CrawlerService | None = None
        self.started = time.monotonic()
        self._pending: set[asyncio.Task] = set()

    def __call__(self, processed: int, current_page: str, total: int) -> None:
        eta = estimate_time_remaining(processed, total, time.monotonic() - self.started)
        errors = list(self.crawler.errors) if self.crawler else []

        task = asyncio.create_task(
            self.store.update_job(
                self.job_id,
                processed_pages=processed,
                total_pages=total,
                current_page=current_page,
                estimated_time_remaining=eta,
                errors=errors,
            )
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every scheduled progress write."""
        while self._pending:
            results = await asyncio.gather(*list(self._pending), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    logger.warning(f"Progress update for job {self.job_id} failed: {result}")


class CrawlJobRunner:
    """Runs the crawl, synthesis and persistence for one job id."""

    def __init__(
        self,
        settings: Settings,
        store: JobStore,
        browser: BrowserProvider,
        curator: LLMCurator,
        results: ResultStore | None = None,
        generator: LlmsTxtGenerator | None = None,
    ):
        self.settings = settings
        self.store = store
        self.browser = browser
        self.curator = curator
        self.results = results
        self.generator = generator or get_generator()

    async def wait_for_job(self, job_id: str) -> CrawlProgress | None:
        """Poll a bounded number of times for the job record to appear."""
        attempts = self.settings.job_visibility_attempts
        for attempt in range(1, attempts + 1):
            job = await self.store.get_job(job_id)
            if job is not None:
                return job
            logger.info(f"Job {job_id} not visible yet (attempt {attempt}/{attempts})")
            if attempt < attempts:
                await asyncio.sleep(self.settings.job_visibility_delay_seconds)
        return None

    async def run(
        self,
        job_id: str,
        request: CrawlRequest,
        client_ip: str = "unknown",
    ) -> CrawlProgress | None:
        """Execute the job. Never raises for crawl or synthesis failures."""
        if await self.wait_for_job(job_id) is None:
            logger.error(f"Job {job_id} not found after retries, giving up")
            return None

        reporter = ProgressReporter(self.store, job_id)
        crawler = CrawlerService(self.settings, self.browser, on_progress=reporter)
        reporter.crawler = crawler

        try:
            logger.info(f"Starting crawl process for job {job_id}")
            await self.store.update_job(
                job_id,
                status=JobStatus.CRAWLING,
                current_page=request.url,
            )

            timeout = self.settings.crawl_timeout_seconds
            try:
                pages = await asyncio.wait_for(crawler.crawl(request), timeout=timeout)
            except asyncio.TimeoutError:
                await reporter.drain()
                logger.error(f"Job {job_id} timed out after {describe_timeout(timeout)}")
                return await self.fail(
                    job_id,
                    request.url,
                    f"Crawl operation timed out after {describe_timeout(timeout)}",
                    crawler.errors,
                )

            await reporter.drain()
            logger.info(f"Job {job_id} crawling completed. Found {len(pages)} pages.")

            await self.store.update_job(
                job_id,
                status=JobStatus.PROCESSING,
                current_page="Generating llms.txt...",
                errors=list(crawler.errors),
            )

            content = await self.curator.generate_llms_txt(pages, request.url)
            await self.persist(job_id, request.url, content, client_ip)

            logger.info(f"Job {job_id} marking as completed")
            return await self.store.update_job(
                job_id,
                status=JobStatus.COMPLETED,
                current_page="Completed",
                estimated_time_remaining=0,
                generated_content=content,
            )
        except Exception as e:
            logger.exception(f"Error in crawl job {job_id}: {e}")
            await reporter.drain()
            return await self.fail(job_id, request.url, str(e) or "Unknown error", crawler.errors)

    async def fail(
        self,
        job_id: str,
        url: str,
        message: str,
        errors: list[CrawlError] | None = None,
    ) -> CrawlProgress | None:
        """Move the job to ``error`` with ``message`` appended to its errors."""
        return await self.store.update_job(
            job_id,
            status=JobStatus.ERROR,
            errors=[*(errors or []), CrawlError(url=url, error=message)],
        )

    async def persist(
        self,
        job_id: str,
        url: str,
        content: LlmsTxtContent,
        client_ip: str,
    ) -> bool:
        """Store the result record; failures are logged and never fatal."""
        if self.results is None:
            return False
        try:
            await self.results.save(
                url=url,
                llms_txt=self.generator.summary_markdown(content),
                llms_full_txt=self.generator.full_markdown(content),
                ip_address=client_ip,
            )
        except Exception as e:
            logger.warning(f"Job {job_id} database save failed: {e}")
            return False
        logger.info(f"Job {job_id} saved to database")
        return True
