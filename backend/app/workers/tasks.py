"""Celery task definitions.

These tasks are thin wrappers that call into the service layer.
Each task runs its coroutine in a fresh event loop with its own Redis
client and database engine, since connections cannot cross loops.
"""

import asyncio
import logging
from typing import Any

import redis.asyncio as redis
from celery.exceptions import SoftTimeLimitExceeded
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.config import get_settings
from app.repositories import PostgresResultStore
from app.schemas import CrawlRequest
from app.services.browser import BrowserService
from app.services.crawl_jobs import CrawlJobRunner
from app.services.domain_checker import DomainChecker
from app.services.job_store import JobStore
from app.services.llm_curator import LLMCurator
from app.workers.celery_app import celery_app

settings = get_settings()
logger = logging.getLogger(__name__)


def _job_store() -> JobStore:
    return JobStore(
        redis.from_url(settings.redis_url, decode_responses=True),
        retention_seconds=settings.job_retention_seconds,
        cleanup_interval_seconds=settings.job_cleanup_interval_seconds,
    )


async def _run_crawl(job_id: str, request: CrawlRequest, client_ip: str) -> dict[str, Any]:
    store = _job_store()
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        runner = CrawlJobRunner(
            settings,
            store,
            BrowserService(settings),
            LLMCurator(settings),
            results=PostgresResultStore(async_sessionmaker(engine, expire_on_commit=False)),
        )
        progress = await runner.run(job_id, request, client_ip)
    finally:
        await store.close()
        await engine.dispose()

    if progress is None:
        return {"job_id": job_id, "status": "missing"}
    return {"job_id": job_id, "status": progress.status.value}


async def _fail_job(job_id: str, url: str, message: str) -> None:
    store = _job_store()
    try:
        runner = CrawlJobRunner(settings, store, BrowserService(settings), LLMCurator(settings))
        await runner.fail(job_id, url, message)
    finally:
        await store.close()


@celery_app.task(soft_time_limit=600, time_limit=660)
def run_crawl_job(job_id: str, request: dict, client_ip: str = "unknown") -> dict:
    """Crawl a website and synthesize its llms.txt.

    The job record must already exist; progress and the final content are
    written to the job store.
    """
    crawl_request = CrawlRequest.model_validate(request)
    logger.info(f"=== Starting crawl job {job_id} for {crawl_request.url} ===")

    try:
        return asyncio.run(_run_crawl(job_id, crawl_request, client_ip))
    except SoftTimeLimitExceeded:
        logger.error(f"Job {job_id} exceeded the worker time limit")
        asyncio.run(
            _fail_job(job_id, crawl_request.url, "Crawl operation exceeded the worker time limit")
        )
        return {"job_id": job_id, "status": "error"}


async def _check_domains() -> dict[str, Any]:
    engine = create_async_engine(settings.database_url, poolclass=NullPool)
    try:
        session_factory = async_sessionmaker(engine, expire_on_commit=False)
        async with session_factory() as session:
            statuses = await DomainChecker(settings).check_all(session)
            await session.commit()
    finally:
        await engine.dispose()

    return {
        "checked": len(statuses),
        "with_llms_txt": sum(1 for s in statuses if s.has_llms_txt),
    }


@celery_app.task(soft_time_limit=120, time_limit=150)
def check_domains() -> dict:
    """Probe every crawled domain for a published llms.txt."""
    return asyncio.run(_check_domains())
