"""Dependency injection for FastAPI routes."""

from typing import Annotated, Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.database import get_db
from app.services.domain_checker import DomainChecker
from app.services.job_store import JobStore, get_job_store

# (job_id, request payload, client ip)
CrawlDispatcher = Callable[[str, dict, str], object]


def get_crawl_dispatcher() -> CrawlDispatcher:
    """Hand crawl jobs to the Celery worker."""
    from app.workers.tasks import run_crawl_job

    return run_crawl_job.delay


def get_domain_checker(settings: Annotated[Settings, Depends(get_settings)]) -> DomainChecker:
    return DomainChecker(settings)


# Type aliases for dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]
JobStoreDep = Annotated[JobStore, Depends(get_job_store)]
DispatcherDep = Annotated[CrawlDispatcher, Depends(get_crawl_dispatcher)]
DomainCheckerDep = Annotated[DomainChecker, Depends(get_domain_checker)]
