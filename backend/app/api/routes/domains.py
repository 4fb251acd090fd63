"""llms.txt availability of crawled domains."""

from datetime import timedelta

from fastapi import APIRouter

from app.api.deps import AppSettings, DbSession, DomainCheckerDep
from app.repositories import PostgresCrawlResultRepository, PostgresDomainStatusRepository
from app.schemas import DomainCheckResponse, DomainStatusListResponse, DomainStatusResponse
from app.services.domain_checker import needs_update, unique_domains

router = APIRouter()


@router.post("/check-domains", response_model=DomainCheckResponse)
async def check_domains(db: DbSession, checker: DomainCheckerDep) -> DomainCheckResponse:
    """Probe every crawled domain now."""
    statuses = await checker.check_all(db)
    return DomainCheckResponse(
        checked=len(statuses),
        domains=[DomainStatusResponse.model_validate(s) for s in statuses],
    )


@router.get("/domain-status", response_model=DomainStatusListResponse)
async def get_domain_status(db: DbSession, settings: AppSettings) -> DomainStatusListResponse:
    """Known status of every crawled domain; unchecked ones have no lastChecked."""
    urls = await PostgresCrawlResultRepository(db).get_distinct_urls()
    statuses = await PostgresDomainStatusRepository(db).get_all()
    by_domain = {status.domain: status for status in statuses}

    checked = []
    domains = []
    for domain in unique_domains(urls):
        status = by_domain.get(domain)
        if status is None:
            domains.append(DomainStatusResponse(domain=domain))
        else:
            checked.append(status)
            domains.append(DomainStatusResponse.model_validate(status))

    never_checked = len(domains) > len(checked)
    stale = needs_update(checked, timedelta(minutes=settings.domain_status_stale_minutes))

    return DomainStatusListResponse(domains=domains, needs_update=never_checked or stale)
