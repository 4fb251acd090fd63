"""Crawl job submission and polling routes."""

import json
import logging

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from app.api.deps import DispatcherDep, JobStoreDep
from app.schemas import CrawlError, CrawlRequest, JobStatus
from app.services.job_store import MIN_JOB_ID_LENGTH, generate_job_id

logger = logging.getLogger(__name__)

router = APIRouter()


def get_client_ip(request: Request) -> str:
    """Best-effort originating address from proxy headers."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.headers.get("x-real-ip") or "unknown"


def _parse_crawl_request(payload: object) -> CrawlRequest:
    try:
        return CrawlRequest.model_validate(payload)
    except ValidationError as e:
        url_invalid = any(error["loc"][:1] == ("url",) for error in e.errors())
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid URL provided" if url_invalid else "Invalid crawl request",
        )


@router.post("/crawl")
async def start_crawl(
    request: Request,
    store: JobStoreDep,
    dispatch: DispatcherDep,
) -> dict[str, str]:
    """Create a crawl job and start it in the background."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be JSON",
        )

    crawl_request = _parse_crawl_request(payload)
    client_ip = get_client_ip(request)
    job_id = generate_job_id()

    logger.info(f"Creating new crawl job: {job_id} for URL: {crawl_request.url} from IP: {client_ip}")
    await store.create_job(job_id)

    try:
        dispatch(job_id, crawl_request.model_dump(mode="json"), client_ip)
    except Exception as e:
        logger.error(f"Failed to dispatch crawl job {job_id}: {e}")
        await store.update_job(
            job_id,
            status=JobStatus.ERROR,
            errors=[CrawlError(url=crawl_request.url, error="Failed to start crawling")],
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to start crawling",
        )

    return {"jobId": job_id}


@router.get("/crawl/{job_id}")
async def get_crawl_progress(job_id: str, store: JobStoreDep) -> JSONResponse:
    """Current progress of a crawl job."""
    if len(job_id) < MIN_JOB_ID_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid job ID",
        )

    progress = await store.get_job(job_id)
    if progress is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found or expired",
        )

    return JSONResponse(progress.model_dump(mode="json", by_alias=True))
