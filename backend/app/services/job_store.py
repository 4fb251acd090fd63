"""Redis-backed store for crawl job progress.

Keys:
- crawl_job:{job_id} - JSON document of the job's CrawlProgress
- crawl_jobs - set of every known job id, walked by the cleanup sweep
"""

import asyncio
import logging
import secrets
import time
from contextlib import suppress
from datetime import datetime, timedelta, timezone
from typing import Any

import redis.asyncio as redis

from app.config import Settings, get_settings
from app.schemas import CrawlProgress, JobStatus

logger = logging.getLogger(__name__)

JOB_KEY_PREFIX = "crawl_job:"
JOB_INDEX_KEY = "crawl_jobs"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
JOB_ID_SUFFIX_LENGTH = 6
MIN_JOB_ID_LENGTH = 10


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def generate_job_id(now_ms: int | None = None) -> str:
    """Base-36 creation timestamp (ms) followed by a random base-36 suffix."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(JOB_ID_SUFFIX_LENGTH))
    return f"{_to_base36(now_ms)}{suffix}"


def job_created_at(job_id: str) -> datetime | None:
    """Recover the creation instant embedded in a job id."""
    prefix = job_id[:-JOB_ID_SUFFIX_LENGTH]
    if not prefix:
        return None
    try:
        millis = int(prefix, 36)
        return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


class JobStore:
    """Holds per-job status, counters and generated output.

    Updates for one job id are serialized inside the process. Status only
    moves forward; once a job is terminal every further update is ignored.
    """

    def __init__(
        self,
        client: redis.Redis,
        retention_seconds: int = 7200,
        cleanup_interval_seconds: int = 600,
    ):
        self.redis = client
        self.retention = timedelta(seconds=retention_seconds)
        self.cleanup_interval = cleanup_interval_seconds
        self._locks: dict[str, asyncio.Lock] = {}
        self._cleanup_task: asyncio.Task | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "JobStore":
        return cls(
            redis.from_url(settings.redis_url, decode_responses=True),
            retention_seconds=settings.job_retention_seconds,
            cleanup_interval_seconds=settings.job_cleanup_interval_seconds,
        )

    def _key(self, job_id: str) -> str:
        """Generate Redis key for a job."""
        return f"{JOB_KEY_PREFIX}{job_id}"

    def _lock(self, job_id: str) -> asyncio.Lock:
        if job_id not in self._locks:
            self._locks[job_id] = asyncio.Lock()
        return self._locks[job_id]

    async def _write(self, progress: CrawlProgress) -> None:
        await self.redis.set(
            self._key(progress.job_id),
            progress.model_dump_json(by_alias=True),
        )

    async def create_job(self, job_id: str) -> CrawlProgress:
        """Create a pending job record."""
        progress = CrawlProgress(job_id=job_id)
        await self._write(progress)
        await self.redis.sadd(JOB_INDEX_KEY, job_id)
        logger.info(f"Created crawl job {job_id}")
        return progress

    async def get_job(self, job_id: str) -> CrawlProgress | None:
        """Get current progress for a job, or None if absent or expired."""
        data = await self.redis.get(self._key(job_id))
        if data:
            return CrawlProgress.model_validate_json(data)
        return None

    async def update_job(self, job_id: str, **fields: Any) -> CrawlProgress | None:
        """Merge ``fields`` into the job record and bump its timestamp.

        Returns the stored record, or None if the job does not exist.
        """
        async with self._lock(job_id):
            current = await self.get_job(job_id)
            if current is None:
                logger.warning(f"Update for unknown job {job_id} ignored")
                return None

            if current.status.is_terminal:
                logger.warning(
                    f"Job {job_id} is already {current.status.value}, ignoring update"
                )
                return current

            if "status" in fields:
                new_status = JobStatus(fields["status"])
                if current.status.can_transition_to(new_status):
                    fields["status"] = new_status
                else:
                    logger.warning(
                        f"Job {job_id}: rejected status change "
                        f"{current.status.value} -> {new_status.value}"
                    )
                    del fields["status"]

            if "processed_pages" in fields:
                fields["processed_pages"] = max(
                    fields["processed_pages"], current.processed_pages
                )

            merged = {**current.model_dump(), **fields}
            merged["timestamp"] = datetime.now(timezone.utc)
            updated = CrawlProgress.model_validate(merged)
            await self._write(updated)
            return updated

    async def delete_job(self, job_id: str) -> None:
        await self.redis.delete(self._key(job_id))
        await self.redis.srem(JOB_INDEX_KEY, job_id)
        self._locks.pop(job_id, None)

    async def cleanup_old_jobs(self, now: datetime | None = None) -> int:
        """Delete jobs older than the retention window.

        Age comes from the timestamp embedded in the job id; the record's
        own timestamp is used when the id cannot be parsed.
        """
        now = now or datetime.now(timezone.utc)
        removed = 0

        for job_id in await self.redis.smembers(JOB_INDEX_KEY):
            created_at = job_created_at(job_id)
            if created_at is None:
                job = await self.get_job(job_id)
                if job is None:
                    await self.redis.srem(JOB_INDEX_KEY, job_id)
                    continue
                created_at = job.timestamp

            if now - created_at > self.retention:
                await self.delete_job(job_id)
                removed += 1

        if removed:
            remaining = await self.redis.scard(JOB_INDEX_KEY)
            logger.info(f"Cleaned up {removed} old jobs. Current job count: {remaining}")
        return removed

    def start(self) -> None:
        """Schedule the periodic cleanup sweep on the running loop."""
        if self._cleanup_task is None:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())

    async def stop(self) -> None:
        """Cancel the cleanup sweep."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._cleanup_task
            self._cleanup_task = None

    async def close(self) -> None:
        await self.stop()
        await self.redis.aclose()

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            try:
                await self.cleanup_old_jobs()
            except Exception as e:
                logger.error(f"Job cleanup failed: {e}")


# Singleton instance
_job_store: JobStore | None = None


def get_job_store() -> JobStore:
    """Get or create job store singleton."""
    global _job_store
    if _job_store is None:
        _job_store = JobStore.from_settings(get_settings())
    return _job_store
