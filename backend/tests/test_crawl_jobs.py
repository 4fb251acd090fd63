import asyncio

import pytest

from app.schemas import CrawlRequest, JobStatus
from app.services.crawl_jobs import CrawlJobRunner, describe_timeout, estimate_time_remaining
from app.services.job_store import generate_job_id
from app.services.llm_curator import LLMCurator

from conftest import FakeBrowser, FakeResultStore, FakeSession, html_page

ROOT = "https://example.com"


class RecordingStore:
    """Job store wrapper that records every status a poller could observe."""

    def __init__(self, store):
        self._store = store
        self.statuses: list[JobStatus] = []

    def __getattr__(self, name):
        return getattr(self._store, name)

    async def update_job(self, job_id, **fields):
        job = await self._store.update_job(job_id, **fields)
        if job is not None and (not self.statuses or self.statuses[-1] != job.status):
            self.statuses.append(job.status)
        return job


def _runner(settings, store, session, results=None):
    return CrawlJobRunner(
        settings,
        store,
        FakeBrowser(session),
        LLMCurator(settings),
        results=results,
    )


async def test_rich_homepage_job_completes(settings, job_store):
    session = FakeSession(
        pages={
            ROOT: ("Example", html_page("Example", 600)),
            f"{ROOT}/about": ("About", html_page("About", 150)),
        }
    )
    results = FakeResultStore()
    store = RecordingStore(job_store)
    job_id = generate_job_id()
    await job_store.create_job(job_id)

    final = await _runner(settings, store, session, results).run(
        job_id, CrawlRequest(url=ROOT, max_depth=3), client_ip="203.0.113.7"
    )

    assert final.status == JobStatus.COMPLETED
    assert final.current_page == "Completed"
    assert final.generated_content is not None
    assert 1 <= len(final.generated_content.pages) <= 4
    assert store.statuses == [JobStatus.CRAWLING, JobStatus.PROCESSING, JobStatus.COMPLETED]

    stored = await job_store.get_job(job_id)
    assert stored.status == JobStatus.COMPLETED
    assert stored.processed_pages == 2

    assert results.saved[0]["url"] == ROOT
    assert results.saved[0]["ip_address"] == "203.0.113.7"
    assert results.saved[0]["llms_txt"].startswith("# Example")
    assert "**URL:** https://example.com/about" in results.saved[0]["llms_full_txt"]


async def test_short_homepage_job_uses_limited_crawl(settings, job_store):
    session = FakeSession(
        pages={ROOT: ("Example", html_page("Example", 80))},
        links={ROOT: [f"{ROOT}/docs"]},
    )
    job_id = generate_job_id()
    await job_store.create_job(job_id)

    final = await _runner(settings, job_store, session).run(job_id, CrawlRequest(url=ROOT))

    assert final.status == JobStatus.COMPLETED
    assert session.rendered == [ROOT]
    assert [p.url for p in final.generated_content.pages] == [ROOT]


async def test_timeout_marks_job_as_error(job_store, settings):
    class HangingSession(FakeSession):
        async def render(self, url, timeout_ms):
            await asyncio.sleep(10)

    settings = settings.model_copy(update={"crawl_timeout_seconds": 0.05})
    browser_session = HangingSession()
    runner = _runner(settings, job_store, browser_session)
    job_id = generate_job_id()
    await job_store.create_job(job_id)

    final = await runner.run(job_id, CrawlRequest(url=ROOT))

    assert final.status == JobStatus.ERROR
    assert final.errors[-1].error == "Crawl operation timed out after 0.05 seconds"
    assert runner.browser.opened == runner.browser.closed == 1


async def test_persistence_failure_does_not_fail_job(settings, job_store):
    session = FakeSession(pages={ROOT: ("Example", html_page("Example", 300))})
    job_id = generate_job_id()
    await job_store.create_job(job_id)

    final = await _runner(settings, job_store, session, FakeResultStore(fail=True)).run(
        job_id, CrawlRequest(url=ROOT)
    )

    assert final.status == JobStatus.COMPLETED
    assert final.generated_content is not None


async def test_unexpected_failure_marks_job_as_error(settings, job_store, monkeypatch):
    session = FakeSession(pages={ROOT: ("Example", html_page("Example", 300))})
    runner = _runner(settings, job_store, session)

    async def broken(pages, url):
        raise ValueError("synthesis exploded")

    monkeypatch.setattr(runner.curator, "generate_llms_txt", broken)
    job_id = generate_job_id()
    await job_store.create_job(job_id)

    final = await runner.run(job_id, CrawlRequest(url=ROOT))

    assert final.status == JobStatus.ERROR
    assert final.errors[-1].error == "synthesis exploded"
    assert final.errors[-1].url == ROOT


async def test_missing_job_is_given_up_after_retries(settings, job_store):
    session = FakeSession()
    settings = settings.model_copy(update={"job_visibility_attempts": 3})

    result = await _runner(settings, job_store, session).run("lq2x9zmissing", CrawlRequest(url=ROOT))

    assert result is None
    assert session.rendered == []


@pytest.mark.parametrize(
    "processed, total, elapsed, expected",
    [
        (0, 10, 5.0, 0),
        (5, 0, 10.0, 10),  # assumes at least twice the processed pages
        (5, 20, 10.0, 30),
        (4, 4, 0.0, 0),
    ],
)
def test_estimate_time_remaining(processed, total, elapsed, expected):
    assert estimate_time_remaining(processed, total, elapsed) == expected


def test_describe_timeout():
    assert describe_timeout(600) == "10 minutes"
    assert describe_timeout(60) == "1 minute"
    assert describe_timeout(90) == "90 seconds"
