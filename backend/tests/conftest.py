from contextlib import asynccontextmanager

import pytest

from app.config import Settings
from app.services.browser import RenderedPage, RenderError
from app.services.job_store import JobStore


def words(count: int, stem: str = "word") -> str:
    return " ".join(f"{stem}{i}" for i in range(count))


def html_page(title: str, body_words: int, stem: str = "word") -> str:
    return (
        f"<html><head><title>{title}</title></head>"
        f"<body><nav>Home About Contact</nav>"
        f"<main><h1>{title}</h1><p>{words(body_words, stem)}</p></main>"
        f"<footer>Footer text</footer></body></html>"
    )


class FakeRedis:
    """In-memory subset of the redis.asyncio client used by the job store."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.sets: dict[str, set[str]] = {}
        self.closed = False

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value):
        self.values[key] = value
        return True

    async def delete(self, *keys):
        return sum(1 for key in keys if self.values.pop(key, None) is not None)

    async def sadd(self, key, *members):
        self.sets.setdefault(key, set()).update(members)
        return len(members)

    async def srem(self, key, *members):
        existing = self.sets.setdefault(key, set())
        removed = len(existing & set(members))
        existing.difference_update(members)
        return removed

    async def smembers(self, key):
        return set(self.sets.get(key, set()))

    async def scard(self, key):
        return len(self.sets.get(key, set()))

    async def aclose(self):
        self.closed = True


class FakeSession:
    """Render session serving canned pages.

    ``pages`` maps URL to ``(title, html)``, an Exception to raise, or is
    missing (rendered as a 404). ``links`` maps URL to the links found on
    that page once rendered.
    """

    def __init__(self, pages=None, links=None):
        self.pages = pages or {}
        self.links = links or {}
        self.rendered: list[str] = []
        self.timeouts: list[int] = []
        self.current: str | None = None

    async def render(self, url: str, timeout_ms: int) -> RenderedPage:
        self.rendered.append(url)
        self.timeouts.append(timeout_ms)
        self.current = None
        entry = self.pages.get(url)
        if entry is None:
            raise RenderError(url, "HTTP 404: Failed to load page", 404)
        if isinstance(entry, Exception):
            raise entry
        title, html = entry
        self.current = url
        return RenderedPage(url=url, html=html, title=title, status=200)

    async def extract_links(self, domain: str) -> list[str]:
        if self.current is None:
            return []
        return list(self.links.get(self.current, []))


class FakeBrowser:
    def __init__(self, session: FakeSession):
        self._session = session
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def session(self):
        self.opened += 1
        try:
            yield self._session
        finally:
            self.closed += 1


class FakeResultStore:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.saved: list[dict] = []

    async def save(self, url, llms_txt, llms_full_txt, ip_address):
        if self.fail:
            raise RuntimeError("database unavailable")
        self.saved.append(
            {
                "url": url,
                "llms_txt": llms_txt,
                "llms_full_txt": llms_full_txt,
                "ip_address": ip_address,
            }
        )


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        crawl_delay_seconds=0,
        job_visibility_delay_seconds=0,
        openai_api_key=None,
        anthropic_api_key=None,
    )


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def job_store(fake_redis):
    return JobStore(fake_redis, retention_seconds=7200, cleanup_interval_seconds=600)
