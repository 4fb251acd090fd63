"""Crawl orchestration: homepage first, then key pages or a shallow traversal."""

import asyncio
import logging
import re
from contextlib import AbstractAsyncContextManager
from enum import Enum
from typing import Callable, Protocol
from urllib.parse import urlparse

from app.config import Settings
from app.schemas import CrawlError, CrawlRequest, ProcessedPage
from app.services.browser import RenderedPage, RenderError, RenderSession
from app.services.content_extractor import ContentExtractor
from app.services.link_filter import LinkFilter, get_link_filter

logger = logging.getLogger(__name__)

# (processed_pages, current_page, total_pages)
ProgressCallback = Callable[[int, str, int], None]


class BrowserProvider(Protocol):
    def session(self) -> AbstractAsyncContextManager[RenderSession]: ...


class CrawlPhase(str, Enum):
    KEY_PAGES = "key_pages"
    LIMITED_DEPTH = "limited_depth"


class CrawlerService:
    """Drive one crawl job against a single browser session.

    A crawler instance is single-use: it accumulates the visited set,
    the recorded pages and the error list of exactly one crawl.
    """

    # Likely-informative paths probed directly after a rich homepage
    KEY_PAGE_PATHS = [
        "/about",
        "/ueber-uns",
        "/about-us",
        "/company",
        "/unternehmen",
        "/services",
        "/leistungen",
        "/dienstleistungen",
        "/products",
        "/produkte",
        "/solutions",
        "/loesungen",
        "/team",
        "/people",
        "/philosophy",
        "/mission",
        "/vision",
    ]

    LOCALE_PREFIX = re.compile(r"^/([a-zA-Z]{2})(?:/|$)")

    def __init__(
        self,
        settings: Settings,
        browser: BrowserProvider,
        on_progress: ProgressCallback | None = None,
        extractor: ContentExtractor | None = None,
        link_filter: LinkFilter | None = None,
    ):
        self.settings = settings
        self.browser = browser
        self.on_progress = on_progress
        self.extractor = extractor or ContentExtractor(min_word_count=settings.min_word_count)
        self.link_filter = link_filter or get_link_filter()
        self.delay = settings.crawl_delay_seconds

        self.visited: set[str] = set()
        self.pages: list[ProcessedPage] = []
        self.errors: list[CrawlError] = []
        self.phase: CrawlPhase | None = None

        self._session: RenderSession | None = None
        self._frontier_size = 0

    def _report_progress(self, processed: int, url: str, total: int) -> None:
        """Report crawl progress if callback is set."""
        if self.on_progress:
            self.on_progress(processed, url, total)

    async def crawl(self, request: CrawlRequest) -> list[ProcessedPage]:
        """Crawl a website starting from ``request.url``.

        The homepage is always rendered first. A homepage with enough text
        leads to probing a fixed set of key pages; otherwise a traversal
        limited to depth 1 runs. The browser session is closed on every
        exit path, including cancellation.
        """
        base_domain = urlparse(request.url).hostname or ""

        async with self.browser.session() as session:
            self._session = session
            try:
                logger.info(f"Smart crawling: starting with homepage {request.url}")
                await self.crawl_homepage(request.url)

                homepage = self._find_homepage(request.url)
                if homepage and homepage.word_count > self.settings.homepage_word_threshold:
                    logger.info(
                        f"Homepage has {homepage.word_count} words, looking for key pages only"
                    )
                    self.phase = CrawlPhase.KEY_PAGES
                    await self.crawl_key_pages(request.url)
                else:
                    logger.info("Homepage insufficient, doing limited regular crawl")
                    self.phase = CrawlPhase.LIMITED_DEPTH
                    limited_request = request.model_copy(update={"max_depth": 1})
                    await self.traverse(request.url, base_domain, limited_request)
            finally:
                self._session = None

        logger.info(
            f"Crawl of {request.url} finished: {len(self.pages)} pages, "
            f"{len(self.errors)} errors ({self.phase.value if self.phase else 'none'})"
        )
        return self.pages

    async def crawl_homepage(self, url: str) -> None:
        """Render only the root URL; failures are recorded as crawl errors."""
        if url in self.visited:
            return

        self._report_progress(len(self.pages), url, 1)

        try:
            rendered = await self._render(url, self.settings.homepage_timeout_ms)
            page = self.extractor.extract(url, rendered.title, rendered.html)
            if page:
                self.visited.add(url)
                self._record(page)
                logger.info(f"Successfully crawled homepage: {url} ({page.word_count} words)")
        except Exception as e:
            logger.error(f"Error crawling homepage {url}: {e}")
            self._record_error(url, e)

    async def crawl_key_pages(self, base_url: str) -> None:
        """Probe likely key pages; missing ones are expected and not errors."""
        candidates = self.key_page_candidates(base_url)
        limit = self.settings.max_key_pages
        successful = 0

        for url in candidates:
            if successful >= limit:
                break
            if url in self.visited:
                continue

            self._report_progress(
                len(self.pages), url, len(self.pages) + len(candidates) - successful
            )

            try:
                rendered = await self._render(url, self.settings.key_page_timeout_ms)
            except RenderError as e:
                if e.status == 404:
                    logger.info(f"Key page not found: {url}")
                else:
                    logger.info(f"Key page unavailable: {url} ({e})")
                continue
            except Exception as e:
                logger.info(f"Error accessing key page {url}: {e}")
                continue

            page = self.extractor.extract(url, rendered.title, rendered.html)
            if page and page.word_count > self.settings.key_page_word_threshold:
                self.visited.add(url)
                self._record(page)
                successful += 1
                logger.info(f"Successfully crawled key page: {url} ({page.word_count} words)")

        logger.info(f"Key page probing completed, found {successful} additional pages")

    def key_page_candidates(self, base_url: str) -> list[str]:
        """Build candidate URLs on the root host, plus locale-prefixed variants."""
        parsed = urlparse(base_url)
        origin = f"{parsed.scheme}://{parsed.netloc}"
        locale = self.LOCALE_PREFIX.match(parsed.path)

        candidates = []
        for path in self.KEY_PAGE_PATHS:
            candidates.append(f"{origin}{path}")
            if locale:
                candidates.append(f"{origin}/{locale.group(1)}{path}")
        return list(dict.fromkeys(candidates))

    async def traverse(self, start_url: str, base_domain: str, request: CrawlRequest) -> None:
        """Depth-first traversal over an explicit worklist of (url, depth).

        Each URL is checked against the link filter when popped. A polite
        delay separates consecutive requests. Per-URL failures are recorded
        and never stop the traversal.
        """
        worklist: list[tuple[str, int]] = [(start_url, 0)]
        first_request = True

        while worklist:
            url, depth = worklist.pop()
            self._frontier_size = len(worklist)

            if not self.link_filter.eligible(url, base_domain, request, self.visited, depth):
                continue

            if not first_request:
                await asyncio.sleep(self.delay)
            first_request = False

            self.visited.add(url)
            links = await self._visit(url, base_domain)

            if depth + 1 < request.max_depth:
                # Reversed so the first link on the page is visited first
                for link in reversed(links):
                    if link not in self.visited:
                        worklist.append((link, depth + 1))
            self._frontier_size = len(worklist)

    async def _visit(self, url: str, base_domain: str) -> list[str]:
        """Render, extract and record one URL; return its outbound links."""
        try:
            rendered = await self._render(url, self.settings.page_timeout_ms)
            page = self.extractor.extract(url, rendered.title, rendered.html)
            if page:
                self._record(page)
            return await self._session.extract_links(base_domain)
        except Exception as e:
            logger.error(f"Error crawling {url}: {e}")
            self._record_error(url, e)
            return []

    async def _render(self, url: str, timeout_ms: int) -> RenderedPage:
        if self._session is None:
            raise RuntimeError("Crawler has no open browser session")
        return await self._session.render(url, timeout_ms)

    def _record(self, page: ProcessedPage) -> None:
        self.pages.append(page)
        total = max(len(self.visited) + self._frontier_size, len(self.pages))
        self._report_progress(len(self.pages), page.url, total)

    def _record_error(self, url: str, error: Exception) -> None:
        self.errors.append(CrawlError(url=url, error=str(error) or "Unknown error"))

    def _find_homepage(self, url: str) -> ProcessedPage | None:
        root = url.rstrip("/")
        return next((p for p in self.pages if p.url.rstrip("/") == root), None)
