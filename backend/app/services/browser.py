"""Browser service for JavaScript-rendered page content using Playwright."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional, Protocol

from playwright.async_api import Browser, BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError

from app.config import Settings
from app.services.link_filter import get_link_filter

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]


class RenderError(Exception):
    """A page could not be loaded (navigation failure, timeout or non-2xx)."""

    def __init__(self, url: str, message: str, status: int | None = None):
        super().__init__(message)
        self.url = url
        self.status = status


@dataclass
class RenderedPage:
    """Result of rendering one URL."""

    url: str
    html: str
    title: str
    status: int | None


class RenderSession(Protocol):
    """Render capability owned by one crawl for its whole lifetime."""

    async def render(self, url: str, timeout_ms: int) -> RenderedPage: ...

    async def extract_links(self, domain: str) -> list[str]: ...


class PlaywrightSession:
    """One browser context; each render opens a fresh tab and closes the last."""

    def __init__(self, context: BrowserContext):
        self._context = context
        self._page: Page | None = None

    async def render(self, url: str, timeout_ms: int) -> RenderedPage:
        """Render a page with JavaScript and return the final HTML.

        Raises:
            RenderError: If navigation fails, times out or returns non-2xx
        """
        await self._close_page()
        self._page = await self._context.new_page()

        try:
            response = await self._page.goto(
                url,
                wait_until="networkidle",
                timeout=timeout_ms,
            )
        except PlaywrightError as e:
            raise RenderError(url, f"Navigation failed: {e.message}") from e

        if response is None or not response.ok:
            status = response.status if response is not None else None
            raise RenderError(
                url, f"HTTP {status or 'unknown'}: Failed to load page", status
            )

        html = await self._page.content()
        title = await self._page.title()
        logger.debug(f"Rendered {url} ({len(html)} bytes, HTTP {response.status})")
        return RenderedPage(url=url, html=html, title=title, status=response.status)

    async def extract_links(self, domain: str) -> list[str]:
        """Return unique same-domain links from the currently rendered page."""
        if self._page is None:
            return []

        try:
            hrefs = await self._page.eval_on_selector_all(
                "a[href]", "anchors => anchors.map(a => a.href)"
            )
        except PlaywrightError as e:
            logger.error(f"Error extracting links: {e}")
            return []

        link_filter = get_link_filter()
        links = [h for h in hrefs if link_filter.is_crawlable_link(h, domain)]
        return list(dict.fromkeys(links))  # Remove duplicates, preserve order

    async def close(self) -> None:
        await self._close_page()
        await self._context.close()

    async def _close_page(self) -> None:
        if self._page is not None:
            try:
                await self._page.close()
            except PlaywrightError as e:
                logger.debug(f"Ignoring error while closing page: {e}")
            self._page = None


class BrowserService:
    """Playwright-based browser for rendering JavaScript-heavy pages."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize browser service.

        Args:
            settings: Application settings. If None, uses default settings.
        """
        if settings is None:
            from app.config import get_settings
            settings = get_settings()
        self.ws_endpoint = settings.playwright_ws_url
        self.user_agent = settings.user_agent

    @asynccontextmanager
    async def session(self) -> AsyncIterator[PlaywrightSession]:
        """Open a browser session that is closed on every exit path."""
        async with async_playwright() as p:
            browser = await self._connect(p)
            context = await browser.new_context(
                user_agent=self.user_agent,
                viewport={"width": 1280, "height": 720},
            )
            session = PlaywrightSession(context)
            try:
                yield session
            finally:
                try:
                    await session.close()
                finally:
                    await browser.close()

    async def _connect(self, p) -> Browser:
        if self.ws_endpoint:
            # Connect to the remote browser via WebSocket
            logger.info("Connecting to remote browser")
            return await p.chromium.connect_over_cdp(self.ws_endpoint)
        return await p.chromium.launch(headless=True, args=LAUNCH_ARGS)
