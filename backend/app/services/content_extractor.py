"""Main-content extraction from rendered HTML.

Strips page chrome, isolates the main content container, converts it to
markdown and rejects pages that carry too little text to be useful.
"""

import logging
import re
import textwrap

import html2text
from bs4 import BeautifulSoup, Tag

from app.schemas import ProcessedPage
from app.services.page_classifier import PageClassifier, get_classifier

logger = logging.getLogger(__name__)

_CODE_BLOCK = re.compile(r"\[code\]\n?(.*?)\n?\[/code\]", re.DOTALL)
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")


class ContentExtractor:
    """Turn raw HTML into a classified ``ProcessedPage``."""

    # Elements that never carry main content
    NOISY_SELECTORS = [
        "script", "style", "noscript", "nav", "footer", "aside",
        ".sidebar", ".navigation",
    ]

    # Probed in order; first container with enough text wins
    CONTENT_SELECTORS = [
        "main",
        "[role='main']",
        ".content",
        ".main-content",
        "article",
        ".article-content",
        ".post-content",
        ".documentation",
        ".docs-content",
    ]

    MIN_CONTAINER_TEXT = 100

    def __init__(
        self,
        min_word_count: int = 50,
        classifier: PageClassifier | None = None,
    ):
        self.min_word_count = min_word_count
        self.classifier = classifier or get_classifier()

    def extract(self, url: str, title: str | None, html: str) -> ProcessedPage | None:
        """Extract, classify and score a page.

        Returns None when the page cannot be parsed or falls below the
        minimum word count. Never raises for malformed HTML.
        """
        try:
            soup = BeautifulSoup(html, "lxml")
            title = (title or "").strip() or self._extract_title(soup) or "Untitled"
            markdown = self.to_markdown(soup)
        except Exception as e:
            logger.error(f"Error processing page {url}: {e}")
            return None

        word_count = len(markdown.split())
        if word_count < self.min_word_count:
            logger.debug(f"Skipping {url}: only {word_count} words")
            return None

        category, importance = self.classifier.classify_and_score(
            url, title, markdown, word_count
        )

        return ProcessedPage(
            url=url,
            title=title,
            content=markdown,
            category=category,
            importance=importance,
            word_count=word_count,
        )

    def to_markdown(self, soup: BeautifulSoup) -> str:
        """Convert the main content of ``soup`` to normalized markdown."""
        for selector in self.NOISY_SELECTORS:
            for element in soup.select(selector):
                element.decompose()

        main = self._find_main_content(soup)
        markdown = self._converter().handle(str(main))
        return self._normalize(markdown)

    def _find_main_content(self, soup: BeautifulSoup) -> Tag | BeautifulSoup:
        for selector in self.CONTENT_SELECTORS:
            element = soup.select_one(selector)
            if element and len(element.get_text(strip=True)) > self.MIN_CONTAINER_TEXT:
                return element

        # Fallback to the whole body
        return soup.body or soup

    def _converter(self) -> html2text.HTML2Text:
        converter = html2text.HTML2Text()
        converter.ignore_links = False
        converter.ignore_images = True
        converter.ignore_emphasis = False
        converter.mark_code = True
        converter.body_width = 0  # No line wrapping
        return converter

    def _normalize(self, markdown: str) -> str:
        def fence(match: re.Match) -> str:
            code = textwrap.dedent(match.group(1)).strip("\n")
            return f"\n```\n{code}\n```\n"

        markdown = _CODE_BLOCK.sub(fence, markdown)
        markdown = _EXTRA_BLANK_LINES.sub("\n\n", markdown)
        return markdown.strip()

    def _extract_title(self, soup: BeautifulSoup) -> str | None:
        title_tag = soup.find("title")
        if title_tag:
            return title_tag.get_text(strip=True)[:512] or None
        return None
