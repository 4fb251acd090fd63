"""Eligibility rules for links discovered during a crawl."""

import re
from collections.abc import Collection
from urllib.parse import urlparse

from app.schemas import CrawlRequest


class LinkFilter:
    """Decide whether a discovered URL should be traversed.

    Pure predicate: nothing here touches the network or mutates the
    visited set.
    """

    BINARY_EXTENSIONS = (
        ".pdf", ".doc", ".docx", ".xls", ".xlsx",
        ".ppt", ".pptx", ".zip", ".rar", ".exe",
    )

    def eligible(
        self,
        url: str,
        base_domain: str,
        request: CrawlRequest,
        visited: Collection[str],
        current_depth: int,
    ) -> bool:
        """Return True if ``url`` may be visited at ``current_depth``."""
        if current_depth >= request.max_depth:
            return False
        if url in visited:
            return False
        if not self.matches_request_patterns(url, request):
            return False
        return self.is_crawlable_link(url, base_domain)

    def matches_request_patterns(self, url: str, request: CrawlRequest) -> bool:
        """Apply include patterns first, then exclude patterns (exclude wins)."""
        if request.include_patterns:
            if not any(self.matches_pattern(url, p) for p in request.include_patterns):
                return False

        if any(self.matches_pattern(url, p) for p in request.exclude_patterns):
            return False

        return True

    def matches_pattern(self, url: str, pattern: str) -> bool:
        """Case-insensitive glob match where ``*`` means any characters."""
        regex = ".*".join(re.escape(part) for part in pattern.split("*"))
        return re.search(regex, url, re.IGNORECASE) is not None

    def is_crawlable_link(self, url: str, base_domain: str) -> bool:
        """Same-domain, non-fragment, non-binary HTTP link."""
        lowered = url.lower()
        if "#" in url or lowered.startswith(("mailto:", "tel:", "javascript:")):
            return False

        try:
            parsed = urlparse(url)
        except ValueError:
            return False

        if parsed.scheme not in ("http", "https"):
            return False
        if (parsed.hostname or "") != base_domain.lower():
            return False

        return not parsed.path.lower().endswith(self.BINARY_EXTENSIONS)


# Singleton instance for convenience
_link_filter = LinkFilter()


def get_link_filter() -> LinkFilter:
    """Get the shared link filter."""
    return _link_filter
