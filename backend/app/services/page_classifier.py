"""Page classification service: category inference and importance scoring."""

from dataclasses import dataclass
from typing import Callable
from urllib.parse import urlparse

from app.schemas import PageCategory


@dataclass(frozen=True)
class PageSignals:
    """Lowercased views of a page used by the category rules."""

    url: str
    path: str
    title: str
    content: str

    @classmethod
    def from_page(cls, url: str, title: str, content: str) -> "PageSignals":
        return cls(
            url=url.lower(),
            path=urlparse(url).path,
            title=(title or "").lower(),
            content=(content or "").lower(),
        )


@dataclass(frozen=True)
class CategoryRule:
    """A named predicate mapping matching pages to a category."""

    name: str
    category: PageCategory
    matches: Callable[[PageSignals], bool]


# Main navigation pages (German/English)
MAIN_NAV_KEYWORDS = [
    "über uns", "about", "about us", "ueber uns",
    "kontakt", "contact", "impressum",
    "services", "dienstleistungen", "was wir tun",
    "projekte", "projects", "portfolio",
    "team", "unternehmen", "company",
]


def _any_in(text: str, keywords: list[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def _is_homepage(s: PageSignals) -> bool:
    return s.path in ("", "/") or _any_in(s.title, ["home", "startseite"])


def _is_main_nav(s: PageSignals) -> bool:
    return _any_in(s.title, MAIN_NAV_KEYWORDS) or _any_in(s.url, MAIN_NAV_KEYWORDS)


def _is_api_docs(s: PageSignals) -> bool:
    return (
        "/api/" in s.url
        or "api" in s.title
        or _any_in(s.content, ["endpoint", "authentication"])
    )


def _is_getting_started(s: PageSignals) -> bool:
    return (
        _any_in(s.title, ["getting started", "quick start", "introduction"])
        or _any_in(s.url, ["/getting-started", "/quickstart", "/intro"])
    )


def _is_tutorial(s: PageSignals) -> bool:
    return (
        "/tutorial" in s.url
        or _any_in(s.title, ["tutorial", "how to"])
        or "step-by-step" in s.content
    )


def _is_reference(s: PageSignals) -> bool:
    return (
        "/reference" in s.url
        or _any_in(s.title, ["reference", "specification"])
        or "parameters" in s.content
    )


def _is_blog(s: PageSignals) -> bool:
    return (
        _any_in(s.url, ["/blog", "/news", "/posts", "/insights"])
        or _any_in(s.title, ["blog", "insights"])
    )


def _is_legal(s: PageSignals) -> bool:
    return (
        _any_in(s.title, ["privacy", "terms", "legal", "datenschutz", "agb"])
        or "/legal" in s.url
    )


# Evaluated in order, first match wins
CATEGORY_RULES: list[CategoryRule] = [
    CategoryRule("homepage", PageCategory.MAIN_NAVIGATION, _is_homepage),
    CategoryRule("main_navigation", PageCategory.MAIN_NAVIGATION, _is_main_nav),
    CategoryRule("api_documentation", PageCategory.API_DOCUMENTATION, _is_api_docs),
    CategoryRule("getting_started", PageCategory.GETTING_STARTED, _is_getting_started),
    CategoryRule("tutorial", PageCategory.TUTORIAL, _is_tutorial),
    CategoryRule("reference", PageCategory.REFERENCE, _is_reference),
    CategoryRule("blog", PageCategory.BLOG, _is_blog),
    CategoryRule("legal", PageCategory.LEGAL, _is_legal),
]


class PageClassifier:
    """Assign a category and an importance score to extracted pages."""

    CATEGORY_WEIGHTS = {
        PageCategory.MAIN_NAVIGATION: 0.95,
        PageCategory.GETTING_STARTED: 0.9,
        PageCategory.API_DOCUMENTATION: 0.8,
        PageCategory.TUTORIAL: 0.7,
        PageCategory.DOCUMENTATION: 0.6,
        PageCategory.REFERENCE: 0.5,
        PageCategory.BLOG: 0.3,
        PageCategory.LEGAL: 0.1,
    }
    DEFAULT_WEIGHT = 0.5

    IMPORTANT_TITLE_KEYWORDS = [
        "getting started", "introduction", "overview", "guide", "tutorial",
    ]

    def __init__(self, rules: list[CategoryRule] | None = None):
        self.rules = rules if rules is not None else CATEGORY_RULES

    def classify(self, url: str, title: str, content: str) -> PageCategory:
        """Return the category of the first matching rule."""
        signals = PageSignals.from_page(url, title, content)
        for rule in self.rules:
            if rule.matches(signals):
                return rule.category
        return PageCategory.DOCUMENTATION

    def score(
        self,
        url: str,
        title: str,
        word_count: int,
        category: PageCategory | str,
    ) -> float:
        """Compute an importance score in [0, 1].

        Starts from the category weight, pins the site root to 1.0, applies a
        path-depth penalty (gentler for navigation pages), rewards long
        non-navigation pages and important title keywords, then clamps.
        """
        try:
            category = PageCategory(category)
        except ValueError:
            importance = self.DEFAULT_WEIGHT
            category = None
        else:
            importance = self.CATEGORY_WEIGHTS.get(category, self.DEFAULT_WEIGHT)

        if self._is_root(url):
            importance = 1.0

        depth = self.path_depth(url)
        if category == PageCategory.MAIN_NAVIGATION:
            importance *= max(0.8, 1 - depth * 0.05)
        else:
            importance *= max(0.3, 1 - depth * 0.1)

        if category != PageCategory.MAIN_NAVIGATION:
            if word_count > 1000:
                importance += 0.1
            if word_count > 2000:
                importance += 0.1

        if _any_in((title or "").lower(), self.IMPORTANT_TITLE_KEYWORDS):
            importance += 0.1

        return min(1.0, max(0.0, importance))

    def classify_and_score(
        self, url: str, title: str, content: str, word_count: int
    ) -> tuple[PageCategory, float]:
        category = self.classify(url, title, content)
        return category, self.score(url, title, word_count, category)

    @classmethod
    def path_depth(cls, url: str) -> int:
        """Slash-separated parts after ``scheme://host``, empty ones included.

        A trailing slash or a slash in the query adds a level; the site root
        is depth 0.
        """
        if cls._is_root(url):
            return 0
        return max(0, len(url.split("/")) - 3)

    @staticmethod
    def _is_root(url: str) -> bool:
        return urlparse(url).path in ("", "/")


# Singleton instance
_classifier: PageClassifier | None = None


def get_classifier() -> PageClassifier:
    """Get or create classifier singleton."""
    global _classifier
    if _classifier is None:
        _classifier = PageClassifier()
    return _classifier
