"""Deterministic llms.txt synthesis from processed pages.

Produces the structured ``LlmsTxtContent`` artifact and renders it in two
markdown forms: the short summary (llms.txt) and the full dump
(llms-full.txt).
"""

import logging
import re
from urllib.parse import urlparse

from app.schemas import (
    AiGeneratedMetadata,
    HeuristicMetadata,
    LlmsTxtContent,
    LlmsTxtStructure,
    ProcessedPage,
)

logger = logging.getLogger(__name__)

MAIN_SECTION_MIN_IMPORTANCE = 0.6
MAIN_SECTION_LIMIT = 10
CONTACT_LIMIT = 3

BUSINESS_KEYWORDS = [
    "digitalagentur",
    "agentur",
    "services",
    "solutions",
    "expertise",
    "consulting",
    "development",
    "design",
]

TITLE_SUFFIXES = ["Home", "Homepage", "Index", "Main"]

_TITLE_SEPARATORS = re.compile(r"[|\-–—]")
_PHONE = re.compile(r"\+?[\d\s\-()]{10,}")
_PHONE_LINE = re.compile(r"^\s*[+\d\s\-()]{10,}")
_EMAIL = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")


def sort_by_importance(pages: list[ProcessedPage]) -> list[ProcessedPage]:
    """Stable sort, most important first."""
    return sorted(pages, key=lambda p: p.importance, reverse=True)


def extract_domain_name(url: str) -> str:
    """First label of the host with any ``www.`` prefix removed."""
    hostname = urlparse(url).hostname
    if not hostname:
        return "Documentation"
    return re.sub(r"^www\.", "", hostname).split(".")[0]


def extract_site_description(content: str) -> str:
    """Pick a one-line description from page content.

    Prefers a mid-length line mentioning business keywords, then any
    paragraph-length line. Headings are never used.
    """
    lines = [line.strip() for line in content.split("\n") if line.strip()]

    for line in lines:
        if line.startswith("#"):
            continue
        if 30 < len(line) < 200:
            lowered = line.lower()
            if any(keyword in lowered for keyword in BUSINESS_KEYWORDS):
                return line

    for line in lines:
        if not line.startswith("#") and 50 < len(line) < 300:
            return line

    return ""


def clean_page_title(title: str, site_title: str) -> str:
    """Strip trailing site-name style suffixes and end with punctuation."""
    site_name = _TITLE_SEPARATORS.split(site_title)[0].strip()
    cleaned = title

    for suffix in [site_name, *TITLE_SUFFIXES]:
        if not suffix:
            continue
        pattern = rf"\s*[|\-–—]\s*{re.escape(suffix)}\s*$"
        cleaned = re.sub(pattern, "", cleaned, flags=re.IGNORECASE)

    cleaned = cleaned.strip()
    if cleaned and not re.search(r"[.!?]$", cleaned):
        cleaned += "."

    return cleaned or title


def _phone_link(raw: str) -> str | None:
    phone = raw.strip()
    digits = re.sub(r"[^\d+\-]", "", re.sub(r"\s+", "", phone))
    if len(digits) >= 10:
        return f"[{phone}](tel:{digits})"
    return None


def extract_contact_info(pages: list[ProcessedPage]) -> list[str]:
    """Collect phone and email links from page contents.

    Deduplicated in discovery order; only the first few are kept.
    """
    contacts: list[str] = []

    for page in pages:
        for match in _PHONE.findall(page.content):
            link = _phone_link(match)
            if link:
                contacts.append(link)

        for email in _EMAIL.findall(page.content):
            contacts.append(f"[{email}](mailto:{email})")

        lowered_content = page.content.lower()
        lowered_url = page.url.lower()
        if any(
            marker in lowered_content or marker in lowered_url
            for marker in ("kontakt", "contact")
        ):
            for line in page.content.split("\n"):
                if _PHONE_LINE.match(line):
                    link = _phone_link(line)
                    if link:
                        contacts.append(link)

    return list(dict.fromkeys(contacts))[:CONTACT_LIMIT]


class LlmsTxtGenerator:
    """Build and render llms.txt documents."""

    def build_content(
        self,
        pages: list[ProcessedPage],
        website_url: str,
        ai_content: str | None = None,
    ) -> LlmsTxtContent:
        """Sort pages and attach metadata.

        With ``ai_content`` the metadata is the AI-generated variant carrying
        the raw prose; otherwise it is the heuristic variant.
        """
        sorted_pages = sort_by_importance(pages)
        fields = {
            "website_url": website_url,
            "total_pages": len(pages),
            "categories": list(dict.fromkeys(p.category.value for p in pages)),
        }

        if ai_content is not None:
            metadata = AiGeneratedMetadata(ai_content=ai_content, **fields)
        else:
            metadata = HeuristicMetadata(**fields)

        return LlmsTxtContent(
            structure=LlmsTxtStructure(pages=sorted_pages),
            metadata=metadata,
        )

    def summary_markdown(self, content: LlmsTxtContent) -> str:
        """llms.txt text: the AI prose when present, else the heuristic form."""
        if isinstance(content.metadata, AiGeneratedMetadata):
            return content.metadata.ai_content
        return self.heuristic_markdown(content)

    def heuristic_markdown(self, content: LlmsTxtContent) -> str:
        pages = content.pages
        website_url = content.metadata.website_url

        main_page = next((p for p in pages if p.url == website_url), None)
        if main_page is None and pages:
            main_page = pages[0]
        site_title = main_page.title if main_page else extract_domain_name(website_url)

        lines = [f"# {site_title}", ""]

        if main_page:
            description = extract_site_description(main_page.content)
            if description:
                lines.extend([f"> {description}", ""])

        top_pages = [
            p for p in pages if p.importance >= MAIN_SECTION_MIN_IMPORTANCE
        ][:MAIN_SECTION_LIMIT]

        if top_pages:
            lines.extend(["## Main", ""])
            for page in top_pages:
                lines.append(f"- [{clean_page_title(page.title, site_title)}]({page.url})")

        contacts = extract_contact_info(pages)
        if contacts:
            lines.extend(["", "## Contact", ""])
            lines.extend(f"- {contact}" for contact in contacts)

        return "\n".join(lines) + "\n"

    def full_markdown(self, content: LlmsTxtContent) -> str:
        """llms-full.txt text: every page with its metadata and full content."""
        metadata = content.metadata
        generated_on = metadata.generated_at.date().isoformat()

        parts = [
            f"# {extract_domain_name(metadata.website_url)} - Complete Documentation\n\n",
            f"> Generated on {generated_on} from {metadata.website_url}\n",
            "> This file contains the full content of all processed pages.\n\n",
        ]

        for page in sort_by_importance(content.pages):
            parts.append("---\n\n")
            parts.append(f"# {page.title}\n\n")
            parts.append(f"**URL:** {page.url}\n")
            parts.append(f"**Category:** {page.category.value}\n")
            parts.append(f"**Word Count:** {page.word_count}\n\n")
            parts.append(page.content)
            parts.append("\n\n")

        return "".join(parts)


# Singleton instance
_generator: LlmsTxtGenerator | None = None


def get_generator() -> LlmsTxtGenerator:
    """Get or create generator singleton."""
    global _generator
    if _generator is None:
        _generator = LlmsTxtGenerator()
    return _generator
