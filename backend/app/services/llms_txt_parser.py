"""Parser for llms.txt and llms-full.txt documents."""

import re
from dataclasses import dataclass, field

_LINK_LINE = re.compile(r"^-\s*\[([^\]]+)\]\(([^)]+)\)(?::\s*(.*))?$")
_PAGE_FIELD = re.compile(r"^\*\*(URL|Category|Word Count):\*\*\s*(.*)$")


@dataclass
class ParsedLink:
    """A link extracted from a section."""
    title: str
    url: str
    description: str = ""


@dataclass
class ParsedSection:
    """A section parsed from llms.txt."""
    name: str
    description: str = ""
    links: list[ParsedLink] = field(default_factory=list)


@dataclass
class ParsedLlmsTxt:
    """Parsed summary document."""
    site_title: str = ""
    tagline: str = ""
    sections: list[ParsedSection] = field(default_factory=list)

    def get_section_by_name(self, name: str) -> ParsedSection | None:
        """Find a section by name (case-insensitive)."""
        name_lower = name.lower()
        for section in self.sections:
            if section.name.lower() == name_lower:
                return section
        return None


@dataclass
class ParsedPageBlock:
    """One page block of a full document."""
    title: str
    url: str
    category: str
    word_count: int
    content: str = ""


@dataclass
class ParsedFullTxt:
    """Parsed full document."""
    site_title: str = ""
    pages: list[ParsedPageBlock] = field(default_factory=list)

    def get_all_urls(self) -> set[str]:
        return {page.url for page in self.pages}


class LlmsTxtParser:
    """Parse llms.txt markdown into structured data."""

    def parse(self, content: str) -> ParsedLlmsTxt:
        """Parse a summary document: title, tagline and link sections.

        Links are accepted directly under a section heading or inside a
        ``### Links`` subsection.
        """
        result = ParsedLlmsTxt()
        if not content:
            return result

        current_section: ParsedSection | None = None
        description_lines: list[str] = []

        def flush_description() -> None:
            if current_section is not None and description_lines:
                current_section.description = "\n".join(description_lines).strip()
                description_lines.clear()

        for line in content.split("\n"):
            stripped = line.strip()

            if not result.site_title and stripped.startswith("# "):
                result.site_title = stripped[2:].strip()
                continue

            if current_section is None and not result.tagline and stripped.startswith("> "):
                result.tagline = stripped[2:].strip()
                continue

            if stripped.startswith("## "):
                flush_description()
                current_section = ParsedSection(name=stripped[3:].strip())
                result.sections.append(current_section)
                continue

            if current_section is None or stripped.lower() == "### links":
                continue

            if stripped.startswith("- "):
                link = self._parse_link_line(stripped)
                if link:
                    current_section.links.append(link)
                    continue

            if stripped and stripped != "---":
                description_lines.append(stripped)

        flush_description()
        return result

    def parse_full(self, content: str) -> ParsedFullTxt:
        """Parse a full document into its page blocks.

        A block starts at a ``---`` rule followed by a ``# Title`` heading
        and a ``**URL:**`` field; page content may itself contain rules
        and headings.
        """
        result = ParsedFullTxt()
        if not content:
            return result

        lines = content.split("\n")
        for line in lines:
            if line.startswith("# "):
                result.site_title = line[2:].strip()
                break

        starts = [i for i in range(len(lines)) if self._block_header(lines, i)]

        for n, start in enumerate(starts):
            end = starts[n + 1] if n + 1 < len(starts) else len(lines)
            block = self._parse_block(lines[start:end])
            if block:
                result.pages.append(block)

        return result

    def _block_header(self, lines: list[str], i: int) -> tuple[int, int] | None:
        """Return (heading index, URL field index) if a block starts at ``i``."""
        if lines[i].strip() != "---":
            return None
        heading = self._next_non_empty(lines, i + 1)
        if heading is None or not lines[heading].startswith("# "):
            return None
        url_line = self._next_non_empty(lines, heading + 1)
        if url_line is None or not lines[url_line].startswith("**URL:**"):
            return None
        return heading, url_line

    def _parse_block(self, lines: list[str]) -> ParsedPageBlock | None:
        header = self._block_header(lines, 0)
        if header is None:
            return None
        heading, i = header

        fields: dict[str, str] = {}
        while i < len(lines):
            match = _PAGE_FIELD.match(lines[i].strip())
            if not match:
                break
            fields[match.group(1)] = match.group(2).strip()
            i += 1

        if "URL" not in fields:
            return None

        try:
            word_count = int(fields.get("Word Count", "0"))
        except ValueError:
            word_count = 0

        return ParsedPageBlock(
            title=lines[heading][2:].strip(),
            url=fields["URL"],
            category=fields.get("Category", ""),
            word_count=word_count,
            content="\n".join(lines[i:]).strip(),
        )

    @staticmethod
    def _next_non_empty(lines: list[str], start: int) -> int | None:
        for i in range(start, len(lines)):
            if lines[i].strip():
                return i
        return None

    def _parse_link_line(self, line: str) -> ParsedLink | None:
        """Parse a link line like '- [Title](URL): Description'."""
        match = _LINK_LINE.match(line.strip())
        if match:
            title = match.group(1).strip()
            url = match.group(2).strip()
            description = match.group(3).strip() if match.group(3) else ""
            return ParsedLink(title=title, url=url, description=description)
        return None
