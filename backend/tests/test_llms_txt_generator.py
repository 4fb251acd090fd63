from app.schemas import AiGeneratedMetadata, HeuristicMetadata, PageCategory, ProcessedPage
from app.services.llms_txt_generator import (
    LlmsTxtGenerator,
    clean_page_title,
    extract_contact_info,
    extract_domain_name,
    extract_site_description,
)
from app.services.llms_txt_parser import LlmsTxtParser

SITE = "https://www.example.com"


def _page(url, title, importance, category=PageCategory.DOCUMENTATION, content=None):
    content = content or f"# {title}\n\nPlain content for {title} with enough words to count."
    return ProcessedPage(
        url=url,
        title=title,
        content=content,
        category=category,
        importance=importance,
        word_count=len(content.split()),
    )


def _site_pages():
    return [
        _page(f"{SITE}/blog", "Blog | Example", 0.3, PageCategory.BLOG),
        _page(f"{SITE}/about", "About | Example", 0.9, PageCategory.MAIN_NAVIGATION),
        _page(
            SITE,
            "Example | Home",
            1.0,
            PageCategory.MAIN_NAVIGATION,
            content=(
                "# Welcome\n\n"
                "Example is a digital agency offering design and development services.\n\n"
                "Call us at +41 44 123 45 67 or write to hello@example.com."
            ),
        ),
        _page(f"{SITE}/services", "Services - Example", 0.8, PageCategory.MAIN_NAVIGATION),
        _page(f"{SITE}/docs", "Docs", 0.7),
        _page(f"{SITE}/guide", "Guide", 0.6, PageCategory.TUTORIAL),
    ]


def test_build_content_sorts_pages_and_fills_metadata():
    content = LlmsTxtGenerator().build_content(_site_pages(), SITE)

    importances = [p.importance for p in content.pages]
    assert importances == sorted(importances, reverse=True)
    assert isinstance(content.metadata, HeuristicMetadata)
    assert not content.is_ai_generated
    assert content.metadata.total_pages == 6
    assert set(content.metadata.categories) == {"Blog", "Main Navigation", "Documentation", "Tutorial"}


def test_main_section_lists_qualifying_pages_in_importance_order():
    generator = LlmsTxtGenerator()
    content = generator.build_content(_site_pages(), SITE)

    parsed = LlmsTxtParser().parse(generator.heuristic_markdown(content))
    main = parsed.get_section_by_name("Main")

    assert parsed.site_title == "Example | Home"
    assert parsed.tagline == "Example is a digital agency offering design and development services."
    assert [link.url for link in main.links] == [
        SITE,
        f"{SITE}/about",
        f"{SITE}/services",
        f"{SITE}/docs",
        f"{SITE}/guide",
    ]
    assert [link.title for link in main.links][:3] == ["Example.", "About.", "Services."]


def test_main_section_is_capped_at_ten_entries():
    pages = [_page(f"{SITE}/p{i}", f"Page {i}", 0.9 - i * 0.01) for i in range(14)]
    generator = LlmsTxtGenerator()

    markdown = generator.heuristic_markdown(generator.build_content(pages, SITE))
    main = LlmsTxtParser().parse(markdown).get_section_by_name("Main")

    assert len(main.links) == 10
    assert main.links[0].url == f"{SITE}/p0"


def test_contact_section_from_page_contents():
    generator = LlmsTxtGenerator()
    markdown = generator.heuristic_markdown(generator.build_content(_site_pages(), SITE))

    contact = LlmsTxtParser().parse(markdown).get_section_by_name("Contact")

    assert [link.url for link in contact.links] == [
        "tel:+41441234567",
        "mailto:hello@example.com",
    ]


def test_summary_uses_ai_prose_when_present():
    generator = LlmsTxtGenerator()
    prose = "# Example\n\n> AI written.\n\n## Main\n- [About](https://www.example.com/about): Who we are"

    content = generator.build_content(_site_pages(), SITE, ai_content=prose)

    assert isinstance(content.metadata, AiGeneratedMetadata)
    assert content.is_ai_generated
    assert generator.summary_markdown(content) == prose


def test_full_form_round_trips_urls_and_categories():
    generator = LlmsTxtGenerator()
    pages = _site_pages()
    content = generator.build_content(pages, SITE)

    full = generator.full_markdown(content)
    parsed = LlmsTxtParser().parse_full(full)

    assert parsed.site_title == "example - Complete Documentation"
    assert parsed.get_all_urls() == {p.url for p in pages}
    assert {(p.url, p.category) for p in parsed.pages} == {
        (p.url, p.category.value) for p in pages
    }
    assert {p.url: p.word_count for p in parsed.pages} == {p.url: p.word_count for p in pages}


def test_full_form_survives_rules_and_headings_inside_content():
    generator = LlmsTxtGenerator()
    tricky = _page(f"{SITE}/notes", "Notes", 0.5, content="# Notes\n\n---\n\n# Inner heading\n\nText after a rule.")
    content = generator.build_content([tricky, _page(f"{SITE}/docs", "Docs", 0.7)], SITE)

    parsed = LlmsTxtParser().parse_full(generator.full_markdown(content))

    assert [p.url for p in parsed.pages] == [f"{SITE}/docs", f"{SITE}/notes"]
    assert "Text after a rule." in parsed.pages[1].content


def test_helpers():
    assert extract_domain_name("https://www.example.co.uk/path") == "example"
    assert extract_domain_name("not a url") == "Documentation"
    assert clean_page_title("Pricing | Example", "Example | Home") == "Pricing."
    assert clean_page_title("Why us?", "Example") == "Why us?"
    assert clean_page_title("Example - Home", "Example") == "Example."
    assert extract_site_description("# Title\n\nShort.\n\n" + "x" * 60) == "x" * 60


def test_contact_info_is_deduplicated_and_capped():
    content = " ".join(f"mail{i}@example.com" for i in range(5)) + " mail0@example.com"
    pages = [_page(f"{SITE}/contact", "Contact", 0.9, content=content)]

    contacts = extract_contact_info(pages)

    assert contacts == [f"[mail{i}@example.com](mailto:mail{i}@example.com)" for i in range(3)]
