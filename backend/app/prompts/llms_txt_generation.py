"""Prompt for generating the llms.txt summary from crawled pages."""

LLMS_TXT_SYSTEM_PROMPT = """You are an expert at writing llms.txt files. Always answer with clean, well-formatted markdown that follows the requested structure exactly. Read the full content of the main navigation pages to understand the business, its services and its value proposition in depth."""

LLMS_TXT_PROMPT = """You are writing an llms.txt file: a standardized markdown document that helps Large Language Models understand a website.

Produce the file with this structure:

# [Company or organization name]

> [2-3 line description: core business, size or reach, role in its field. Timeless, no dates]

## Main
- [Business area](URL): What users find here and why it is useful
- [Core activity](URL): Concrete explanation of the content and who it serves
- [Main service](URL): Distinct description, not repeating other links

## Publications & News
- [Current content](URL): Kind of content and how often it changes

## Contact & Information
- [Contact & locations](URL): Available ways to get in touch
- [Services & pricing](URL): Overview of offerings and terms (if relevant)
- [FAQ & support](URL): Common questions and help (if available)

Key facts:
- [Organization type and scale]
- [Audiences and customers]
- [Distinguishing features]

## Guidelines

1. Use the real company or site name from the content, not just the domain.
2. Every link MUST have a description in the form `- [Title](URL): description`.
3. The Main section lists the 6-8 most important areas, using only URLs given below.
4. Avoid dates and details that go stale quickly.
5. Each description adds information the link title does not already carry.
6. Prefer top-level category pages over individual products or events.
7. Add a contact section only when contact information is available.
8. Prefer fewer, more descriptive entries over many thin ones.
9. Use plain ASCII punctuation: no typographic quotes or dashes.
10. Base everything on the content below. Never invent products, facts or names.

The homepage often already carries most of what matters about the organization; work efficiently with what is given.

Website URL: {website_url}

MAIN NAVIGATION PAGES (summaries):
{navigation_pages}

OTHER PAGES:
{other_pages}

Based on the main navigation content above, write the llms.txt content now:"""
