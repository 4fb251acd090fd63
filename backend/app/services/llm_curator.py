"""LLM-backed llms.txt generation with a deterministic fallback."""

import json
import logging
from typing import Any

from app.config import Settings
from app.prompts import LLMS_TXT_PROMPT, LLMS_TXT_SYSTEM_PROMPT
from app.schemas import LlmsTxtContent, PageCategory, ProcessedPage
from app.services.llms_txt_generator import LlmsTxtGenerator, get_generator
from app.services.llms_txt_parser import LlmsTxtParser

logger = logging.getLogger(__name__)


class LLMCurator:
    """Writes the llms.txt summary with a language model.

    Any failure (missing key, network, quota, empty answer) falls back to
    the heuristic generator; callers never see an exception from here.
    """

    NAVIGATION_PAGE_LIMIT = 8
    NAVIGATION_SUMMARY_CHARS = 800
    NAVIGATION_MIN_IMPORTANCE = 0.8
    OTHER_PAGE_LIMIT = 10
    OTHER_PREVIEW_CHARS = 150

    def __init__(
        self,
        settings: Settings,
        generator: LlmsTxtGenerator | None = None,
        parser: LlmsTxtParser | None = None,
    ):
        self.settings = settings
        self.generator = generator or get_generator()
        self.parser = parser or LlmsTxtParser()
        self._openai_client = None
        self._anthropic_client = None

    @property
    def enabled(self) -> bool:
        """Whether the configured provider has an API key."""
        if self.settings.llm_provider == "anthropic":
            return bool(self.settings.anthropic_api_key)
        return bool(self.settings.openai_api_key)

    def _get_openai_client(self):
        """Lazy load OpenAI client."""
        if self._openai_client is None:
            from openai import AsyncOpenAI
            self._openai_client = AsyncOpenAI(api_key=self.settings.openai_api_key)
        return self._openai_client

    def _get_anthropic_client(self):
        """Lazy load Anthropic client."""
        if self._anthropic_client is None:
            from anthropic import AsyncAnthropic
            self._anthropic_client = AsyncAnthropic(api_key=self.settings.anthropic_api_key)
        return self._anthropic_client

    async def _call_openai(self, prompt: str, model: str) -> str:
        client = self._get_openai_client()

        response = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": LLMS_TXT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.settings.llm_max_tokens,
            temperature=self.settings.llm_temperature,
        )

        return response.choices[0].message.content or ""

    async def _call_anthropic(self, prompt: str, model: str) -> str:
        client = self._get_anthropic_client()

        response = await client.messages.create(
            model=model,
            max_tokens=self.settings.llm_max_tokens,
            system=LLMS_TXT_SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.settings.llm_temperature,
        )

        return response.content[0].text

    async def generate(self, prompt: str) -> str:
        """Call configured LLM provider."""
        provider = self.settings.llm_provider
        model = self.settings.llm_model

        logger.info(f"Calling {provider} {model}...")

        if provider == "openai":
            return await self._call_openai(prompt, model)
        elif provider == "anthropic":
            return await self._call_anthropic(prompt, model)
        else:
            raise ValueError(f"Unknown LLM provider: {provider}")

    def select_navigation_pages(
        self, pages: list[ProcessedPage], website_url: str
    ) -> list[ProcessedPage]:
        """Top navigation-like pages, most important first."""
        candidates = [
            p for p in pages
            if p.category == PageCategory.MAIN_NAVIGATION
            or p.importance >= self.NAVIGATION_MIN_IMPORTANCE
            or p.url == website_url
        ]
        candidates.sort(key=lambda p: p.importance, reverse=True)
        return candidates[: self.NAVIGATION_PAGE_LIMIT]

    @staticmethod
    def _truncate(text: str, limit: int) -> str:
        return text[:limit] + ("..." if len(text) > limit else "")

    def build_prompt(self, pages: list[ProcessedPage], website_url: str) -> str:
        navigation = self.select_navigation_pages(pages, website_url)
        navigation_urls = {p.url for p in navigation}

        navigation_data: list[dict[str, Any]] = [
            {
                "url": p.url,
                "title": p.title,
                "category": p.category.value,
                "importance": p.importance,
                "wordCount": p.word_count,
                "contentSummary": self._truncate(p.content, self.NAVIGATION_SUMMARY_CHARS),
            }
            for p in navigation
        ]

        others = [p for p in pages if p.url not in navigation_urls][: self.OTHER_PAGE_LIMIT]
        other_data: list[dict[str, Any]] = [
            {
                "url": p.url,
                "title": p.title,
                "category": p.category.value,
                "importance": p.importance,
                "contentPreview": self._truncate(p.content, self.OTHER_PREVIEW_CHARS),
            }
            for p in others
        ]

        return LLMS_TXT_PROMPT.format(
            website_url=website_url,
            navigation_pages=json.dumps(navigation_data, indent=2, ensure_ascii=False),
            other_pages=json.dumps(other_data, indent=2, ensure_ascii=False),
        )

    async def generate_llms_txt(
        self, pages: list[ProcessedPage], website_url: str
    ) -> LlmsTxtContent:
        """Synthesize the llms.txt artifact, preferring model-written prose."""
        if not self.enabled:
            logger.warning(
                f"No API key for {self.settings.llm_provider}, falling back to basic generation"
            )
            return self.generator.build_content(pages, website_url)

        try:
            prompt = self.build_prompt(pages, website_url)
            ai_content = (await self.generate(prompt)).strip()
            if not ai_content:
                raise ValueError("Empty response from language model")
        except Exception as e:
            logger.warning(f"AI generation failed for {website_url}, using heuristic synthesis: {e}")
            return self.generator.build_content(pages, website_url)

        self._log_main_links(ai_content, pages)
        return self.generator.build_content(pages, website_url, ai_content=ai_content)

    def _log_main_links(self, ai_content: str, pages: list[ProcessedPage]) -> None:
        parsed = self.parser.parse(ai_content)
        main = parsed.get_section_by_name("Main")
        if main is None:
            logger.warning("Generated llms.txt has no Main section")
            return

        known = {p.url for p in pages}
        matched = [link.url for link in main.links if link.url in known]
        logger.info(
            f"Generated Main section links {len(matched)}/{len(main.links)} crawled pages"
        )
