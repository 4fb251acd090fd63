"""Business logic services."""

from app.services.crawler import CrawlerService
from app.services.job_store import JobStore, get_job_store
from app.services.llm_curator import LLMCurator
from app.services.llms_txt_generator import LlmsTxtGenerator, get_generator

__all__ = [
    "CrawlerService",
    "JobStore",
    "get_job_store",
    "LLMCurator",
    "LlmsTxtGenerator",
    "get_generator",
]
