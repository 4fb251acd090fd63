"""LLM prompts for various tasks."""

from app.prompts.llms_txt_generation import LLMS_TXT_PROMPT, LLMS_TXT_SYSTEM_PROMPT

__all__ = [
    "LLMS_TXT_PROMPT",
    "LLMS_TXT_SYSTEM_PROMPT",
]
