"""Natural language to SQL translation."""

from .anthropic_translator import AnthropicTranslator
from .base import Translator
from .pipeline import PROMPT_TEMPLATE, TranslationPipeline, build_prompt, parse_reply

__all__ = [
    "AnthropicTranslator",
    "Translator",
    "PROMPT_TEMPLATE",
    "TranslationPipeline",
    "build_prompt",
    "parse_reply",
]
