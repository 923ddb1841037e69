from __future__ import annotations

from md_translator.llm.client import ClaudeClient, LLMConfig
from md_translator.llm.translator import Translator
from md_translator.llm.proofreader import Proofreader

__all__ = ["ClaudeClient", "LLMConfig", "Translator", "Proofreader"]
