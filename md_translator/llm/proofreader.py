"""
Proofreader

LLM-backed Correct collaborator: given text and the linter's formatted
diagnostics, asks the model to fix exactly the reported problems.
"""
from __future__ import annotations
from typing import Optional
import logging

from md_translator.ir import TransformContext
from md_translator.llm.client import ClaudeClient
from md_translator.rules.load_prompts import PromptPack

logger = logging.getLogger(__name__)


class Proofreader:
    """Rewrites text to resolve lint diagnostics without touching structure."""

    def __init__(self, client: ClaudeClient, prompts: PromptPack, temperature: float = 0.8):
        self.client = client
        self.prompts = prompts
        self.temperature = temperature

    def _build_retry_context(self, context: Optional[TransformContext]) -> str:
        if not context or not context.failure_reason:
            return "(first attempt)"

        retry_context = (
            "This correction failed on the previous attempt. "
            "Take a different approach this time.\n"
            f"Reason: {context.failure_reason}"
        )
        if context.previous_result:
            retry_context += f"\n\nPrevious failed correction:\n---\n{context.previous_result}\n---"
        return retry_context

    def build_prompt(self, text: str, diagnostics: str, context: Optional[TransformContext] = None) -> str:
        return self.prompts.user(
            "proofread",
            retry_context=self._build_retry_context(context),
            diagnostics=diagnostics,
            content=text,
        )

    def correct(self, text: str, diagnostics: str, context: Optional[TransformContext] = None) -> str:
        if not diagnostics.strip():
            return text

        user_prompt = self.build_prompt(text, diagnostics, context)
        return self.client.complete(
            self.prompts.system("proofread"),
            user_prompt,
            temperature=self.temperature,
        )
