"""
Translator

LLM-backed Transform collaborator: translates one segment, optionally
primed with earlier translated segments for terminology consistency
and with the reason the previous attempt was rejected.
"""
from __future__ import annotations
from typing import Optional, Sequence
import logging

from md_translator.ir import StageOutput, TransformContext
from md_translator.llm.client import ClaudeClient
from md_translator.rules.load_prompts import PromptPack

logger = logging.getLogger(__name__)

# How much earlier output to show the model
HISTORY_SEGMENTS = 2
HISTORY_CHARS = 2000


class Translator:
    """Translates Markdown segments while keeping their line structure."""

    def __init__(self, client: ClaudeClient, prompts: PromptPack, temperature: float = 0.5):
        self.client = client
        self.prompts = prompts
        self.temperature = temperature

    def _build_context(self, context: Optional[TransformContext], history: Sequence[str]) -> str:
        parts = []

        if history:
            recent = "\n\n".join(history[-HISTORY_SEGMENTS:])
            if len(recent) > HISTORY_CHARS:
                recent = recent[-HISTORY_CHARS:]
            parts.append(
                "Earlier sections of this document were translated as follows. "
                "Keep terminology and tone consistent with them:\n"
                f"---\n{recent}\n---"
            )

        if context and context.failure_reason:
            parts.append(
                f"This translation failed on the previous attempt. Reason: {context.failure_reason}"
            )

        return "\n\n".join(parts) if parts else "(none)"

    def build_prompt(
        self,
        text: str,
        context: Optional[TransformContext] = None,
        history: Sequence[str] = (),
    ) -> str:
        return self.prompts.user(
            "translate",
            instructions=self.prompts.additional_instructions or "(none)",
            context=self._build_context(context, history),
            content=text,
        )

    def transform(
        self,
        text: str,
        context: Optional[TransformContext] = None,
        history: Sequence[str] = (),
    ) -> StageOutput:
        user_prompt = self.build_prompt(text, context, history)
        translated = self.client.complete(
            self.prompts.system("translate"),
            user_prompt,
            temperature=self.temperature,
        )
        logger.debug(f"Translated {len(text)} chars -> {len(translated)} chars")
        return StageOutput(text=translated)
