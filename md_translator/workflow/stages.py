"""
Workflow Stages

A stage is one retryable external transform applied to a segment.
Every stage honours the same contract, transform(text, context,
history) -> StageOutput, so the orchestrator drives translation and
proofreading identically.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence
import logging

from md_translator.ir import LintDiagnostics, StageOutput, TransformContext

logger = logging.getLogger(__name__)


class Stage(Protocol):
    def transform(
        self,
        text: str,
        context: Optional[TransformContext] = None,
        history: Sequence[str] = (),
    ) -> StageOutput:
        ...


class Linter(Protocol):
    def lint_text(self, text: str) -> LintDiagnostics:
        ...


class Corrector(Protocol):
    def correct(self, text: str, diagnostics: str, context: Optional[TransformContext] = None) -> str:
        ...


@dataclass
class StageSpec:
    """One configured stage of the per-segment workflow."""
    name: str
    stage: Stage
    max_attempts: Optional[int] = None  # Overrides WorkflowConfig.max_retries
    uses_history: bool = False          # Receives prior segments' final outputs


class TranslateStage:
    """Adapts a Transform collaborator (e.g. Translator) to the stage contract."""

    def __init__(self, translator: Stage):
        self.translator = translator

    def transform(
        self,
        text: str,
        context: Optional[TransformContext] = None,
        history: Sequence[str] = (),
    ) -> StageOutput:
        return self.translator.transform(text, context, history)


class ProofreadStage:
    """
    Lint, correct, re-lint.

    The linter's own fixes are applied first. If nothing remains to fix
    the corrector is never called; otherwise the corrector rewrites the
    fixed text and the result is linted again so leftover issues can be
    fed into the next attempt.
    """

    def __init__(self, linter: Linter, corrector: Corrector):
        self.linter = linter
        self.corrector = corrector

    def transform(
        self,
        text: str,
        context: Optional[TransformContext] = None,
        history: Sequence[str] = (),
    ) -> StageOutput:
        diagnostics = self.linter.lint_text(text)
        if not diagnostics.messages:
            return StageOutput(text=diagnostics.fixed_text)

        logger.debug(f"Correcting {len(diagnostics.messages)} lint issues")
        corrected = self.corrector.correct(diagnostics.fixed_text, diagnostics.formatted_message, context)

        remaining = self.linter.lint_text(corrected)
        return StageOutput(
            text=corrected,
            remaining_issues=remaining.formatted_message if remaining.messages else None,
        )


@dataclass
class TranslatorSettings:
    """Start-up configuration for the default translate + proofread stages."""
    api_key: Optional[str]
    model: str = "claude-sonnet-4-20250514"
    target_language: Optional[str] = None
    translate_temperature: float = 0.5  # Consistency over creativity
    proofread_temperature: float = 0.8  # Room to rephrase flagged expressions
    timeout_s: float = 120.0
    proofread: bool = True
    vale_binary: str = "vale"
    vale_config: Optional[str] = None
    prompts_path: Optional[str] = None
    additional_instructions: str = ""


def build_default_stages(settings: TranslatorSettings) -> List[StageSpec]:
    """
    Wire the Anthropic translator and, optionally, the Vale proofreader.

    Raises:
        ConfigurationError: missing API key, Vale binary or Vale config,
            or an invalid prompt pack
    """
    from md_translator.adapters.vale_adapter import ValeConfig, ValeLinter
    from md_translator.llm.client import ClaudeClient, LLMConfig
    from md_translator.llm.proofreader import Proofreader
    from md_translator.llm.translator import Translator
    from md_translator.rules.load_prompts import load_prompt_pack

    prompts = load_prompt_pack(
        settings.prompts_path,
        target_language=settings.target_language,
        additional_instructions=settings.additional_instructions,
    )
    client = ClaudeClient(LLMConfig(
        api_key=settings.api_key or "",
        model=settings.model,
        timeout_s=settings.timeout_s,
    ))

    stages = [
        StageSpec(
            name="translate",
            stage=TranslateStage(Translator(client, prompts, temperature=settings.translate_temperature)),
            uses_history=True,
        ),
    ]

    if settings.proofread:
        linter = ValeLinter(ValeConfig(
            vale_binary=settings.vale_binary,
            config_path=settings.vale_config,
        ))
        stages.append(StageSpec(
            name="proofread",
            stage=ProofreadStage(linter, Proofreader(client, prompts, temperature=settings.proofread_temperature)),
        ))

    logger.info(f"Configured stages: {', '.join(s.name for s in stages)} (model={settings.model})")
    return stages
