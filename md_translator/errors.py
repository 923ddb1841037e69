"""
Translator Exceptions

Exception classes shared by the workflow core, the LLM collaborators
and the lint adapter. Kept in one module to avoid circular imports.
"""
from __future__ import annotations
from typing import Any, Dict, Optional


class TranslatorError(Exception):
    """Base error with optional code and details."""

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details or {}


class ConfigurationError(TranslatorError):
    """Missing credentials, collaborators or invalid options. Fatal at start-up."""


class ValidationFailure(TranslatorError):
    """A stage output whose line count cannot be reconciled with its input."""


class TransformError(TranslatorError):
    """An external transform call (LLM, linter) failed."""


class LintError(TransformError):
    """Vale failed to run or produced unreadable output."""


class RetryExhausted(TranslatorError):
    """All attempts were consumed without a validated result."""

    def __init__(self, message: str, attempts: int = 0, last_failure_reason: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.attempts = attempts
        self.last_failure_reason = last_failure_reason


class PipelineAborted(RetryExhausted):
    """A segment stage exhausted its retries under the abort policy."""

    def __init__(
        self,
        message: str,
        segment_index: int,
        start_line: int,
        end_line: int,
        stage: str,
        attempts: int = 0,
        last_failure_reason: Optional[str] = None,
    ):
        super().__init__(
            message,
            attempts=attempts,
            last_failure_reason=last_failure_reason,
            code="pipeline_aborted",
            details={
                "segment": segment_index + 1,
                "start_line": start_line,
                "end_line": end_line,
                "stage": stage,
            },
        )
        self.segment_index = segment_index
        self.start_line = start_line
        self.end_line = end_line
        self.stage = stage


class ReassemblyMismatch(TranslatorError):
    """Final document line count differs from the source after reassembly."""

    def __init__(self, message: str, source_lines: int, final_lines: int, result: Any = None):
        super().__init__(
            message,
            code="reassembly_mismatch",
            details={"source_lines": source_lines, "final_lines": final_lines},
        )
        self.source_lines = source_lines
        self.final_lines = final_lines
        self.result = result


class PipelineCancelled(TranslatorError):
    """The run's cancel token fired or its deadline passed."""
