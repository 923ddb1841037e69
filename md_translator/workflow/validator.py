"""
Line Count Validator

Certifies that a transformed segment has the same number of lines as
its input, tolerating a single trailing-newline drift in either
direction. LLMs routinely add or drop a final newline; anything larger
is a structural change the caller must not accept.
"""
from __future__ import annotations
from dataclasses import dataclass

from md_translator.errors import ValidationFailure


@dataclass
class ValidationResult:
    """Outcome of a line-count check."""
    is_valid: bool
    adjusted_text: str
    original_lines: int = 0
    candidate_lines: int = 0


@dataclass
class LineComparison:
    original_count: int
    processed_count: int
    difference: int
    is_equal: bool


def line_count(text: str) -> int:
    """Number of "\n"-delimited lines. The empty string is one line."""
    return text.count("\n") + 1


def compare_line_counts(original: str, processed: str) -> LineComparison:
    original_count = line_count(original)
    processed_count = line_count(processed)
    return LineComparison(
        original_count=original_count,
        processed_count=processed_count,
        difference=processed_count - original_count,
        is_equal=original_count == processed_count,
    )


def format_line_count_message(original: str, processed: str, label: str) -> str:
    """Human-readable summary of a line-count check, for logs."""
    comparison = compare_line_counts(original, processed)
    if comparison.is_equal:
        return f"{label} complete: {comparison.original_count} lines"
    return (
        f"{label} line count mismatch "
        f"(original: {comparison.original_count}, after: {comparison.processed_count})"
    )


def validate_line_count(original: str, candidate: str) -> ValidationResult:
    """
    Validate candidate against original, adjusting one trailing newline.

    Pure and total: never raises.
    """
    original_lines = line_count(original)
    candidate_lines = line_count(candidate)

    if original_lines == candidate_lines:
        return ValidationResult(True, candidate, original_lines, candidate_lines)

    # One extra line caused by a trailing newline: strip it
    if candidate_lines == original_lines + 1 and candidate.endswith("\n"):
        return ValidationResult(True, candidate[:-1], original_lines, candidate_lines)

    # One line short: append the missing trailing newline
    if original_lines == candidate_lines + 1:
        return ValidationResult(True, candidate + "\n", original_lines, candidate_lines)

    return ValidationResult(False, candidate, original_lines, candidate_lines)


def require_line_count(result: ValidationResult) -> str:
    """
    Adjusted text of a valid result.

    Raises:
        ValidationFailure: the line counts could not be reconciled
    """
    if not result.is_valid:
        raise ValidationFailure(
            f"line count mismatch: expected {result.original_lines} lines, got {result.candidate_lines}",
            code="line_count_mismatch",
            details={"expected": result.original_lines, "got": result.candidate_lines},
        )
    return result.adjusted_text
