"""
Segment Reassembler

Joins processed segment contents back into one document. Each segment
already holds its internal line breaks; the boundary between two
segments is exactly one "\n".
"""
from __future__ import annotations
from typing import Sequence

from md_translator.workflow.segmenter import segment_document
from md_translator.workflow.validator import LineComparison, compare_line_counts


def join_segments(contents: Sequence[str]) -> str:
    if not contents:
        return ""
    if len(contents) == 1:
        return contents[0]
    return "\n".join(contents)


def roundtrip_document(text: str, respect_fences: bool = True) -> str:
    """Segment and rejoin without transforming. Must return text unchanged."""
    segments = segment_document(text, respect_fences=respect_fences)
    return join_segments([s.content for s in segments])


def validate_roundtrip(original: str, processed: str) -> LineComparison:
    return compare_line_counts(original, processed)
