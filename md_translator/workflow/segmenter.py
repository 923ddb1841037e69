"""
Document Segmenter

Splits Markdown into ordered, gap-free segments at H1-H3 heading
boundaries. Segments tile the source exactly: joining their contents
with "\n" reproduces the input byte for byte.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Pattern
import re

from md_translator.ir import Segment

# H1-H3 start a new segment; H4+ stay inside the current one
HEADING_PATTERN = re.compile(r"^(#{1,3})\s+(.+)")

FENCE_MARKER = "```"

# Characters the translate stage is meant to rewrite (English source)
SOURCE_ALPHABET = re.compile(r"[a-zA-Z]")

PREVIEW_CHARS = 50


@dataclass
class SegmentStats:
    """Summary statistics for a list of segments."""
    total_segments: int = 0
    candidate_segments: int = 0
    average_size: int = 0
    max_size: int = 0


@dataclass
class SegmentSummary:
    index: int
    lines: int
    start_line: int
    end_line: int
    preview: str


@dataclass
class SegmentAnalysis:
    original_lines: int
    segments: List[SegmentSummary] = field(default_factory=list)
    total_segment_lines: int = 0


def _is_fence(line: str) -> bool:
    return line.strip().startswith(FENCE_MARKER)


def _is_transform_candidate(content: str, alphabet: Pattern) -> bool:
    """True if any line outside fenced code contains a source-alphabet character."""
    in_fence = False
    for line in content.split("\n"):
        if _is_fence(line):
            in_fence = not in_fence
            continue
        if not in_fence and line.strip() and alphabet.search(line):
            return True
    return False


def _make_segment(
    index: int,
    lines: List[str],
    start_line: int,
    heading: str,
    alphabet: Pattern,
) -> Segment:
    content = "\n".join(lines)
    return Segment(
        index=index,
        content=content,
        start_line=start_line,
        end_line=start_line + len(lines) - 1,
        has_fenced_code=FENCE_MARKER in content,
        is_transform_candidate=_is_transform_candidate(content, alphabet),
        heading=heading,
    )


def segment_document(
    text: str,
    respect_fences: bool = True,
    source_alphabet: Optional[Pattern] = None,
) -> List[Segment]:
    """
    Split a Markdown document into segments at heading boundaries.

    Args:
        text: Full document text
        respect_fences: If True, heading-like lines inside an open code
            fence do not start a new segment. False reproduces the
            fence-blind behaviour.
        source_alphabet: Pattern used for the transform-candidate hint

    Returns:
        Segments in document order. Never empty: "" yields one empty
        segment covering line 1.
    """
    alphabet = source_alphabet or SOURCE_ALPHABET
    segments: List[Segment] = []
    current: List[str] = []
    current_start = 1
    current_heading = ""
    in_fence = False

    for line_number, line in enumerate(text.split("\n"), start=1):
        is_boundary = HEADING_PATTERN.match(line) is not None and not (respect_fences and in_fence)

        if is_boundary and current:
            segments.append(_make_segment(len(segments), current, current_start, current_heading, alphabet))
            current = []
            current_start = line_number

        if is_boundary:
            current_heading = line
        if _is_fence(line):
            in_fence = not in_fence
        current.append(line)

    # split("\n") always yields at least one line, so a final segment always exists
    segments.append(_make_segment(len(segments), current, current_start, current_heading, alphabet))
    return segments


def get_segment_stats(segments: List[Segment]) -> SegmentStats:
    """Count segments and measure their sizes in characters."""
    stats = SegmentStats(
        total_segments=len(segments),
        candidate_segments=sum(1 for s in segments if s.is_transform_candidate),
    )
    if segments:
        sizes = [len(s.content) for s in segments]
        stats.average_size = round(sum(sizes) / len(segments))
        stats.max_size = max(sizes)
    return stats


def analyze_segments(text: str, respect_fences: bool = True) -> SegmentAnalysis:
    """Per-segment line accounting for debugging segmentation."""
    segments = segment_document(text, respect_fences=respect_fences)
    summaries = []
    for s in segments:
        preview = s.content[:PREVIEW_CHARS].replace("\n", "\\n")
        if len(s.content) > PREVIEW_CHARS:
            preview += "..."
        summaries.append(SegmentSummary(
            index=s.index + 1,
            lines=s.content.count("\n") + 1,
            start_line=s.start_line,
            end_line=s.end_line,
            preview=preview,
        ))

    return SegmentAnalysis(
        original_lines=text.count("\n") + 1,
        segments=summaries,
        total_segment_lines=sum(s.lines for s in summaries),
    )
