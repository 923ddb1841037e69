from __future__ import annotations
from typing import List
import re
from md_translator.ir import Finding

FENCE_MARKER = "```"
HEADING_LEVEL = re.compile(r"^(#{1,6})\s+\S")

def _heading_levels(text: str) -> List[int]:
    levels: List[int] = []
    in_fence = False
    for line in text.split("\n"):
        if line.lstrip().startswith(FENCE_MARKER):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        m = HEADING_LEVEL.match(line)
        if m:
            levels.append(len(m.group(1)))
    return levels

def _fence_count(text: str) -> int:
    return sum(1 for line in text.split("\n") if line.lstrip().startswith(FENCE_MARKER))

def verify_structure(source: str, final: str) -> List[Finding]:
    """Non-fatal structure checks between source and translated document."""
    findings: List[Finding] = []

    src_levels = _heading_levels(source)
    out_levels = _heading_levels(final)
    if src_levels != out_levels:
        findings.append(Finding(
            rule_id="struct.heading_sequence",
            severity="warning",
            message=f"Heading levels changed ({len(src_levels)} headings in source, {len(out_levels)} in output).",
            details={"source": ",".join(map(str, src_levels)), "final": ",".join(map(str, out_levels))},
        ))

    src_fences = _fence_count(source)
    out_fences = _fence_count(final)
    if src_fences != out_fences:
        findings.append(Finding(
            rule_id="struct.fence_count",
            severity="warning",
            message=f"Code fence markers changed ({src_fences} in source, {out_fences} in output).",
            details={"source": str(src_fences), "final": str(out_fences)},
        ))

    return findings
