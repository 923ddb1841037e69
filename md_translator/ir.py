from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Segment:
    index: int              # 0-based position in document order
    content: str            # exact "\n"-join of the segment's lines
    start_line: int         # 1-indexed, inclusive
    end_line: int           # 1-indexed, inclusive
    has_fenced_code: bool
    is_transform_candidate: bool
    heading: str = ""       # heading line that opened the segment ("" for leading text)

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1


@dataclass(frozen=True)
class TransformContext(Generic[T]):
    failure_reason: Optional[str] = None
    previous_result: Optional[T] = None
    attempt: int = 1


@dataclass
class StageOutput:
    text: str
    remaining_issues: Optional[str] = None  # formatted diagnostics left after correction


@dataclass
class LintMessage:
    line: int
    column: int
    check: str
    message: str
    severity: str               # suggestion|warning|error
    match: str = ""
    replacement: Optional[str] = None


@dataclass
class LintDiagnostics:
    fixed_text: str
    messages: List[LintMessage] = field(default_factory=list)
    formatted_message: str = ""


@dataclass
class Finding:
    rule_id: str
    severity: str  # info|warning|critical
    message: str
    category: str = "structure"
    details: Dict[str, str] = field(default_factory=dict)
