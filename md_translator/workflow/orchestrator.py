"""
Translation Workflow Orchestrator

Coordinates the segment pipeline:
1. Segment the document at heading boundaries
2. Run every configured stage on each segment through the retry engine,
   validating line counts after each attempt
3. Apply the failure policy to segments whose retries run out
4. Reassemble the final document
5. Re-check the whole-document line count
"""
from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Literal, Optional, Sequence
import logging
import threading
import time

from md_translator.debug import DebugSink, NullDebugSink
from md_translator.errors import (
    ConfigurationError,
    PipelineAborted,
    PipelineCancelled,
    ReassemblyMismatch,
    RetryExhausted,
    ValidationFailure,
)
from md_translator.ir import Finding, Segment, StageOutput, TransformContext
from md_translator.verify import verify_structure
from md_translator.workflow.reassembler import join_segments
from md_translator.workflow.retry import describe_error, retry_until_success
from md_translator.workflow.segmenter import get_segment_stats, segment_document
from md_translator.workflow.stages import StageSpec
from md_translator.workflow.validator import (
    ValidationResult,
    format_line_count_message,
    line_count,
    require_line_count,
    validate_line_count,
)

logger = logging.getLogger(__name__)

FailurePolicy = Literal["abort", "degrade"]
SegmentStatus = Literal["done", "degraded", "skipped"]
RunStatus = Literal["done", "failed", "cancelled"]

FAILURE_POLICIES = ("abort", "degrade")

ProgressCallback = Callable[[str, int, int], None]


class CancelToken:
    """
    Cooperative cancellation signal, checked before each external call.

    Cancelled when cancel() is called, when the optional deadline
    passes, or when the parent token is cancelled.
    """

    def __init__(self, timeout_s: Optional[float] = None, parent: Optional["CancelToken"] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout_s if timeout_s else None
        self._parent = parent

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return self._parent is not None and self._parent.cancelled

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise PipelineCancelled("Pipeline cancelled", code="cancelled")


@dataclass
class WorkflowConfig:
    """Configuration for one pipeline run."""
    stages: List[StageSpec]
    max_retries: int = 3                 # Attempts per stage per segment
    failure_policy: FailurePolicy = "abort"

    # Scheduling
    parallel: bool = False               # Segments are independent; no history
    max_concurrent: int = 2

    # Segmentation
    respect_fences: bool = True          # Headings inside code fences do not split
    skip_non_candidates: bool = True     # Pass through segments with nothing to translate


@dataclass
class ProcessedSegment:
    """Final state of one segment after all stages."""
    original_segment: Segment
    final_text: str
    stage_errors: List[str] = field(default_factory=list)
    status: SegmentStatus = "done"
    attempts: Dict[str, int] = field(default_factory=dict)
    lint_issues: Optional[str] = None


@dataclass
class PipelineStats:
    """Statistics from pipeline run."""
    total_segments: int = 0
    candidate_segments: int = 0
    done: int = 0
    degraded: int = 0
    skipped: int = 0
    unfinished: int = 0
    total_attempts: int = 0
    total_time_s: float = 0.0


@dataclass
class PipelineResult:
    """Terminal artifact of one pipeline run."""
    document: str
    is_valid: bool
    per_segment_errors: List[str]
    segments: List[ProcessedSegment] = field(default_factory=list)
    status: RunStatus = "done"
    complete: bool = True
    source_line_count: int = 0
    final_line_count: int = 0
    findings: List[Finding] = field(default_factory=list)
    stats: PipelineStats = field(default_factory=PipelineStats)

    @property
    def has_lint_issues(self) -> bool:
        return any(s.lint_issues for s in self.segments)

    @property
    def degraded_segments(self) -> List[ProcessedSegment]:
        return [s for s in self.segments if s.status == "degraded"]


@dataclass
class _StageAttempt:
    output: StageOutput
    validation: ValidationResult


def _segment_label(segment: Segment) -> str:
    return f"segment {segment.index + 1} (lines {segment.start_line}-{segment.end_line})"


def _validate_config(config: WorkflowConfig) -> None:
    if not config.stages:
        raise ConfigurationError("At least one stage must be configured")
    if config.failure_policy not in FAILURE_POLICIES:
        raise ConfigurationError(
            f"Unknown failure policy: {config.failure_policy} (expected one of {', '.join(FAILURE_POLICIES)})"
        )
    if config.max_retries < 1:
        raise ConfigurationError(f"max_retries must be >= 1, got {config.max_retries}")
    if config.max_concurrent < 1:
        raise ConfigurationError(f"max_concurrent must be >= 1, got {config.max_concurrent}")
    for spec in config.stages:
        if spec.max_attempts is not None and spec.max_attempts < 1:
            raise ConfigurationError(f"Stage '{spec.name}' max_attempts must be >= 1")


def _run_stage(
    spec: StageSpec,
    stage_input: str,
    history: Sequence[str],
    max_retries: int,
    cancel: CancelToken,
) -> tuple:
    """
    Drive one stage through the retry engine.

    Returns (accepted attempt, attempts used). A line-valid attempt that
    still carries lint issues is accepted once retries run out.

    Raises:
        RetryExhausted: no attempt produced a line-valid output
    """
    max_attempts = spec.max_attempts or max_retries
    used = 0
    best: Optional[_StageAttempt] = None
    failures: List[str] = []

    def attempt(context: Optional[TransformContext]) -> _StageAttempt:
        nonlocal used, best
        cancel.raise_if_cancelled()
        used += 1

        stage_context = None
        if context is not None:
            previous = context.previous_result
            stage_context = TransformContext(
                failure_reason=context.failure_reason,
                previous_result=previous.output.text if previous else None,
                attempt=context.attempt,
            )

        output = spec.stage.transform(stage_input, stage_context, history if spec.uses_history else ())
        result = _StageAttempt(output=output, validation=validate_line_count(stage_input, output.text))
        if result.validation.is_valid:
            best = result
        return result

    def validate(result: _StageAttempt):
        try:
            require_line_count(result.validation)
        except ValidationFailure as e:
            reason = str(e)
        else:
            if not result.output.remaining_issues:
                return True
            reason = f"lint issues remain:\n{result.output.remaining_issues}"
        failures.append(reason)
        return reason

    def on_error(error: BaseException, attempt_number: int) -> None:
        failures.append(describe_error(error))

    def on_exhausted(last: Optional[_StageAttempt]) -> _StageAttempt:
        if best is not None:
            return best
        raise RetryExhausted(
            f"Stage '{spec.name}' failed after {used} attempts",
            attempts=used,
            last_failure_reason=failures[-1] if failures else None,
        )

    accepted = retry_until_success(
        max_attempts,
        attempt,
        validate,
        on_exhausted=on_exhausted,
        on_error=on_error,
        reraise=(PipelineCancelled,),
    )
    return accepted, used


def _process_segment(
    segment: Segment,
    config: WorkflowConfig,
    history: Sequence[str],
    debug: DebugSink,
    cancel: CancelToken,
) -> ProcessedSegment:
    label = _segment_label(segment)

    if config.skip_non_candidates and not segment.is_transform_candidate:
        logger.info(f"Skipping {label}: nothing to translate")
        debug.record_segment_output(segment.index, segment.content)
        return ProcessedSegment(original_segment=segment, final_text=segment.content, status="skipped")

    logger.info(f"Processing {label} ({len(segment.content)} chars)")
    debug.record_segment_input(segment.index, segment.content)

    processed = ProcessedSegment(original_segment=segment, final_text=segment.content)
    text = segment.content

    for spec in config.stages:
        try:
            accepted, used = _run_stage(spec, text, history, config.max_retries, cancel)
        except RetryExhausted as e:
            processed.attempts[spec.name] = e.attempts
            reason = e.last_failure_reason or "no valid output"
            if config.failure_policy == "abort":
                logger.error(f"Aborting at {label}, stage '{spec.name}': {reason}")
                raise PipelineAborted(
                    f"{label} failed in stage '{spec.name}' after {e.attempts} attempts: {reason}",
                    segment_index=segment.index,
                    start_line=segment.start_line,
                    end_line=segment.end_line,
                    stage=spec.name,
                    attempts=e.attempts,
                    last_failure_reason=reason,
                ) from e

            # Degrade: keep the input of the failed stage, skip the rest
            logger.warning(f"Degrading {label}, stage '{spec.name}': {reason}")
            processed.stage_errors.append(f"{label} stage '{spec.name}': {reason}")
            processed.status = "degraded"
            break

        processed.attempts[spec.name] = used
        logger.info(f"  {format_line_count_message(text, accepted.output.text, spec.name)}")
        text = accepted.validation.adjusted_text
        processed.lint_issues = accepted.output.remaining_issues
        if accepted.output.remaining_issues:
            logger.warning(f"  Lint issues remain in {label} after '{spec.name}'")
        debug.record_stage_output(segment.index, spec.name, text)

    processed.final_text = text
    debug.record_segment_output(segment.index, text)
    return processed


def _process_sequential(
    segments: List[Segment],
    results: List[Optional[ProcessedSegment]],
    config: WorkflowConfig,
    debug: DebugSink,
    cancel: CancelToken,
    progress_callback: Optional[ProgressCallback],
) -> None:
    history: List[str] = []
    for segment in segments:
        processed = _process_segment(segment, config, tuple(history), debug, cancel)
        results[segment.index] = processed
        history.append(processed.final_text)
        if progress_callback:
            progress_callback("processing", segment.index + 1, len(segments))


def _process_parallel(
    segments: List[Segment],
    results: List[Optional[ProcessedSegment]],
    config: WorkflowConfig,
    debug: DebugSink,
    cancel: CancelToken,
    progress_callback: Optional[ProgressCallback],
) -> None:
    # Child token: an abort stops the other workers without touching the caller's token
    worker_cancel = CancelToken(parent=cancel)
    abort_error: Optional[PipelineAborted] = None
    cancelled = False
    completed = 0

    logger.info(f"Processing {len(segments)} segments with {config.max_concurrent} workers")

    with ThreadPoolExecutor(max_workers=config.max_concurrent) as executor:
        future_to_idx = {
            executor.submit(_process_segment, segment, config, (), debug, worker_cancel): segment.index
            for segment in segments
        }

        for future in as_completed(future_to_idx):
            idx = future_to_idx[future]
            try:
                results[idx] = future.result()
            except PipelineAborted as e:
                if abort_error is None:
                    abort_error = e
                worker_cancel.cancel()
            except PipelineCancelled:
                cancelled = True
            completed += 1

            if progress_callback:
                progress_callback("processing", completed, len(segments))

    if abort_error is not None:
        raise abort_error
    if cancelled:
        raise PipelineCancelled("Pipeline cancelled", code="cancelled")


def run_translation_pipeline(
    source_text: str,
    config: WorkflowConfig,
    debug_sink: Optional[DebugSink] = None,
    cancel_token: Optional[CancelToken] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> PipelineResult:
    """
    Run the segment / transform / validate / reassemble pipeline.

    Args:
        source_text: Full source document
        config: Stages, retry budget and failure policy
        debug_sink: Receives intermediate texts (no-op when omitted)
        cancel_token: Checked before every external stage call
        progress_callback: Optional callback(phase, completed, total)

    Returns:
        PipelineResult. A cancelled run still returns a result: finished
        segments are kept, unfinished ones keep their source text.

    Raises:
        ConfigurationError: invalid config, before any processing
        PipelineAborted: a segment exhausted its retries under "abort"
        ReassemblyMismatch: the final document's line count is wrong
    """
    _validate_config(config)
    debug = debug_sink or NullDebugSink()
    cancel = cancel_token or CancelToken()
    start_time = time.time()

    # Segmenting
    logger.info(f"Segmenting document: {len(source_text)} chars, {line_count(source_text)} lines")
    if progress_callback:
        progress_callback("segmenting", 0, 1)
    debug.record_source(source_text)

    segments = segment_document(source_text, respect_fences=config.respect_fences)
    seg_stats = get_segment_stats(segments)
    logger.info(
        f"Created {seg_stats.total_segments} segments, {seg_stats.candidate_segments} to translate "
        f"(avg {seg_stats.average_size} chars, max {seg_stats.max_size})"
    )
    if progress_callback:
        progress_callback("segmenting", 1, 1)

    # Processing
    results: List[Optional[ProcessedSegment]] = [None] * len(segments)
    status: RunStatus = "done"
    try:
        if config.parallel:
            _process_parallel(segments, results, config, debug, cancel, progress_callback)
        else:
            _process_sequential(segments, results, config, debug, cancel, progress_callback)
    except PipelineCancelled:
        status = "cancelled"
        finished = sum(1 for r in results if r is not None)
        logger.warning(f"Pipeline cancelled after {finished}/{len(segments)} segments")

    # Reassembling
    if progress_callback:
        progress_callback("reassembling", 0, 1)
    final_texts = [r.final_text if r is not None else s.content for r, s in zip(results, segments)]
    document = join_segments(final_texts)
    if progress_callback:
        progress_callback("reassembling", 1, 1)

    # Final validation
    processed = [r for r in results if r is not None]
    per_segment_errors = [err for r in processed for err in r.stage_errors]
    source_lines = line_count(source_text)
    final_lines = line_count(document)

    stats = PipelineStats(
        total_segments=len(segments),
        candidate_segments=seg_stats.candidate_segments,
        done=sum(1 for r in processed if r.status == "done"),
        degraded=sum(1 for r in processed if r.status == "degraded"),
        skipped=sum(1 for r in processed if r.status == "skipped"),
        unfinished=len(segments) - len(processed),
        total_attempts=sum(n for r in processed for n in r.attempts.values()),
        total_time_s=time.time() - start_time,
    )

    result = PipelineResult(
        document=document,
        is_valid=status == "done" and stats.degraded == 0 and source_lines == final_lines,
        per_segment_errors=per_segment_errors,
        segments=processed,
        status=status,
        complete=status == "done",
        source_line_count=source_lines,
        final_line_count=final_lines,
        findings=verify_structure(source_text, document),
        stats=stats,
    )
    debug.record_final(document)

    if source_lines != final_lines:
        logger.error(
            f"Final line count does not match: source {source_lines}, final {final_lines}. "
            "Segment boundaries were not preserved."
        )
        result.status = "failed"
        result.is_valid = False
        raise ReassemblyMismatch(
            f"Final document has {final_lines} lines, source has {source_lines}",
            source_lines=source_lines,
            final_lines=final_lines,
            result=result,
        )

    logger.info(
        f"Pipeline {status}: {stats.done} done, {stats.degraded} degraded, "
        f"{stats.skipped} skipped in {stats.total_time_s:.1f}s"
    )
    for finding in result.findings:
        logger.warning(f"{finding.rule_id}: {finding.message}")

    return result


def generate_review_report(result: PipelineResult) -> str:
    """Markdown report of a run: summary, degraded segments, lint leftovers."""
    lines = []

    lines.append("# Translation Review Report")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| Status | {result.status} |")
    lines.append(f"| Valid | {'yes' if result.is_valid else 'no'} |")
    lines.append(f"| Total segments | {result.stats.total_segments} |")
    lines.append(f"| Translated | {result.stats.done} |")
    lines.append(f"| Degraded | {result.stats.degraded} |")
    lines.append(f"| Skipped | {result.stats.skipped} |")
    if result.stats.unfinished:
        lines.append(f"| Unfinished | {result.stats.unfinished} |")
    lines.append(f"| Attempts | {result.stats.total_attempts} |")
    lines.append(f"| Lines (source / final) | {result.source_line_count} / {result.final_line_count} |")
    lines.append(f"| Processing time | {result.stats.total_time_s:.1f}s |")
    lines.append("")

    degraded = result.degraded_segments
    if degraded:
        lines.append("## Degraded Segments (Fallback Text Kept)")
        lines.append("")
        for s in degraded:
            seg = s.original_segment
            lines.append(f"### Segment {seg.index + 1} (lines {seg.start_line}-{seg.end_line})")
            if seg.heading:
                lines.append(f"**Heading:** `{seg.heading}`")
            for err in s.stage_errors:
                lines.append(f"- {err}")
            lines.append("")

    with_issues = [s for s in result.segments if s.lint_issues]
    if with_issues:
        lines.append("## Remaining Lint Issues")
        lines.append("")
        for s in with_issues:
            seg = s.original_segment
            lines.append(f"### Segment {seg.index + 1} (lines {seg.start_line}-{seg.end_line})")
            lines.append("")
            lines.append("```")
            lines.append(s.lint_issues)
            lines.append("```")
            lines.append("")

    if result.findings:
        lines.append("## Structure Findings")
        lines.append("")
        for f in result.findings:
            lines.append(f"- [{f.severity.upper()}] {f.rule_id}: {f.message}")
        lines.append("")

    return "\n".join(lines)
