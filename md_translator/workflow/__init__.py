"""
Segment Workflow

Segment -> transform -> validate -> retry -> reassemble, with the line
count of every segment held constant across each external transform.
"""
from md_translator.workflow.segmenter import segment_document, get_segment_stats, analyze_segments
from md_translator.workflow.validator import ValidationResult, line_count, validate_line_count
from md_translator.workflow.retry import retry_until_success
from md_translator.workflow.reassembler import join_segments
from md_translator.workflow.stages import (
    StageSpec,
    TranslateStage,
    ProofreadStage,
    TranslatorSettings,
    build_default_stages,
)
from md_translator.workflow.orchestrator import (
    run_translation_pipeline,
    WorkflowConfig,
    CancelToken,
    ProcessedSegment,
    PipelineResult,
    PipelineStats,
    generate_review_report,
)

__all__ = [
    "segment_document",
    "get_segment_stats",
    "analyze_segments",
    "ValidationResult",
    "line_count",
    "validate_line_count",
    "retry_until_success",
    "join_segments",
    "StageSpec",
    "TranslateStage",
    "ProofreadStage",
    "TranslatorSettings",
    "build_default_stages",
    "run_translation_pipeline",
    "WorkflowConfig",
    "CancelToken",
    "ProcessedSegment",
    "PipelineResult",
    "PipelineStats",
    "generate_review_report",
]
