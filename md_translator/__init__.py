"""Structure-preserving Markdown translation."""
from md_translator.errors import (
    TranslatorError,
    ConfigurationError,
    PipelineAborted,
    PipelineCancelled,
    ReassemblyMismatch,
)
from md_translator.workflow import (
    run_translation_pipeline,
    WorkflowConfig,
    CancelToken,
    PipelineResult,
    StageSpec,
)

__version__ = "0.1.0"

__all__ = [
    "TranslatorError",
    "ConfigurationError",
    "PipelineAborted",
    "PipelineCancelled",
    "ReassemblyMismatch",
    "run_translation_pipeline",
    "WorkflowConfig",
    "CancelToken",
    "PipelineResult",
    "StageSpec",
]
