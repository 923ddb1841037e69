from __future__ import annotations
import argparse
import json
import logging
import os
from pathlib import Path
from datetime import datetime, timezone
from typing import List, Optional

from md_translator import changelog
from md_translator.debug import DebugFileWriter
from md_translator.errors import ConfigurationError, LintError, PipelineAborted, ReassemblyMismatch
from md_translator.fileio import default_output_path, read_text_file, write_text_file
from md_translator.llm.client import DEFAULT_MODEL
from md_translator.workflow.orchestrator import (
    CancelToken,
    PipelineResult,
    WorkflowConfig,
    generate_review_report,
    run_translation_pipeline,
)
from md_translator.workflow.stages import TranslatorSettings, build_default_stages

logger = logging.getLogger(__name__)

DEFAULT_INSTRUCTION_FILE = "translator-instructions.md"


def _load_instructions(path: str) -> str:
    """Read extra translator instructions. The default file is optional."""
    if not Path(path).is_file():
        if path != DEFAULT_INSTRUCTION_FILE:
            logger.warning(f"Instruction file not found: {path}")
        return ""
    text = read_text_file(path)
    logger.info(f"Loaded translator instructions: {path} ({len(text)} chars)")
    return text


def _recheck_output(args, output_path: str) -> None:
    """Lint the written file once more and log what is left."""
    from md_translator.adapters.vale_adapter import ValeConfig, ValeLinter

    try:
        linter = ValeLinter(ValeConfig(vale_binary=args.vale_binary, config_path=args.vale_config))
        report = linter.lint_file(output_path)
    except (ConfigurationError, LintError) as e:
        logger.warning(f"Could not re-lint {output_path}: {e}")
        return

    if report:
        logger.warning(f"Remaining lint issues in {output_path}:\n{report}")
    else:
        logger.info(f"{output_path}: no lint issues")


def _summary(result: PipelineResult, output_path: Optional[str]) -> dict:
    return {
        "status": result.status,
        "is_valid": result.is_valid,
        "output": output_path,
        "total_segments": result.stats.total_segments,
        "translated": result.stats.done,
        "degraded": result.stats.degraded,
        "skipped": result.stats.skipped,
        "unfinished": result.stats.unfinished,
        "attempts": result.stats.total_attempts,
        "lines_source": result.source_line_count,
        "lines_final": result.final_line_count,
        "lint_issues": result.has_lint_issues,
        "processing_time_s": round(result.stats.total_time_s, 1),
    }


def _write_reports(args, result: PipelineResult, output_path: Optional[str]) -> None:
    if args.report:
        write_text_file(args.report, generate_review_report(result))
        logger.info(f"Review report: {args.report}")

    if args.summary_json or args.summary_txt:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%SZ")
        payload = changelog.build_payload(result, args.input, output_path, timestamp)
        if args.summary_json:
            changelog.write_json(args.summary_json, payload)
        if args.summary_txt:
            changelog.write_txt(args.summary_txt, payload)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="md-translate",
        description="Translate Markdown documents while preserving their line structure",
    )

    ap.add_argument("input", help="Path to input .md file")
    ap.add_argument("output", nargs="?", help="Output path (default: <input>_ja.md)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    # LLM options
    llm_group = ap.add_argument_group("LLM Options")
    llm_group.add_argument(
        "--anthropic-api-key",
        default=os.environ.get("ANTHROPIC_API_KEY"),
        help="Anthropic API key (or set ANTHROPIC_API_KEY env var)"
    )
    llm_group.add_argument(
        "--llm-model",
        default=os.environ.get("MD_TRANSLATOR_MODEL", DEFAULT_MODEL),
        help=f"Claude model to use (or set MD_TRANSLATOR_MODEL, default: {DEFAULT_MODEL})"
    )
    llm_group.add_argument("--target-language", help="Target language (default: Japanese)")
    llm_group.add_argument(
        "--instruction-file",
        default=DEFAULT_INSTRUCTION_FILE,
        help=f"Extra translator instructions (default: {DEFAULT_INSTRUCTION_FILE}, if present)"
    )
    llm_group.add_argument("--prompts", help="YAML file overriding the prompt templates")
    llm_group.add_argument(
        "--timeout", type=float, default=120.0,
        help="Per-request timeout in seconds (default: 120)"
    )

    # Workflow options
    wf_group = ap.add_argument_group("Workflow Options")
    wf_group.add_argument("--max-retries", type=int, default=3, help="Attempts per stage per segment (default: 3)")
    wf_group.add_argument(
        "--on-failure", default="abort",
        choices=["abort", "degrade"],
        help="When a segment exhausts its retries: abort the run, or keep its untranslated text"
    )
    wf_group.add_argument(
        "--parallel",
        action="store_true",
        help="Translate segments concurrently (no cross-segment terminology context)"
    )
    wf_group.add_argument("--max-concurrent", type=int, default=2, help="Workers for --parallel (default: 2)")
    wf_group.add_argument("--deadline", type=float, help="Cancel the run after this many seconds")
    wf_group.add_argument(
        "--strict",
        action="store_true",
        help="Exit 1 when any segment was degraded"
    )

    # Vale options
    vale_group = ap.add_argument_group("Vale Proofreading")
    vale_group.add_argument("--no-proofread", action="store_true", help="Skip the Vale lint + correct stage")
    vale_group.add_argument("--vale-config", help="Path to .vale.ini (or a directory holding one)")
    vale_group.add_argument("--vale-binary", default="vale", help="Path to the vale binary")

    # Output options
    out_group = ap.add_argument_group("Output")
    out_group.add_argument("--debug", action="store_true", help="Write intermediate files to --debug-dir")
    out_group.add_argument("--debug-dir", default="debug", help="Debug output directory (default: debug)")
    out_group.add_argument("--report", help="Write a Markdown review report")
    out_group.add_argument("--summary-json", help="Write a JSON run summary")
    out_group.add_argument("--summary-txt", help="Write a plain-text run summary")

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not Path(args.input).is_file():
        logger.error(f"Input file not found: {args.input}")
        return 1
    output_path = args.output or default_output_path(args.input)

    try:
        settings = TranslatorSettings(
            api_key=args.anthropic_api_key,
            model=args.llm_model,
            target_language=args.target_language,
            timeout_s=args.timeout,
            proofread=not args.no_proofread,
            vale_binary=args.vale_binary,
            vale_config=args.vale_config,
            prompts_path=args.prompts,
            additional_instructions=_load_instructions(args.instruction_file),
        )
        config = WorkflowConfig(
            stages=build_default_stages(settings),
            max_retries=args.max_retries,
            failure_policy=args.on_failure,
            parallel=args.parallel,
            max_concurrent=args.max_concurrent,
        )
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    debug_sink = None
    if args.debug:
        debug_sink = DebugFileWriter(args.debug_dir)
        debug_sink.initialize()

    source = read_text_file(args.input)
    logger.info(f"Translating {args.input} -> {output_path}")

    def progress(phase, completed, total):
        if phase == "processing" and total > 0:
            logger.info(f"  {phase}: {completed}/{total}")

    try:
        result = run_translation_pipeline(
            source,
            config,
            debug_sink=debug_sink,
            cancel_token=CancelToken(timeout_s=args.deadline),
            progress_callback=progress,
        )
    except PipelineAborted as e:
        logger.error(f"Translation aborted: {e}")
        print(json.dumps({"status": "failed", "error": e.code, **e.details}, indent=2))
        return 1
    except ReassemblyMismatch as e:
        logger.error(f"Translation failed: {e}")
        if e.result is not None:
            _write_reports(args, e.result, None)
            print(json.dumps(_summary(e.result, None), indent=2))
        return 1
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    # A cancelled run leaves untranslated segments; do not overwrite the output
    written = None
    if result.complete:
        write_text_file(output_path, result.document)
        written = output_path
        logger.info(f"Wrote {output_path}")
        if result.has_lint_issues and not args.no_proofread:
            _recheck_output(args, output_path)

    _write_reports(args, result, written)
    print(json.dumps(_summary(result, written), indent=2))

    if result.is_valid:
        return 0
    if result.complete and not args.strict:
        logger.warning(f"{result.stats.degraded} segment(s) kept their source text")
        return 0
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
