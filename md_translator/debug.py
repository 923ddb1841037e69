"""
Debug Sink

Receives the intermediate texts of a pipeline run. The orchestrator is
handed a sink explicitly; NullDebugSink is used when debugging is off.
"""
from __future__ import annotations
from pathlib import Path
from typing import Protocol
import logging
import shutil

logger = logging.getLogger(__name__)


class DebugSink(Protocol):
    def record_source(self, text: str) -> None:
        ...

    def record_segment_input(self, index: int, text: str) -> None:
        ...

    def record_stage_output(self, index: int, stage: str, text: str) -> None:
        ...

    def record_segment_output(self, index: int, text: str) -> None:
        ...

    def record_final(self, text: str) -> None:
        ...


class NullDebugSink:
    def record_source(self, text: str) -> None:
        pass

    def record_segment_input(self, index: int, text: str) -> None:
        pass

    def record_stage_output(self, index: int, stage: str, text: str) -> None:
        pass

    def record_segment_output(self, index: int, text: str) -> None:
        pass

    def record_final(self, text: str) -> None:
        pass


class DebugFileWriter:
    """
    Writes each intermediate text to its own file in debug_dir.

    Files are numbered by 1-based segment position:
        00-source.md, segment-001-input.md, segment-001-translate.md,
        segment-001-output.md, ..., 99-final.md

    Write failures are logged and never interrupt the run.
    """

    def __init__(self, debug_dir: str):
        self.debug_dir = Path(debug_dir)

    def initialize(self) -> None:
        """Clear and recreate the debug directory."""
        if self.debug_dir.exists():
            shutil.rmtree(self.debug_dir)
        self.debug_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Debug output: {self.debug_dir}")

    def _write(self, name: str, text: str) -> None:
        path = self.debug_dir / name
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not write debug file {path}: {e}")

    @staticmethod
    def _segment_name(index: int, suffix: str) -> str:
        return f"segment-{index + 1:03d}-{suffix}.md"

    def record_source(self, text: str) -> None:
        self._write("00-source.md", text)

    def record_segment_input(self, index: int, text: str) -> None:
        self._write(self._segment_name(index, "input"), text)

    def record_stage_output(self, index: int, stage: str, text: str) -> None:
        self._write(self._segment_name(index, stage), text)

    def record_segment_output(self, index: int, text: str) -> None:
        self._write(self._segment_name(index, "output"), text)

    def record_final(self, text: str) -> None:
        self._write("99-final.md", text)
