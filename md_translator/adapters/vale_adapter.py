"""
Vale Lint Adapter

Runs the Vale prose linter on Markdown text and turns its JSON output
into LintDiagnostics: auto-fixable alerts (Vale `replace` actions) are
applied to produce fixed_text, and the fixed text is linted again so
the remaining messages point at lines of the text the corrector sees.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from pathlib import Path
import subprocess
import tempfile
import shutil
import json
import logging
import os

from md_translator.errors import ConfigurationError, LintError
from md_translator.ir import LintDiagnostics, LintMessage

logger = logging.getLogger(__name__)

LINT_LABEL = "segment.md"


@dataclass
class ValeConfig:
    """Configuration for Vale linter."""
    vale_binary: str = "vale"  # Path to vale binary
    config_path: Optional[str] = None  # Path to .vale.ini or a directory holding one
    min_alert_level: str = "warning"  # suggestion, warning, error
    timeout_s: float = 60.0


def _find_vale_binary() -> Optional[str]:
    """Find Vale binary in common locations."""
    locations = [
        "/usr/local/bin/vale",
        "/opt/homebrew/bin/vale",
        os.path.expanduser("~/vale"),
    ]

    for loc in locations:
        path = Path(loc)
        if path.exists() and os.access(str(path), os.X_OK):
            return str(path.absolute())

    return shutil.which("vale")


def _resolve_config(config_path: Optional[str]) -> Optional[Path]:
    if not config_path:
        return None
    path = Path(config_path)
    if path.is_dir():
        path = path / ".vale.ini"
    if not path.is_file():
        raise ConfigurationError(f"Vale config not found: {config_path}", code="missing_vale_config")
    return path


def parse_vale_output(vale_output: Dict[str, Any]) -> List[LintMessage]:
    """Flatten Vale's {path: [alert, ...]} JSON into LintMessages."""
    if "Code" in vale_output and "Text" in vale_output:
        # Vale reports runtime errors as a single JSON object
        raise LintError(f"Vale error {vale_output.get('Code')}: {vale_output.get('Text')}", code="vale_runtime")

    messages: List[LintMessage] = []
    for _, alerts in vale_output.items():
        for alert in alerts or []:
            span = alert.get("Span") or [1, 1]
            replacement = None
            action = alert.get("Action") or {}
            if action.get("Name") == "replace":
                params = action.get("Params") or []
                if params:
                    replacement = params[0] if isinstance(params, list) else str(params)

            messages.append(LintMessage(
                line=int(alert.get("Line", 1)),
                column=int(span[0]),
                check=alert.get("Check", "vale.unknown"),
                message=alert.get("Message", ""),
                severity=str(alert.get("Severity", "warning")).lower(),
                match=alert.get("Match", ""),
                replacement=replacement,
            ))

    messages.sort(key=lambda m: (m.line, m.column))
    return messages


def apply_fixes(text: str, messages: List[LintMessage]) -> str:
    """
    Apply single-line replacements suggested by Vale.

    Replacements are applied right to left within a line and only where
    the reported span still matches, so the line structure never changes.
    """
    lines = text.split("\n")
    by_line: Dict[int, List[LintMessage]] = {}
    for m in messages:
        if m.replacement is None or not m.match or "\n" in m.replacement:
            continue
        by_line.setdefault(m.line, []).append(m)

    for line_no, line_msgs in by_line.items():
        if not 1 <= line_no <= len(lines):
            continue
        line = lines[line_no - 1]
        boundary = len(line) + 1
        for m in sorted(line_msgs, key=lambda m: m.column, reverse=True):
            start = m.column - 1
            end = start + len(m.match)
            if end > boundary or line[start:end] != m.match:
                continue
            line = line[:start] + m.replacement + line[end:]
            boundary = start
        lines[line_no - 1] = line

    return "\n".join(lines)


def format_messages(messages: List[LintMessage], label: str = LINT_LABEL) -> str:
    """Unix-style report: path:line:column: message [Severity/Check]."""
    if not messages:
        return ""
    lines = [
        f"{label}:{m.line}:{m.column}: {m.message} [{m.severity.capitalize()}/{m.check}]"
        for m in messages
    ]
    count = len(messages)
    lines.append("")
    lines.append(f"{count} problem{'s' if count != 1 else ''}")
    return "\n".join(lines)


class ValeLinter:
    """Lint collaborator backed by the Vale CLI."""

    def __init__(self, config: ValeConfig):
        self.config = config
        vale_bin = config.vale_binary
        if vale_bin == "vale":
            vale_bin = _find_vale_binary()
        if not vale_bin or not Path(vale_bin).exists():
            raise ConfigurationError(
                "Vale binary not found. Install Vale, pass --vale-binary, or use --no-proofread.",
                code="missing_vale",
            )
        self.vale_bin = vale_bin
        self.vale_ini = _resolve_config(config.config_path)

    def _command(self, target: str) -> List[str]:
        cmd = [self.vale_bin, "--output=JSON", f"--minAlertLevel={self.config.min_alert_level}"]
        if self.vale_ini:
            cmd.extend(["--config", str(self.vale_ini)])
        cmd.append(target)
        return cmd

    def _run(self, target: str) -> List[LintMessage]:
        cmd = self._command(target)
        logger.debug(f"Running Vale: {' '.join(cmd)}")

        try:
            # Run from the config directory so StylesPath resolves correctly
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.config.timeout_s,
                cwd=str(self.vale_ini.parent) if self.vale_ini else None,
            )
        except subprocess.TimeoutExpired:
            raise LintError(f"Vale timed out after {self.config.timeout_s:.0f} seconds", code="vale_timeout")
        except OSError as e:
            raise LintError(f"Vale failed to start: {e}", code="vale_exec")

        # Vale exits 1 when it finds issues, 2 on runtime errors
        if result.returncode not in (0, 1) and not result.stdout.strip():
            raise LintError(f"Vale exited with {result.returncode}: {result.stderr.strip()}", code="vale_exit")

        if not result.stdout.strip():
            return []
        try:
            vale_output = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise LintError(f"Failed to parse Vale output: {e}", code="vale_output")
        return parse_vale_output(vale_output)

    def _lint_string(self, text: str) -> List[LintMessage]:
        with tempfile.NamedTemporaryFile(mode="w", suffix=".md", delete=False, encoding="utf-8") as f:
            f.write(text)
            temp_path = f.name
        try:
            return self._run(temp_path)
        finally:
            os.unlink(temp_path)

    def lint_text(self, text: str) -> LintDiagnostics:
        """Lint text, apply auto-fixes, and report what the fixes left behind."""
        if not text.strip():
            return LintDiagnostics(fixed_text=text)

        messages = self._lint_string(text)
        fixed_text = apply_fixes(text, messages)
        if fixed_text != text:
            messages = self._lint_string(fixed_text)

        return LintDiagnostics(
            fixed_text=fixed_text,
            messages=messages,
            formatted_message=format_messages(messages),
        )

    def lint_file(self, path: str) -> str:
        """Formatted diagnostics for a file on disk ("" when clean)."""
        messages = self._run(str(Path(path).absolute()))
        return format_messages(messages, label=Path(path).name)
