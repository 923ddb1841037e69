import json

import pytest

from md_translator import cli
from md_translator.errors import ConfigurationError
from md_translator.ir import StageOutput
from md_translator.workflow.stages import StageSpec

SOURCE = "# Intro\nHello.\n# Usage\nRun it.\n"


class FakeTranslate:
    def __init__(self, broken_heading=None):
        self.broken_heading = broken_heading

    def transform(self, text, context=None, history=()):
        if self.broken_heading and text.startswith(self.broken_heading):
            return StageOutput(text="1\n2\n3\n4\n5\n6")
        return StageOutput(text=text.replace("Hello.", "こんにちは。"))


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    doc = tmp_path / "doc.md"
    doc.write_text(SOURCE, encoding="utf-8")
    return tmp_path


def _use_stage(monkeypatch, stage, seen=None):
    def fake_build(settings):
        if seen is not None:
            seen.append(settings)
        return [StageSpec(name="translate", stage=stage, uses_history=True)]

    monkeypatch.setattr(cli, "build_default_stages", fake_build)


def test_translate_writes_default_output(workspace, monkeypatch, capsys):
    _use_stage(monkeypatch, FakeTranslate())
    code = cli.main(["doc.md", "--no-proofread", "--anthropic-api-key", "k",
                     "--summary-json", "summary.json", "--summary-txt", "summary.txt", "--report", "review.md"])
    assert code == 0
    assert (workspace / "doc_ja.md").read_text(encoding="utf-8") == "# Intro\nこんにちは。\n# Usage\nRun it.\n"

    summary = json.loads(capsys.readouterr().out)
    assert summary["status"] == "done"
    assert summary["is_valid"] is True
    assert summary["lines_source"] == summary["lines_final"] == 5

    payload = json.loads((workspace / "summary.json").read_text(encoding="utf-8"))
    assert payload["stats"]["done"] == 2
    assert "Status: done" in (workspace / "summary.txt").read_text(encoding="utf-8")
    assert (workspace / "review.md").read_text(encoding="utf-8").startswith("# Translation Review Report")


def test_explicit_output_path(workspace, monkeypatch):
    _use_stage(monkeypatch, FakeTranslate())
    assert cli.main(["doc.md", "out/translated.md", "--no-proofread"]) == 0
    assert (workspace / "out" / "translated.md").exists()


def test_degraded_run_exit_codes(workspace, monkeypatch):
    _use_stage(monkeypatch, FakeTranslate(broken_heading="# Usage"))
    args = ["doc.md", "--no-proofread", "--on-failure", "degrade", "--max-retries", "1"]
    assert cli.main(args) == 0
    assert (workspace / "doc_ja.md").read_text(encoding="utf-8") == "# Intro\nこんにちは。\n# Usage\nRun it.\n"
    assert cli.main(args + ["--strict"]) == 1


def test_abort_exits_nonzero_without_output(workspace, monkeypatch, capsys):
    _use_stage(monkeypatch, FakeTranslate(broken_heading="# Usage"))
    assert cli.main(["doc.md", "--no-proofread", "--max-retries", "1"]) == 1
    assert not (workspace / "doc_ja.md").exists()
    summary = json.loads(capsys.readouterr().out)
    assert summary["status"] == "failed"
    assert summary["segment"] == 2
    assert summary["stage"] == "translate"


def test_missing_input(workspace, monkeypatch):
    _use_stage(monkeypatch, FakeTranslate())
    assert cli.main(["missing.md", "--no-proofread"]) == 1


def test_configuration_error(workspace, monkeypatch):
    def fail(settings):
        raise ConfigurationError("Anthropic API key is required")

    monkeypatch.setattr(cli, "build_default_stages", fail)
    assert cli.main(["doc.md"]) == 1
    assert not (workspace / "doc_ja.md").exists()


def test_instruction_file_and_settings(workspace, monkeypatch):
    (workspace / "translator-instructions.md").write_text("Keep product names in English.", encoding="utf-8")
    seen = []
    _use_stage(monkeypatch, FakeTranslate(), seen)
    cli.main(["doc.md", "--no-proofread", "--anthropic-api-key", "k", "--llm-model", "m",
              "--target-language", "German", "--timeout", "30"])
    settings = seen[0]
    assert settings.additional_instructions == "Keep product names in English."
    assert settings.api_key == "k"
    assert settings.model == "m"
    assert settings.target_language == "German"
    assert settings.timeout_s == 30.0
    assert settings.proofread is False


def test_missing_custom_instruction_file_is_not_fatal(workspace, monkeypatch):
    seen = []
    _use_stage(monkeypatch, FakeTranslate(), seen)
    assert cli.main(["doc.md", "--no-proofread", "--instruction-file", "nope.md"]) == 0
    assert seen[0].additional_instructions == ""


def test_debug_directory(workspace, monkeypatch):
    _use_stage(monkeypatch, FakeTranslate())
    assert cli.main(["doc.md", "--no-proofread", "--debug", "--debug-dir", "dbg"]) == 0
    names = sorted(p.name for p in (workspace / "dbg").iterdir())
    assert names == [
        "00-source.md",
        "99-final.md",
        "segment-001-input.md",
        "segment-001-output.md",
        "segment-001-translate.md",
        "segment-002-input.md",
        "segment-002-output.md",
        "segment-002-translate.md",
    ]
