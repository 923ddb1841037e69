import pytest

from md_translator.errors import ConfigurationError
from md_translator.ir import LintDiagnostics, LintMessage, StageOutput, TransformContext
from md_translator.workflow.stages import ProofreadStage, TranslateStage, TranslatorSettings, build_default_stages


class FakeLinter:
    def __init__(self, *results):
        self.results = list(results)
        self.texts = []

    def lint_text(self, text):
        self.texts.append(text)
        return self.results.pop(0)


class FakeCorrector:
    def __init__(self, output):
        self.output = output
        self.calls = []

    def correct(self, text, diagnostics, context=None):
        self.calls.append((text, diagnostics, context))
        return self.output


def _issue():
    return LintMessage(line=1, column=1, check="Style.Word", message="Avoid this", severity="warning")


def test_proofread_clean_text_skips_corrector():
    linter = FakeLinter(LintDiagnostics(fixed_text="auto-fixed"))
    corrector = FakeCorrector("unused")
    out = ProofreadStage(linter, corrector).transform("original")
    assert out == StageOutput(text="auto-fixed")
    assert corrector.calls == []


def test_proofread_corrects_fixed_text_and_relints():
    linter = FakeLinter(
        LintDiagnostics(fixed_text="fixed", messages=[_issue()], formatted_message="diag"),
        LintDiagnostics(fixed_text="corrected"),
    )
    corrector = FakeCorrector("corrected")
    context = TransformContext(failure_reason="previous", attempt=2)

    out = ProofreadStage(linter, corrector).transform("original", context)
    assert out.text == "corrected"
    assert out.remaining_issues is None
    assert corrector.calls == [("fixed", "diag", context)]
    assert linter.texts == ["original", "corrected"]


def test_proofread_reports_remaining_issues():
    linter = FakeLinter(
        LintDiagnostics(fixed_text="fixed", messages=[_issue()], formatted_message="diag"),
        LintDiagnostics(fixed_text="corrected", messages=[_issue()], formatted_message="still bad"),
    )
    out = ProofreadStage(linter, FakeCorrector("corrected")).transform("original")
    assert out.remaining_issues == "still bad"


def test_translate_stage_delegates():
    class Echo:
        def transform(self, text, context=None, history=()):
            return StageOutput(text=f"{text}|{len(history)}")

    assert TranslateStage(Echo()).transform("x", None, ("a", "b")).text == "x|2"


def test_build_default_stages_without_proofread():
    stages = build_default_stages(TranslatorSettings(api_key="key", proofread=False))
    assert [s.name for s in stages] == ["translate"]
    assert stages[0].uses_history


def test_build_default_stages_requires_api_key():
    with pytest.raises(ConfigurationError):
        build_default_stages(TranslatorSettings(api_key=None, proofread=False))


def test_build_default_stages_requires_vale(monkeypatch):
    from md_translator.adapters import vale_adapter

    monkeypatch.setattr(vale_adapter, "_find_vale_binary", lambda: None)
    with pytest.raises(ConfigurationError) as exc:
        build_default_stages(TranslatorSettings(api_key="key"))
    assert exc.value.code == "missing_vale"
