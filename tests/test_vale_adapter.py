import pytest

from md_translator.adapters.vale_adapter import (
    ValeConfig,
    ValeLinter,
    apply_fixes,
    format_messages,
    parse_vale_output,
)
from md_translator.errors import ConfigurationError, LintError
from md_translator.ir import LintMessage

VALE_JSON = {
    "/tmp/segment.md": [
        {
            "Action": {"Name": "replace", "Params": ["use"]},
            "Check": "Style.Utilize",
            "Line": 2,
            "Span": [5, 11],
            "Match": "utilize",
            "Message": "Use 'use' instead of 'utilize'.",
            "Severity": "warning",
        },
        {
            "Action": {"Name": "", "Params": None},
            "Check": "Style.Passive",
            "Line": 1,
            "Span": [3, 8],
            "Match": "is run",
            "Message": "Avoid passive voice.",
            "Severity": "suggestion",
        },
    ]
}


def test_parse_vale_output_sorts_and_reads_actions():
    messages = parse_vale_output(VALE_JSON)
    assert [m.check for m in messages] == ["Style.Passive", "Style.Utilize"]
    assert messages[0].replacement is None
    assert messages[1].replacement == "use"
    assert messages[1].column == 5
    assert messages[1].severity == "warning"


def test_parse_vale_runtime_error():
    with pytest.raises(LintError):
        parse_vale_output({"Code": "E100", "Text": "StylesPath not found"})


def test_apply_fixes_replaces_matching_spans():
    text = "It is run daily.\nWe utilize it and utilize more."
    messages = [
        LintMessage(2, 4, "Style.Utilize", "m", "warning", match="utilize", replacement="use"),
        LintMessage(2, 19, "Style.Utilize", "m", "warning", match="utilize", replacement="use"),
        LintMessage(1, 4, "Style.Passive", "m", "suggestion", match="is run"),
    ]
    assert apply_fixes(text, messages) == "It is run daily.\nWe use it and use more."


def test_apply_fixes_ignores_stale_or_multiline_replacements():
    text = "one\ntwo"
    messages = [
        LintMessage(1, 1, "X", "m", "error", match="uno", replacement="1"),
        LintMessage(2, 1, "X", "m", "error", match="two", replacement="2\n3"),
        LintMessage(9, 1, "X", "m", "error", match="two", replacement="2"),
    ]
    assert apply_fixes(text, messages) == text


def test_format_messages():
    messages = [LintMessage(3, 7, "Style.Utilize", "Use 'use'.", "warning")]
    assert format_messages(messages) == "segment.md:3:7: Use 'use'. [Warning/Style.Utilize]\n\n1 problem"
    assert format_messages([]) == ""
    assert format_messages(messages * 2, label="doc.md").endswith("2 problems")


def test_missing_vale_binary(monkeypatch, tmp_path):
    with pytest.raises(ConfigurationError) as exc:
        ValeLinter(ValeConfig(vale_binary=str(tmp_path / "no-vale")))
    assert exc.value.code == "missing_vale"


def test_missing_vale_config(tmp_path):
    binary = tmp_path / "vale"
    binary.write_text("")
    with pytest.raises(ConfigurationError) as exc:
        ValeLinter(ValeConfig(vale_binary=str(binary), config_path=str(tmp_path)))
    assert exc.value.code == "missing_vale_config"


def test_lint_text_applies_fixes_then_relints(monkeypatch, tmp_path):
    binary = tmp_path / "vale"
    binary.write_text("")
    linter = ValeLinter(ValeConfig(vale_binary=str(binary)))

    runs = []

    def fake_lint(text):
        runs.append(text)
        if "utilize" in text:
            return [LintMessage(1, 4, "Style.Utilize", "Use 'use'.", "warning", match="utilize", replacement="use")]
        return [LintMessage(1, 1, "Style.Passive", "Avoid passive voice.", "suggestion")]

    monkeypatch.setattr(linter, "_lint_string", fake_lint)
    diagnostics = linter.lint_text("We utilize it.")
    assert diagnostics.fixed_text == "We use it."
    assert runs == ["We utilize it.", "We use it."]
    assert [m.check for m in diagnostics.messages] == ["Style.Passive"]
    assert diagnostics.formatted_message.startswith("segment.md:1:1: Avoid passive voice.")


def test_lint_text_blank_input(tmp_path):
    binary = tmp_path / "vale"
    binary.write_text("")
    diagnostics = ValeLinter(ValeConfig(vale_binary=str(binary))).lint_text("\n\n")
    assert diagnostics.fixed_text == "\n\n"
    assert diagnostics.messages == []
