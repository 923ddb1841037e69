import pytest

from md_translator.errors import ConfigurationError
from md_translator.rules.load_prompts import load_prompt_pack


def test_builtin_pack():
    pack = load_prompt_pack()
    assert pack.source == "builtin"
    assert pack.target_language == "Japanese"
    assert "Japanese" in pack.system("translate")
    user = pack.user("translate", instructions="i", context="c", content="body")
    assert user.endswith("body")


def test_yaml_overrides(tmp_path):
    path = tmp_path / "prompts.yml"
    path.write_text(
        "target_language: French\n"
        "translate:\n"
        "  user: \"{instructions}|{context}|{content}\"\n",
        encoding="utf-8",
    )
    pack = load_prompt_pack(str(path))
    assert pack.target_language == "French"
    assert pack.user("translate", instructions="i", context="c", content="x") == "i|c|x"
    assert "French" in pack.system("proofread")
    assert load_prompt_pack(str(path), target_language="Korean").target_language == "Korean"


@pytest.mark.parametrize("body", [
    "review:\n  user: \"{content}\"\n",
    "translate:\n  assistant: \"{content}\"\n",
    "translate:\n  user: \"{content}\"\n",
    "translate:\n  user: \"{instructions}{context}{content}{extra}\"\n",
    "translate: [1, 2]\n",
    "translate:\n  user: [unclosed\n",
])
def test_invalid_packs_are_rejected(tmp_path, body):
    path = tmp_path / "prompts.yml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_prompt_pack(str(path))


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_prompt_pack(str(tmp_path / "missing.yml"))
