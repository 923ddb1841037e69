from md_translator.workflow.reassembler import join_segments, roundtrip_document, validate_roundtrip
from md_translator.workflow.validator import line_count


def test_join_segments():
    assert join_segments([]) == ""
    assert join_segments(["only\n"]) == "only\n"
    assert join_segments(["# A\n", "# B\ntext"]) == "# A\n\n# B\ntext"


def test_join_preserves_line_count_sum():
    parts = ["# A\nx\n", "# B", "", "# C\ny"]
    assert line_count(join_segments(parts)) == sum(line_count(p) for p in parts)


def test_roundtrip_is_identity():
    for text in ["", "\n", "# T\n\nbody\n", "intro\n# A\n```\n# not\n```\n## B\nend\n\n"]:
        assert roundtrip_document(text) == text
        assert roundtrip_document(text, respect_fences=False) == text


def test_validate_roundtrip():
    assert validate_roundtrip("a\nb", "a\nb").is_equal
    assert validate_roundtrip("a\nb", "a").difference == -1
