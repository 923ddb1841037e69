from md_translator.workflow.segmenter import segment_document, get_segment_stats, analyze_segments
from md_translator.workflow.validator import line_count

DOC = "Intro line\n\n# Title\n\nBody text.\n\n## Part\n\nMore.\n#### Deep\nstill part"


def _assert_tiles(text, segments):
    assert segments[0].start_line == 1
    for prev, nxt in zip(segments, segments[1:]):
        assert prev.end_line + 1 == nxt.start_line
    assert segments[-1].end_line == line_count(text)
    assert "\n".join(s.content for s in segments) == text


def test_single_heading_document_is_one_segment():
    segments = segment_document("# Title\n\nBody text.")
    assert len(segments) == 1
    assert segments[0].start_line == 1
    assert segments[0].end_line == 3
    assert segments[0].heading == "# Title"


def test_split_before_second_heading():
    segments = segment_document("# H1\n\n## H2\n\nbody")
    assert [s.content for s in segments] == ["# H1\n", "## H2\n\nbody"]
    assert segments[1].start_line == 3


def test_leading_text_gets_its_own_segment():
    segments = segment_document(DOC)
    assert [s.heading for s in segments] == ["", "# Title", "## Part"]
    assert segments[0].content == "Intro line\n"
    _assert_tiles(DOC, segments)


def test_h4_does_not_split():
    segments = segment_document(DOC)
    assert "#### Deep" in segments[-1].content


def test_empty_document_yields_one_empty_segment():
    segments = segment_document("")
    assert len(segments) == 1
    assert segments[0].content == ""
    assert segments[0].start_line == 1 and segments[0].end_line == 1
    assert not segments[0].is_transform_candidate


def test_blank_only_document_is_one_segment():
    text = "\n\n\n"
    segments = segment_document(text)
    assert len(segments) == 1
    assert (segments[0].start_line, segments[0].end_line) == (1, 4)
    assert not segments[0].is_transform_candidate
    _assert_tiles(text, segments)


def test_trailing_newline_is_kept_in_last_segment():
    text = "# A\nx\n# B\ny\n"
    segments = segment_document(text)
    assert segments[-1].content == "# B\ny\n"
    _assert_tiles(text, segments)


def test_heading_inside_fence_does_not_split():
    text = "# Setup\n```bash\n# install deps\npip install x\n```\nDone."
    segments = segment_document(text)
    assert len(segments) == 1
    assert segments[0].has_fenced_code
    _assert_tiles(text, segments)


def test_fence_blind_mode_splits_inside_fence():
    text = "# Setup\n```bash\n# install deps\npip install x\n```\nDone."
    segments = segment_document(text, respect_fences=False)
    assert len(segments) == 2
    assert segments[1].heading == "# install deps"
    _assert_tiles(text, segments)


def test_transform_candidate_hint():
    text = "# 概要\n\n日本語のみ\n# Code\n```\nprint('x')\n```"
    segments = segment_document(text)
    assert not segments[0].is_transform_candidate
    # the heading line itself is outside the fence
    assert segments[1].is_transform_candidate

    code_only = segment_document("```\nprint('x')\n```")
    assert not code_only[0].is_transform_candidate


def test_segment_stats():
    stats = get_segment_stats(segment_document(DOC))
    assert stats.total_segments == 3
    assert stats.candidate_segments == 3
    assert stats.max_size >= stats.average_size > 0


def test_analyze_segments_accounts_for_every_line():
    analysis = analyze_segments(DOC)
    assert analysis.original_lines == line_count(DOC)
    assert analysis.total_segment_lines == analysis.original_lines
    assert analysis.segments[0].index == 1
    assert analysis.segments[0].preview == "Intro line\\n"


def test_analyze_preview_is_truncated():
    analysis = analyze_segments("x" * 80)
    assert analysis.segments[0].preview.endswith("...")
    assert len(analysis.segments[0].preview) == 53
