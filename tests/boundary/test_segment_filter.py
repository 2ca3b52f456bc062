"""
Test suite for streamed segment filters.

System role: Verification of reasoning-block removal from token streams
"""

from askrag.boundary.llm.segment_filter import SegmentFilter, ThinkFilter, strip_think


def _run(segment_filter: SegmentFilter, tokens: list[str]) -> str:
    return "".join(segment_filter.feed(token) for token in tokens) + segment_filter.flush()


class TestThinkFilter:
    """Test suite for ThinkFilter."""

    def test_should_drop_think_block(self) -> None:
        assert strip_think("[THINK]plan[/THINK]Answer") == "Answer"

    def test_should_handle_tags_split_across_tokens(self) -> None:
        tokens = ["Hi [TH", "INK]secret", " stuff[/TH", "INK] there"]
        assert _run(ThinkFilter(), tokens) == "Hi  there"

    def test_unterminated_block_should_be_dropped(self) -> None:
        assert _run(ThinkFilter(), ["ok ", "[THINK]never closed"]) == "ok "

    def test_partial_tag_at_end_should_be_released(self) -> None:
        assert _run(ThinkFilter(), ["value [TH"]) == "value [TH"

    def test_text_without_tags_should_pass_through(self) -> None:
        assert _run(ThinkFilter(), ["a", "b", "c"]) == "abc"


class TestSegmentFilter:
    """Test suite for custom delimiters."""

    def test_keep_unclosed_should_release_segment(self) -> None:
        segment_filter = SegmentFilter("<<", ">>", keep_unclosed=True)
        assert _run(segment_filter, ["x <<y", "z"]) == "x <<yz"

    def test_multiple_segments_should_be_removed(self) -> None:
        segment_filter = SegmentFilter("<<", ">>")
        assert _run(segment_filter, ["a<<1>>b<<2>>c"]) == "abc"
