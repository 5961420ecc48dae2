"""Tests for the Harmony segment parser."""

import time

import pytest

from harmony_chat.parser import Segment, parse_header, parse_segments
from harmony_chat.util.harmony_format import format_segments


class TestParseHeader:
    """Test header splitting into role, channel and recipient."""

    def test_role_only(self):
        """Test header without channel sentinel."""
        assert parse_header(" user ") == ("user", None, None)

    def test_role_and_channel(self):
        """Test header with channel and no recipient."""
        assert parse_header("assistant<|channel|>final") == (
            "assistant",
            "final",
            None,
        )

    def test_channel_with_recipient(self):
        """Test recipient extracted from to= annotation."""
        assert parse_header("assistant<|channel|>commentary to=functions.lookup") == (
            "assistant",
            "commentary",
            "functions.lookup",
        )

    def test_constrain_annotation_discarded(self):
        """Test that <|constrain|> and everything after it is ignored."""
        header = "assistant<|channel|>commentary to=functions.bash <|constrain|>json"
        assert parse_header(header) == ("assistant", "commentary", "functions.bash")

    def test_constrain_without_space(self):
        """Test constraint attached directly to the channel name."""
        assert parse_header("assistant<|channel|>commentary<|constrain|>json") == (
            "assistant",
            "commentary",
            None,
        )

    def test_tail_without_recipient_prefix(self):
        """Test that a non to= tail leaves recipient unset."""
        assert parse_header("assistant<|channel|>commentary json") == (
            "assistant",
            "commentary",
            None,
        )

    def test_empty_channel_is_not_none(self):
        """Test that an empty channel after the sentinel is kept as ''."""
        role, channel, recipient = parse_header("assistant<|channel|>")
        assert role == "assistant"
        assert channel == ""
        assert recipient is None

    def test_recipient_whitespace_trimmed(self):
        """Test recipient value is trimmed."""
        _, _, recipient = parse_header("assistant<|channel|>commentary   to= browser.search ")
        assert recipient == "browser.search"


class TestParseSegments:
    """Test full-text segment parsing."""

    def test_single_final_segment(self):
        """Test the basic final-channel example."""
        text = "<|start|>assistant<|channel|>final<|message|>Hello<|end|>"
        assert parse_segments(text) == [
            Segment(role="assistant", channel="final", recipient=None, content="Hello")
        ]

    def test_commentary_with_recipient(self):
        """Test tool-call segment with recipient."""
        text = (
            "<|start|>assistant<|channel|>commentary to=functions.lookup"
            "<|message|>{}<|end|>"
        )
        [segment] = parse_segments(text)
        assert segment.channel == "commentary"
        assert segment.recipient == "functions.lookup"
        assert segment.content == "{}"

    def test_analysis_then_final(self):
        """Test multiple segments are returned in source order."""
        text = (
            "<|start|>assistant<|channel|>analysis<|message|>Think<|end|>"
            "<|start|>assistant<|channel|>final<|message|>Answer<|return|>"
        )
        segments = parse_segments(text)
        assert [s.channel for s in segments] == ["analysis", "final"]
        assert [s.content for s in segments] == ["Think", "Answer"]

    def test_content_is_verbatim(self):
        """Test that content keeps surrounding whitespace and newlines."""
        text = "<|start|>assistant<|channel|>final<|message|>\n  Hi there \n<|end|>"
        assert parse_segments(text)[0].content == "\n  Hi there \n"

    def test_empty_content(self):
        """Test empty content between sentinels is a valid segment."""
        text = "<|start|>assistant<|channel|>final<|message|><|end|>"
        assert parse_segments(text)[0].content == ""

    def test_preamble_and_trailing_text_ignored(self):
        """Test that text outside the grammar is ignored."""
        text = (
            "noise before <|start|>user<|message|>Hi<|end|> between "
            "<|start|>assistant<|channel|>final<|message|>Yo<|end|> trailing"
        )
        segments = parse_segments(text)
        assert [(s.role, s.content) for s in segments] == [
            ("user", "Hi"),
            ("assistant", "Yo"),
        ]

    def test_nearer_closing_sentinel_wins(self):
        """Test that <|return|> closes before a later <|end|>."""
        text = (
            "<|start|>assistant<|channel|>final<|message|>A<|return|>"
            "<|start|>assistant<|channel|>final<|message|>B<|end|>"
        )
        assert [s.content for s in parse_segments(text)] == ["A", "B"]

    def test_alternating_closing_sentinels(self):
        """Test mixed <|end|> and <|return|> closings across many segments."""
        closings = ["<|return|>", "<|end|>", "<|end|>", "<|return|>", "<|end|>"]
        text = "".join(
            f"<|start|>assistant<|channel|>final<|message|>{i}{closing}"
            for i, closing in enumerate(closings)
        )
        assert [s.content for s in parse_segments(text)] == ["0", "1", "2", "3", "4"]

    def test_unterminated_content_dropped(self):
        """Test that a segment missing its closing sentinel is dropped."""
        text = (
            "<|start|>assistant<|channel|>analysis<|message|>ok<|end|>"
            "<|start|>assistant<|channel|>final<|message|>partial"
        )
        segments = parse_segments(text)
        assert len(segments) == 1
        assert segments[0].channel == "analysis"

    def test_unterminated_header_dropped(self):
        """Test that a header missing its message sentinel is dropped."""
        text = "<|start|>assistant<|channel|>final<|message|>ok<|end|><|start|>assist"
        assert len(parse_segments(text)) == 1

    def test_channel_absent_vs_empty(self):
        """Test that missing and empty channels stay distinct."""
        text = (
            "<|start|>user<|message|>a<|end|>"
            "<|start|>assistant<|channel|><|message|>b<|end|>"
        )
        first, second = parse_segments(text)
        assert first.channel is None
        assert second.channel == ""

    def test_tool_result_header(self):
        """Test tool result header addressed back to the assistant."""
        text = (
            "<|start|>functions.lookup to=assistant<|channel|>commentary"
            '<|message|>{"ok": true}<|end|>'
        )
        [segment] = parse_segments(text)
        assert segment.role == "functions.lookup to=assistant"
        assert segment.channel == "commentary"
        assert segment.recipient is None


class TestParserTotality:
    """Test that any input yields a list without raising."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "plain answer",
            "<|start|>",
            "<|message|>",
            "<|end|>",
            "<|end|><|message|><|start|>",
            "<|start|><|start|><|message|>",
            "<|message|><|start|>x<|end|>",
            "<|start|>assistant<|channel|>final<|message|>",
            "<|start|><|message|><|end|>",
            "<|channel|><|constrain|><|return|>",
        ],
    )
    def test_malformed_input(self, text):
        """Test malformed sentinel sequences never raise."""
        assert isinstance(parse_segments(text), list)

    def test_lone_start_sentinel(self):
        """Test a lone start sentinel yields no segments."""
        assert parse_segments("<|start|>") == []

    def test_empty_header_and_content(self):
        """Test the smallest complete segment."""
        assert parse_segments("<|start|><|message|><|end|>") == [
            Segment(role="", channel=None, recipient=None, content="")
        ]


class TestRoundTrip:
    """Test render → parse recovers the original segments."""

    def test_round_trip(self):
        """Test role, channel, recipient presence and content are preserved."""
        segments = [
            Segment("system", None, None, "identity"),
            Segment("assistant", "analysis", None, "  thinking\n"),
            Segment("assistant", "commentary", "functions.lookup", '{"city": "SF"}'),
            Segment("assistant", "", None, ""),
            Segment("assistant", "final", None, "Done."),
        ]
        assert parse_segments(format_segments(segments)) == segments

    def test_round_trip_adjacent_empty_segments(self):
        """Test consecutive empty segments are all emitted."""
        segments = [Segment("assistant", "final", None, "")] * 3
        assert parse_segments(format_segments(segments)) == segments


class TestParserScaling:
    """Test that parsing time grows linearly with input size."""

    @staticmethod
    def _best_time(text, runs=3):
        best = float("inf")
        for _ in range(runs):
            started = time.perf_counter()
            parse_segments(text)
            best = min(best, time.perf_counter() - started)
        return best

    @pytest.mark.parametrize(
        "segment",
        [
            "<|start|>assistant<|channel|>final<|message|>x<|end|>",
            "<|start|>assistant<|channel|>final<|message|>x<|return|>",
        ],
    )
    def test_many_segments_one_closing_kind(self, segment):
        """Test inputs where only one closing sentinel kind ever appears."""
        small, large = 2000, 16000

        assert len(parse_segments(segment * large)) == large

        small_time = self._best_time(segment * small)
        large_time = self._best_time(segment * large)

        # 8x the input: linear is ~8x, quadratic would be ~64x
        assert large_time < max(small_time, 1e-4) * 24
