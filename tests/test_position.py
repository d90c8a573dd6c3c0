"""Tests for offset/position conversion."""

import pytest

from lsprotocol import types as lsp
from pygls.workspace import PositionCodec
from tx3_lsp.ast import Span
from tx3_lsp.position import (
    LineIndex,
    position_to_offset,
    span_to_range,
    to_line_column,
    to_offset,
)


SAMPLES = [
    "",
    "party A;",
    "party A;\nparty B;\n",
    "\n\n\n",
    "tx t() {\r\n    output { amount: 1 }\r\n}",
    "// größe\nparty Ä;\n",
    "a😀b\nc😀",
]


class TestLineColumn:
    """Test offset to (line, column) conversion."""

    def test_first_line(self):
        assert to_line_column("party A;", 6) == (0, 6)

    def test_after_newline(self):
        text = "party A;\nparty B;"
        assert to_line_column(text, 9) == (1, 0)
        assert to_line_column(text, 15) == (1, 6)

    def test_newline_belongs_to_its_line(self):
        text = "ab\ncd"
        assert to_line_column(text, 2) == (0, 2)

    def test_end_of_text(self):
        text = "ab\ncd"
        assert to_line_column(text, 5) == (1, 2)

    def test_offset_clamped(self):
        text = "ab\ncd"
        assert to_line_column(text, 100) == (1, 2)
        assert to_line_column(text, -3) == (0, 0)

    def test_columns_count_code_points(self):
        text = "ä😀b\nc"
        assert to_line_column(text, 2) == (0, 2)
        assert to_line_column(text, 4) == (1, 0)


class TestOffset:
    """Test (line, column) to offset conversion."""

    def test_simple(self):
        text = "party A;\nparty B;"
        assert to_offset(text, 1, 6) == 15

    def test_column_clamped_to_line(self):
        text = "ab\ncdef"
        assert to_offset(text, 0, 10) == 2

    def test_line_past_end(self):
        text = "ab\ncd"
        assert to_offset(text, 7, 0) == len(text)

    def test_negative_clamped(self):
        text = "ab\ncd"
        assert to_offset(text, 1, -4) == 3

    def test_empty_text(self):
        assert to_offset("", 0, 0) == 0
        assert to_offset("", 3, 3) == 0

    def test_position_to_offset(self):
        text = "ab\ncd"
        assert position_to_offset(text, lsp.Position(line=1, character=1)) == 4

    @pytest.mark.parametrize("text", SAMPLES)
    def test_round_trip(self, text):
        """Every offset survives a trip through (line, column)."""
        for offset in range(len(text) + 1):
            line, column = to_line_column(text, offset)
            assert to_offset(text, line, column) == offset


class TestLineIndex:
    """Test the per-request line index."""

    def test_line_starts(self):
        index = LineIndex("a\nbc\n\nd")
        assert index.line_starts == [0, 2, 5, 6]

    def test_line_length(self):
        index = LineIndex("a\nbc\n\nd")
        assert index.line_length(1) == 2
        assert index.line_length(2) == 0
        assert index.line_length(3) == 1

    def test_span_to_range(self):
        text = "party A;\nparty Bob;"
        result = span_to_range(text, Span(15, 18))
        assert result == lsp.Range(
            start=lsp.Position(line=1, character=6),
            end=lsp.Position(line=1, character=9),
        )

    def test_multiline_span_to_range(self):
        text = "tx t() {\n}\n"
        result = LineIndex(text).span_to_range(Span(0, 10))
        assert result.start == lsp.Position(line=0, character=0)
        assert result.end == lsp.Position(line=1, character=1)


class TestClientUnits:
    """Test columns in the client's negotiated position encoding."""

    def test_utf16_column_after_astral_character(self):
        index = LineIndex("a😀b\nc", PositionCodec())
        assert index.to_position(2) == lsp.Position(line=0, character=3)
        assert index.position_to_offset(lsp.Position(line=0, character=3)) == 2

    def test_utf16_column_inside_surrogate_pair(self):
        index = LineIndex("a😀b", PositionCodec())
        assert index.position_to_offset(lsp.Position(line=0, character=2)) == 1

    def test_utf8_columns(self):
        codec = PositionCodec(lsp.PositionEncodingKind.Utf8)
        index = LineIndex("é=x", codec)
        assert index.to_position(2) == lsp.Position(line=0, character=3)
        assert index.position_to_offset(lsp.Position(line=0, character=3)) == 2

    def test_column_past_line_end(self):
        index = LineIndex("a😀\nb", PositionCodec())
        assert index.position_to_offset(lsp.Position(line=0, character=40)) == 2
        assert index.position_to_offset(lsp.Position(line=5, character=0)) == 4

    def test_span_to_range_in_client_units(self):
        text = 'datum: "😀", to: Buyer'
        start = text.index("Buyer")
        result = span_to_range(text, Span(start, start + 5), PositionCodec())
        assert result.start == lsp.Position(line=0, character=start + 1)
        assert result.end == lsp.Position(line=0, character=start + 6)

    def test_position_to_offset_with_codec(self):
        text = "ä😀b\nc"
        position = lsp.Position(line=0, character=3)
        assert position_to_offset(text, position, PositionCodec()) == 2
        assert position_to_offset(text, position) == 3

    @pytest.mark.parametrize("text", SAMPLES)
    def test_client_round_trip(self, text):
        """Every offset survives a trip through a UTF-16 position."""
        index = LineIndex(text, PositionCodec())
        for offset in range(len(text) + 1):
            assert index.position_to_offset(index.to_position(offset)) == offset
