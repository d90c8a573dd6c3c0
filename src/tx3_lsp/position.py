"""
Conversions between absolute character offsets and editor positions.

Offsets are ``str`` indices into the full document text, the same unit the
parser uses for spans. Lines are separated by ``\\n``; a ``\\r`` before it is
treated as part of the line. Nothing here is cached across calls.

Columns handed to or received from the editor are counted in the position
encoding negotiated with the client (UTF-16 code units unless the client
asked for something else). ``LineIndex`` converts those with the document's
pygls ``PositionCodec``; without a codec columns are code points.
"""

from __future__ import annotations

from bisect import bisect_right
from typing import TYPE_CHECKING

from lsprotocol import types as lsp

from tx3_lsp.ast import Span

if TYPE_CHECKING:
    from pygls.workspace import PositionCodec


class LineIndex:
    """Line start offsets of one text, for repeated conversions in a request."""

    def __init__(self, text: str, codec: PositionCodec | None = None):
        self.text = text
        self.codec = codec
        self.line_starts = [0]
        for i, char in enumerate(text):
            if char == "\n":
                self.line_starts.append(i + 1)

    def line_length(self, line: int) -> int:
        start = self.line_starts[line]
        if line + 1 < len(self.line_starts):
            return self.line_starts[line + 1] - 1 - start
        return len(self.text) - start

    def to_line_column(self, offset: int) -> tuple[int, int]:
        offset = max(0, min(offset, len(self.text)))
        line = bisect_right(self.line_starts, offset) - 1
        return line, offset - self.line_starts[line]

    def to_offset(self, line: int, column: int) -> int:
        if line >= len(self.line_starts):
            return len(self.text)
        line = max(line, 0)
        column = max(0, min(column, self.line_length(line)))
        return self.line_starts[line] + column

    # ------------------------------------------------------------------
    # Client units
    # ------------------------------------------------------------------

    def to_client_column(self, line: int, column: int) -> int:
        """Convert a code-point column into the client's units."""
        if self.codec is None:
            return column
        start = self.line_starts[line]
        return self.codec.client_num_units(self.text[start : start + column])

    def from_client_column(self, line: int, units: int) -> int:
        """Convert a column in client units into a code-point column.

        A column that falls inside a character maps to that character.
        """
        if self.codec is None or line < 0 or line >= len(self.line_starts):
            return units
        start = self.line_starts[line]
        consumed = 0
        column = 0
        for char in self.text[start : start + self.line_length(line)]:
            width = self.codec.client_num_units(char)
            if consumed + width > units:
                break
            consumed += width
            column += 1
        else:
            # Past the end of the line; ``to_offset`` clamps it
            return column + max(units - consumed, 0)
        return column

    def position_to_offset(self, position: lsp.Position) -> int:
        column = self.from_client_column(position.line, position.character)
        return self.to_offset(position.line, column)

    def to_position(self, offset: int) -> lsp.Position:
        line, column = self.to_line_column(offset)
        return lsp.Position(line=line, character=self.to_client_column(line, column))

    def span_to_range(self, span: Span) -> lsp.Range:
        return lsp.Range(
            start=self.to_position(span.start),
            end=self.to_position(span.end),
        )


def to_line_column(text: str, offset: int) -> tuple[int, int]:
    """Convert an absolute offset into a zero-based ``(line, column)`` pair."""
    return LineIndex(text).to_line_column(offset)


def to_offset(text: str, line: int, column: int) -> int:
    """Convert a zero-based ``(line, column)`` pair into an absolute offset.

    The column is clamped to the length of the line and a line past the end
    of the text maps to the end of the text.
    """
    return LineIndex(text).to_offset(line, column)


def position_to_offset(
    text: str, position: lsp.Position, codec: PositionCodec | None = None
) -> int:
    return LineIndex(text, codec).position_to_offset(position)


def span_to_range(text: str, span: Span, codec: PositionCodec | None = None) -> lsp.Range:
    return LineIndex(text, codec).span_to_range(span)
