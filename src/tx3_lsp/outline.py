"""
Document outline and folding ranges for tx3 documents.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lsprotocol import types as lsp

from tx3_lsp import ast
from tx3_lsp.position import LineIndex

if TYPE_CHECKING:
    from pygls.workspace import PositionCodec, TextDocument

    from tx3_lsp.server import Tx3LanguageServer

logger = logging.getLogger(__name__)


def _symbol(
    index: LineIndex,
    name: str,
    kind: lsp.SymbolKind,
    detail: str,
    span: ast.Span,
    selection: ast.Span,
    children: list[lsp.DocumentSymbol] | None = None,
) -> lsp.DocumentSymbol:
    return lsp.DocumentSymbol(
        name=name,
        kind=kind,
        detail=detail,
        range=index.span_to_range(span),
        selection_range=index.span_to_range(selection),
        children=children,
    )


def _tx_children(index: LineIndex, tx: ast.TxDef) -> list[lsp.DocumentSymbol]:
    children = [
        _symbol(
            index,
            param.name.value,
            lsp.SymbolKind.Field,
            f"Parameter<{param.type}>",
            param.span,
            param.name.span,
        )
        for param in tx.parameters.parameters
    ]

    for block in tx.inputs:
        children.append(
            _symbol(
                index,
                block.name.value,
                lsp.SymbolKind.Object,
                "Input",
                block.span,
                block.name.span,
            )
        )

    for block in tx.outputs:
        selection = block.name.span if block.name is not None else block.span
        children.append(
            _symbol(
                index,
                block.display_name,
                lsp.SymbolKind.Object,
                "Output",
                block.span,
                selection,
            )
        )

    return children


def build_document_symbols(
    program: ast.Program, text: str, codec: PositionCodec | None = None
) -> list[lsp.DocumentSymbol]:
    """Build the nested outline: parties, policies, then transactions."""
    index = LineIndex(text, codec)
    symbols: list[lsp.DocumentSymbol] = []

    for party in program.parties:
        symbols.append(
            _symbol(
                index,
                party.name.value,
                lsp.SymbolKind.Object,
                "Party",
                party.span,
                party.name.span,
            )
        )

    for policy in program.policies:
        symbols.append(
            _symbol(
                index,
                policy.name.value,
                lsp.SymbolKind.Key,
                "Policy",
                policy.span,
                policy.name.span,
            )
        )

    for tx in program.txs:
        symbols.append(
            _symbol(
                index,
                tx.name.value,
                lsp.SymbolKind.Method,
                "Tx",
                tx.span,
                tx.name.span,
                _tx_children(index, tx),
            )
        )

    return symbols


def build_folding_ranges(program: ast.Program, text: str) -> list[lsp.FoldingRange]:
    """Fold multi-line declarations, transaction blocks and comment runs."""
    index = LineIndex(text)
    ranges: list[lsp.FoldingRange] = []

    def fold(span: ast.Span) -> None:
        start_line, _ = index.to_line_column(span.start)
        end_line, _ = index.to_line_column(span.end)
        if end_line > start_line:
            ranges.append(
                lsp.FoldingRange(
                    start_line=start_line,
                    end_line=end_line,
                    kind=lsp.FoldingRangeKind.Region,
                )
            )

    for decl in (*program.parties, *program.policies, *program.types, *program.assets):
        fold(decl.span)

    for tx in program.txs:
        fold(tx.span)
        for block in tx.blocks():
            fold(block.span)

    # Group consecutive comment lines
    comment_lines: list[int] = []

    def flush_comments() -> None:
        if len(comment_lines) >= 2:
            ranges.append(
                lsp.FoldingRange(
                    start_line=comment_lines[0],
                    end_line=comment_lines[-1],
                    kind=lsp.FoldingRangeKind.Comment,
                )
            )
        comment_lines.clear()

    for line_number, line in enumerate(text.split("\n")):
        if line.strip().startswith("//"):
            comment_lines.append(line_number)
        else:
            flush_comments()
    flush_comments()

    ranges.sort(key=lambda r: (r.start_line, r.end_line))
    return ranges


class Tx3OutlineProvider:
    """Provides document symbols and folding ranges for tx3 files."""

    def __init__(self, server: Tx3LanguageServer):
        self.server = server

    def _program_for(self, uri: str) -> tuple[ast.Program, TextDocument] | None:
        doc = self.server.get_document(uri)
        result = self.server.parse_document(uri)
        if doc is None or result is None or not result.ok:
            return None
        return result.program, doc

    def get_document_symbols(
        self, params: lsp.DocumentSymbolParams
    ) -> list[lsp.DocumentSymbol]:
        """Get the outline of a document; empty when it does not parse."""
        parsed = self._program_for(params.text_document.uri)
        if parsed is None:
            return []

        program, doc = parsed
        return build_document_symbols(program, doc.source, doc.position_codec)

    def get_folding_ranges(
        self, params: lsp.FoldingRangeParams
    ) -> list[lsp.FoldingRange] | None:
        """Get folding ranges for a document."""
        parsed = self._program_for(params.text_document.uri)
        if parsed is None:
            return None

        program, doc = parsed
        return build_folding_ranges(program, doc.source)
