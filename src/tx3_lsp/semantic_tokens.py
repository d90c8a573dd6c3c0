"""
Semantic tokens for tx3 documents.

Tokens are collected with a linear sweep over every character offset,
resolving each with the same ``locate``/``classify`` pair used by hover and
go-to-definition, so colors and hover never disagree about a symbol.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from lsprotocol import types as lsp

from tx3_lsp import ast
from tx3_lsp.position import LineIndex
from tx3_lsp.symbols import SymbolCategory, classify, declaration_spans
from tx3_lsp.visitor import locate

if TYPE_CHECKING:
    from pygls.workspace import PositionCodec, TextDocument

    from tx3_lsp.server import Tx3LanguageServer

logger = logging.getLogger(__name__)

TOKEN_TYPES = [
    lsp.SemanticTokenTypes.Type.value,
    lsp.SemanticTokenTypes.Parameter.value,
    lsp.SemanticTokenTypes.Variable.value,
    lsp.SemanticTokenTypes.Class.value,
    "party",
    "policy",
    lsp.SemanticTokenTypes.Function.value,
    "input",
    "output",
    "reference",
]

TOKEN_MODIFIERS = [
    lsp.SemanticTokenModifiers.Declaration.value,
    lsp.SemanticTokenModifiers.Readonly.value,
    lsp.SemanticTokenModifiers.Static.value,
]

LEGEND = lsp.SemanticTokensLegend(
    token_types=TOKEN_TYPES,
    token_modifiers=TOKEN_MODIFIERS,
)

MOD_DECLARATION = 1 << 0

_CATEGORY_TOKEN_TYPE = {
    SymbolCategory.TYPE: "type",
    SymbolCategory.PARAMETER: "parameter",
    SymbolCategory.VARIABLE: "variable",
    SymbolCategory.ASSET: "class",
    SymbolCategory.PARTY: "party",
    SymbolCategory.POLICY: "policy",
    SymbolCategory.TRANSACTION: "function",
    SymbolCategory.INPUT: "input",
    SymbolCategory.OUTPUT: "output",
    SymbolCategory.REFERENCE: "reference",
}


def token_type_index(category: SymbolCategory) -> int:
    return TOKEN_TYPES.index(_CATEGORY_TOKEN_TYPE[category])


@dataclass(frozen=True)
class SemanticToken:
    """A token in absolute coordinates, before delta encoding."""

    line: int
    start_char: int
    length: int
    token_type: int
    token_modifiers: int


def collect_semantic_tokens(
    program: ast.Program, text: str, codec: PositionCodec | None = None
) -> list[SemanticToken]:
    """Classify every identifier occurrence in ``text``.

    Returns tokens sorted by position with duplicate ranges and zero-length
    tokens removed. Columns and lengths are in the units of ``codec``.
    """
    index = LineIndex(text, codec)
    declarations = declaration_spans(program)
    seen: set[ast.Span] = set()
    tokens: list[SemanticToken] = []

    for offset in range(len(text)):
        identifier = locate(program, offset)
        if identifier is None or identifier.span in seen:
            continue
        seen.add(identifier.span)

        line, start = index.to_line_column(identifier.span.start)
        end_line, end = index.to_line_column(identifier.span.end)
        if end_line != line:
            continue

        start = index.to_client_column(line, start)
        end = index.to_client_column(line, end)
        category = classify(program, identifier, offset)
        modifiers = MOD_DECLARATION if identifier.span in declarations else 0
        tokens.append(
            SemanticToken(
                line=line,
                start_char=start,
                length=end - start,
                token_type=token_type_index(category),
                token_modifiers=modifiers,
            )
        )

    tokens.sort(key=lambda t: (t.line, t.start_char))

    result: list[SemanticToken] = []
    for token in tokens:
        if token.length == 0:
            continue
        if result and (result[-1].line, result[-1].start_char, result[-1].length) == (
            token.line,
            token.start_char,
            token.length,
        ):
            continue
        result.append(token)
    return result


def encode_semantic_tokens(tokens: list[SemanticToken]) -> list[int]:
    """Delta-encode sorted tokens into the LSP integer stream."""
    data: list[int] = []
    prev_line = 0
    prev_start = 0

    for token in tokens:
        delta_line = token.line - prev_line
        delta_start = token.start_char - prev_start if delta_line == 0 else token.start_char
        data.extend(
            [
                delta_line,
                delta_start,
                token.length,
                token.token_type,
                token.token_modifiers,
            ]
        )
        prev_line = token.line
        prev_start = token.start_char

    return data


def tokens_in_range(
    tokens: list[SemanticToken],
    text: str,
    range_: lsp.Range,
    codec: PositionCodec | None = None,
) -> list[SemanticToken]:
    """Keep tokens whose start lies inside ``range_``."""
    index = LineIndex(text, codec)
    start = index.position_to_offset(range_.start)
    end = index.position_to_offset(range_.end)
    selected = []
    for token in tokens:
        position = lsp.Position(line=token.line, character=token.start_char)
        if start <= index.position_to_offset(position) < end:
            selected.append(token)
    return selected


class Tx3SemanticTokensProvider:
    """Provides semantic tokens for tx3 files."""

    def __init__(self, server: Tx3LanguageServer):
        self.server = server

    def _tokens_for(self, uri: str) -> tuple[list[SemanticToken], TextDocument] | None:
        doc = self.server.get_document(uri)
        result = self.server.parse_document(uri)
        if doc is None or result is None or not result.ok:
            return None

        tokens = collect_semantic_tokens(result.program, doc.source, doc.position_codec)
        logger.debug(f"Collected {len(tokens)} semantic tokens for {uri}")
        return tokens, doc

    def get_semantic_tokens(
        self, params: lsp.SemanticTokensParams
    ) -> lsp.SemanticTokens | None:
        """Get semantic tokens for the whole document."""
        collected = self._tokens_for(params.text_document.uri)
        if collected is None:
            return None

        tokens, _ = collected
        return lsp.SemanticTokens(data=encode_semantic_tokens(tokens))

    def get_semantic_tokens_range(
        self, params: lsp.SemanticTokensRangeParams
    ) -> lsp.SemanticTokens | None:
        """Get semantic tokens for part of the document."""
        collected = self._tokens_for(params.text_document.uri)
        if collected is None:
            return None

        tokens, doc = collected
        in_range = tokens_in_range(tokens, doc.source, params.range, doc.position_codec)
        return lsp.SemanticTokens(data=encode_semantic_tokens(in_range))
