"""
Go-to-definition provider for tx3 LSP.

Provides go-to-definition for:
- Parties, policies, types and assets declared at the top level
- Parameters, inputs, outputs and references of the enclosing transaction
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lsprotocol import types as lsp

from tx3_lsp import ast
from tx3_lsp.position import LineIndex
from tx3_lsp.symbols import containing_tx
from tx3_lsp.visitor import locate

if TYPE_CHECKING:
    from tx3_lsp.server import Tx3LanguageServer

logger = logging.getLogger(__name__)


def find_definition(program: ast.Program, offset: int) -> ast.Span | None:
    """Return the span of the declaration the identifier at ``offset`` names."""
    identifier = locate(program, offset)
    if identifier is None:
        return None

    name = identifier.value

    for decl in (*program.parties, *program.policies, *program.types, *program.assets):
        if decl.name.value == name:
            return decl.span

    # Transaction-scoped names only resolve inside their own transaction
    tx = containing_tx(program, offset)
    if tx is None:
        return None

    for param in tx.parameters.parameters:
        if param.name.value == name:
            return param.span

    for block in tx.inputs:
        if block.name.value == name:
            return block.span

    for block in tx.outputs:
        if block.name is not None and block.name.value == name:
            return block.span

    for block in tx.references:
        if block.name.value == name:
            return block.span

    return None


class Tx3DefinitionProvider:
    """Provides go-to-definition for tx3 files."""

    def __init__(self, server: Tx3LanguageServer):
        self.server = server

    def get_definition(self, params: lsp.DefinitionParams) -> lsp.Location | None:
        """Get the definition location for the symbol at position."""
        uri = params.text_document.uri
        doc = self.server.get_document(uri)
        result = self.server.parse_document(uri)
        if doc is None or result is None or not result.ok:
            return None

        index = LineIndex(doc.source, doc.position_codec)
        offset = index.position_to_offset(params.position)

        span = find_definition(result.program, offset)
        if span is None:
            logger.debug(f"No definition at {uri}:{params.position.line}")
            return None

        return lsp.Location(uri=uri, range=index.span_to_range(span))
