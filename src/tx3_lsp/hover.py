"""
Hover provider for tx3 LSP.

Hover resolves the offset to the smallest containing declaration by span
containment (party, policy, type, asset, input, output, parameter, then
transaction) and renders a fixed markdown template for its kind.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lsprotocol import types as lsp

from tx3_lsp import ast
from tx3_lsp.position import LineIndex

if TYPE_CHECKING:
    from tx3_lsp.server import Tx3LanguageServer

logger = logging.getLogger(__name__)


def _party_hover(party: ast.PartyDef) -> str:
    return (
        f"**Party**: `{party.name.value}`\n\n"
        "A party in the transaction. It can be an address for a script or a wallet."
    )


def _policy_hover(policy: ast.PolicyDef) -> str:
    return f"**Policy**: `{policy.name.value}`\n\nA policy definition."


def _type_hover(type_def: ast.TypeDef) -> str:
    text = f"**Type**: `{type_def.name.value}`\n\nA type definition."

    if type_def.is_record:
        fields = type_def.cases[0].fields
        if fields:
            text += "\n\n**Fields**:\n"
            for record_field in fields:
                text += f"- `{record_field.name.value}`: `{record_field.type}`\n"
    else:
        text += "\n\n**Cases**:\n"
        for case in type_def.cases:
            text += f"- `{case.name.value}`\n"

    return text


def _asset_hover(asset: ast.AssetDef) -> str:
    return f"**Asset**: `{asset.name.value}`\n\nAn asset definition."


def _input_hover(block: ast.InputBlock) -> str:
    return f"**Input**: `{block.name.value}`\n\nTransaction input."


def _output_hover(block: ast.OutputBlock) -> str:
    return f"**Output**: `{block.display_name}`\n\nTransaction output."


def _parameter_hover(param: ast.Parameter) -> str:
    return f"**Parameter**: `{param.name.value}`\n\n**Type**: `{param.type}`"


def _tx_hover(tx: ast.TxDef) -> str:
    text = f"**Transaction**: `{tx.name.value}`\n\n"

    if tx.parameters.parameters:
        text += "**Parameters**:\n"
        for param in tx.parameters.parameters:
            text += f"- `{param.name.value}`: `{param.type}`\n"
        text += "\n"

    if tx.inputs:
        text += "**Inputs**:\n"
        for block in tx.inputs:
            text += f"- `{block.name.value}`\n"
        text += "\n"

    if tx.outputs:
        text += "**Outputs**:\n"
        for block in tx.outputs:
            text += f"- `{block.display_name}`\n"

    return text


def build_hover(program: ast.Program, offset: int) -> tuple[str, ast.Span] | None:
    """Return the hover markdown and the span it applies to, or None."""
    for party in program.parties:
        if party.span.contains(offset):
            return _party_hover(party), party.span

    for policy in program.policies:
        if policy.span.contains(offset):
            return _policy_hover(policy), policy.span

    for type_def in program.types:
        if type_def.span.contains(offset):
            return _type_hover(type_def), type_def.span

    for asset in program.assets:
        if asset.span.contains(offset):
            return _asset_hover(asset), asset.span

    for tx in program.txs:
        for block in tx.inputs:
            if block.span.contains(offset):
                return _input_hover(block), block.span

        for block in tx.outputs:
            if block.span.contains(offset):
                return _output_hover(block), block.span

        for param in tx.parameters.parameters:
            if param.span.contains(offset):
                return _parameter_hover(param), param.span

        if tx.span.contains(offset):
            return _tx_hover(tx), tx.span

    return None


class Tx3HoverProvider:
    """Provides hover information for tx3 files."""

    def __init__(self, server: Tx3LanguageServer):
        self.server = server

    def get_hover(self, params: lsp.HoverParams) -> lsp.Hover | None:
        """Get hover information at the given position."""
        uri = params.text_document.uri
        doc = self.server.get_document(uri)
        result = self.server.parse_document(uri)
        if doc is None or result is None or not result.ok:
            return None

        index = LineIndex(doc.source, doc.position_codec)
        offset = index.position_to_offset(params.position)

        hover = build_hover(result.program, offset)
        if hover is None:
            return None

        content, span = hover
        return lsp.Hover(
            contents=lsp.MarkupContent(
                kind=lsp.MarkupKind.Markdown,
                value=content,
            ),
            range=index.span_to_range(span),
        )
