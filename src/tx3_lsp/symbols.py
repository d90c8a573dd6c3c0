"""
Semantic classification of resolved identifiers.

There is no symbol table: every call re-derives the category from the
program's declaration tables and the transaction that lexically contains
the offset.
"""

from __future__ import annotations

import enum

from tx3_lsp import ast


class SymbolCategory(enum.Enum):
    PARTY = "party"
    POLICY = "policy"
    TYPE = "type"
    ASSET = "asset"
    TRANSACTION = "transaction"
    PARAMETER = "parameter"
    INPUT = "input"
    OUTPUT = "output"
    REFERENCE = "reference"
    VARIABLE = "variable"


def containing_tx(program: ast.Program, offset: int) -> ast.TxDef | None:
    """Return the transaction whose span contains ``offset``."""
    for tx in program.txs:
        if tx.span.contains(offset):
            return tx
    return None


def classify(
    program: ast.Program, identifier: ast.Identifier, offset: int
) -> SymbolCategory:
    """Classify ``identifier`` found at ``offset``.

    Global declarations are checked first (parties, policies, types, assets,
    transactions), then the names scoped to the containing transaction
    (parameters, inputs, outputs, references). Anything else is a
    ``VARIABLE``.
    """
    name = identifier.value

    global_tables = (
        (SymbolCategory.PARTY, program.parties),
        (SymbolCategory.POLICY, program.policies),
        (SymbolCategory.TYPE, program.types),
        (SymbolCategory.ASSET, program.assets),
        (SymbolCategory.TRANSACTION, program.txs),
    )
    for category, declarations in global_tables:
        if any(decl.name.value == name for decl in declarations):
            return category

    tx = containing_tx(program, offset)
    if tx is not None:
        if any(p.name.value == name for p in tx.parameters.parameters):
            return SymbolCategory.PARAMETER
        if any(i.name.value == name for i in tx.inputs):
            return SymbolCategory.INPUT
        if any(o.name is not None and o.name.value == name for o in tx.outputs):
            return SymbolCategory.OUTPUT
        if any(r.name.value == name for r in tx.references):
            return SymbolCategory.REFERENCE

    return SymbolCategory.VARIABLE


def declaration_spans(program: ast.Program) -> set[ast.Span]:
    """Spans of every identifier that declares a name."""
    spans = {
        decl.name.span
        for decl in (*program.parties, *program.policies, *program.types, *program.assets)
    }
    for tx in program.txs:
        spans.add(tx.name.span)
        spans.update(p.name.span for p in tx.parameters.parameters)
        spans.update(i.name.span for i in tx.inputs)
        spans.update(o.name.span for o in tx.outputs if o.name is not None)
        spans.update(r.name.span for r in tx.references)
    return spans
