"""
Offset to identifier resolution.

``locate`` walks a parsed program and returns the first identifier whose
span contains the offset. Declarations are searched in a fixed order
(transactions, assets, types, parties, policies) so that transactions take
precedence if top-level spans ever overlap. Only identifier spans match;
container nodes are never returned themselves.
"""

from __future__ import annotations

from itertools import chain
from typing import Iterable

from tx3_lsp import ast


def locate(program: ast.Program, offset: int) -> ast.Identifier | None:
    """Return the identifier at ``offset``, or None."""
    return _first(
        chain(
            (_visit_tx(tx, offset) for tx in program.txs),
            (_visit_asset(asset, offset) for asset in program.assets),
            (_visit_type_def(type_def, offset) for type_def in program.types),
            (_visit_party(party, offset) for party in program.parties),
            (_visit_policy(policy, offset) for policy in program.policies),
        )
    )


def _first(results: Iterable[ast.Identifier | None]) -> ast.Identifier | None:
    for result in results:
        if result is not None:
            return result
    return None


def _visit_identifier(
    identifier: ast.Identifier | None, offset: int
) -> ast.Identifier | None:
    if identifier is not None and identifier.span.contains(offset):
        return identifier
    return None


# ============================================================================
# Transactions
# ============================================================================


def _visit_tx(tx: ast.TxDef, offset: int) -> ast.Identifier | None:
    if not tx.span.contains(offset):
        return None

    return _first(
        chain(
            (_visit_identifier(tx.name, offset),),
            (_visit_parameter(p, offset) for p in tx.parameters.parameters),
            (_visit_input(b, offset) for b in tx.inputs),
            (_visit_output(b, offset) for b in tx.outputs),
            (_visit_fields(b.fields, offset) for b in tx.mints),
            (_visit_reference(b, offset) for b in tx.references),
            # chain-specific blocks are opaque
            (_visit_fields(b.fields, offset) for b in tx.collateral),
            (_visit_expr(s, offset) for s in _signers(tx)),
            (_visit_fields(b.fields, offset) for b in (tx.validity, tx.burn) if b is not None),
            # metadata blocks are opaque
        )
    )


def _signers(tx: ast.TxDef) -> list[ast.Expr]:
    return tx.signers.signers if tx.signers is not None else []


def _visit_parameter(param: ast.Parameter, offset: int) -> ast.Identifier | None:
    found = _visit_identifier(param.name, offset)
    if found is not None:
        return found
    return _visit_type(param.type, offset)


def _visit_input(block: ast.InputBlock, offset: int) -> ast.Identifier | None:
    found = _visit_identifier(block.name, offset)
    if found is not None:
        return found
    return _visit_fields(block.fields, offset)


def _visit_output(block: ast.OutputBlock, offset: int) -> ast.Identifier | None:
    found = _visit_identifier(block.name, offset)
    if found is not None:
        return found
    return _visit_fields(block.fields, offset)


def _visit_reference(block: ast.ReferenceBlock, offset: int) -> ast.Identifier | None:
    found = _visit_identifier(block.name, offset)
    if found is not None:
        return found
    return _visit_expr(block.ref, offset)


def _visit_fields(fields: list[ast.BlockField], offset: int) -> ast.Identifier | None:
    for block_field in fields:
        if isinstance(block_field.value, ast.TypeRecord):
            found = _visit_type(block_field.value, offset)
        else:
            found = _visit_expr(block_field.value, offset)
        if found is not None:
            return found
    return None


# ============================================================================
# Types
# ============================================================================


def _visit_type(type_record: ast.TypeRecord, offset: int) -> ast.Identifier | None:
    if type_record.is_custom:
        return _visit_identifier(type_record.name, offset)
    # Builtins never match, but List<T> arguments may name a declared type.
    return _first(_visit_type(arg, offset) for arg in type_record.args)


def _visit_type_def(type_def: ast.TypeDef, offset: int) -> ast.Identifier | None:
    found = _visit_identifier(type_def.name, offset)
    if found is not None:
        return found
    for case in type_def.cases:
        found = _visit_identifier(case.name, offset)
        if found is not None:
            return found
        for record_field in case.fields:
            found = _visit_identifier(record_field.name, offset)
            if found is None:
                found = _visit_type(record_field.type, offset)
            if found is not None:
                return found
    return None


# ============================================================================
# Top-level declarations
# ============================================================================


def _visit_asset(asset: ast.AssetDef, offset: int) -> ast.Identifier | None:
    return _first(
        (
            _visit_identifier(asset.name, offset),
            _visit_expr(asset.policy, offset),
            _visit_expr(asset.asset_name, offset),
        )
    )


def _visit_party(party: ast.PartyDef, offset: int) -> ast.Identifier | None:
    return _visit_identifier(party.name, offset)


def _visit_policy(policy: ast.PolicyDef, offset: int) -> ast.Identifier | None:
    found = _visit_identifier(policy.name, offset)
    if found is not None:
        return found
    if isinstance(policy.value, ast.PolicyConstructor):
        return _visit_fields(policy.value.fields, offset)
    return None


# ============================================================================
# Expressions
# ============================================================================


def _visit_expr(expr: ast.Expr, offset: int) -> ast.Identifier | None:
    """Dispatch over every expression variant."""
    if not expr.span.contains(offset):
        return None

    if isinstance(expr, ast.Identifier):
        return expr

    if isinstance(expr, ast.PropertyAccess):
        return _first(_visit_identifier(i, offset) for i in (expr.object, *expr.path))

    if isinstance(expr, ast.BinaryOp):
        return _first(_visit_expr(e, offset) for e in (expr.left, expr.right))

    if isinstance(expr, ast.StructConstructor):
        return _visit_struct(expr, offset)

    if isinstance(expr, ast.ListConstructor):
        return _first(_visit_expr(e, offset) for e in expr.elements)

    if isinstance(expr, ast.StaticAssetConstructor):
        found = _visit_identifier(expr.type, offset)
        if found is not None:
            return found
        return _visit_expr(expr.amount, offset)

    if isinstance(expr, ast.AnyAssetConstructor):
        return _first(
            _visit_expr(e, offset) for e in (expr.policy, expr.asset_name, expr.amount)
        )

    # Literals never name anything.
    return None


def _visit_struct(expr: ast.StructConstructor, offset: int) -> ast.Identifier | None:
    found = _visit_identifier(expr.type, offset)
    if found is not None:
        return found
    case = expr.case
    found = _visit_identifier(case.name, offset)
    if found is not None:
        return found
    for record_field in case.fields:
        found = _visit_identifier(record_field.name, offset)
        if found is None:
            found = _visit_expr(record_field.value, offset)
        if found is not None:
            return found
    if case.spread is not None:
        return _visit_expr(case.spread, offset)
    return None
