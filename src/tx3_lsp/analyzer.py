"""
Semantic checks for parsed tx3 programs.

``analyze`` never raises; every problem is collected into an
``AnalyzeReport`` in source-walk order. Checks:
- duplicate declarations (top level and per transaction)
- references to undeclared custom types
- identifiers in expression position that are not in scope
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tx3_lsp import ast

logger = logging.getLogger(__name__)

# Names every transaction can use without declaring them.
BUILTIN_SYMBOLS = frozenset({"fees"})
BUILTIN_ASSETS = frozenset({"Ada"})


class AnalyzeError(Exception):
    """Base class for analyzer errors."""

    code = "analyze-error"

    def __init__(self, message: str, span: ast.Span, src: str | None = None):
        super().__init__(message)
        self.message = message
        self.span = span
        self.src = src

    def __str__(self) -> str:
        return self.message


class DuplicateDefinitionError(AnalyzeError):
    code = "duplicate-definition"

    def __init__(self, name: ast.Identifier):
        super().__init__(f"duplicate definition of '{name.value}'", name.span)


class UnknownTypeError(AnalyzeError):
    code = "unknown-type"

    def __init__(self, name: ast.Identifier):
        super().__init__(f"unknown type '{name.value}'", name.span)


class UnknownSymbolError(AnalyzeError):
    code = "unknown-symbol"

    def __init__(self, name: ast.Identifier):
        super().__init__(f"unknown symbol '{name.value}'", name.span)


@dataclass
class AnalyzeReport:
    errors: list[AnalyzeError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class _Analyzer:
    def __init__(self, program: ast.Program):
        self.program = program
        self.errors: list[AnalyzeError] = []
        self.type_names = {t.name.value for t in program.types}
        self.asset_names = {a.name.value for a in program.assets} | BUILTIN_ASSETS
        self.global_values = (
            {p.name.value for p in program.parties}
            | {p.name.value for p in program.policies}
            | {a.name.value for a in program.assets}
        )

    def run(self) -> list[AnalyzeError]:
        program = self.program
        self._check_duplicates(
            d.name
            for d in (
                *program.parties,
                *program.policies,
                *program.types,
                *program.assets,
                *program.txs,
            )
        )

        for type_def in program.types:
            for case in type_def.cases:
                for record_field in case.fields:
                    self._check_type(record_field.type)

        for policy in program.policies:
            if isinstance(policy.value, ast.PolicyConstructor):
                for policy_field in policy.value.fields:
                    self._check_expr(policy_field.value, self.global_values)
            else:
                self._check_expr(policy.value, self.global_values)

        for tx in program.txs:
            self._check_tx(tx)

        return self.errors

    def _check_duplicates(self, names) -> None:
        seen: set[str] = set()
        for name in names:
            if name.value in seen:
                self.errors.append(DuplicateDefinitionError(name))
            seen.add(name.value)

    def _check_type(self, type_record: ast.TypeRecord) -> None:
        if type_record.is_custom and type_record.name.value not in self.type_names:
            self.errors.append(UnknownTypeError(type_record.name))
        for arg in type_record.args:
            self._check_type(arg)

    def _check_tx(self, tx: ast.TxDef) -> None:
        params = tx.parameters.parameters
        local_names = [
            *(p.name for p in params),
            *(i.name for i in tx.inputs),
            *(o.name for o in tx.outputs if o.name is not None),
            *(r.name for r in tx.references),
        ]
        self._check_duplicates(local_names)

        for param in params:
            self._check_type(param.type)

        scope = self.global_values | {n.value for n in local_names} | BUILTIN_SYMBOLS

        blocks_with_fields = [
            *tx.inputs,
            *tx.outputs,
            *tx.mints,
            *tx.collateral,
            *(b for b in (tx.validity, tx.burn) if b is not None),
        ]
        for block in blocks_with_fields:
            for block_field in block.fields:
                if isinstance(block_field.value, ast.TypeRecord):
                    self._check_type(block_field.value)
                else:
                    self._check_expr(block_field.value, scope)

        for reference in tx.references:
            self._check_expr(reference.ref, scope)

        if tx.signers is not None:
            for signer in tx.signers.signers:
                self._check_expr(signer, scope)

    def _check_expr(self, expr: ast.Expr, scope: set[str]) -> None:
        if isinstance(expr, ast.Identifier):
            if expr.value not in scope:
                self.errors.append(UnknownSymbolError(expr))
        elif isinstance(expr, ast.PropertyAccess):
            self._check_expr(expr.object, scope)
        elif isinstance(expr, ast.BinaryOp):
            self._check_expr(expr.left, scope)
            self._check_expr(expr.right, scope)
        elif isinstance(expr, ast.StructConstructor):
            if expr.type.value not in self.type_names:
                self.errors.append(UnknownTypeError(expr.type))
            for record_field in expr.case.fields:
                self._check_expr(record_field.value, scope)
            if expr.case.spread is not None:
                self._check_expr(expr.case.spread, scope)
        elif isinstance(expr, ast.ListConstructor):
            for element in expr.elements:
                self._check_expr(element, scope)
        elif isinstance(expr, ast.StaticAssetConstructor):
            if expr.type.value not in self.asset_names:
                self.errors.append(UnknownSymbolError(expr.type))
            self._check_expr(expr.amount, scope)
        elif isinstance(expr, ast.AnyAssetConstructor):
            for part in (expr.policy, expr.asset_name, expr.amount):
                self._check_expr(part, scope)


def analyze(program: ast.Program) -> AnalyzeReport:
    """Run every semantic check over ``program``."""
    errors = _Analyzer(program).run()
    if errors:
        logger.debug(f"Analysis found {len(errors)} error(s)")
    return AnalyzeReport(errors=errors)
