"""
Lark integration for tx3 parsing.

This module turns tx3 source text into the tree defined in ``tx3_lsp.ast``.
Spans are lark character positions, which are ``str`` indices of the
source text (code points, not bytes).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import (
    UnexpectedCharacters,
    UnexpectedEOF,
    UnexpectedInput,
    UnexpectedToken,
    VisitError,
)

from tx3_lsp import ast

logger = logging.getLogger(__name__)

_GRAMMAR_PATH = Path(__file__).with_name("tx3.lark")

PARSER_SOURCE = "tx3-parser"


class ParseError(Exception):
    """A syntax error with the span the parser stopped at."""

    def __init__(self, message: str, span: ast.Span, src: str = PARSER_SOURCE):
        super().__init__(message)
        self.message = message
        self.span = span
        self.src = src


@dataclass
class ParseResult:
    """Result of parsing a document: exactly one of the fields is set."""

    program: ast.Program | None
    error: ParseError | None

    @property
    def ok(self) -> bool:
        return self.program is not None


@dataclass
class _Spread:
    value: ast.Expr


@dataclass
class _Burn:
    block: ast.MintBlock


def _span(meta) -> ast.Span:
    if getattr(meta, "empty", True):
        return ast.Span(0, 0)
    return ast.Span(meta.start_pos, meta.end_pos)


def _token_span(token: Token) -> ast.Span:
    return ast.Span(token.start_pos, token.end_pos)


def _field(key: str):
    """Build a transformer callback producing a ``BlockField`` named *key*."""

    def callback(self, meta, children):
        return ast.BlockField(key=key, value=children[0], span=_span(meta))

    return callback


@v_args(meta=True)
class Tx3Transformer(Transformer):
    """Builds ``tx3_lsp.ast`` nodes from the lark parse tree."""

    # -- identifiers and types ------------------------------------------------

    def identifier(self, meta, children):
        token = children[0]
        return ast.Identifier(value=str(token), span=_token_span(token))

    def type_ref(self, meta, children):
        name, *args = children
        return ast.TypeRecord(name=name, args=list(args), span=_span(meta))

    # -- expressions ----------------------------------------------------------

    def number(self, meta, children):
        return ast.NumberLiteral(value=int(children[0]), span=_span(meta))

    def true(self, meta, children):
        return ast.BoolLiteral(value=True, span=_span(meta))

    def false(self, meta, children):
        return ast.BoolLiteral(value=False, span=_span(meta))

    def string(self, meta, children):
        return ast.StringLiteral(value=str(children[0])[1:-1], span=_span(meta))

    def hex_string(self, meta, children):
        return ast.HexStringLiteral(value=str(children[0])[2:], span=_span(meta))

    def utxo_ref(self, meta, children):
        txid, index = children
        return ast.UtxoRefLiteral(
            txid=str(txid)[2:], index=int(index), span=_span(meta)
        )

    def unit(self, meta, children):
        return ast.UnitLiteral(span=_span(meta))

    def add(self, meta, children):
        left, right = children
        return ast.BinaryOp(left=left, operator="+", right=right, span=_span(meta))

    def sub(self, meta, children):
        left, right = children
        return ast.BinaryOp(left=left, operator="-", right=right, span=_span(meta))

    def property_access(self, meta, children):
        obj, *path = children
        return ast.PropertyAccess(object=obj, path=list(path), span=_span(meta))

    def static_asset(self, meta, children):
        type_name, amount = children
        return ast.StaticAssetConstructor(
            type=type_name, amount=amount, span=_span(meta)
        )

    def any_asset(self, meta, children):
        _name, policy, asset_name, amount = children
        return ast.AnyAssetConstructor(
            policy=policy, asset_name=asset_name, amount=amount, span=_span(meta)
        )

    def list_constructor(self, meta, children):
        return ast.ListConstructor(elements=list(children), span=_span(meta))

    def record_value(self, meta, children):
        name, value = children
        return ast.RecordConstructorField(name=name, value=value, span=_span(meta))

    def spread(self, meta, children):
        return _Spread(children[0])

    def struct_constructor(self, meta, children):
        names = [c for c in children if isinstance(c, ast.Identifier)]
        fields = [c for c in children if isinstance(c, ast.RecordConstructorField)]
        spreads = [c.value for c in children if isinstance(c, _Spread)]
        type_name = names[0]
        case_name = names[1] if len(names) > 1 else None
        span = _span(meta)
        case_start = case_name.span.start if case_name is not None else type_name.span.end
        case = ast.VariantCaseConstructor(
            name=case_name,
            fields=fields,
            spread=spreads[0] if spreads else None,
            span=ast.Span(case_start, span.end),
        )
        return ast.StructConstructor(type=type_name, case=case, span=span)

    # -- block fields -----------------------------------------------------------

    from_field = _field("from")
    datum_is_field = _field("datum_is")
    min_amount_field = _field("min_amount")
    redeemer_field = _field("redeemer")
    ref_field = _field("ref")
    to_field = _field("to")
    amount_field = _field("amount")
    datum_field = _field("datum")
    since_slot_field = _field("since_slot")
    until_slot_field = _field("until_slot")
    hash_field = _field("hash")
    script_field = _field("script")

    # -- transaction blocks -----------------------------------------------------

    def input_block(self, meta, children):
        name, *fields = children
        return ast.InputBlock(name=name, fields=list(fields), span=_span(meta))

    def output_block(self, meta, children):
        name = children[0] if children and isinstance(children[0], ast.Identifier) else None
        fields = [c for c in children if isinstance(c, ast.BlockField)]
        return ast.OutputBlock(name=name, fields=fields, span=_span(meta))

    def mint_block(self, meta, children):
        return ast.MintBlock(fields=list(children), span=_span(meta))

    def burn_block(self, meta, children):
        return _Burn(ast.MintBlock(fields=list(children), span=_span(meta)))

    def reference_block(self, meta, children):
        name, ref = children
        return ast.ReferenceBlock(name=name, ref=ref, span=_span(meta))

    def collateral_block(self, meta, children):
        return ast.CollateralBlock(fields=list(children), span=_span(meta))

    def signers_block(self, meta, children):
        return ast.SignersBlock(signers=list(children), span=_span(meta))

    def validity_block(self, meta, children):
        return ast.ValidityBlock(fields=list(children), span=_span(meta))

    def metadata_field(self, meta, children):
        key, value = children
        return ast.MetadataField(key=key, value=value, span=_span(meta))

    def metadata_block(self, meta, children):
        return ast.MetadataBlock(fields=list(children), span=_span(meta))

    def chain_block(self, meta, children):
        namespace, name, *fields = children
        return ast.ChainSpecificBlock(
            namespace=namespace, name=name, fields=list(fields), span=_span(meta)
        )

    # -- declarations -----------------------------------------------------------

    def parameter(self, meta, children):
        name, type_record = children
        return ast.Parameter(name=name, type=type_record, span=_span(meta))

    def parameter_list(self, meta, children):
        return ast.ParameterList(parameters=list(children), span=_span(meta))

    def tx_def(self, meta, children):
        name, parameters, *items = children
        tx = ast.TxDef(name=name, parameters=parameters, span=_span(meta))
        for item in items:
            if isinstance(item, ast.InputBlock):
                tx.inputs.append(item)
            elif isinstance(item, ast.OutputBlock):
                tx.outputs.append(item)
            elif isinstance(item, ast.MintBlock):
                tx.mints.append(item)
            elif isinstance(item, ast.ReferenceBlock):
                tx.references.append(item)
            elif isinstance(item, ast.ChainSpecificBlock):
                tx.adhoc.append(item)
            elif isinstance(item, ast.CollateralBlock):
                tx.collateral.append(item)
            elif isinstance(item, ast.SignersBlock):
                tx.signers = item
            elif isinstance(item, ast.ValidityBlock):
                tx.validity = item
            elif isinstance(item, _Burn):
                tx.burn = item.block
            elif isinstance(item, ast.MetadataBlock):
                tx.metadata = item
        return tx

    def party_def(self, meta, children):
        return ast.PartyDef(name=children[0], span=_span(meta))

    def policy_assign(self, meta, children):
        name, value = children
        return ast.PolicyDef(name=name, value=value, span=_span(meta))

    def policy_constructor(self, meta, children):
        name, *fields = children
        span = _span(meta)
        constructor = ast.PolicyConstructor(fields=list(fields), span=span)
        return ast.PolicyDef(name=name, value=constructor, span=span)

    def record_field(self, meta, children):
        name, type_record = children
        return ast.RecordField(name=name, type=type_record, span=_span(meta))

    type_field = record_field

    def type_case(self, meta, children):
        name, *fields = children
        return ast.VariantCase(name=name, fields=list(fields), span=_span(meta))

    def type_def(self, meta, children):
        name, *items = children
        span = _span(meta)
        cases = [i for i in items if isinstance(i, ast.VariantCase)]
        fields = [i for i in items if isinstance(i, ast.RecordField)]
        if cases and fields:
            raise ParseError(
                f"type '{name.value}' mixes record fields and variant cases",
                fields[0].span,
            )
        if not cases:
            cases = [ast.VariantCase(name=None, fields=fields, span=span)]
        return ast.TypeDef(name=name, cases=cases, span=span)

    def asset_def(self, meta, children):
        name, policy, asset_name = children
        return ast.AssetDef(
            name=name, policy=policy, asset_name=asset_name, span=_span(meta)
        )

    def program(self, meta, children):
        program = ast.Program()
        for item in children:
            if isinstance(item, ast.PartyDef):
                program.parties.append(item)
            elif isinstance(item, ast.PolicyDef):
                program.policies.append(item)
            elif isinstance(item, ast.TypeDef):
                program.types.append(item)
            elif isinstance(item, ast.AssetDef):
                program.assets.append(item)
            elif isinstance(item, ast.TxDef):
                program.txs.append(item)
        return program


_LARK = Lark.open(
    str(_GRAMMAR_PATH),
    parser="lalr",
    start="program",
    propagate_positions=True,
)


def _describe_terminal(name: str) -> str:
    try:
        pattern = _LARK.get_terminal(name).pattern
    except KeyError:
        return name
    if pattern.type == "str":
        return f"'{pattern.value}'"
    return name.lower()


def _end_of_input_span(source: str) -> ast.Span:
    end = len(source.rstrip())
    return ast.Span(max(end - 1, 0), end)


def _convert_error(source: str, error: UnexpectedInput) -> ParseError:
    """Turn a lark exception into a ``ParseError`` with a span."""
    if isinstance(error, UnexpectedToken):
        expected = ", ".join(sorted(_describe_terminal(t) for t in error.expected))
        if error.token.type == "$END":
            message = "unexpected end of input"
            span = _end_of_input_span(source)
        else:
            message = f"unexpected token '{error.token}'"
            span = _token_span(error.token)
        if expected:
            message += f", expected one of: {expected}"
        return ParseError(message, span)

    if isinstance(error, UnexpectedCharacters):
        start = error.pos_in_stream
        return ParseError(
            f"unexpected character '{error.char}'",
            ast.Span(start, min(start + 1, len(source))),
        )

    if isinstance(error, UnexpectedEOF):
        return ParseError("unexpected end of input", _end_of_input_span(source))

    return ParseError(str(error), _end_of_input_span(source))


def parse_string(source: str) -> ast.Program:
    """Parse tx3 source text, raising ``ParseError`` on invalid input."""
    try:
        tree = _LARK.parse(source)
    except UnexpectedInput as e:
        raise _convert_error(source, e) from e

    try:
        return Tx3Transformer().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, ParseError):
            raise e.orig_exc from e
        raise


class Tx3Parser:
    """Parser for tx3 documents.

    ``parse`` never raises: syntax errors are reported through
    ``ParseResult.error`` so callers can degrade to "no result".
    """

    def parse(self, source: str) -> ParseResult:
        try:
            program = parse_string(source)
        except ParseError as e:
            logger.debug(f"Parse error at {e.span.start}-{e.span.end}: {e.message}")
            return ParseResult(program=None, error=e)
        return ParseResult(program=program, error=None)
