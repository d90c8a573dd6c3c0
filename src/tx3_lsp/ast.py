"""
Syntax tree for tx3 programs.

Every node is a plain dataclass produced by the parser. Declarations,
blocks and identifiers carry a ``Span`` of absolute character offsets into
the source text. Expressions form a closed set of variants (see ``Expr``);
traversals dispatch over them with a single ``isinstance`` chain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class Span:
    """Half-open character range ``[start, end)``."""

    start: int
    end: int

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end


@dataclass
class Identifier:
    value: str
    span: Span


# ============================================================================
# Types
# ============================================================================

BUILTIN_TYPES = frozenset(
    {"Int", "Bool", "Bytes", "Address", "UtxoRef", "AnyAsset", "Unit", "List"}
)


@dataclass
class TypeRecord:
    """A type reference such as ``Int``, ``List<Int>`` or ``MyDatum``."""

    name: Identifier
    args: list[TypeRecord]
    span: Span

    @property
    def is_custom(self) -> bool:
        return self.name.value not in BUILTIN_TYPES

    def __str__(self) -> str:
        if self.args:
            return f"{self.name.value}<{', '.join(str(a) for a in self.args)}>"
        return self.name.value


# ============================================================================
# Expressions
# ============================================================================


@dataclass
class NumberLiteral:
    value: int
    span: Span


@dataclass
class BoolLiteral:
    value: bool
    span: Span


@dataclass
class StringLiteral:
    value: str
    span: Span


@dataclass
class HexStringLiteral:
    value: str
    span: Span


@dataclass
class UnitLiteral:
    span: Span


@dataclass
class UtxoRefLiteral:
    txid: str
    index: int
    span: Span


@dataclass
class RecordConstructorField:
    name: Identifier
    value: Expr
    span: Span


@dataclass
class VariantCaseConstructor:
    name: Identifier | None
    fields: list[RecordConstructorField]
    spread: Expr | None
    span: Span


@dataclass
class StructConstructor:
    type: Identifier
    case: VariantCaseConstructor
    span: Span


@dataclass
class ListConstructor:
    elements: list[Expr]
    span: Span


@dataclass
class PropertyAccess:
    object: Identifier
    path: list[Identifier]
    span: Span


@dataclass
class BinaryOp:
    left: Expr
    operator: str
    right: Expr
    span: Span


@dataclass
class StaticAssetConstructor:
    type: Identifier
    amount: Expr
    span: Span


@dataclass
class AnyAssetConstructor:
    policy: Expr
    asset_name: Expr
    amount: Expr
    span: Span


Expr = Union[
    Identifier,
    NumberLiteral,
    BoolLiteral,
    StringLiteral,
    HexStringLiteral,
    UnitLiteral,
    UtxoRefLiteral,
    StructConstructor,
    ListConstructor,
    PropertyAccess,
    BinaryOp,
    StaticAssetConstructor,
    AnyAssetConstructor,
]


# ============================================================================
# Transaction blocks
# ============================================================================


@dataclass
class BlockField:
    """A ``key: value`` entry inside a transaction block.

    ``key`` is the field keyword (``from``, ``amount``, ``datum_is`` ...).
    ``value`` is an expression, except for ``datum_is`` where it is a
    ``TypeRecord``.
    """

    key: str
    value: Expr | TypeRecord
    span: Span


@dataclass
class InputBlock:
    name: Identifier
    fields: list[BlockField]
    span: Span


@dataclass
class OutputBlock:
    name: Identifier | None
    fields: list[BlockField]
    span: Span

    @property
    def display_name(self) -> str:
        return self.name.value if self.name is not None else "output"


@dataclass
class MintBlock:
    fields: list[BlockField]
    span: Span


@dataclass
class ReferenceBlock:
    name: Identifier
    ref: Expr
    span: Span


@dataclass
class CollateralBlock:
    fields: list[BlockField]
    span: Span


@dataclass
class SignersBlock:
    signers: list[Expr]
    span: Span


@dataclass
class ValidityBlock:
    fields: list[BlockField]
    span: Span


@dataclass
class MetadataField:
    key: Expr
    value: Expr
    span: Span


@dataclass
class MetadataBlock:
    fields: list[MetadataField]
    span: Span


@dataclass
class ChainSpecificBlock:
    namespace: Identifier
    name: Identifier
    fields: list[RecordConstructorField]
    span: Span


# ============================================================================
# Declarations
# ============================================================================


@dataclass
class Parameter:
    name: Identifier
    type: TypeRecord
    span: Span


@dataclass
class ParameterList:
    parameters: list[Parameter]
    span: Span


@dataclass
class TxDef:
    name: Identifier
    parameters: ParameterList
    span: Span
    inputs: list[InputBlock] = field(default_factory=list)
    outputs: list[OutputBlock] = field(default_factory=list)
    mints: list[MintBlock] = field(default_factory=list)
    references: list[ReferenceBlock] = field(default_factory=list)
    adhoc: list[ChainSpecificBlock] = field(default_factory=list)
    collateral: list[CollateralBlock] = field(default_factory=list)
    signers: SignersBlock | None = None
    validity: ValidityBlock | None = None
    burn: MintBlock | None = None
    metadata: MetadataBlock | None = None

    def blocks(self) -> list:
        """All sub-blocks, in source-independent declaration-kind order."""
        blocks: list = [
            *self.inputs,
            *self.outputs,
            *self.mints,
            *self.references,
            *self.adhoc,
            *self.collateral,
        ]
        for block in (self.signers, self.validity, self.burn, self.metadata):
            if block is not None:
                blocks.append(block)
        return blocks


@dataclass
class PartyDef:
    name: Identifier
    span: Span


@dataclass
class PolicyConstructor:
    fields: list[BlockField]
    span: Span


@dataclass
class PolicyDef:
    name: Identifier
    value: Expr | PolicyConstructor
    span: Span


@dataclass
class RecordField:
    name: Identifier
    type: TypeRecord
    span: Span


@dataclass
class VariantCase:
    name: Identifier | None
    fields: list[RecordField]
    span: Span


@dataclass
class TypeDef:
    name: Identifier
    cases: list[VariantCase]
    span: Span

    @property
    def is_record(self) -> bool:
        return len(self.cases) == 1 and self.cases[0].name is None


@dataclass
class AssetDef:
    name: Identifier
    policy: Expr
    asset_name: Expr
    span: Span


@dataclass
class Program:
    parties: list[PartyDef] = field(default_factory=list)
    policies: list[PolicyDef] = field(default_factory=list)
    types: list[TypeDef] = field(default_factory=list)
    assets: list[AssetDef] = field(default_factory=list)
    txs: list[TxDef] = field(default_factory=list)
