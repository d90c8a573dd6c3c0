"""Tests for identifier classification."""

import pytest

from tx3_lsp import ast
from tx3_lsp.parser import parse_string
from tx3_lsp.symbols import (
    SymbolCategory,
    classify,
    containing_tx,
    declaration_spans,
)
from tx3_lsp.visitor import locate


SOURCE = """\
party Buyer;

policy Token = 0xABCDEF;

type Order {
    price: Int,
}

asset Coin = Token."COIN";

tx swap(quantity: Int, order: Order) {
    input source {
        from: Buyer,
        min_amount: Coin(quantity) + fees,
    }
    reference oracle {
        ref: 0xAABB#0,
    }
    output destination {
        to: Buyer,
        amount: source - fees,
        datum: order,
    }
    output {
        to: stranger,
        amount: destination,
    }
}

tx other() {
    output {
        to: quantity,
        amount: oracle,
    }
}
"""


def _classify_at(program: ast.Program, offset: int) -> SymbolCategory:
    identifier = locate(program, offset)
    assert identifier is not None
    return classify(program, identifier, offset)


class TestClassify:
    """Test the classify function."""

    @pytest.fixture
    def program(self):
        """Parse the shared source."""
        return parse_string(SOURCE)

    @pytest.mark.parametrize(
        "needle,skip,expected",
        [
            ("Buyer", "from: ", SymbolCategory.PARTY),
            ("Token", "", SymbolCategory.POLICY),
            ("Order", "order: ", SymbolCategory.TYPE),
            ("Coin", "min_amount: ", SymbolCategory.ASSET),
            ("swap", "", SymbolCategory.TRANSACTION),
            ("quantity", "Coin(", SymbolCategory.PARAMETER),
            ("source", "amount: ", SymbolCategory.INPUT),
            ("destination", "amount: ", SymbolCategory.OUTPUT),
            ("oracle", "", SymbolCategory.REFERENCE),
            ("fees", "", SymbolCategory.VARIABLE),
            ("stranger", "", SymbolCategory.VARIABLE),
        ],
    )
    def test_categories(self, program, needle, skip, expected):
        start = SOURCE.index(skip) + len(skip) if skip else 0
        offset = SOURCE.index(needle, start)
        assert _classify_at(program, offset) == expected

    def test_declared_party_is_party(self, program):
        """A declared party name classifies as a party."""
        assert _classify_at(program, SOURCE.index("Buyer")) == SymbolCategory.PARTY

    def test_undeclared_identifier_is_variable(self, program):
        """A free-standing undeclared identifier classifies as a variable."""
        assert _classify_at(program, SOURCE.index("stranger")) == SymbolCategory.VARIABLE

    def test_tx_names_do_not_leak(self, program):
        """Parameters and references of one tx are unknown in another."""
        other = SOURCE.index("tx other")
        assert _classify_at(program, SOURCE.index("quantity", other)) == SymbolCategory.VARIABLE
        assert _classify_at(program, SOURCE.index("oracle", other)) == SymbolCategory.VARIABLE

    def test_global_names_win(self):
        """Global tables are checked before transaction scope."""
        source = "party x;\ntx t(x: Int) {\n    output { amount: x }\n}\n"
        program = parse_string(source)
        offset = source.rindex("x")
        assert _classify_at(program, offset) == SymbolCategory.PARTY

    def test_case_sensitive(self):
        """Names compare exactly."""
        source = "party Buyer;\ntx t() {\n    output { to: buyer }\n}\n"
        program = parse_string(source)
        assert _classify_at(program, source.index("buyer")) == SymbolCategory.VARIABLE

    def test_classify_never_raises_outside_tx(self, program):
        """An identifier node outside any tx still classifies."""
        stray = ast.Identifier("quantity", ast.Span(0, 8))
        assert classify(program, stray, 0) == SymbolCategory.VARIABLE


class TestHelpers:
    """Test the containing_tx and declaration_spans helpers."""

    @pytest.fixture
    def program(self):
        """Parse the shared source."""
        return parse_string(SOURCE)

    def test_containing_tx(self, program):
        assert containing_tx(program, SOURCE.index("source")).name.value == "swap"
        assert containing_tx(program, SOURCE.index("tx other")).name.value == "other"
        assert containing_tx(program, 0) is None

    def test_declaration_spans(self, program):
        spans = declaration_spans(program)
        tx = program.txs[0]
        assert program.parties[0].name.span in spans
        assert tx.name.span in spans
        assert tx.parameters.parameters[0].name.span in spans
        assert tx.inputs[0].name.span in spans
        assert tx.outputs[0].name.span in spans
        assert tx.references[0].name.span in spans

    def test_usages_are_not_declarations(self, program):
        spans = declaration_spans(program)
        usage = locate(program, SOURCE.index("Buyer", SOURCE.index("from: ")))
        assert usage.span not in spans
