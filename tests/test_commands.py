"""Tests for workspace commands."""

import pytest
from functools import partial
from unittest.mock import MagicMock

from pygls.exceptions import JsonRpcInvalidParams, JsonRpcInvalidRequest
from pygls.workspace import PositionCodec
from tx3_lsp import ast
from tx3_lsp.commands import Tx3CommandHandler, ast_to_json
from tx3_lsp.parser import Tx3Parser
from tx3_lsp.server import Tx3LanguageServer


class TestAstToJson:
    """Test syntax tree serialization."""

    def test_identifier(self):
        node = ast.Identifier("Buyer", ast.Span(6, 11))
        assert ast_to_json(node) == {
            "node": "Identifier",
            "value": "Buyer",
            "span": {"node": "Span", "start": 6, "end": 11},
        }

    def test_optional_and_lists(self):
        block = ast.OutputBlock(name=None, fields=[], span=ast.Span(0, 10))
        data = ast_to_json(block)
        assert data["node"] == "OutputBlock"
        assert data["name"] is None
        assert data["fields"] == []

    def test_literals_keep_values(self):
        assert ast_to_json(ast.NumberLiteral(5, ast.Span(0, 1)))["value"] == 5
        assert ast_to_json(ast.BoolLiteral(True, ast.Span(0, 4)))["value"] is True


class TestTx3CommandHandler:
    """Test the Tx3CommandHandler class."""

    @pytest.fixture
    def mock_server(self):
        """Create a mock server."""
        server = MagicMock()
        server.parser = Tx3Parser()
        server.parse_document = partial(Tx3LanguageServer.parse_document, server)
        return server

    @pytest.fixture
    def handler(self, mock_server):
        """Create a command handler."""
        return Tx3CommandHandler(mock_server)

    def test_generate_ast(self, handler, mock_server):
        """Test generating the AST of an open document."""
        mock_doc = MagicMock()
        mock_doc.position_codec = PositionCodec()
        mock_doc.source = "party Buyer;\ntx pay(amount: Int) {}\n"
        mock_server.get_document.return_value = mock_doc

        result = handler.generate_ast(["file:///test/pay.tx3"])

        program = result["ast"]
        assert program["node"] == "Program"
        assert program["parties"][0]["node"] == "PartyDef"
        assert program["parties"][0]["name"]["value"] == "Buyer"
        tx = program["txs"][0]
        assert tx["node"] == "TxDef"
        param = tx["parameters"]["parameters"][0]
        assert param["name"]["value"] == "amount"
        assert param["type"]["name"]["value"] == "Int"
        mock_server.get_document.assert_called_with("file:///test/pay.tx3")

    def test_missing_arguments(self, handler):
        with pytest.raises(JsonRpcInvalidParams):
            handler.generate_ast([])
        with pytest.raises(JsonRpcInvalidParams):
            handler.generate_ast(None)

    def test_invalid_argument(self, handler):
        with pytest.raises(JsonRpcInvalidParams):
            handler.generate_ast([42])

    def test_unknown_document(self, handler, mock_server):
        mock_server.get_document.return_value = None
        with pytest.raises(JsonRpcInvalidParams):
            handler.generate_ast(["file:///test/missing.tx3"])

    def test_unparseable_document(self, handler, mock_server):
        mock_doc = MagicMock()
        mock_doc.position_codec = PositionCodec()
        mock_doc.source = "tx pay("
        mock_server.get_document.return_value = mock_doc

        with pytest.raises(JsonRpcInvalidRequest):
            handler.generate_ast(["file:///test/pay.tx3"])
