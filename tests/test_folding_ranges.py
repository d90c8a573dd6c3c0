"""Tests for folding ranges."""

import pytest
from functools import partial
from unittest.mock import MagicMock

from lsprotocol import types as lsp
from pygls.workspace import PositionCodec
from tx3_lsp.outline import Tx3OutlineProvider, build_folding_ranges
from tx3_lsp.parser import Tx3Parser, parse_string
from tx3_lsp.server import Tx3LanguageServer


def _folds(source: str) -> list[lsp.FoldingRange]:
    return build_folding_ranges(parse_string(source), source)


def _regions(source: str) -> list[tuple[int, int]]:
    return [
        (r.start_line, r.end_line)
        for r in _folds(source)
        if r.kind == lsp.FoldingRangeKind.Region
    ]


class TestFoldingRanges:
    """Test folding range extraction."""

    def test_tx_folding(self):
        """Test that a multi-line transaction produces a fold."""
        source = "tx t() {\n    output { amount: 1 }\n}\n"
        assert _regions(source) == [(0, 2)]

    def test_block_folding(self):
        """Test that multi-line blocks fold inside their transaction."""
        source = (
            "tx t() {\n"
            "    output {\n"
            "        amount: 1,\n"
            "    }\n"
            "}\n"
        )
        assert _regions(source) == [(0, 4), (1, 3)]

    def test_type_folding(self):
        """Test that multi-line type declarations fold."""
        source = "type Order {\n    price: Int,\n}\n"
        assert _regions(source) == [(0, 2)]

    def test_single_line_no_fold(self):
        """Test that single-line constructs produce no fold."""
        source = "party A;\ntype T { a: Int }\ntx t() { output { amount: 1 } }\n"
        assert _folds(source) == []

    def test_comment_folding(self):
        """Test that consecutive comment lines fold together."""
        source = "// one\n// two\n// three\nparty A;\n"
        folds = _folds(source)
        assert len(folds) == 1
        assert folds[0].kind == lsp.FoldingRangeKind.Comment
        assert (folds[0].start_line, folds[0].end_line) == (0, 2)

    def test_single_comment_no_fold(self):
        """Test that a lone comment line does not fold."""
        source = "// one\nparty A;\n// two\n"
        assert _folds(source) == []

    def test_indented_comments(self):
        """Test comment runs inside a transaction."""
        source = (
            "tx t() {\n"
            "    // first\n"
            "    // second\n"
            "    output { amount: 1 }\n"
            "}\n"
        )
        kinds = {(r.start_line, r.end_line): r.kind for r in _folds(source)}
        assert kinds[(1, 2)] == lsp.FoldingRangeKind.Comment
        assert kinds[(0, 4)] == lsp.FoldingRangeKind.Region

    def test_sorted(self):
        source = (
            "// a\n"
            "// b\n"
            "tx t() {\n"
            "    input i {\n"
            "        from: x,\n"
            "    }\n"
            "}\n"
        )
        folds = _folds(source)
        starts = [f.start_line for f in folds]
        assert starts == sorted(starts)


class TestTx3OutlineProviderFolding:
    """Test folding ranges through the provider."""

    @pytest.fixture
    def mock_server(self):
        """Create a mock server."""
        server = MagicMock()
        server.parser = Tx3Parser()
        server.parse_document = partial(Tx3LanguageServer.parse_document, server)
        return server

    @pytest.fixture
    def provider(self, mock_server):
        """Create an outline provider."""
        return Tx3OutlineProvider(mock_server)

    def _params(self):
        return lsp.FoldingRangeParams(
            text_document=lsp.TextDocumentIdentifier(uri="file:///test/t.tx3"),
        )

    def test_folding(self, provider, mock_server):
        mock_doc = MagicMock()
        mock_doc.position_codec = PositionCodec()
        mock_doc.source = "tx t() {\n    output { amount: 1 }\n}\n"
        mock_server.get_document.return_value = mock_doc

        ranges = provider.get_folding_ranges(self._params())
        assert [(r.start_line, r.end_line) for r in ranges] == [(0, 2)]

    def test_unparseable_document(self, provider, mock_server):
        mock_doc = MagicMock()
        mock_doc.position_codec = PositionCodec()
        mock_doc.source = "tx t() {\n"
        mock_server.get_document.return_value = mock_doc

        assert provider.get_folding_ranges(self._params()) is None
