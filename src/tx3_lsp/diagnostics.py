"""
Diagnostic provider for tx3 LSP.

Provides diagnostics for:
- Syntax errors from the parser (a single error stops parsing)
- Semantic errors from the analyzer (duplicates, unknown types and symbols)

Every diagnostic is reported at ERROR severity.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from lsprotocol import types as lsp

from tx3_lsp.analyzer import AnalyzeError, AnalyzeReport, analyze
from tx3_lsp.parser import ParseError, Tx3Parser
from tx3_lsp.position import LineIndex

if TYPE_CHECKING:
    from pygls.workspace import PositionCodec

    from tx3_lsp.server import Tx3LanguageServer

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "tx3"


class DiagnosticCode:
    """Diagnostic codes for tx3-lsp."""

    SYNTAX_ERROR = "syntax-error"
    DUPLICATE_DEFINITION = "duplicate-definition"
    UNKNOWN_TYPE = "unknown-type"
    UNKNOWN_SYMBOL = "unknown-symbol"


def parse_error_to_diagnostic(
    source: str, error: ParseError, codec: PositionCodec | None = None
) -> lsp.Diagnostic:
    return lsp.Diagnostic(
        range=LineIndex(source, codec).span_to_range(error.span),
        message=error.message,
        severity=lsp.DiagnosticSeverity.Error,
        source=error.src,
        code=DiagnosticCode.SYNTAX_ERROR,
    )


def analyze_error_to_diagnostic(
    source: str, error: AnalyzeError, codec: PositionCodec | None = None
) -> lsp.Diagnostic:
    return lsp.Diagnostic(
        range=LineIndex(source, codec).span_to_range(error.span),
        message=str(error),
        severity=lsp.DiagnosticSeverity.Error,
        source=error.src or DEFAULT_SOURCE,
        code=error.code,
    )


def analyze_report_to_diagnostics(
    source: str, report: AnalyzeReport, codec: PositionCodec | None = None
) -> list[lsp.Diagnostic]:
    if report.ok:
        return []
    return [analyze_error_to_diagnostic(source, err, codec) for err in report.errors]


def diagnostics_for_source(
    source: str,
    parser: Tx3Parser,
    run_analysis: bool = True,
    codec: PositionCodec | None = None,
) -> list[lsp.Diagnostic]:
    """Parse (and optionally analyze) ``source`` into diagnostics."""
    result = parser.parse(source)
    if not result.ok:
        return [parse_error_to_diagnostic(source, result.error, codec)]

    if not run_analysis:
        return []

    return analyze_report_to_diagnostics(source, analyze(result.program), codec)


class Tx3DiagnosticsProvider:
    """Provides diagnostics for tx3 files."""

    def __init__(self, server: Tx3LanguageServer):
        self.server = server

    def get_diagnostics(self, uri: str) -> list[lsp.Diagnostic]:
        """Get all diagnostics for a document."""
        doc = self.server.get_document(uri)
        if doc is None:
            return []

        diagnostics = diagnostics_for_source(
            doc.source,
            self.server.parser,
            self.server.run_analysis,
            doc.position_codec,
        )
        logger.debug(f"{len(diagnostics)} diagnostic(s) for {uri}")
        return diagnostics
