"""
Tx3 Language Server

Main LSP server implementation using pygls.
"""

from __future__ import annotations

import argparse
import logging
from typing import TYPE_CHECKING, Any, Generator

from lsprotocol import types as lsp
from pygls.exceptions import JsonRpcInvalidRequest
from pygls.lsp.server import LanguageServer
from pygls.protocol import LanguageServerProtocol, lsp_method

from tx3_lsp import __version__
from tx3_lsp.commands import CMD_GENERATE_AST, Tx3CommandHandler
from tx3_lsp.definition import Tx3DefinitionProvider
from tx3_lsp.diagnostics import Tx3DiagnosticsProvider
from tx3_lsp.hover import Tx3HoverProvider
from tx3_lsp.outline import Tx3OutlineProvider
from tx3_lsp.parser import ParseResult, Tx3Parser
from tx3_lsp.semantic_tokens import LEGEND, Tx3SemanticTokensProvider

if TYPE_CHECKING:
    from pygls.workspace import TextDocument

# Configure logging: WARNING by default to avoid flooding stderr
# (editors treat all stderr as errors)
logging.basicConfig(
    level=logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class Tx3LanguageServerProtocol(LanguageServerProtocol):
    """LSP protocol for tx3 with its own command error codes."""

    @lsp_method(lsp.WORKSPACE_EXECUTE_COMMAND)
    def lsp_workspace__execute_command(
        self, params: lsp.ExecuteCommandParams
    ) -> Generator[Any, Any, Any]:
        """Unknown commands are invalid requests, not invalid params."""
        if params.command not in self.fm.commands:
            raise JsonRpcInvalidRequest(message=f"Unknown command: {params.command}")
        return (yield from super().lsp_workspace__execute_command(params))


class Tx3LanguageServer(LanguageServer):
    """Language Server for tx3 files."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)

        # Initialize components
        self.parser = Tx3Parser()
        self.diagnostics_provider = Tx3DiagnosticsProvider(self)
        self.hover_provider = Tx3HoverProvider(self)
        self.definition_provider = Tx3DefinitionProvider(self)
        self.outline_provider = Tx3OutlineProvider(self)
        self.semantic_tokens_provider = Tx3SemanticTokensProvider(self)
        self.command_handler = Tx3CommandHandler(self)

        # Analyzer diagnostics (set from CLI args or initializationOptions)
        self.run_analysis: bool = True

    def get_document(self, uri: str) -> TextDocument | None:
        """Get an open document from the workspace."""
        if uri not in self.workspace.text_documents:
            return None
        return self.workspace.get_text_document(uri)

    def parse_document(self, uri: str) -> ParseResult | None:
        """Parse the current text of a document."""
        doc = self.get_document(uri)
        if doc is None:
            return None
        return self.parser.parse(doc.source)

    def publish_diagnostics(self, uri: str, version: int | None = None) -> None:
        diagnostics = self.diagnostics_provider.get_diagnostics(uri)
        self.text_document_publish_diagnostics(
            lsp.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics, version=version)
        )


# Create server instance
server = Tx3LanguageServer(
    name="tx3-lsp",
    version=__version__,
    protocol_cls=Tx3LanguageServerProtocol,
)


# ============================================================================
# Lifecycle Events
# ============================================================================


@server.feature(lsp.INITIALIZE)
async def initialize(params: lsp.InitializeParams) -> None:
    """Handle the initialize request - read initializationOptions."""
    opts = params.initialization_options or {}
    if isinstance(opts, dict):
        analyze = opts.get("analyze", server.run_analysis)
        if isinstance(analyze, bool):
            server.run_analysis = analyze
        else:
            logger.warning(f"Ignoring non-boolean 'analyze' option: {analyze!r}")


# ============================================================================
# Document Events
# ============================================================================


@server.feature(lsp.TEXT_DOCUMENT_DID_OPEN)
async def did_open(params: lsp.DidOpenTextDocumentParams) -> None:
    """Handle document open."""
    uri = params.text_document.uri
    logger.debug(f"Document opened: {uri}")

    server.publish_diagnostics(uri, params.text_document.version)


@server.feature(lsp.TEXT_DOCUMENT_DID_CHANGE)
async def did_change(params: lsp.DidChangeTextDocumentParams) -> None:
    """Handle document change."""
    uri = params.text_document.uri
    logger.debug(f"Document changed: {uri}")

    server.publish_diagnostics(uri, params.text_document.version)


@server.feature(lsp.TEXT_DOCUMENT_DID_CLOSE)
async def did_close(params: lsp.DidCloseTextDocumentParams) -> None:
    """Handle document close."""
    uri = params.text_document.uri
    logger.debug(f"Document closed: {uri}")

    server.text_document_publish_diagnostics(
        lsp.PublishDiagnosticsParams(uri=uri, diagnostics=[])
    )


# ============================================================================
# Completion
# ============================================================================


@server.feature(lsp.TEXT_DOCUMENT_COMPLETION)
async def completion(params: lsp.CompletionParams) -> lsp.CompletionList:
    """Provide completions (none yet)."""
    return lsp.CompletionList(is_incomplete=False, items=[])


# ============================================================================
# Hover
# ============================================================================


@server.feature(lsp.TEXT_DOCUMENT_HOVER)
async def hover(params: lsp.HoverParams) -> lsp.Hover | None:
    """Provide hover information."""
    return server.hover_provider.get_hover(params)


# ============================================================================
# Go to Definition
# ============================================================================


@server.feature(lsp.TEXT_DOCUMENT_DEFINITION)
async def definition(params: lsp.DefinitionParams) -> lsp.Location | None:
    """Provide go-to-definition."""
    return server.definition_provider.get_definition(params)


# ============================================================================
# Document Symbols
# ============================================================================


@server.feature(lsp.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
async def document_symbols(
    params: lsp.DocumentSymbolParams,
) -> list[lsp.DocumentSymbol]:
    """Provide document symbols."""
    return server.outline_provider.get_document_symbols(params)


# ============================================================================
# Folding Ranges
# ============================================================================


@server.feature(lsp.TEXT_DOCUMENT_FOLDING_RANGE)
async def folding_range(params: lsp.FoldingRangeParams) -> list[lsp.FoldingRange] | None:
    """Provide folding ranges."""
    return server.outline_provider.get_folding_ranges(params)


# ============================================================================
# Semantic Tokens
# ============================================================================


@server.feature(lsp.TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL, LEGEND)
async def semantic_tokens_full(
    params: lsp.SemanticTokensParams,
) -> lsp.SemanticTokens | None:
    """Provide semantic tokens for a whole document."""
    return server.semantic_tokens_provider.get_semantic_tokens(params)


@server.feature(lsp.TEXT_DOCUMENT_SEMANTIC_TOKENS_RANGE, LEGEND)
async def semantic_tokens_range(
    params: lsp.SemanticTokensRangeParams,
) -> lsp.SemanticTokens | None:
    """Provide semantic tokens for a range of a document."""
    return server.semantic_tokens_provider.get_semantic_tokens_range(params)


# ============================================================================
# Execute Command
# ============================================================================


@server.command(CMD_GENERATE_AST)
async def generate_ast(*args) -> dict[str, Any]:
    """Return the syntax tree of an open document."""
    return server.command_handler.generate_ast(list(args))


# ============================================================================
# Main Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for the language server."""
    parser = argparse.ArgumentParser(
        description="Tx3 Language Server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--stdio",
        action="store_true",
        default=True,
        help="Use stdio for communication (default)",
    )
    parser.add_argument(
        "--tcp",
        action="store_true",
        help="Use TCP for communication",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="TCP host (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=2087,
        help="TCP port (default: 2087)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set the logging level (default: WARNING)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"tx3-lsp {__version__}",
    )
    parser.add_argument(
        "--no-analyze",
        action="store_true",
        help="Only report syntax errors, skip semantic analysis",
    )

    args = parser.parse_args()

    # Set log level
    logging.getLogger().setLevel(getattr(logging, args.log_level))

    server.run_analysis = not args.no_analyze

    if args.tcp:
        logger.info(f"Starting tx3-lsp in TCP mode on {args.host}:{args.port}")
        server.start_tcp(args.host, args.port)
    else:
        logger.info("Starting tx3-lsp in stdio mode")
        server.start_io()


if __name__ == "__main__":
    main()
