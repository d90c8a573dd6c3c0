"""
Tx3 Language Server

A Language Server Protocol implementation for the tx3 transaction
language, providing diagnostics, hover, go-to-definition, outline,
folding and semantic highlighting.
"""

__version__ = "0.1.0"

# Import on demand to avoid import errors
def get_server():
    from tx3_lsp.server import Tx3LanguageServer
    return Tx3LanguageServer

__all__ = ["get_server", "__version__"]
