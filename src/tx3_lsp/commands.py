"""
Workspace commands for tx3 LSP.

Supported commands:
- ``generate-ast``: parse a document and return its syntax tree as JSON
"""

from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING, Any

from pygls.exceptions import JsonRpcInvalidParams, JsonRpcInvalidRequest

if TYPE_CHECKING:
    from tx3_lsp.server import Tx3LanguageServer

logger = logging.getLogger(__name__)

CMD_GENERATE_AST = "generate-ast"


def ast_to_json(node: Any) -> Any:
    """Convert a syntax tree node into JSON-compatible data.

    Every node becomes an object with a ``node`` key naming its kind,
    followed by its fields in declaration order.
    """
    if dataclasses.is_dataclass(node):
        data: dict[str, Any] = {"node": type(node).__name__}
        for node_field in dataclasses.fields(node):
            data[node_field.name] = ast_to_json(getattr(node, node_field.name))
        return data
    if isinstance(node, (list, tuple)):
        return [ast_to_json(item) for item in node]
    return node


class Tx3CommandHandler:
    """Executes ``workspace/executeCommand`` requests."""

    def __init__(self, server: Tx3LanguageServer):
        self.server = server

    def generate_ast(self, arguments: list[Any] | None) -> dict[str, Any]:
        """Parse the document named by the first argument and return its tree."""
        if not arguments or not isinstance(arguments[0], str):
            raise JsonRpcInvalidParams(message="Expected a document URI argument")

        uri = arguments[0]
        result = self.server.parse_document(uri)
        if result is None:
            raise JsonRpcInvalidParams(message=f"Unknown document: {uri}")

        if not result.ok:
            raise JsonRpcInvalidRequest(
                message=f"Failed to parse document: {result.error.message}"
            )

        logger.debug(f"Generated AST for {uri}")
        return {"ast": ast_to_json(result.program)}

