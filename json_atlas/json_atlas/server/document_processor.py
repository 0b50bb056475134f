"""Parse open documents, validate them and publish diagnostics."""

import logging
from typing import Dict, Optional

from lsprotocol import types as lsp
from pygls.lsp.server import LanguageServer

from ..engine import SchemaEngine
from ..parsing.syntax_tree import ParsedDocument, language_for, parse_document

logger = logging.getLogger(__name__)


class DocumentProcessor:
    """Handles document parsing and validation."""

    def __init__(self, engine: SchemaEngine):
        self.engine = engine
        self.documents: Dict[str, ParsedDocument] = {}

    def process_document(
        self, uri: str, content: str, server: LanguageServer, language_id: Optional[str] = None
    ) -> ParsedDocument:
        """Parse ``content``, validate it and publish the resulting diagnostics."""
        document = parse_document(uri, content, language_for(uri, language_id))
        self.documents[uri] = document
        if not document.ok:
            logger.debug(f"Failed to parse {uri}: {document.errors[0]}")

        diagnostics = self.engine.validate(document)

        logger.info(f"Publishing {len(diagnostics)} diagnostics for {uri}")
        server.text_document_publish_diagnostics(
            lsp.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
        )
        return document

    def get_document(self, uri: str, server: LanguageServer) -> Optional[ParsedDocument]:
        """Return the parsed document, validating it first if the engine has no schema info yet."""
        document = self.documents.get(uri)
        if document is not None and self.engine.get_schema_info(uri) is not None:
            return document

        text_document = server.workspace.get_text_document(uri)
        if text_document is None:
            return document
        return self.process_document(uri, text_document.source, server, text_document.language_id)

    def revalidate_all(self, server: LanguageServer) -> None:
        for uri, text_document in list(server.workspace.text_documents.items()):
            self.process_document(uri, text_document.source, server, text_document.language_id)

    def close_document(self, uri: str, server: LanguageServer) -> None:
        """Handle document close event."""
        self.documents.pop(uri, None)
        self.engine.close_document(uri)
        server.text_document_publish_diagnostics(lsp.PublishDiagnosticsParams(uri=uri, diagnostics=[]))
