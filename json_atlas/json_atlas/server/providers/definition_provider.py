"""Go to the definition of the subschema governing a value."""

import logging
from typing import Optional

from lsprotocol import types as lsp

from ...engine import SchemaEngine
from ...parsing.syntax_tree import path_at_offset
from ...utils.text_utils import offset_to_position, position_to_offset
from ...utils.uri_utils import uri_scheme
from ..document_processor import DocumentProcessor

logger = logging.getLogger(__name__)

# Locations a client can open; inline schemas only have a virtual location
NAVIGABLE_SCHEMES = ("file", "http", "https")


class DefinitionProvider:
    """Provides go-to-definition functionality."""

    def __init__(self, engine: SchemaEngine, document_processor: DocumentProcessor):
        self.engine = engine
        self.document_processor = document_processor

    def get_definition(self, params: lsp.DefinitionParams, server) -> Optional[lsp.Location]:
        """Handle go-to-definition requests."""
        uri = params.text_document.uri
        document = self.document_processor.get_document(uri, server)
        if document is None or document.tree is None:
            return None

        offset = position_to_offset(document.text, params.position.line, params.position.character)
        path = path_at_offset(document.tree, offset)
        if path is None:
            return None

        target = self.engine.resolve_navigation_target(uri, path)
        info = self.engine.get_schema_info(uri)
        if target is None or info is None:
            return None
        if uri_scheme(target.location) not in NAVIGABLE_SCHEMES:
            logger.debug(f"Schema at {target.location} has no navigable location")
            return None

        start = target.offset or 0
        end = start + (target.length or 0)
        start_line, start_char = offset_to_position(info.raw_text, start)
        end_line, end_char = offset_to_position(info.raw_text, end)
        return lsp.Location(
            uri=target.location,
            range=lsp.Range(
                start=lsp.Position(line=start_line, character=start_char),
                end=lsp.Position(line=end_line, character=end_char),
            ),
        )
