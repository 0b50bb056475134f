"""Hover information for the schema governing the value under the cursor."""

import re
from typing import Optional

from lsprotocol import types as lsp

from ...engine import SchemaEngine, SchemaNavigationTarget
from ...parsing.syntax_tree import path_at_offset
from ...utils.pointer import JsonPath, format_json_path
from ...utils.text_utils import position_to_offset
from ..document_processor import DocumentProcessor

DEFAULT_TITLE = "Schema definition"
_MARKDOWN_SPECIAL = re.compile(r"([\\`*_{}\[\]()#+\-!])")


def escape_markdown(value: str) -> str:
    return _MARKDOWN_SPECIAL.sub(r"\\\1", value)


class HoverProvider:
    """Provides hover information functionality."""

    def __init__(self, engine: SchemaEngine, document_processor: DocumentProcessor):
        self.engine = engine
        self.document_processor = document_processor

    def get_hover(self, params: lsp.HoverParams, server) -> Optional[lsp.Hover]:
        """Handle hover requests."""
        uri = params.text_document.uri
        document = self.document_processor.get_document(uri, server)
        if document is None or document.tree is None:
            return None

        offset = position_to_offset(document.text, params.position.line, params.position.character)
        path = path_at_offset(document.tree, offset)
        if path is None:
            return None

        target = self.engine.resolve_navigation_target(uri, path)
        if target is None:
            return None

        return lsp.Hover(
            contents=lsp.MarkupContent(
                kind=lsp.MarkupKind.Markdown,
                value=self.render(target, path),
            )
        )

    @staticmethod
    def render(target: SchemaNavigationTarget, path: JsonPath) -> str:
        title = (target.title or "").strip() or DEFAULT_TITLE
        hover_text = f"**{escape_markdown(title)}**\n\n"

        description = (target.description or "").strip()
        if description:
            hover_text += f"{escape_markdown(description)}\n\n"

        hover_text += f"JSON Path: `{escape_markdown(format_json_path(path))}`\n\n"
        if target.pointer:
            hover_text += f"Pointer: `{escape_markdown(target.pointer)}`\n\n"
        return hover_text.rstrip("\n")
