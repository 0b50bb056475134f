"""Document parsing: values plus concrete syntax trees."""

from .syntax_tree import (
    ParsedDocument,
    SyntaxNode,
    blank_jsonc,
    build_pointer_index,
    find_node_at_path,
    language_for,
    parse_document,
    parse_tree,
    path_at_offset,
)

__all__ = [
    "ParsedDocument",
    "SyntaxNode",
    "blank_jsonc",
    "build_pointer_index",
    "find_node_at_path",
    "language_for",
    "parse_document",
    "parse_tree",
    "path_at_offset",
]
