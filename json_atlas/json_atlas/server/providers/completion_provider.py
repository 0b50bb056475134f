"""Property name completion from the schema of the enclosing object."""

from dataclasses import dataclass
from typing import Any, Dict, List, Set

from lsprotocol import types as lsp

from ...engine import SchemaEngine
from ...parsing.syntax_tree import find_node_at_path, path_at_offset
from ...schema.path_resolver import (
    COMPOSITE_KEYWORDS,
    CONDITIONAL_KEYWORDS,
    SchemaPathResolver,
    SchemaResolution,
    is_schema_like,
    is_schema_object,
    read_string,
)
from ...utils.pointer import join_pointer
from ...utils.text_utils import position_to_offset
from ..document_processor import DocumentProcessor


@dataclass
class PropertyCandidate:
    name: str
    schema: Any
    required: bool = False


def collect_properties(resolver: SchemaPathResolver, resolution: SchemaResolution) -> List[PropertyCandidate]:
    """Gather ``properties`` of a subschema and of all its composite branches.

    The first definition of a name wins; a name is required if any branch
    lists it under ``required``.
    """
    candidates: Dict[str, PropertyCandidate] = {}
    required: Set[str] = set()
    seen: Set[str] = set()
    stack = [resolution]
    while stack:
        current = stack.pop()
        if current.pointer in seen or not is_schema_object(current.schema):
            continue
        seen.add(current.pointer)
        schema = current.schema

        properties = schema.get("properties")
        if is_schema_object(properties):
            for name, subschema in properties.items():
                candidates.setdefault(name, PropertyCandidate(name=name, schema=subschema))
        if isinstance(schema.get("required"), list):
            required.update(name for name in schema["required"] if isinstance(name, str))

        branches = []
        for keyword in COMPOSITE_KEYWORDS:
            if isinstance(schema.get(keyword), list):
                branches.extend(
                    (branch, join_pointer(current.pointer, keyword, position))
                    for position, branch in enumerate(schema[keyword])
                )
        for keyword in CONDITIONAL_KEYWORDS:
            if is_schema_like(schema.get(keyword)):
                branches.append((schema[keyword], join_pointer(current.pointer, keyword)))
        # Reversed so the first branch is visited first
        for branch, pointer in reversed(branches):
            stack.append(resolver.dereference(branch, pointer))

    for name in required:
        if name in candidates:
            candidates[name].required = True
    return list(candidates.values())


class CompletionProvider:
    """Provides auto-completion functionality."""

    def __init__(self, engine: SchemaEngine, document_processor: DocumentProcessor):
        self.engine = engine
        self.document_processor = document_processor

    def get_completions(self, params: lsp.CompletionParams, server) -> lsp.CompletionList:
        """Handle completion requests."""
        uri = params.text_document.uri
        document = self.document_processor.get_document(uri, server)
        info = self.engine.get_schema_info(uri)
        if document is None or document.tree is None or info is None:
            return lsp.CompletionList(is_incomplete=False, items=[])

        offset = position_to_offset(document.text, params.position.line, params.position.character)
        path = path_at_offset(document.tree, offset)
        if path is None:
            return lsp.CompletionList(is_incomplete=False, items=[])

        # Inside an object complete its keys, otherwise the keys of the enclosing object
        node = find_node_at_path(document.tree, path)
        object_path = path if node is not None and node.type == "object" else path[:-1]
        object_node = find_node_at_path(document.tree, object_path)
        if object_node is None or object_node.type != "object":
            return lsp.CompletionList(is_incomplete=False, items=[])

        resolution = self.engine.resolve_schema_for_path(uri, object_path)
        if resolution is None:
            return lsp.CompletionList(is_incomplete=False, items=[])

        existing = {key for key, _ in object_node.properties()}
        if object_path != path:
            existing.discard(path[-1])

        items = []
        for candidate in collect_properties(SchemaPathResolver(info.schema_value), resolution):
            if candidate.name in existing:
                continue
            items.append(self._create_item(candidate))
        return lsp.CompletionList(is_incomplete=False, items=items)

    @staticmethod
    def _create_item(candidate: PropertyCandidate) -> lsp.CompletionItem:
        schema_type = candidate.schema.get("type") if is_schema_object(candidate.schema) else None
        if isinstance(schema_type, list):
            schema_type = " | ".join(str(entry) for entry in schema_type)
        detail = str(schema_type) if schema_type else None
        if candidate.required:
            detail = f"{detail} (required)" if detail else "required"

        description = read_string(candidate.schema, "description")
        return lsp.CompletionItem(
            label=candidate.name,
            kind=lsp.CompletionItemKind.Property,
            detail=detail,
            documentation=description,
            sort_text=f"{0 if candidate.required else 1}{candidate.name}",
        )
