# Copyright 2025 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Concrete syntax trees for JSON and YAML documents.

The tree is built from PyYAML's node composer (``yaml.compose``), which
accepts JSON as well as YAML and records a start/end mark for every node, so
each value can be mapped back to a character range of the source text. The
parsed value itself comes from ``json.loads`` (JSON) or ``yaml.safe_load``
(YAML) so that scalar typing follows the document's own language. JSONC
comments and trailing commas are overwritten with spaces before either step.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import yaml

from ..utils.pointer import JsonPath, PathSegment, path_to_pointer

logger = logging.getLogger(__name__)

YAML_LANGUAGE_IDS = ("yaml", "yml")
JSONC_LANGUAGE_ID = "jsonc"

SUPPORTED_LANGUAGE_IDS = ("json", "jsonc", "yaml", "yml")


def language_for(uri: str, language_id: Optional[str]) -> str:
    """Pick the parser for a document, falling back to the file extension."""
    if language_id in SUPPORTED_LANGUAGE_IDS:
        return "yaml" if language_id == "yml" else language_id
    if uri.lower().endswith((".yaml", ".yml")):
        return "yaml"
    if uri.lower().endswith(".jsonc"):
        return "jsonc"
    return "json"


_SCALAR_TYPES = {
    "tag:yaml.org,2002:str": "string",
    "tag:yaml.org,2002:int": "number",
    "tag:yaml.org,2002:float": "number",
    "tag:yaml.org,2002:bool": "boolean",
    "tag:yaml.org,2002:null": "null",
}


@dataclass
class SyntaxNode:
    """A node of the concrete syntax tree.

    Object nodes hold ``property`` children whose own children are
    ``[key, value]``; array nodes hold their items directly.
    """

    type: str
    offset: int
    length: int
    value: Optional[str] = None
    children: List["SyntaxNode"] = field(default_factory=list)

    @property
    def end(self) -> int:
        return self.offset + self.length

    def properties(self):
        """Yield (key, value node) pairs of an object node."""
        for prop in self.children:
            if prop.type != "property" or len(prop.children) < 2:
                continue
            key_node, value_node = prop.children[0], prop.children[1]
            yield (key_node.value if key_node.value is not None else ""), value_node


@dataclass
class ParsedDocument:
    """A document handed to the engine: identity, text, value and tree."""

    uri: str
    text: str
    value: Any = None
    tree: Optional[SyntaxNode] = None
    errors: List[str] = field(default_factory=list)
    language_id: str = "json"

    @property
    def ok(self) -> bool:
        return not self.errors


def _span(node: yaml.nodes.Node) -> tuple:
    return node.start_mark.index, max(0, node.end_mark.index - node.start_mark.index)


def _convert(node: yaml.nodes.Node) -> SyntaxNode:
    if isinstance(node, yaml.nodes.MappingNode):
        offset, length = _span(node)
        result = SyntaxNode(type="object", offset=offset, length=length)
        for key_node, value_node in node.value:
            key = _convert(key_node)
            value = _convert(value_node)
            prop_offset = key.offset
            prop_length = max(0, value.end - prop_offset)
            result.children.append(
                SyntaxNode(type="property", offset=prop_offset, length=prop_length, children=[key, value])
            )
        return result

    if isinstance(node, yaml.nodes.SequenceNode):
        offset, length = _span(node)
        result = SyntaxNode(type="array", offset=offset, length=length)
        result.children.extend(_convert(item) for item in node.value)
        return result

    offset, length = _span(node)
    node_type = _SCALAR_TYPES.get(node.tag, "string")
    return SyntaxNode(type=node_type, offset=offset, length=length, value=str(node.value))


def blank_jsonc(text: str) -> str:
    """Replace JSONC comments and trailing commas with spaces.

    Line breaks inside block comments are kept, so every remaining character
    stays at its original offset and the result parses as plain JSON.
    """
    chars = list(text)
    in_string = False
    last_comma = None
    i = 0
    while i < len(chars):
        char = chars[i]
        if in_string:
            if char == "\\":
                i += 1
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
            last_comma = None
        elif char == "/" and text.startswith("//", i):
            while i < len(chars) and chars[i] not in "\r\n":
                chars[i] = " "
                i += 1
            continue
        elif char == "/" and text.startswith("/*", i):
            end = text.find("*/", i + 2)
            end = len(chars) if end < 0 else end + 2
            for j in range(i, end):
                if chars[j] not in "\r\n":
                    chars[j] = " "
            i = end
            continue
        elif char == ",":
            last_comma = i
        elif char in "}]":
            if last_comma is not None:
                chars[last_comma] = " "
            last_comma = None
        elif not char.isspace():
            last_comma = None
        i += 1
    return "".join(chars)


def parse_tree(text: str, language_id: str = "json") -> Optional[SyntaxNode]:
    """Compose ``text`` into a syntax tree, or return None if it does not parse."""
    if language_id not in YAML_LANGUAGE_IDS:
        # Raw tabs cannot occur inside JSON strings, so this keeps every offset.
        text = text.replace("\t", " ")
    try:
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.YAMLError as exc:
        logger.debug(f"Failed to compose syntax tree: {exc}")
        return None
    if root is None:
        return None
    return _convert(root)


def parse_document(uri: str, text: str, language_id: str = "json") -> ParsedDocument:
    """Parse document text into value and syntax tree.

    Parse failures are recorded on ``errors``; the caller decides whether to
    hand a failed document to the engine. ``jsonc`` documents may carry
    comments and trailing commas.
    """
    document = ParsedDocument(uri=uri, text=text, language_id=language_id)
    source = blank_jsonc(text) if language_id == JSONC_LANGUAGE_ID else text
    try:
        if language_id in YAML_LANGUAGE_IDS:
            document.value = yaml.safe_load(source)
        else:
            document.value = json.loads(source)
    except (ValueError, yaml.YAMLError) as exc:
        document.errors.append(str(exc))
        return document

    document.tree = parse_tree(source, language_id)
    return document


def find_node_at_path(root: Optional[SyntaxNode], path: Sequence[PathSegment]) -> Optional[SyntaxNode]:
    """Return the value node located at ``path``, or None if it does not exist."""
    node = root
    for segment in path:
        if node is None:
            return None
        if node.type == "object":
            key = str(segment)
            match = None
            for prop_key, value_node in node.properties():
                if prop_key == key:
                    match = value_node
            node = match
        elif node.type == "array" and isinstance(segment, int):
            node = node.children[segment] if 0 <= segment < len(node.children) else None
        else:
            return None
    return node


def path_at_offset(root: Optional[SyntaxNode], offset: int) -> Optional[JsonPath]:
    """Return the path of the innermost value whose range contains ``offset``.

    An offset on a property key resolves to that property's value.
    """
    if root is None or not (root.offset <= offset <= root.end):
        return None

    path: JsonPath = []
    node = root
    while True:
        next_node = None
        if node.type == "object":
            for prop in node.children:
                if prop.offset <= offset <= prop.end and len(prop.children) >= 2:
                    path.append(prop.children[0].value or "")
                    next_node = prop.children[1]
                    break
        elif node.type == "array":
            for index, child in enumerate(node.children):
                if child.offset <= offset <= child.end:
                    path.append(index)
                    next_node = child
                    break
        if next_node is None:
            return path
        node = next_node


def build_pointer_index(root: Optional[SyntaxNode]) -> Dict[str, SyntaxNode]:
    """Map every canonical schema pointer (``#``, ``#/a/0``) to its syntax node."""
    index: Dict[str, SyntaxNode] = {}
    if root is None:
        return index

    stack = [(root, [])]
    while stack:
        node, segments = stack.pop()
        index[path_to_pointer(segments)] = node
        if node.type == "object":
            for key, value_node in node.properties():
                stack.append((value_node, segments + [key]))
        elif node.type == "array":
            for position, child in enumerate(node.children):
                stack.append((child, segments + [position]))
    return index


def get_root_string_property(root: Optional[SyntaxNode], key: str) -> Optional[str]:
    """Return the string value of a top-level property of an object tree."""
    if root is None or root.type != "object":
        return None
    for prop_key, value_node in root.properties():
        if prop_key == key and value_node.type == "string":
            return value_node.value
    return None
