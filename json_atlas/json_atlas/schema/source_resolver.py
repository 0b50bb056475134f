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

"""Decide which schema applies to a document.

Resolution order (first match wins):

  1. ``$schema`` declared at the top level of the document itself
  2. an explicit assignment from the association store
  3. the generic ``json.schemas`` mappings (inline bodies or references)
  4. the product specific ``jsonAtlas.schemas`` mappings
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, List, Optional, Union

from ..config import AtlasConfig
from ..notifications import WarningChannel
from ..parsing.syntax_tree import ParsedDocument, get_root_string_property
from ..utils.glob_utils import glob_match
from ..utils.uri_utils import file_uri_parent, is_absolute_uri, path_to_uri, uri_scheme, uri_to_path, virtual_uri
from ..workspace import WorkspaceFolders
from .associations import SchemaAssociationStore

logger = logging.getLogger(__name__)

EMBEDDED_SCHEMA_KEY = "$schema"


@dataclass(frozen=True)
class UriSchemaSource:
    """A schema read from a ``file:`` or ``http(s):`` location."""

    location: str
    cache_key: str
    kind: str = "uri"


@dataclass(frozen=True)
class InlineSchemaSource:
    """A schema body embedded in configuration."""

    schema_value: Any
    raw_text: str
    cache_key: str
    location: str
    kind: str = "inline"


SchemaSource = Union[UriSchemaSource, InlineSchemaSource]


class SchemaSourceResolver:
    """Resolves the :data:`SchemaSource` for a parsed document."""

    def __init__(
        self,
        config: AtlasConfig,
        workspace: WorkspaceFolders,
        warnings: WarningChannel,
        association_store: Optional[SchemaAssociationStore] = None,
    ):
        self.config = config
        self.workspace = workspace
        self.warnings = warnings
        self.association_store = association_store

    def resolve(self, document: ParsedDocument) -> Optional[SchemaSource]:
        embedded = self._embedded_reference(document)
        if embedded:
            uri = self.resolve_reference_uri(document.uri, embedded)
            if uri:
                return UriSchemaSource(location=uri, cache_key=uri)

        if self.association_store is not None:
            assigned = self.association_store.get_schema_reference(document.uri)
            if assigned:
                uri = self.resolve_reference_uri(document.uri, assigned)
                if uri:
                    return UriSchemaSource(location=uri, cache_key=f"assignment:{document.uri}")

        source = self._resolve_from_json_schemas(document.uri)
        if source is not None:
            return source

        source = self._resolve_from_atlas_schemas(document.uri)
        if source is not None:
            return source

        self.warnings.warn_once(
            f"JSON Atlas could not find a schema for {self._display_path(document.uri)}. "
            "Associate a schema with the document to enable validation."
        )
        return None

    def resolve_reference_uri(self, document_uri: str, reference: str) -> Optional[str]:
        """Turn a schema reference into an absolute URI.

        ``scheme://`` references are used as-is, absolute local paths become
        ``file:`` URIs, and anything else is joined onto the document's
        workspace folder or, outside any folder, its parent directory.
        """
        trimmed = (reference or "").strip()
        if not trimmed:
            return None

        if is_absolute_uri(trimmed):
            return trimmed

        if os.path.isabs(trimmed):
            return path_to_uri(trimmed)

        folder = self.workspace.folder_for(document_uri)
        if folder is not None:
            return path_to_uri(self.workspace.join(folder, trimmed))

        parent = file_uri_parent(document_uri)
        if parent is not None:
            return path_to_uri(os.path.join(parent, trimmed))

        return None

    def _embedded_reference(self, document: ParsedDocument) -> Optional[str]:
        if document.tree is not None:
            return get_root_string_property(document.tree, EMBEDDED_SCHEMA_KEY)
        if isinstance(document.value, dict):
            value = document.value.get(EMBEDDED_SCHEMA_KEY)
            if isinstance(value, str):
                return value
        return None

    def _resolve_from_json_schemas(self, document_uri: str) -> Optional[SchemaSource]:
        for mapping in self.config.json_schemas:
            if mapping.file_match and not self._matches_any_pattern(document_uri, mapping.file_match):
                continue

            if mapping.has_inline_schema:
                url = (mapping.url or "").strip()
                base_id = url or f"json-schema:{'|'.join(mapping.file_match) or document_uri}"
                location = base_id if is_absolute_uri(base_id) else virtual_uri(base_id)
                return InlineSchemaSource(
                    schema_value=mapping.schema,
                    raw_text=json.dumps(mapping.schema, indent=2),
                    cache_key=f"inline:{base_id}",
                    location=location,
                )

            if mapping.url and mapping.url.strip():
                uri = self.resolve_reference_uri(document_uri, mapping.url)
                if uri:
                    return UriSchemaSource(location=uri, cache_key=uri)
        return None

    def _resolve_from_atlas_schemas(self, document_uri: str) -> Optional[SchemaSource]:
        relative = self.workspace.relative_path(document_uri)
        absolute = self._absolute_path(document_uri)
        for mapping in self.config.atlas_schemas:
            matches_relative = relative is not None and glob_match(relative, mapping.pattern)
            matches_absolute = absolute is not None and glob_match(absolute, mapping.pattern)
            if not (matches_relative or matches_absolute):
                continue
            uri = self.resolve_reference_uri(document_uri, mapping.schema)
            if uri:
                return UriSchemaSource(location=uri, cache_key=f"atlas:{mapping.pattern}:{uri}")
        return None

    def _matches_any_pattern(self, document_uri: str, patterns: List[str]) -> bool:
        relative = self.workspace.relative_path(document_uri)
        # Non-file documents are matched by their URI string
        absolute = self._absolute_path(document_uri) or document_uri
        for pattern in patterns:
            if relative is not None and glob_match(relative, pattern):
                return True
            if glob_match(absolute, pattern):
                return True
        return False

    @staticmethod
    def _absolute_path(document_uri: str) -> Optional[str]:
        if uri_scheme(document_uri) != "file":
            return None
        return uri_to_path(document_uri).replace(os.sep, "/")

    @staticmethod
    def _display_path(document_uri: str) -> str:
        if uri_scheme(document_uri) == "file":
            return uri_to_path(document_uri)
        return document_uri
