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

"""Schema engine: the facade every editor feature talks to.

A validation pass runs source resolution, loading, compilation and
validation for one document and records two results per document: the
``SchemaInfo`` used by navigation and the list of ``ValidationInsight``.
Both are replaced on every pass and dropped when the document closes.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import requests
from lsprotocol import types as lsp

from .config import AtlasConfig
from .exceptions import SchemaLoadError
from .notifications import WarningCallback, WarningChannel
from .parsing.syntax_tree import ParsedDocument
from .schema.associations import SchemaAssociationStore
from .schema.insights import InsightBuilder, SeverityPolicy, ValidationInsight
from .schema.loader import SchemaInfo, SchemaLoader, build_schema_info
from .schema.path_resolver import SchemaPathResolver, SchemaResolution, read_string
from .schema.source_resolver import SchemaSourceResolver
from .schema.validator_cache import ValidatorCache
from .utils.pointer import PathSegment
from .workspace import WorkspaceFolders

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaNavigationTarget:
    """Where the subschema governing a document location is defined."""

    pointer: str
    location: str
    offset: Optional[int] = None
    length: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None


def encode_path_key(path: Sequence[PathSegment]) -> str:
    return json.dumps(list(path))


class SchemaEngine:
    """Owns the validator cache and the per-document schema state."""

    def __init__(
        self,
        config: Optional[AtlasConfig] = None,
        workspace: Optional[WorkspaceFolders] = None,
        association_store: Optional[SchemaAssociationStore] = None,
        session: Optional[requests.Session] = None,
        on_warning: Optional[WarningCallback] = None,
    ):
        self.config = config or AtlasConfig()
        self.workspace = workspace or WorkspaceFolders()
        self.association_store = association_store or SchemaAssociationStore(self.workspace)
        self.warnings = WarningChannel(on_warning)
        self._session = session

        self.validator_cache = ValidatorCache(self.warnings)
        self._schema_info: Dict[str, SchemaInfo] = {}
        self._insights: Dict[str, List[ValidationInsight]] = {}
        self._configure()

    def _configure(self) -> None:
        self.source_resolver = SchemaSourceResolver(
            self.config, self.workspace, self.warnings, self.association_store
        )
        self.loader = SchemaLoader(
            session=self._session,
            max_redirects=self.config.max_redirects,
            timeout=self.config.fetch_timeout,
        )
        self.insight_builder = InsightBuilder(SeverityPolicy(frozenset(self.config.warning_keywords)))

    def validate(self, document: ParsedDocument) -> List[lsp.Diagnostic]:
        """Run one validation pass and return the document's diagnostics.

        Any failure along the way (no schema, unreadable schema, invalid
        schema) leaves the document without schema info or insights and
        returns no diagnostics; the failure itself is reported through the
        warning channel.
        """
        uri = document.uri
        self._schema_info.pop(uri, None)
        self._insights.pop(uri, None)

        if not self.config.enable_schema_validation:
            return []
        if not document.ok:
            logger.debug(f"Skipping validation of unparsable document {uri}")
            return []

        source = self.source_resolver.resolve(document)
        if source is None:
            return []

        try:
            loaded = self.loader.load(source)
        except SchemaLoadError as e:
            self.warnings.warn_once(f"Failed to load schema from {source.location}: {e}")
            return []

        self._schema_info[uri] = build_schema_info(source.location, loaded)

        validator = self.validator_cache.get_validator(source.cache_key, loaded)
        if validator is None:
            return []
        errors = self.validator_cache.collect_errors(source.cache_key, validator, document.value)
        if errors is None:
            return []

        self._insights[uri] = self.insight_builder.build_insights(errors)
        logger.debug(f"Validated {uri} against {source.location}: {len(errors)} error(s)")
        return self.insight_builder.build_diagnostics(errors, document)

    def get_schema_info(self, document_uri: str) -> Optional[SchemaInfo]:
        return self._schema_info.get(document_uri)

    def get_insights(self, document_uri: str) -> List[ValidationInsight]:
        return list(self._insights.get(document_uri, []))

    def resolve_schema_for_path(
        self, document_uri: str, path: Optional[Sequence[PathSegment]]
    ) -> Optional[SchemaResolution]:
        info = self._schema_info.get(document_uri)
        if info is None:
            return None
        return SchemaPathResolver(info.schema_value).resolve(path)

    def resolve_navigation_target(
        self, document_uri: str, path: Optional[Sequence[PathSegment]]
    ) -> Optional[SchemaNavigationTarget]:
        info = self._schema_info.get(document_uri)
        if info is None:
            return None
        resolution = SchemaPathResolver(info.schema_value).resolve(path)
        if resolution is None:
            return None
        return self._navigation_target(info, resolution)

    def build_schema_pointer_map(self, document: ParsedDocument) -> Dict[str, SchemaNavigationTarget]:
        """Resolve every value of the document's tree.

        Keys are JSON encoded paths (``'["servers", 0]'``); locations without
        a governing subschema are left out.
        """
        info = self._schema_info.get(document.uri)
        if info is None or document.tree is None:
            return {}

        resolver = SchemaPathResolver(info.schema_value)
        result: Dict[str, SchemaNavigationTarget] = {}
        stack = [(document.tree, [])]
        while stack:
            node, path = stack.pop()
            resolution = resolver.resolve(path)
            if resolution is not None:
                result[encode_path_key(path)] = self._navigation_target(info, resolution)
            if node.type == "object":
                for key, value_node in node.properties():
                    stack.append((value_node, path + [key]))
            elif node.type == "array":
                for index, child in enumerate(node.children):
                    stack.append((child, path + [index]))
        return result

    def close_document(self, document_uri: str) -> None:
        self._schema_info.pop(document_uri, None)
        self._insights.pop(document_uri, None)

    def update_config(self, config: AtlasConfig) -> None:
        self.config = config
        self._configure()
        self.reset()

    def reset(self) -> None:
        """Clear every cache; warnings may be shown again afterwards."""
        self.validator_cache.clear()
        self.warnings.reset()
        self._schema_info.clear()
        self._insights.clear()
        self.association_store.invalidate()
        logger.debug("Schema engine state reset")

    @staticmethod
    def _navigation_target(info: SchemaInfo, resolution: SchemaResolution) -> SchemaNavigationTarget:
        node = info.pointer_index.get(resolution.pointer)
        return SchemaNavigationTarget(
            pointer=resolution.pointer,
            location=info.location,
            offset=node.offset if node is not None else None,
            length=node.length if node is not None else None,
            title=read_string(resolution.schema, "title"),
            description=read_string(resolution.schema, "description"),
        )

