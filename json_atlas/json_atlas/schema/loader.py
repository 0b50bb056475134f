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

"""Schema loading from inline configuration, local files and HTTP(S)."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urljoin, urlparse

import requests
import yaml

from ..exceptions import SchemaFetchError, SchemaLoadError
from ..parsing.syntax_tree import SyntaxNode, build_pointer_index, parse_tree
from ..utils.uri_utils import uri_scheme, uri_to_path
from .source_resolver import InlineSchemaSource, SchemaSource

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class LoadedSchema:
    """Parsed schema plus the raw text it came from."""

    schema_value: Any
    raw_text: str
    fingerprint: str


@dataclass
class SchemaInfo:
    """Everything navigation needs about the schema active for a document."""

    location: str
    schema_value: Any
    raw_text: str
    syntax_tree: Optional[SyntaxNode] = None
    pointer_index: Dict[str, SyntaxNode] = field(default_factory=dict)


def build_schema_info(location: str, loaded: LoadedSchema) -> SchemaInfo:
    language_id = "yaml" if _is_yaml_location(location) else "json"
    tree = parse_tree(loaded.raw_text, language_id)
    return SchemaInfo(
        location=location,
        schema_value=loaded.schema_value,
        raw_text=loaded.raw_text,
        syntax_tree=tree,
        pointer_index=build_pointer_index(tree),
    )


def _is_yaml_location(location: str) -> bool:
    return urlparse(location).path.lower().endswith(YAML_SUFFIXES)


class SchemaLoader:
    """Fetches schema text for a :data:`SchemaSource` and parses it."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        max_redirects: int = 3,
        timeout: Optional[float] = None,
    ):
        self.session = session if session is not None else requests.Session()
        self.max_redirects = max_redirects
        self.timeout = timeout

    def load(self, source: SchemaSource) -> LoadedSchema:
        """Load a schema.

        Raises:
            SchemaLoadError: If the schema cannot be read or parsed. Remote
                failures raise the :class:`SchemaFetchError` subclass.
        """
        if isinstance(source, InlineSchemaSource):
            return LoadedSchema(
                schema_value=source.schema_value,
                raw_text=source.raw_text,
                fingerprint=source.raw_text,
            )

        text = self.read_text(source.location)
        try:
            if _is_yaml_location(source.location):
                schema = yaml.safe_load(text)
            else:
                schema = json.loads(text)
        except (ValueError, yaml.YAMLError) as e:
            raise SchemaLoadError(f"Invalid schema document: {e}") from e

        return LoadedSchema(schema_value=schema, raw_text=text, fingerprint=text)

    def read_text(self, location: str) -> str:
        scheme = uri_scheme(location)
        if scheme in ("http", "https"):
            data = self.fetch_remote(location)
        elif scheme == "file":
            path = Path(uri_to_path(location))
            try:
                data = path.read_bytes()
            except OSError as e:
                raise SchemaLoadError(f"Cannot read {path}: {e}") from e
        else:
            raise SchemaLoadError(f"Unsupported URL scheme: {scheme or location}")

        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise SchemaLoadError(f"Schema is not valid UTF-8: {e}") from e

    def fetch_remote(self, url: str) -> bytes:
        """GET ``url``, following at most ``max_redirects`` redirects by hand."""
        current = url
        redirects = 0
        while True:
            logger.debug(f"Fetching schema from {current}")
            try:
                response = self.session.get(current, allow_redirects=False, timeout=self.timeout)
            except requests.RequestException as e:
                raise SchemaFetchError(f"Request to {current} failed: {e}") from e

            status = response.status_code
            location = response.headers.get("Location")
            if 300 <= status < 400 and location:
                if redirects >= self.max_redirects:
                    raise SchemaFetchError(
                        f"Too many redirects (more than {self.max_redirects}) while fetching {url}",
                        status_code=status,
                    )
                redirects += 1
                current = urljoin(current, location)
                continue

            if status < 200 or status >= 300:
                raise SchemaFetchError(f"HTTP {status}", status_code=status)

            return response.content
