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

"""Configuration management for the schema engine."""

import os
import logging
from dataclasses import dataclass, field
from typing import Any, FrozenSet, List, Mapping, Optional

from .utils.logging_utils import configure_split_stream_logging

DEFAULT_WARNING_KEYWORDS: FrozenSet[str] = frozenset({"required", "deprecated"})


@dataclass
class JsonSchemaMapping:
    """One entry of the generic ``json.schemas`` setting."""
    file_match: List[str] = field(default_factory=list)
    url: Optional[str] = None
    schema: Any = None
    has_inline_schema: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'JsonSchemaMapping':
        file_match = data.get("fileMatch")
        if isinstance(file_match, str):
            patterns = [file_match]
        elif isinstance(file_match, list):
            patterns = [entry for entry in file_match if isinstance(entry, str)]
        else:
            patterns = []
        url = data.get("url")
        return cls(
            file_match=patterns,
            url=url if isinstance(url, str) else None,
            schema=data.get("schema"),
            has_inline_schema="schema" in data,
        )


@dataclass
class AtlasSchemaMapping:
    """One entry of the product specific ``jsonAtlas.schemas`` setting."""
    pattern: str
    schema: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Optional['AtlasSchemaMapping']:
        pattern = data.get("pattern")
        schema = data.get("schema")
        if not isinstance(pattern, str) or not isinstance(schema, str):
            return None
        return cls(pattern=pattern, schema=schema)


@dataclass
class AtlasConfig:
    """Configuration class for schema resolution and validation."""
    enable_schema_validation: bool = True
    json_schemas: List[JsonSchemaMapping] = field(default_factory=list)
    atlas_schemas: List[AtlasSchemaMapping] = field(default_factory=list)
    warning_keywords: FrozenSet[str] = DEFAULT_WARNING_KEYWORDS
    max_redirects: int = 3
    fetch_timeout: Optional[float] = None
    log_level: str = "INFO"
    print_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> 'AtlasConfig':
        """Create configuration from environment variables."""
        timeout = os.getenv('JSON_ATLAS_FETCH_TIMEOUT')
        keywords = os.getenv('JSON_ATLAS_WARNING_KEYWORDS')
        return cls(
            enable_schema_validation=os.getenv('JSON_ATLAS_ENABLE_VALIDATION', 'true').lower() == 'true',
            warning_keywords=_parse_keywords(keywords) if keywords is not None else DEFAULT_WARNING_KEYWORDS,
            max_redirects=int(os.getenv('JSON_ATLAS_MAX_REDIRECTS', '3')),
            fetch_timeout=float(timeout) if timeout else None,
            log_level=os.getenv('JSON_ATLAS_LOG_LEVEL', 'INFO'),
            print_level=os.getenv('JSON_ATLAS_PRINT_LEVEL', 'WARNING'),
        )

    @classmethod
    def from_settings(cls, settings: Optional[Mapping[str, Any]], base: Optional['AtlasConfig'] = None) -> 'AtlasConfig':
        """Create configuration from an editor settings object.

        The expected shape mirrors the two configuration surfaces::

            {"json": {"schemas": [{"fileMatch": [...], "url": ..., "schema": {...}}]},
             "jsonAtlas": {"enableSchemaValidation": true,
                           "schemas": [{"pattern": ..., "schema": ...}]}}

        Values absent from ``settings`` are taken from ``base`` (or defaults).
        """
        config = base if base is not None else cls()
        settings = settings or {}
        json_section = settings.get("json") or {}
        atlas_section = settings.get("jsonAtlas") or {}

        json_schemas = [
            JsonSchemaMapping.from_dict(entry)
            for entry in json_section.get("schemas") or []
            if isinstance(entry, Mapping)
        ]
        atlas_schemas = [
            mapping
            for mapping in (
                AtlasSchemaMapping.from_dict(entry)
                for entry in atlas_section.get("schemas") or []
                if isinstance(entry, Mapping)
            )
            if mapping is not None
        ]

        keywords = atlas_section.get("warningKeywords")
        timeout = atlas_section.get("fetchTimeout", config.fetch_timeout)
        return cls(
            enable_schema_validation=bool(
                atlas_section.get("enableSchemaValidation", config.enable_schema_validation)
            ),
            json_schemas=json_schemas,
            atlas_schemas=atlas_schemas,
            warning_keywords=(
                frozenset(str(keyword) for keyword in keywords)
                if isinstance(keywords, list)
                else config.warning_keywords
            ),
            max_redirects=int(atlas_section.get("maxRedirects", config.max_redirects)),
            fetch_timeout=float(timeout) if timeout else None,
            log_level=config.log_level,
            print_level=config.print_level,
        )

    def set_logging(self, use_stdout: bool = True) -> logging.Logger:
        """Setup logging based on configuration."""
        level = getattr(logging, self.log_level.upper(), logging.INFO)
        stderr_level = getattr(logging, self.print_level.upper(), logging.WARNING)

        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        configure_split_stream_logging(
            level=level, stderr_level=stderr_level, formatter=formatter, use_stdout=use_stdout
        )

        return logging.getLogger('json_atlas')


def _parse_keywords(raw: str) -> FrozenSet[str]:
    return frozenset(keyword.strip() for keyword in raw.split(",") if keyword.strip())

