"""Schema resolution, loading, compilation and path lookup.

Nothing here depends on the language server, so every module can be used
from plain scripts and tests.
"""

from .insights import InsightBuilder, Severity, SeverityPolicy, ValidationInsight
from .loader import LoadedSchema, SchemaInfo, SchemaLoader, build_schema_info
from .path_resolver import SchemaPathResolver, SchemaResolution
from .source_resolver import InlineSchemaSource, SchemaSource, SchemaSourceResolver, UriSchemaSource

__all__ = [
    "InsightBuilder",
    "Severity",
    "SeverityPolicy",
    "ValidationInsight",
    "LoadedSchema",
    "SchemaInfo",
    "SchemaLoader",
    "build_schema_info",
    "SchemaPathResolver",
    "SchemaResolution",
    "InlineSchemaSource",
    "SchemaSource",
    "SchemaSourceResolver",
    "UriSchemaSource",
]
