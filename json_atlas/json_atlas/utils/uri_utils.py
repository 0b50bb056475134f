"""URI utility functions."""

import os
import re
from pathlib import Path
from typing import Optional
from urllib.parse import quote, unquote, urlparse

_ABSOLUTE_URI_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def is_absolute_uri(value: str) -> bool:
    """Return True for ``scheme://...`` strings (drive letters never match)."""
    return bool(_ABSOLUTE_URI_RE.match(value))


def uri_scheme(uri: str) -> str:
    return urlparse(uri).scheme.lower()


def uri_to_path(uri: str) -> str:
    """Convert URI to file path."""
    parsed = urlparse(uri)
    path = unquote(parsed.path)
    # file:///C:/x -> /C:/x on Windows style URIs
    if os.name == "nt" and re.match(r"^/[a-zA-Z]:", path):
        path = path[1:]
    return path


def path_to_uri(path: str) -> str:
    """Convert file path to URI."""
    return Path(os.path.abspath(path)).as_uri()


def file_uri_parent(uri: str) -> Optional[str]:
    """Return the directory of a ``file:`` URI as a path, or None for other schemes."""
    if uri_scheme(uri) != "file":
        return None
    return os.path.dirname(uri_to_path(uri))


def virtual_uri(identifier: str) -> str:
    """Build a ``json-schema:`` URI for schemas that have no backing file."""
    if identifier.startswith("json-schema:"):
        return identifier
    return f"json-schema:{quote(identifier, safe='')}"
