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

"""JSON Pointer <-> path conversion.

Two spellings are used throughout the package:

  * schema pointers carry a fragment marker: ``#``, ``#/properties/name``
  * instance pointers do not: ``""``, ``/items/0``

Both decode to the same path representation, a list of property names
(``str``) and array indices (``int``).
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, Union
from urllib.parse import unquote


PathSegment = Union[str, int]
JsonPath = List[PathSegment]

_IDENTIFIER = re.compile(r"^[A-Za-z_][\w$]*$", re.ASCII)


def escape_segment(token: str) -> str:
    # "~" must be escaped first so "/" -> "~1" is not re-escaped
    return token.replace("~", "~0").replace("/", "~1")


def unescape_segment(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def _coerce_segment(segment: str) -> PathSegment:
    """Return ``int`` for canonical non-negative integer literals, else the string."""
    if segment.isdigit() and segment.isascii() and str(int(segment)) == segment:
        return int(segment)
    return segment


def pointer_to_segments(pointer: str) -> List[str]:
    """Decode a pointer into raw (unescaped) string segments."""
    if not pointer or pointer == "#":
        return []
    if pointer.startswith("#"):
        pointer = pointer[1:]
    if not pointer:
        return []
    if pointer.startswith("/"):
        pointer = pointer[1:]
    return [unescape_segment(segment) for segment in pointer.split("/")]


def pointer_to_path(pointer: str) -> JsonPath:
    """Decode a pointer into a path; integer-like segments become indices."""
    return [_coerce_segment(segment) for segment in pointer_to_segments(pointer)]


def path_to_pointer(path: Sequence[PathSegment], fragment: bool = True) -> str:
    """Encode a path as a pointer.

    Args:
        path: Property names and array indices.
        fragment: Emit the ``#`` prefix (schema form). The instance form
            encodes the root as the empty string.
    """
    body = "".join(f"/{escape_segment(str(segment))}" for segment in path)
    if fragment:
        return f"#{body}"
    return body


def join_pointer(pointer: str, *segments: PathSegment) -> str:
    """Append segments to a pointer, re-encoding rather than concatenating."""
    base = pointer_to_segments(pointer)
    base.extend(str(segment) for segment in segments)
    return path_to_pointer(base, fragment=pointer.startswith("#"))


def ref_to_pointer(ref: str) -> Optional[str]:
    """Normalize a same-document ``$ref`` (``#/a%20b/c``) to a canonical pointer.

    Returns None for external references and plain-name anchors (``#foo``).
    """
    if not ref.startswith("#"):
        return None
    fragment = unquote(ref[1:])
    if fragment and not fragment.startswith("/"):
        return None
    return path_to_pointer(pointer_to_segments(fragment))


def format_json_path(path: Sequence[PathSegment]) -> str:
    """Render a path in JSONPath notation, e.g. ``$.servers[0]['x-y']``."""
    rendered = "$"
    for segment in path:
        if isinstance(segment, int):
            rendered += f"[{segment}]"
        elif _IDENTIFIER.match(segment):
            rendered += f".{segment}"
        else:
            escaped = segment.replace("\\", "\\\\").replace("'", "\\'")
            rendered += f"['{escaped}']"
    return rendered
