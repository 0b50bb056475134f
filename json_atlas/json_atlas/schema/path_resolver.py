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

"""Map an instance path to the subschema that governs it.

Resolution starts at the schema root and consumes one path segment at a
time. Property names are looked up through ``properties``,
``patternProperties``, ``additionalProperties`` and
``unevaluatedProperties``; array indices through ``prefixItems``, ``items``,
``contains``, ``additionalItems`` and ``unevaluatedItems``. After every step
the result is dereferenced so a subschema that is only a ``$ref`` is
replaced by its target.

When no structural keyword applies, the branches of ``allOf``, ``anyOf`` and
``oneOf`` (in that order, then array order) followed by ``then`` and
``else`` are searched and the first branch that yields a resolution wins.
This composite fallback is a heuristic: which branch actually applies may
depend on instance data that the resolver never looks at, so the answer is
the first plausible subschema rather than the exact one.

Every step appends the traversed keyword to the running pointer, so the
returned pointer can be resolved against the raw schema value on its own.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Set

from ..utils.pointer import PathSegment, join_pointer, pointer_to_segments, ref_to_pointer

logger = logging.getLogger(__name__)

ROOT_POINTER = "#"
COMPOSITE_KEYWORDS = ("allOf", "anyOf", "oneOf")
CONDITIONAL_KEYWORDS = ("then", "else")

_MISSING = object()


@dataclass(frozen=True)
class SchemaResolution:
    """A (dereferenced) subschema and its canonical pointer."""

    schema: Any
    pointer: str


def is_schema_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_schema_like(value: Any) -> bool:
    """True for object schemas and the boolean schemas ``true``/``false``."""
    return isinstance(value, bool) or is_schema_object(value)


def _admits_children(value: Any) -> bool:
    # A structural keyword set to ``false`` forbids the location instead of describing it
    return is_schema_object(value) or value is True


def get_schema_at_pointer(root: Any, pointer: str) -> Any:
    """Walk ``root`` along ``pointer``; return ``_MISSING`` if a step does not exist."""
    current = root
    for segment in pointer_to_segments(pointer):
        if isinstance(current, list):
            if not (segment.isdigit() and segment.isascii()):
                return _MISSING
            index = int(segment)
            if index >= len(current):
                return _MISSING
            current = current[index]
        elif isinstance(current, dict):
            if segment not in current:
                return _MISSING
            current = current[segment]
        else:
            return _MISSING
    return current


def read_string(schema: Any, key: str) -> Optional[str]:
    if not is_schema_object(schema):
        return None
    value = schema.get(key)
    return value if isinstance(value, str) else None


class SchemaPathResolver:
    """Resolves instance paths against one schema value.

    The resolver only reads ``root``; a single instance may be shared by
    any number of concurrent lookups.
    """

    def __init__(self, root: Any):
        self.root = root

    def resolve(self, path: Optional[Sequence[PathSegment]]) -> Optional[SchemaResolution]:
        state = self.dereference(self.root, ROOT_POINTER)
        for segment in path or []:
            if isinstance(segment, int) and not isinstance(segment, bool):
                step = self.resolve_array(state.schema, state.pointer, segment)
            else:
                step = self.resolve_property(state.schema, state.pointer, str(segment))
            if step is None:
                return None
            state = self.dereference(step.schema, step.pointer)
        return state

    def dereference(self, schema: Any, pointer: str) -> SchemaResolution:
        """Follow same-document ``$ref`` chains starting at ``schema``.

        A reference that was already followed in this call stops the loop
        and the ``$ref`` object itself is returned. External references,
        anchors and missing targets stop the loop as well.
        """
        current, current_pointer = schema, pointer
        visited = set()
        while is_schema_object(current) and isinstance(current.get("$ref"), str):
            target_pointer = ref_to_pointer(current["$ref"])
            if target_pointer is None or target_pointer in visited:
                break
            visited.add(target_pointer)
            target = get_schema_at_pointer(self.root, target_pointer)
            if target is _MISSING:
                logger.debug(f"Unresolvable $ref {current['$ref']!r} at {current_pointer}")
                break
            current, current_pointer = target, target_pointer
        return SchemaResolution(schema=current, pointer=current_pointer)

    def resolve_property(
        self, schema: Any, pointer: str, key: str, seen: Optional[Set[str]] = None
    ) -> Optional[SchemaResolution]:
        if isinstance(schema, bool):
            return SchemaResolution(schema=True, pointer=pointer) if schema else None
        if not is_schema_object(schema):
            return None

        properties = schema.get("properties")
        if is_schema_object(properties) and key in properties:
            return SchemaResolution(properties[key], join_pointer(pointer, "properties", key))

        pattern_properties = schema.get("patternProperties")
        if is_schema_object(pattern_properties):
            for pattern, subschema in pattern_properties.items():
                try:
                    matched = re.search(pattern, key) is not None
                except re.error:
                    logger.debug(f"Skipping invalid patternProperties regex {pattern!r} at {pointer}")
                    continue
                if matched:
                    return SchemaResolution(subschema, join_pointer(pointer, "patternProperties", pattern))

        for keyword in ("additionalProperties", "unevaluatedProperties"):
            if _admits_children(schema.get(keyword)):
                return SchemaResolution(schema[keyword], join_pointer(pointer, keyword))

        return self.resolve_composite(
            schema,
            pointer,
            lambda candidate, candidate_pointer, branch_seen: self.resolve_property(
                candidate, candidate_pointer, key, branch_seen
            ),
            seen,
        )

    def resolve_array(
        self, schema: Any, pointer: str, index: int, seen: Optional[Set[str]] = None
    ) -> Optional[SchemaResolution]:
        if isinstance(schema, bool):
            return SchemaResolution(schema=True, pointer=pointer) if schema else None
        if not is_schema_object(schema) or index < 0:
            return None

        prefix_items = schema.get("prefixItems")
        if isinstance(prefix_items, list) and index < len(prefix_items):
            return SchemaResolution(prefix_items[index], join_pointer(pointer, "prefixItems", index))

        items = schema.get("items")
        if isinstance(items, list):
            if index < len(items):
                return SchemaResolution(items[index], join_pointer(pointer, "items", index))
        elif _admits_children(items):
            return SchemaResolution(items, join_pointer(pointer, "items"))

        for keyword in ("contains", "additionalItems", "unevaluatedItems"):
            if _admits_children(schema.get(keyword)):
                return SchemaResolution(schema[keyword], join_pointer(pointer, keyword))

        return self.resolve_composite(
            schema,
            pointer,
            lambda candidate, candidate_pointer, branch_seen: self.resolve_array(
                candidate, candidate_pointer, index, branch_seen
            ),
            seen,
        )

    def resolve_composite(
        self,
        schema: dict,
        pointer: str,
        step: Callable[[Any, str, Set[str]], Optional[SchemaResolution]],
        seen: Optional[Set[str]] = None,
    ) -> Optional[SchemaResolution]:
        """Try ``step`` on each composite branch; the first hit wins.

        ``seen`` holds the pointers of branches already entered while
        resolving the current segment, so branches that reference their own
        ancestors are entered once.
        """
        seen = set(seen or ()) | {pointer}
        for keyword in COMPOSITE_KEYWORDS:
            branches = schema.get(keyword)
            if not isinstance(branches, list):
                continue
            for position, branch in enumerate(branches):
                found = self._step_into(branch, join_pointer(pointer, keyword, position), step, seen)
                if found is not None:
                    return found

        for keyword in CONDITIONAL_KEYWORDS:
            branch = schema.get(keyword)
            if not is_schema_like(branch):
                continue
            found = self._step_into(branch, join_pointer(pointer, keyword), step, seen)
            if found is not None:
                return found
        return None

    def _step_into(self, branch: Any, pointer: str, step, seen: Set[str]) -> Optional[SchemaResolution]:
        # Branches are commonly bare "$ref"s, so look through them before stepping
        target = self.dereference(branch, pointer)
        if target.pointer in seen:
            return None
        return step(target.schema, target.pointer, seen)
