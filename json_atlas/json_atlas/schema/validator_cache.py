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

"""Compiled validator cache keyed by schema source."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from jsonschema.exceptions import SchemaError, ValidationError
from jsonschema.protocols import Validator
from jsonschema.validators import Draft7Validator, Draft202012Validator, validator_for
from referencing.exceptions import Unresolvable

from ..exceptions import SchemaCompileError
from ..notifications import WarningChannel
from .loader import LoadedSchema

logger = logging.getLogger(__name__)


@dataclass
class CachedValidator:
    fingerprint: str
    validator: Validator


def compile_validator(schema: Any) -> Validator:
    """Build a validator for ``schema`` using the draft its ``$schema`` names.

    Undeclared schemas are checked against draft 2020-12 first and fall back
    to draft 7, which still accepts the array form of ``items``.

    Raises:
        SchemaCompileError: If the schema is not an object or boolean, or is
            not valid against its metaschema.
    """
    if not isinstance(schema, (dict, bool)):
        raise SchemaCompileError(f"Schema must be an object or a boolean, got {type(schema).__name__}")

    if isinstance(schema, dict) and "$schema" in schema:
        candidates = [validator_for(schema, default=Draft202012Validator)]
    else:
        candidates = [Draft202012Validator, Draft7Validator]

    error: Optional[SchemaError] = None
    for cls in candidates:
        try:
            cls.check_schema(schema)
        except SchemaError as e:
            error = error or e
            continue
        return cls(schema)
    raise SchemaCompileError(error.message) from error


class ValidatorCache:
    """Maps a source cache key to the validator compiled from its raw text.

    An entry is reused only while the loaded raw text is identical to the
    text it was compiled from.
    """

    def __init__(self, warnings: WarningChannel):
        self.warnings = warnings
        self._entries: Dict[str, CachedValidator] = {}

    def get_validator(self, cache_key: str, loaded: LoadedSchema) -> Optional[Validator]:
        cached = self._entries.get(cache_key)
        if cached is not None and cached.fingerprint == loaded.fingerprint:
            return cached.validator

        try:
            validator = compile_validator(loaded.schema_value)
        except SchemaCompileError as e:
            self._report_failure(cache_key, str(e))
            return None

        logger.debug(f"Compiled validator for {cache_key}")
        self._entries[cache_key] = CachedValidator(fingerprint=loaded.fingerprint, validator=validator)
        return validator

    def collect_errors(self, cache_key: str, validator: Validator, instance: Any) -> Optional[List[ValidationError]]:
        """Run ``validator`` over ``instance``.

        References that cannot be resolved only surface while validating;
        they are treated like a compile failure and None is returned.
        """
        try:
            return list(validator.iter_errors(instance))
        except Unresolvable as e:
            self._report_failure(cache_key, str(e))
            return None

    def invalidate(self, cache_key: str) -> None:
        self._entries.pop(cache_key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, cache_key: str) -> bool:
        return cache_key in self._entries

    def _report_failure(self, cache_key: str, reason: str) -> None:
        self._entries.pop(cache_key, None)
        self.warnings.warn_once(f"Invalid schema at {cache_key}: {reason}")
