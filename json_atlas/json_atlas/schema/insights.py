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

"""Turn ``jsonschema`` validation errors into insights and LSP diagnostics."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional

from jsonschema.exceptions import ValidationError
from lsprotocol import types as lsp

from ..config import DEFAULT_WARNING_KEYWORDS
from ..parsing.syntax_tree import ParsedDocument, find_node_at_path
from ..utils.pointer import JsonPath, path_to_pointer, pointer_to_path
from ..utils.text_utils import offset_to_position

DIAGNOSTIC_SOURCE = "JSON Schema"
FALLBACK_KEYWORD = "schema"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class SeverityPolicy:
    """Which validation keywords are reported as warnings rather than errors.

    Defaults to ``required`` and ``deprecated``. The split reflects an editor
    preference (a missing property is usually work in progress), not a
    distinction JSON Schema itself makes, so it is configurable.
    """

    warning_keywords: FrozenSet[str] = DEFAULT_WARNING_KEYWORDS

    def classify(self, keyword: str) -> Severity:
        return Severity.WARNING if keyword in self.warning_keywords else Severity.ERROR

    def to_lsp(self, severity: Severity) -> lsp.DiagnosticSeverity:
        if severity == Severity.WARNING:
            return lsp.DiagnosticSeverity.Warning
        return lsp.DiagnosticSeverity.Error


@dataclass(frozen=True)
class ValidationInsight:
    id: str
    message: str
    pointer: str
    path: JsonPath
    severity: Severity
    keyword: str


def _missing_property(error: ValidationError) -> Optional[str]:
    required = error.validator_value if isinstance(error.validator_value, list) else []
    instance = error.instance if isinstance(error.instance, dict) else {}
    missing = [name for name in required if isinstance(name, str) and name not in instance]
    for name in missing:
        if error.message == f"{name!r} is a required property":
            return name
    return missing[0] if missing else None


def format_message(error: ValidationError) -> str:
    """Human readable message for one validation error."""
    if error.validator == "required":
        name = _missing_property(error)
        if name is not None:
            return f"Missing required property: {name}"
    elif error.validator == "enum" and isinstance(error.validator_value, list):
        allowed = ", ".join(json.dumps(value, ensure_ascii=False) for value in error.validator_value)
        return f"Value must be one of: {allowed}"
    return error.message


class InsightBuilder:
    """Normalizes raw validator errors for one validation pass."""

    def __init__(self, policy: Optional[SeverityPolicy] = None):
        self.policy = policy or SeverityPolicy()

    def build_insights(self, errors: Iterable[ValidationError]) -> List[ValidationInsight]:
        insights = []
        for error in errors:
            pointer = path_to_pointer(list(error.absolute_path), fragment=False)
            message = format_message(error)
            keyword = error.validator if isinstance(error.validator, str) else FALLBACK_KEYWORD
            insights.append(
                ValidationInsight(
                    id=f"{pointer}::{keyword}::{message}",
                    message=message,
                    pointer=pointer,
                    path=pointer_to_path(pointer),
                    severity=self.policy.classify(keyword),
                    keyword=keyword,
                )
            )
        return insights

    def build_diagnostics(self, errors: Iterable[ValidationError], document: ParsedDocument) -> List[lsp.Diagnostic]:
        diagnostics = []
        for error in errors:
            keyword = error.validator if isinstance(error.validator, str) else FALLBACK_KEYWORD
            diagnostics.append(
                lsp.Diagnostic(
                    range=self.error_range(list(error.absolute_path), document),
                    message=format_message(error),
                    severity=self.policy.to_lsp(self.policy.classify(keyword)),
                    source=DIAGNOSTIC_SOURCE,
                    code=keyword,
                )
            )
        return diagnostics

    @staticmethod
    def error_range(path: JsonPath, document: ParsedDocument) -> lsp.Range:
        """Range of the value at ``path``, else of the root value, else the whole text."""
        node = find_node_at_path(document.tree, path) or document.tree
        if node is None:
            start, end = 0, len(document.text)
        else:
            start, end = node.offset, node.end
        start_line, start_char = offset_to_position(document.text, start)
        end_line, end_char = offset_to_position(document.text, end)
        return lsp.Range(
            start=lsp.Position(line=start_line, character=start_char),
            end=lsp.Position(line=end_line, character=end_char),
        )
