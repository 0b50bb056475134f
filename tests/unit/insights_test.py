"""Tests for converting validation errors into insights and diagnostics."""

from jsonschema.validators import Draft202012Validator
from lsprotocol import types as lsp

from json_atlas.parsing.syntax_tree import parse_document
from json_atlas.schema.insights import InsightBuilder, Severity, SeverityPolicy, ValidationInsight


def errors_for(schema, instance):
    return list(Draft202012Validator(schema).iter_errors(instance))


class TestBuildInsights:
    def test_missing_required_property(self) -> None:
        errors = errors_for({"type": "object", "required": ["name"]}, {})

        insights = InsightBuilder().build_insights(errors)

        assert insights == [
            ValidationInsight(
                id="::required::Missing required property: name",
                message="Missing required property: name",
                pointer="",
                path=[],
                severity=Severity.WARNING,
                keyword="required",
            )
        ]

    def test_each_missing_property_is_named(self) -> None:
        errors = errors_for({"required": ["a", "b", "c"]}, {"b": 1})

        messages = sorted(insight.message for insight in InsightBuilder().build_insights(errors))

        assert messages == ["Missing required property: a", "Missing required property: c"]

    def test_enum_values_are_listed(self) -> None:
        schema = {"properties": {"mode": {"enum": ["fast", 2, None, "ü"]}}}
        errors = errors_for(schema, {"mode": "slow"})

        (insight,) = InsightBuilder().build_insights(errors)

        assert insight.message == 'Value must be one of: "fast", 2, null, "ü"'
        assert insight.pointer == "/mode"
        assert insight.severity == Severity.ERROR
        assert insight.keyword == "enum"

    def test_nested_array_pointer(self) -> None:
        schema = {"properties": {"items": {"items": {"type": "integer"}}}}
        errors = errors_for(schema, {"items": [1, "two", 3]})

        (insight,) = InsightBuilder().build_insights(errors)

        assert insight.pointer == "/items/1"
        assert insight.path == ["items", 1]
        assert insight.id.startswith("/items/1::type::")

    def test_other_keywords_keep_validator_message(self) -> None:
        errors = errors_for({"type": "string"}, 3)
        (insight,) = InsightBuilder().build_insights(errors)
        assert insight.message == errors[0].message

    def test_policy_override(self) -> None:
        policy = SeverityPolicy(warning_keywords=frozenset({"type"}))
        errors = errors_for({"type": "string", "required": ["a"]}, {})

        severities = {insight.keyword: insight.severity for insight in InsightBuilder(policy).build_insights(errors)}

        assert severities == {"type": Severity.WARNING, "required": Severity.ERROR}


class TestBuildDiagnostics:
    TEXT = '{\n  "name": 5,\n  "tags": []\n}'

    def test_range_covers_offending_value(self) -> None:
        document = parse_document("file:///doc.json", self.TEXT)
        errors = errors_for({"properties": {"name": {"type": "string"}}}, document.value)

        (diagnostic,) = InsightBuilder().build_diagnostics(errors, document)

        assert diagnostic.range == lsp.Range(
            start=lsp.Position(line=1, character=10),
            end=lsp.Position(line=1, character=11),
        )
        assert diagnostic.source == "JSON Schema"
        assert diagnostic.severity == lsp.DiagnosticSeverity.Error
        assert diagnostic.code == "type"

    def test_required_uses_object_range_and_warning(self) -> None:
        document = parse_document("file:///doc.json", self.TEXT)
        errors = errors_for({"required": ["id"]}, document.value)

        (diagnostic,) = InsightBuilder().build_diagnostics(errors, document)

        assert diagnostic.message == "Missing required property: id"
        assert diagnostic.severity == lsp.DiagnosticSeverity.Warning
        assert diagnostic.range.start == lsp.Position(line=0, character=0)
        assert diagnostic.range.end == lsp.Position(line=3, character=1)

    def test_whole_text_without_tree(self) -> None:
        document = parse_document("file:///doc.json", '"x"\n')
        document.tree = None
        errors = errors_for({"type": "number"}, document.value)

        (diagnostic,) = InsightBuilder().build_diagnostics(errors, document)

        assert diagnostic.range == lsp.Range(
            start=lsp.Position(line=0, character=0),
            end=lsp.Position(line=1, character=0),
        )
