"""Tests for choosing the schema source of a document."""

import json
from pathlib import Path
from typing import List

import pytest

from json_atlas.config import AtlasConfig, AtlasSchemaMapping, JsonSchemaMapping
from json_atlas.notifications import WarningChannel
from json_atlas.schema.associations import SchemaAssociationStore
from json_atlas.schema.source_resolver import InlineSchemaSource, SchemaSourceResolver, UriSchemaSource
from json_atlas.utils.uri_utils import path_to_uri
from json_atlas.workspace import WorkspaceFolders


@pytest.fixture
def messages() -> List[str]:
    return []


@pytest.fixture
def store(workspace: WorkspaceFolders) -> SchemaAssociationStore:
    return SchemaAssociationStore(workspace)


def make_resolver(workspace, messages, store=None, **config_fields) -> SchemaSourceResolver:
    return SchemaSourceResolver(
        AtlasConfig(**config_fields),
        workspace,
        WarningChannel(messages.append),
        store,
    )


class TestEmbeddedSchema:
    def test_relative_reference_resolves_against_workspace(self, workspace, workspace_root, messages, make_document) -> None:
        resolver = make_resolver(workspace, messages)
        document = make_document(workspace_root / "data" / "doc.json", {"$schema": "./schemas/doc.schema.json"})

        source = resolver.resolve(document)

        expected = path_to_uri(str(workspace_root / "schemas" / "doc.schema.json"))
        assert source == UriSchemaSource(location=expected, cache_key=expected)
        assert source.kind == "uri"

    def test_absolute_uri_is_used_as_is(self, workspace, workspace_root, messages, make_document) -> None:
        resolver = make_resolver(workspace, messages)
        document = make_document(workspace_root / "doc.json", {"$schema": "https://example.com/s.json"})
        assert resolver.resolve(document).location == "https://example.com/s.json"

    def test_absolute_path_becomes_file_uri(self, workspace, workspace_root, tmp_path, messages, make_document) -> None:
        schema_path = tmp_path / "elsewhere" / "s.json"
        resolver = make_resolver(workspace, messages)
        document = make_document(workspace_root / "doc.json", {"$schema": str(schema_path)})
        assert resolver.resolve(document).location == path_to_uri(str(schema_path))

    def test_outside_workspace_resolves_against_parent(self, tmp_path, messages, make_document) -> None:
        resolver = make_resolver(WorkspaceFolders(), messages)
        document = make_document(tmp_path / "loose" / "doc.json", {"$schema": "s.json"})
        assert resolver.resolve(document).location == path_to_uri(str(tmp_path / "loose" / "s.json"))

    def test_nested_schema_key_is_ignored(self, workspace, workspace_root, messages, make_document) -> None:
        resolver = make_resolver(workspace, messages)
        document = make_document(workspace_root / "doc.json", {"inner": {"$schema": "s.json"}})
        assert resolver.resolve(document) is None

    def test_embedded_wins_over_assignment(self, workspace, workspace_root, messages, store, make_document) -> None:
        resolver = make_resolver(workspace, messages, store)
        path = workspace_root / "doc.json"
        store.set_schema_reference(path_to_uri(str(path)), "assigned.json")
        document = make_document(path, {"$schema": "embedded.json"})
        assert resolver.resolve(document).location.endswith("/embedded.json")


class TestAssignment:
    def test_assignment_cache_key(self, workspace, workspace_root, messages, store, make_document) -> None:
        path = workspace_root / "data" / "doc.json"
        uri = path_to_uri(str(path))
        store.set_schema_reference(uri, "./schemas/assigned.json")
        resolver = make_resolver(
            workspace,
            messages,
            store,
            json_schemas=[JsonSchemaMapping(url="ignored.json")],
        )

        source = resolver.resolve(make_document(path, {}))

        assert source.cache_key == f"assignment:{uri}"
        assert source.location == path_to_uri(str(workspace_root / "schemas" / "assigned.json"))


class TestJsonSchemasSetting:
    def test_inline_schema(self, workspace, workspace_root, messages, make_document) -> None:
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}
        resolver = make_resolver(
            workspace,
            messages,
            json_schemas=[JsonSchemaMapping(file_match=["*.config.json"], schema=schema, has_inline_schema=True)],
        )

        source = resolver.resolve(make_document(workspace_root / "app.config.json", {}))

        assert isinstance(source, InlineSchemaSource)
        assert source.kind == "inline"
        assert source.schema_value == schema
        assert source.raw_text == json.dumps(schema, indent=2)
        assert source.cache_key == "inline:json-schema:*.config.json"
        assert source.location == "json-schema:*.config.json"

    def test_inline_schema_with_url_uses_url_as_base(self, workspace, workspace_root, messages, make_document) -> None:
        resolver = make_resolver(
            workspace,
            messages,
            json_schemas=[
                JsonSchemaMapping(url="https://example.com/s.json", schema={"type": "object"}, has_inline_schema=True)
            ],
        )
        source = resolver.resolve(make_document(workspace_root / "doc.json", {}))
        assert source.cache_key == "inline:https://example.com/s.json"
        assert source.location == "https://example.com/s.json"

    def test_mapping_without_file_match_applies_everywhere(self, workspace, workspace_root, messages, make_document) -> None:
        resolver = make_resolver(workspace, messages, json_schemas=[JsonSchemaMapping(url="schemas/all.json")])
        source = resolver.resolve(make_document(workspace_root / "deep" / "doc.json", {}))
        expected = path_to_uri(str(workspace_root / "schemas" / "all.json"))
        assert source == UriSchemaSource(location=expected, cache_key=expected)

    def test_first_matching_mapping_wins(self, workspace, workspace_root, messages, make_document) -> None:
        resolver = make_resolver(
            workspace,
            messages,
            json_schemas=[
                JsonSchemaMapping(file_match=["*.yaml"], url="yaml.json"),
                JsonSchemaMapping(file_match=["data/*.json"], url="data.json"),
                JsonSchemaMapping(file_match=["**/*.json"], url="fallback.json"),
            ],
        )
        source = resolver.resolve(make_document(workspace_root / "data" / "doc.json", {}))
        assert source.location.endswith("/data.json")

    def test_star_stays_within_one_directory(self, workspace, workspace_root, messages, make_document) -> None:
        resolver = make_resolver(
            workspace,
            messages,
            json_schemas=[
                JsonSchemaMapping(file_match=["*.json"], url="top.json"),
                JsonSchemaMapping(file_match=["configs/*.json"], url="configs.json"),
            ],
        )

        nested = resolver.resolve(make_document(workspace_root / "configs" / "app.json", {}))
        top = resolver.resolve(make_document(workspace_root / "app.json", {}))
        deeper = resolver.resolve(make_document(workspace_root / "configs" / "deep" / "app.json", {}))

        assert nested.location.endswith("/configs.json")
        assert top.location.endswith("/top.json")
        assert deeper is None

    def test_absolute_pattern(self, workspace, workspace_root, messages, make_document) -> None:
        path = workspace_root / "doc.json"
        resolver = make_resolver(
            workspace,
            messages,
            json_schemas=[JsonSchemaMapping(file_match=[path.as_posix()], url="s.json")],
        )
        assert resolver.resolve(make_document(path, {})) is not None


class TestAtlasSchemasSetting:
    def test_atlas_mapping(self, workspace, workspace_root, messages, make_document) -> None:
        resolver = make_resolver(
            workspace,
            messages,
            atlas_schemas=[AtlasSchemaMapping(pattern="**/data/*.json", schema="schemas/data.json")],
        )

        source = resolver.resolve(make_document(workspace_root / "data" / "doc.json", {}))

        expected = path_to_uri(str(workspace_root / "schemas" / "data.json"))
        assert source.location == expected
        assert source.cache_key == f"atlas:**/data/*.json:{expected}"

    def test_json_schemas_take_priority(self, workspace, workspace_root, messages, make_document) -> None:
        resolver = make_resolver(
            workspace,
            messages,
            json_schemas=[JsonSchemaMapping(file_match=["*.json"], url="generic.json")],
            atlas_schemas=[AtlasSchemaMapping(pattern="*.json", schema="atlas.json")],
        )
        source = resolver.resolve(make_document(workspace_root / "doc.json", {}))
        assert source.location.endswith("/generic.json")


class TestNoSchema:
    def test_warns_once_per_document(self, workspace, workspace_root, messages, make_document) -> None:
        resolver = make_resolver(workspace, messages)
        document = make_document(workspace_root / "doc.json", {})

        assert resolver.resolve(document) is None
        assert resolver.resolve(document) is None

        assert len(messages) == 1
        assert str(Path(workspace_root / "doc.json")) in messages[0]

    def test_distinct_documents_warn_separately(self, workspace, workspace_root, messages, make_document) -> None:
        resolver = make_resolver(workspace, messages)
        resolver.resolve(make_document(workspace_root / "a.json", {}))
        resolver.resolve(make_document(workspace_root / "b.json", {}))
        assert len(messages) == 2
