"""Tests for document parsing and syntax tree lookups."""

from json_atlas.parsing.syntax_tree import (
    blank_jsonc,
    build_pointer_index,
    find_node_at_path,
    get_root_string_property,
    parse_document,
    parse_tree,
    path_at_offset,
)

JSON_TEXT = '{"name": "atlas", "items": [1, {"flag": true}], "empty": null}'


class TestParseDocument:
    def test_json_value_and_tree(self) -> None:
        document = parse_document("file:///doc.json", JSON_TEXT)
        assert document.ok
        assert document.value == {"name": "atlas", "items": [1, {"flag": True}], "empty": None}
        assert document.tree is not None
        assert document.tree.type == "object"
        assert document.tree.offset == 0
        assert document.tree.length == len(JSON_TEXT)

    def test_invalid_json_records_error(self) -> None:
        document = parse_document("file:///doc.json", '{"name": ')
        assert not document.ok
        assert document.tree is None
        assert document.value is None

    def test_yaml_document(self) -> None:
        document = parse_document("file:///doc.yaml", "server:\n  port: 8080\n", "yaml")
        assert document.ok
        assert document.value == {"server": {"port": 8080}}
        node = find_node_at_path(document.tree, ["server", "port"])
        assert node is not None
        assert node.type == "number"
        assert node.value == "8080"

    def test_json_indented_with_tabs(self) -> None:
        text = '{\n\t"a": {\n\t\t"b": 1\n\t}\n}'
        document = parse_document("file:///doc.json", text)
        assert document.ok
        node = find_node_at_path(document.tree, ["a", "b"])
        assert node is not None
        assert text[node.offset:node.end] == "1"


JSONC_TEXT = '{\n  // service\n  "a": 1, /* spans\n lines */ "b": "http://x/*y*/",\n  "c": [1, 2,],\n}'


class TestJsonc:
    def test_comments_and_trailing_commas(self) -> None:
        document = parse_document("file:///doc.jsonc", JSONC_TEXT, "jsonc")

        assert document.ok
        assert document.text == JSONC_TEXT
        assert document.value == {"a": 1, "b": "http://x/*y*/", "c": [1, 2]}

    def test_offsets_follow_the_original_text(self) -> None:
        document = parse_document("file:///doc.jsonc", JSONC_TEXT, "jsonc")

        node = find_node_at_path(document.tree, ["b"])
        assert JSONC_TEXT[node.offset:node.end] == '"http://x/*y*/"'
        node = find_node_at_path(document.tree, ["c", 1])
        assert JSONC_TEXT[node.offset:node.end] == "2"

    def test_blanking_keeps_length_and_lines(self) -> None:
        blanked = blank_jsonc(JSONC_TEXT)

        assert len(blanked) == len(JSONC_TEXT)
        assert blanked.count("\n") == JSONC_TEXT.count("\n")
        assert "//" not in blanked.replace("http://", "")
        assert "spans" not in blanked

    def test_comma_inside_string_is_kept(self) -> None:
        assert blank_jsonc('{"a": ",]"}') == '{"a": ",]"}'

    def test_plain_json_rejects_comments(self) -> None:
        document = parse_document("file:///doc.json", '{\n // c\n "a": 1\n}')
        assert not document.ok


class TestFindNodeAtPath:
    def test_scalar_ranges_cover_source_text(self) -> None:
        tree = parse_tree(JSON_TEXT)
        name = find_node_at_path(tree, ["name"])
        assert name.type == "string"
        assert JSON_TEXT[name.offset:name.end] == '"atlas"'

    def test_scalar_types(self) -> None:
        tree = parse_tree(JSON_TEXT)
        assert find_node_at_path(tree, ["items", 0]).type == "number"
        assert find_node_at_path(tree, ["items", 1, "flag"]).type == "boolean"
        assert find_node_at_path(tree, ["empty"]).type == "null"

    def test_missing_locations(self) -> None:
        tree = parse_tree(JSON_TEXT)
        assert find_node_at_path(tree, ["missing"]) is None
        assert find_node_at_path(tree, ["items", 5]) is None
        assert find_node_at_path(tree, ["name", "deeper"]) is None

    def test_empty_path_is_root(self) -> None:
        tree = parse_tree(JSON_TEXT)
        assert find_node_at_path(tree, []) is tree


class TestPathAtOffset:
    def test_offset_inside_value(self) -> None:
        tree = parse_tree(JSON_TEXT)
        offset = JSON_TEXT.index("true")
        assert path_at_offset(tree, offset) == ["items", 1, "flag"]

    def test_offset_on_key_resolves_to_property(self) -> None:
        tree = parse_tree(JSON_TEXT)
        offset = JSON_TEXT.index('"name"') + 2
        assert path_at_offset(tree, offset) == ["name"]

    def test_offset_between_properties_is_the_object(self) -> None:
        text = '{"a": 1,    "b": 2}'
        tree = parse_tree(text)
        assert path_at_offset(tree, text.index("1,") + 4) == []

    def test_offset_outside_tree(self) -> None:
        assert path_at_offset(None, 0) is None


class TestBuildPointerIndex:
    def test_indexes_every_location(self) -> None:
        text = '{"properties": {"a/b": {"type": "string"}}, "prefixItems": [{"type": "number"}]}'
        index = build_pointer_index(parse_tree(text))
        assert set(index) == {
            "#",
            "#/properties",
            "#/properties/a~1b",
            "#/properties/a~1b/type",
            "#/prefixItems",
            "#/prefixItems/0",
            "#/prefixItems/0/type",
        }
        node = index["#/properties/a~1b"]
        assert text[node.offset:node.end] == '{"type": "string"}'

    def test_no_tree(self) -> None:
        assert build_pointer_index(None) == {}


class TestRootStringProperty:
    def test_reads_top_level_string(self) -> None:
        tree = parse_tree('{"$schema": "./schema.json", "nested": {"$schema": "x"}}')
        assert get_root_string_property(tree, "$schema") == "./schema.json"

    def test_ignores_non_strings(self) -> None:
        tree = parse_tree('{"$schema": 3}')
        assert get_root_string_property(tree, "$schema") is None
        assert get_root_string_property(parse_tree("[1]"), "$schema") is None
