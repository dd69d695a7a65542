import json
from unittest import TestCase

import pytest

from json_schema_to_types.errors import DanglingReference, MalformedSchema, UnsupportedKeyword
from json_schema_to_types.pipeline.config import CodeGeneratorConfig
from json_schema_to_types.pipeline.loader import NodeKind, SchemaLoader
from json_schema_to_types.pipeline.loader.loader import root_name_for


def load(schema, **config):
    return SchemaLoader(CodeGeneratorConfig(**config)).load_schema(schema)


def root_of(schema, **config):
    return load(schema, **config).documents[0].root


class TestSchemaLoader(TestCase):
    """Test parsing in-memory schemas into SchemaNodes"""

    def test_object_properties_are_sorted(self):
        root = root_of({"type": "object", "required": ["b"], "properties": {"b": {"type": "string"}, "a": {"type": "integer"}}})

        self.assertEqual(root.kind, NodeKind.OBJECT)
        self.assertEqual(list(root.properties), ["a", "b"])
        self.assertEqual(root.required, ["b"])
        self.assertEqual(root.properties["a"].primitive, "integer")
        self.assertEqual(root.properties["b"].location, "<Root>#/properties/b")

    def test_properties_without_type_are_an_object(self):
        root = root_of({"properties": {"a": {"type": "string"}}})
        self.assertEqual(root.kind, NodeKind.OBJECT)

    def test_object_without_properties_is_a_map(self):
        root = root_of({"type": "object", "additionalProperties": {"type": "integer"}})
        self.assertEqual(root.kind, NodeKind.MAP)
        self.assertEqual(root.values.primitive, "integer")

        root = root_of({"type": "object"})
        self.assertEqual(root.kind, NodeKind.MAP)
        self.assertIsNone(root.values)

    def test_closed_empty_object_is_an_object(self):
        root = root_of({"type": "object", "additionalProperties": False})
        self.assertEqual(root.kind, NodeKind.OBJECT)
        self.assertEqual(root.properties, {})

    def test_definitions_are_sorted_and_named(self):
        doc = load({"definitions": {"b_item": {"type": "string"}, "A": {"type": "integer"}}}).documents[0]

        self.assertEqual(list(doc.definitions), ["/definitions/A", "/definitions/b_item"])
        self.assertEqual(doc.definitions["/definitions/b_item"].name_hint, "b_item")
        self.assertEqual(doc.root.kind, NodeKind.ANY)

    def test_reference_links_to_definition(self):
        doc = load(
            {
                "type": "object",
                "properties": {"a": {"$ref": "#/definitions/A"}, "b": {"$ref": "#/$defs/B"}},
                "definitions": {"A": {"type": "string"}},
                "$defs": {"B": {"type": "boolean"}},
            }
        ).documents[0]

        a = doc.root.properties["a"]
        self.assertEqual(a.kind, NodeKind.REFERENCE)
        self.assertIs(a.deref(), doc.definitions["/definitions/A"])
        self.assertEqual(doc.root.properties["b"].deref().name_hint, "B")

    def test_root_reference(self):
        root = root_of({"type": "object", "properties": {"next": {"$ref": "#"}}})
        self.assertIs(root.properties["next"].deref(), root)

    def test_type_list_is_a_union(self):
        root = root_of({"type": ["string", "null"]})

        self.assertEqual(root.kind, NodeKind.UNION)
        self.assertEqual(root.union_keyword, "type")
        self.assertEqual([v.primitive for v in root.variants], ["string", "null"])

    def test_single_type_list_is_not_a_union(self):
        root = root_of({"type": ["integer"]})
        self.assertEqual(root.kind, NodeKind.PRIMITIVE)

    def test_const_and_enum(self):
        const = root_of({"const": "circle"})
        self.assertEqual(const.kind, NodeKind.ENUM)
        self.assertTrue(const.is_const)
        self.assertEqual(const.enum_values, ["circle"])

        enum = root_of({"type": "string", "enum": ["a", "b"]})
        self.assertEqual(enum.kind, NodeKind.ENUM)
        self.assertEqual(enum.enum_values, ["a", "b"])

    def test_one_of_with_discriminator(self):
        root = root_of(
            {
                "oneOf": [{"type": "string"}, {"type": "integer"}],
                "discriminator": {"propertyName": "kind"},
            }
        )
        self.assertEqual(root.kind, NodeKind.UNION)
        self.assertEqual(root.union_keyword, "oneOf")
        self.assertEqual(root.discriminator, "kind")
        self.assertEqual(len(root.variants), 2)

    def test_all_of_properties_become_a_member(self):
        root = root_of(
            {
                "allOf": [{"type": "object", "properties": {"a": {"type": "string"}}}],
                "properties": {"b": {"type": "string"}},
            }
        )
        self.assertEqual(root.kind, NodeKind.ALL_OF)
        self.assertEqual(len(root.variants), 2)
        self.assertEqual(list(root.variants[1].properties), ["b"])

    def test_defaults_and_descriptions(self):
        root = root_of({"type": "integer", "default": 0, "description": "Count"})
        self.assertTrue(root.has_default)
        self.assertEqual(root.default, 0)
        self.assertEqual(root.description, "Count")

    def test_annotation_keywords_are_accepted(self):
        root = root_of({"type": "string", "minLength": 1, "pattern": "^a", "x-internal": True, "$comment": "ok"})
        self.assertEqual(root.kind, NodeKind.PRIMITIVE)


class TestSchemaLoaderErrors:
    """Every load failure names the offending location"""

    def test_dangling_reference(self):
        with pytest.raises(DanglingReference, match="'#/definitions/Missing' does not resolve") as exc_info:
            load({"type": "object", "properties": {"a": {"$ref": "#/definitions/Missing"}}})
        assert exc_info.value.location == "<Root>#/properties/a"
        assert str(exc_info.value).startswith("DanglingReference at <Root>#/properties/a: ")

    def test_unknown_keyword(self):
        with pytest.raises(UnsupportedKeyword, match="unknown keyword 'colour'"):
            load({"type": "string", "colour": "red"})

    def test_unknown_keyword_allowed_by_config(self):
        root = root_of({"type": "string", "colour": "red"}, allow_unknown_keywords=True)
        assert root.kind is NodeKind.PRIMITIVE

    @pytest.mark.parametrize("keyword", ["patternProperties", "if", "not", "prefixItems"])
    def test_unsupported_keyword(self, keyword):
        with pytest.raises(UnsupportedKeyword, match=f"keyword '{keyword}' is not supported"):
            load({"type": "object", keyword: {}})

    def test_false_schema(self):
        with pytest.raises(UnsupportedKeyword):
            load({"type": "object", "properties": {"never": False}})

    def test_ref_with_structural_siblings(self):
        with pytest.raises(UnsupportedKeyword, match=r"\$ref combined with type"):
            load({"$ref": "#/definitions/A", "type": "object", "definitions": {"A": {"type": "string"}}})

    def test_one_of_with_any_of(self):
        with pytest.raises(UnsupportedKeyword, match="oneOf combined with anyOf"):
            load({"oneOf": [{"type": "string"}], "anyOf": [{"type": "integer"}]})

    def test_tuple_items(self):
        with pytest.raises(UnsupportedKeyword, match="tuple-style items"):
            load({"type": "array", "items": [{"type": "string"}]})

    def test_empty_enum(self):
        with pytest.raises(MalformedSchema, match="enum must be a non-empty array"):
            load({"enum": []})

    def test_unknown_type(self):
        with pytest.raises(MalformedSchema, match="unknown type 'text'"):
            load({"type": "text"})

    def test_reference_cycle_without_a_shape(self):
        with pytest.raises(MalformedSchema, match="only leads to other references"):
            load({"$ref": "#/definitions/A", "definitions": {"A": {"$ref": "#"}}})

    def test_schema_must_be_an_object(self):
        with pytest.raises(MalformedSchema, match="expected a schema object"):
            load(["not", "a", "schema"])


class TestSchemaFiles:
    """Loading schema files and directories"""

    def test_root_name_for(self, tmp_path):
        assert root_name_for(tmp_path / "tool_call.schema.json") == "ToolCall"
        assert root_name_for(tmp_path / "point.json") == "Point"
        assert root_name_for(tmp_path / "api-response.json") == "ApiResponse"

    def test_file_reference(self, tmp_path):
        (tmp_path / "common.json").write_text(json.dumps({"definitions": {"Id": {"type": "string"}}}))
        schema_path = tmp_path / "item.json"
        schema_path.write_text(json.dumps({"type": "object", "properties": {"id": {"$ref": "common.json#/definitions/Id"}}}))

        graph = SchemaLoader().load(schema_path)

        assert [doc.root_name for doc in graph.documents] == ["Item"]
        assert len(graph.loaded) == 2
        target = graph.documents[0].root.properties["id"].deref()
        assert target.name_hint == "Id"
        assert target.location.endswith("common.json#/definitions/Id")

    def test_root_name_argument(self, tmp_path):
        schema_path = tmp_path / "item.json"
        schema_path.write_text(json.dumps({"type": "string"}))

        graph = SchemaLoader().load(schema_path, "Custom")
        assert graph.documents[0].root_name == "Custom"

    def test_directory_loads_every_json_file_sorted(self, tmp_path):
        (tmp_path / "b.json").write_text(json.dumps({"type": "object", "properties": {"a": {"$ref": "a.json"}}}))
        (tmp_path / "a.json").write_text(json.dumps({"type": "object", "properties": {"x": {"type": "string"}}}))
        (tmp_path / "notes.txt").write_text("not a schema")

        graph = SchemaLoader().load(tmp_path)

        assert [doc.root_name for doc in graph.documents] == ["A", "B"]
        assert graph.documents[1].root.properties["a"].deref() is graph.documents[0].root

    def test_empty_directory(self, tmp_path):
        with pytest.raises(MalformedSchema, match="no \\*.json schema files"):
            SchemaLoader().load(tmp_path)

    def test_invalid_json(self, tmp_path):
        schema_path = tmp_path / "broken.json"
        schema_path.write_text('{"type": "object",,}')

        with pytest.raises(MalformedSchema, match="invalid JSON at line 1"):
            SchemaLoader().load(schema_path)

    def test_invalid_utf8(self, tmp_path):
        schema_path = tmp_path / "latin1.json"
        schema_path.write_bytes(b'{"title": "\xff"}')

        with pytest.raises(MalformedSchema, match="not valid UTF-8: invalid start byte at byte 11") as exc_info:
            SchemaLoader().load(schema_path)
        assert exc_info.value.location.endswith("latin1.json")

    def test_missing_file(self, tmp_path):
        with pytest.raises(MalformedSchema, match="schema file does not exist"):
            SchemaLoader().load(tmp_path / "missing.json")

    def test_missing_referenced_file(self, tmp_path):
        schema_path = tmp_path / "item.json"
        schema_path.write_text(json.dumps({"type": "object", "properties": {"id": {"$ref": "missing.json#/definitions/Id"}}}))

        with pytest.raises(DanglingReference, match="does not exist") as exc_info:
            SchemaLoader().load(schema_path)
        assert exc_info.value.location.endswith("item.json#/properties/id")


if __name__ == "__main__":
    pytest.main([__file__])
