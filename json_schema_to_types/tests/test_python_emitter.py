import json
import sys
import types
import typing
from pathlib import Path

import pytest

from json_schema_to_types.pipeline import CodeGeneratorConfig, PipelineGenerator


def load_test_data():
    """Load test cases from JSON file"""
    test_data_path = Path(__file__).parent / "test_data" / "python_emitter_tests.json"
    with open(test_data_path) as f:
        return json.load(f)


def generate(schema, config_dict=None, name="Root"):
    config = CodeGeneratorConfig()
    for key, value in (config_dict or {}).items():
        setattr(config, key, value)
    return PipelineGenerator(name, schema, config, "python").generate()


def load_module(code, name, monkeypatch):
    """Execute generated code as an importable module"""
    module = types.ModuleType(name)
    monkeypatch.setitem(sys.modules, name, module)
    exec(compile(code, f"<{name}>", "exec"), module.__dict__)
    return module


@pytest.mark.parametrize("test_case", load_test_data(), ids=lambda tc: tc["name"])
def test_python_emitter(test_case):
    """Generated Python contains the expected declarations"""
    output = generate(test_case["schema"], test_case["config"])

    for expected in test_case["expected_contains"]:
        assert expected in output, f"Expected '{expected}' not found in output:\n{output}"

    for not_expected in test_case["expected_not_contains"]:
        assert not_expected not in output, f"Unwanted '{not_expected}' found in output:\n{output}"


NODE_SCHEMA = {
    "title": "Node",
    "type": "object",
    "required": ["value"],
    "properties": {
        "value": {"type": "integer"},
        "next": {"$ref": "#"},
    },
}

SHAPE_SCHEMA = {
    "title": "Shape",
    "oneOf": [
        {
            "type": "object",
            "required": ["type", "radius"],
            "properties": {"type": {"const": "circle"}, "radius": {"type": "number"}},
        },
        {
            "type": "object",
            "required": ["type", "side"],
            "properties": {"type": {"const": "square"}, "side": {"type": "number"}},
        },
    ],
}

PLAIN = {"use_dataclasses_json": False}


class TestGeneratedCodeRuns:
    """The generated modules import and behave like hand-written ones"""

    def test_recursive_struct(self, monkeypatch):
        module = load_module(generate(NODE_SCHEMA, PLAIN), "generated_node", monkeypatch)

        node = module.Node(next=module.Node(value=1), value=2)
        assert node.value == 2
        assert node.next.value == 1
        assert node.next.next is None

    def test_recursive_struct_with_eager_annotations(self, monkeypatch):
        config = {**PLAIN, "use_future_annotations": False}
        module = load_module(generate(NODE_SCHEMA, config), "generated_eager_node", monkeypatch)

        assert module.Node(value=1).next is None

    def test_union_checks_the_variant_type(self, monkeypatch):
        schema = {"oneOf": [{"type": "string"}, {"type": "integer"}]}
        module = load_module(generate(schema, PLAIN), "generated_union", monkeypatch)

        assert module.Root(tag="String", value="text").value == "text"
        assert module.Root(tag="Integer", value=3).value == 3

        with pytest.raises(TypeError, match="does not accept int"):
            module.Root(tag="String", value=3)
        with pytest.raises(ValueError, match="Unknown Root tag"):
            module.Root(tag="Float", value=1.5)

    def test_discriminated_union(self, monkeypatch):
        module = load_module(generate(SHAPE_SCHEMA, PLAIN), "generated_shape", monkeypatch)

        circle = module.ShapeCircle(radius=1.5, type=module.ShapeCircleType.CIRCLE)
        shape = module.Shape(tag="circle", value=circle)

        assert module.Shape.DISCRIMINATOR == "type"
        assert shape.value.radius == 1.5
        assert module.ShapeCircleType("circle") is module.ShapeCircleType.CIRCLE

        with pytest.raises(TypeError):
            module.Shape(tag="circle", value=module.ShapeSquare(side=2.0, type=module.ShapeSquareType.SQUARE))

    def test_declared_discriminator_with_shared_values(self, monkeypatch):
        schema = {
            "oneOf": [
                {"type": "object", "required": ["kind", "x"], "properties": {"kind": {"const": "a"}, "x": {"type": "integer"}}},
                {"type": "object", "required": ["kind", "y"], "properties": {"kind": {"const": "a"}, "y": {"type": "string"}}},
            ],
            "discriminator": {"propertyName": "kind"},
        }
        module = load_module(generate(schema, PLAIN), "generated_shared_tags", monkeypatch)

        first = module.RootVariant0(kind=module.RootVariant0Kind.A, x=1)
        assert module.Root(tag="Variant0", value=first).value is first

        with pytest.raises(TypeError):
            module.Root(tag="Variant1", value=first)

    def test_enum_defaults(self, monkeypatch):
        schema = {
            "type": "object",
            "properties": {
                "mode": {"enum": ["fast", "slow"], "default": "slow"},
                "tags": {"type": "array", "items": {"type": "string"}, "default": ["a"]},
            },
        }
        module = load_module(generate(schema, PLAIN), "generated_defaults", monkeypatch)

        first, second = module.Root(), module.Root()
        assert first.mode is module.RootMode.SLOW
        assert first.tags == ["a"]
        assert first.tags is not second.tags

    def test_enum_values_equal_in_python_stay_distinct(self, monkeypatch):
        schema = {
            "type": "object",
            "properties": {
                "level": {"enum": [1, True, "a"], "default": True},
            },
        }
        module = load_module(generate(schema, PLAIN), "generated_literal_enum", monkeypatch)

        values = typing.get_args(module.RootLevel)
        assert [type(v) for v in values] == [int, bool, str]
        assert module.Root().level is True

    def test_dataclasses_json_round_trip(self, monkeypatch):
        pytest.importorskip("dataclasses_json")
        schema = {
            "type": "object",
            "required": ["mimeType", "origin"],
            "properties": {
                "mimeType": {"type": "string"},
                "origin": {"$ref": "#/definitions/Point"},
            },
            "definitions": {
                "Point": {
                    "type": "object",
                    "required": ["x", "y"],
                    "properties": {"x": {"type": "number"}, "y": {"type": "number"}},
                }
            },
        }
        module = load_module(generate(schema), "generated_json", monkeypatch)

        root = module.Root.from_dict({"mimeType": "text/plain", "origin": {"x": 1.0, "y": 2.0}})
        assert root.mime_type == "text/plain"
        assert root.origin.y == 2.0
        assert root.to_dict()["mimeType"] == "text/plain"


if __name__ == "__main__":
    pytest.main([__file__])
