import json
from pathlib import Path

import pytest

from json_schema_to_types.pipeline import CodeGeneratorConfig, PipelineGenerator


def load_test_data():
    """Load test cases from JSON file"""
    test_data_path = Path(__file__).parent / "test_data" / "rust_emitter_tests.json"
    with open(test_data_path) as f:
        return json.load(f)


@pytest.mark.parametrize("test_case", load_test_data(), ids=lambda tc: tc["name"])
def test_rust_emitter(test_case):
    """Generated Rust contains the expected declarations"""
    config = CodeGeneratorConfig()
    for key, value in test_case["config"].items():
        setattr(config, key, value)

    output = PipelineGenerator("Root", test_case["schema"], config, "rust").generate()

    for expected in test_case["expected_contains"]:
        assert expected in output, f"Expected '{expected}' not found in output:\n{output}"

    for not_expected in test_case["expected_not_contains"]:
        assert not_expected not in output, f"Unwanted '{not_expected}' found in output:\n{output}"


def test_declarations_are_separated_by_one_blank_line():
    schema = {
        "type": "object",
        "properties": {"mode": {"enum": ["a", "b"]}},
    }
    output = PipelineGenerator("Root", schema, language="rust").generate()

    assert "}\n\n#[derive" in output
    assert "\n\n\n" not in output
    assert output.endswith("}\n")


if __name__ == "__main__":
    pytest.main([__file__])
