import json

import pytest
from click.testing import CliRunner
from loguru import logger

from json_schema_to_types.json_schema_to_types import json_schema_to_types
from json_schema_to_types.pipeline import PipelineGenerator

POINT = {
    "type": "object",
    "required": ["x", "y"],
    "properties": {"x": {"type": "number"}, "y": {"type": "number"}},
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def schema_path(tmp_path):
    path = tmp_path / "point.json"
    path.write_text(json.dumps(POINT))
    return path


class TestCli:
    """Test the command line entry point"""

    def test_python_to_stdout(self, runner, schema_path):
        result = runner.invoke(json_schema_to_types, [str(schema_path)])

        assert result.exit_code == 0, result.stderr
        assert result.stdout.startswith(
            "# Generated by json_schema_to_types. Do not edit by hand.\n# Command: json_schema_to_types point.json\n"
        )
        assert "class Point:\n    x: float\n    y: float\n" in result.stdout

    def test_rust(self, runner, schema_path):
        result = runner.invoke(json_schema_to_types, [str(schema_path), "--language", "rust"])

        assert result.exit_code == 0, result.stderr
        assert "// Command: json_schema_to_types point.json --language rust\n" in result.stdout
        assert "pub struct Point {\n    pub x: f64,\n    pub y: f64,\n}\n" in result.stdout

    def test_name(self, runner, schema_path):
        result = runner.invoke(json_schema_to_types, [str(schema_path), "-n", "Coordinate"])

        assert result.exit_code == 0, result.stderr
        assert "class Coordinate:" in result.stdout
        assert "class Point:" not in result.stdout

    def test_output_file_and_stdout(self, runner, schema_path, tmp_path):
        output = tmp_path / "generated" / "point.py"
        result = runner.invoke(json_schema_to_types, [str(schema_path), "-o", str(output)])

        assert result.exit_code == 0, result.stderr
        assert output.read_text() == result.stdout
        assert "--output point.py" in result.stdout
        assert [p.name for p in output.parent.iterdir()] == ["point.py"]

    def test_directory(self, runner, tmp_path):
        (tmp_path / "point.json").write_text(json.dumps(POINT))
        (tmp_path / "line.json").write_text(
            json.dumps({"type": "object", "properties": {"start": {"$ref": "point.json"}, "end": {"$ref": "point.json"}}})
        )

        result = runner.invoke(json_schema_to_types, [str(tmp_path)])

        assert result.exit_code == 0, result.stderr
        assert "class Line:\n    end: Point | None = None\n    start: Point | None = None\n" in result.stdout
        assert result.stdout.count("class Point:") == 1

    def test_dangling_reference(self, runner, tmp_path):
        schema_path = tmp_path / "broken.json"
        schema_path.write_text(json.dumps({"type": "object", "properties": {"a": {"$ref": "#/definitions/Missing"}}}))
        output = tmp_path / "broken.py"

        result = runner.invoke(json_schema_to_types, [str(schema_path), "-o", str(output)])

        assert result.exit_code == 1
        assert "DanglingReference" in result.stderr
        assert "broken.json#/properties/a" in result.stderr
        assert result.stdout == ""
        assert not output.exists()

    def test_unsupported_keyword(self, runner, tmp_path):
        schema_path = tmp_path / "odd.json"
        schema_path.write_text(json.dumps({"type": "object", "patternProperties": {"^a": {"type": "string"}}}))

        result = runner.invoke(json_schema_to_types, [str(schema_path)])

        assert result.exit_code == 1
        assert "UnsupportedKeyword" in result.stderr
        assert "patternProperties" in result.stderr

    def test_invalid_utf8(self, runner, tmp_path):
        schema_path = tmp_path / "latin1.json"
        schema_path.write_bytes(b'{"title": "\xff\xfe", "type": "string"}')

        result = runner.invoke(json_schema_to_types, [str(schema_path)])

        assert result.exit_code == 1
        assert "MalformedSchema" in result.stderr
        assert "not valid UTF-8" in result.stderr
        assert result.stdout == ""

    def test_missing_path(self, runner, tmp_path):
        result = runner.invoke(json_schema_to_types, [str(tmp_path / "missing.json")])
        assert result.exit_code == 2

    def test_unknown_language(self, runner, schema_path):
        result = runner.invoke(json_schema_to_types, [str(schema_path), "--language", "cs"])
        assert result.exit_code == 2


class TestCliConfig:
    """Config file and flag handling"""

    def write_config(self, tmp_path, config):
        path = tmp_path / "config.json"
        path.write_text(json.dumps(config))
        return path

    def test_config_file(self, runner, schema_path, tmp_path):
        config_path = self.write_config(tmp_path, {"use_dataclasses_json": False, "add_generation_comment": False})

        result = runner.invoke(json_schema_to_types, [str(schema_path), "-c", str(config_path)])

        assert result.exit_code == 0, result.stderr
        assert result.stdout.startswith("from __future__ import annotations\n")
        assert "dataclasses_json" not in result.stdout

    def test_invalid_config_file(self, runner, schema_path, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text("{not json")

        result = runner.invoke(json_schema_to_types, [str(schema_path), "-c", str(config_path)])

        assert result.exit_code == 1
        assert "Invalid config file" in result.stderr

    def test_unknown_formatter_option(self, runner, schema_path, tmp_path):
        config_path = self.write_config(tmp_path, {"formatter": {"indent": 2}})

        result = runner.invoke(json_schema_to_types, [str(schema_path), "-c", str(config_path)])

        assert result.exit_code == 1
        assert "Invalid config file" in result.stderr

    def test_existing_output_in_error_mode(self, runner, schema_path, tmp_path):
        config_path = self.write_config(tmp_path, {"output": {"mode": "error"}})
        output = tmp_path / "point.py"
        output.write_text("# hand written\n")

        result = runner.invoke(json_schema_to_types, [str(schema_path), "-c", str(config_path), "-o", str(output)])

        assert result.exit_code == 1
        assert "already exists" in result.stderr
        assert output.read_text() == "# hand written\n"

    def test_force_overrides_error_mode(self, runner, schema_path, tmp_path):
        config_path = self.write_config(tmp_path, {"output": {"mode": "error"}})
        output = tmp_path / "point.py"
        output.write_text("# hand written\n")

        result = runner.invoke(
            json_schema_to_types, [str(schema_path), "-c", str(config_path), "-o", str(output), "--force"]
        )

        assert result.exit_code == 0, result.stderr
        assert "class Point:" in output.read_text()

    def test_no_format_flag_overrides_config(self, runner, schema_path, tmp_path, monkeypatch):
        config_path = self.write_config(tmp_path, {"formatter": {"enabled": True, "tool": "ruff"}})

        def fail(*args, **kwargs):
            raise AssertionError("formatter should not run")

        monkeypatch.setattr(PipelineGenerator, "format", fail)
        result = runner.invoke(json_schema_to_types, [str(schema_path), "-c", str(config_path), "--no-format"])

        assert result.exit_code == 0, result.stderr
        assert "--no-format" in result.stdout


class TestCliLogging:
    """Diagnostics go to stderr or a log file, never to stdout"""

    def test_verbose_logs_to_stderr(self, runner, schema_path):
        result = runner.invoke(json_schema_to_types, [str(schema_path), "--verbose"])

        assert result.exit_code == 0, result.stderr
        assert "DEBUG" in result.stderr
        assert "Resolved 1 types: Point" in result.stderr
        assert "DEBUG" not in result.stdout
        assert "--verbose" not in result.stdout

    def test_log_file(self, runner, schema_path, tmp_path):
        log_path = tmp_path / "generate.log"

        result = runner.invoke(json_schema_to_types, [str(schema_path), "-v", "--log-file", str(log_path)])
        logger.remove()

        assert result.exit_code == 0, result.stderr
        assert "Resolved 1 types: Point" in log_path.read_text()
        assert "DEBUG" not in result.stderr


if __name__ == "__main__":
    pytest.main([__file__])
