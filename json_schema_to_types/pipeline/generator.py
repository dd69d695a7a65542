"""
Pipeline generator.

Runs the phases in order on one input:

1. Loader: read the schema file(s) into a linked SchemaNode graph
2. Type resolver: dedupe, name, compose and order the types
3. Emitter: render the types for the target language
4. Formatter: optional post-processing of the complete buffer
5. Writer: optional atomic write of the result
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from loguru import logger

from .analyzer import GenerationUnit, TypeResolver
from .config import CodeGeneratorConfig, OutputMode
from .emitters import EMITTERS, get_emitter
from .formatters import get_formatter
from .loader import SchemaGraph, SchemaLoader
from .writer import AtomicWriter


class PipelineGenerator:
    """JSON Schema to types generator."""

    def __init__(
        self,
        name: str | None,
        schema: str | Path | dict[str, Any],
        config: CodeGeneratorConfig | None = None,
        language: str = "python",
        base_dir: str | Path | None = None,
    ):
        """
        Initialize the generator.

        Args:
            name: Root type name (None: derived from the file name, or "Root")
            schema: Schema file or directory path, or an already parsed schema
            config: Code generation configuration
            language: Target language ("python" or "rust")
            base_dir: Directory file references are relative to, for parsed schemas
        """
        if language not in EMITTERS:
            raise ValueError(f"Unsupported language: {language}")

        self.name = name
        self.schema = schema
        self.config = config or CodeGeneratorConfig()
        self.language = language
        self.base_dir = base_dir

    def load(self) -> SchemaGraph:
        """Phase 1: build the linked schema graph."""
        loader = SchemaLoader(self.config)
        if isinstance(self.schema, (str, Path)):
            return loader.load(self.schema, self.name)
        return loader.load_schema(self.schema, self.name or "Root", self.base_dir)

    def resolve(self) -> GenerationUnit:
        """Phases 1-2: the resolved, ordered type set."""
        graph = self.load()
        return TypeResolver(self.config, self.language).resolve(graph)

    def generate(self, command_line: str | None = None) -> str:
        """
        Generate code for the schema.

        Args:
            command_line: Command recorded in the generation comment

        Returns:
            Generated (and, if enabled, formatted) source code

        Raises:
            SchemaError: If the schema cannot be loaded or resolved
        """
        unit = self.resolve()

        emitter = get_emitter(self.language, self.config)
        code = emitter.emit(unit, self._generation_comment(command_line))

        if self.config.formatter.enabled:
            code = self.format(code)
        return code

    def format(self, code: str) -> str:
        """Phase 4: run the configured formatter on a complete buffer."""
        formatter = get_formatter(self.language, self.config.formatter.tool)
        logger.debug(f"Formatting with {formatter.name}")
        return formatter.format(code, self.config.formatter)

    def write(self, code: str, output: str | Path) -> None:
        """
        Phase 5: write the generated code to a file.

        Raises:
            OutputError: If the file exists in "error" mode, fails validation
                or cannot be written
        """
        output = Path(output)
        output_config = self.config.output
        writer = AtomicWriter(atomic=output_config.atomic_write)

        if output_config.mode is OutputMode.ERROR_IF_EXISTS:
            writer.write_if_not_exists(output, code, self.language, output_config.validate_before_write)
        else:
            writer.write(output, code, self.language, output_config.validate_before_write)

    def _generation_comment(self, command_line: str | None) -> list[str]:
        lines = ["Generated by json_schema_to_types. Do not edit by hand."]
        if command_line:
            lines.append(f"Command: {command_line}")
        return lines
