"""
Configuration for the type generator pipeline.

Covers type resolution, emission, the optional formatter stage and
output file handling.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

DEFAULT_RUST_DERIVES = ["Clone", "PartialEq", "Debug", "Deserialize", "Serialize"]


class OutputMode(str, Enum):
    """Output mode for file generation.

    Controls behavior when the output file already exists.
    """

    ERROR_IF_EXISTS = "error"  # Raise error if file exists
    FORCE = "force"  # Default: overwrite, like tee


@dataclass
class OutputConfig:
    """Configuration for output file handling.

    Attributes:
        mode: How to handle existing output files
        validate_before_write: Whether to validate code before writing
        atomic_write: Whether to use atomic file writes
    """

    mode: OutputMode = OutputMode.FORCE
    validate_before_write: bool = True
    atomic_write: bool = True


@dataclass
class FormatterConfig:
    """Configuration for post-processing formatters."""

    # Whether formatting is enabled
    enabled: bool = False

    # Formatter to use ("" picks the language default: ruff for Python, rustfmt for Rust)
    tool: str = ""

    # Line length for the formatter
    line_length: int = 100

    # Python version target (e.g., "py312", "py313")
    target_version: str = "py312"

    # Whether to use string normalization (convert single quotes to double)
    string_normalization: bool = True

    # Whether to respect magic trailing commas
    magic_trailing_comma: bool = True

    # Rust edition passed to rustfmt
    rust_edition: str = "2021"


@dataclass
class CodeGeneratorConfig:
    """Configuration options for type generation."""

    # Add generation comment at top of file
    add_generation_comment: bool = True

    # Use from __future__ import annotations (Python)
    use_future_annotations: bool = True

    # Decorate generated dataclasses with dataclasses_json (Python)
    use_dataclasses_json: bool = True

    # Keep the name of a definition that collapsed into an identical shape
    alias_collapsed_definitions: bool = True

    # Declare a const as a single-member enum (off: the plain type of its value)
    const_as_enum: bool = True

    # Ignore unknown keywords instead of failing with UnsupportedKeyword
    allow_unknown_keywords: bool = False

    # Derive list for generated Rust types
    rust_derives: list[str] = field(default_factory=lambda: list(DEFAULT_RUST_DERIVES))

    # Formatter configuration
    formatter: FormatterConfig = field(default_factory=FormatterConfig)

    # Output configuration
    output: OutputConfig = field(default_factory=OutputConfig)

    @staticmethod
    def from_dict(d: dict) -> CodeGeneratorConfig:
        """Create a config from a dictionary."""
        config = CodeGeneratorConfig()
        for k, v in d.items():
            if k == "formatter" and isinstance(v, dict):
                config.formatter = FormatterConfig(**v)
            elif k == "output" and isinstance(v, dict):
                mode = v.get("mode", OutputMode.FORCE)
                if isinstance(mode, str):
                    mode = OutputMode(mode)
                config.output = OutputConfig(
                    mode=mode,
                    validate_before_write=v.get("validate_before_write", True),
                    atomic_write=v.get("atomic_write", True),
                )
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "add_generation_comment": self.add_generation_comment,
            "use_future_annotations": self.use_future_annotations,
            "use_dataclasses_json": self.use_dataclasses_json,
            "alias_collapsed_definitions": self.alias_collapsed_definitions,
            "const_as_enum": self.const_as_enum,
            "allow_unknown_keywords": self.allow_unknown_keywords,
            "rust_derives": self.rust_derives,
            "formatter": {
                "enabled": self.formatter.enabled,
                "tool": self.formatter.tool,
                "line_length": self.formatter.line_length,
                "target_version": self.formatter.target_version,
                "string_normalization": self.formatter.string_normalization,
                "magic_trailing_comma": self.formatter.magic_trailing_comma,
                "rust_edition": self.formatter.rust_edition,
            },
            "output": {
                "mode": self.output.mode.value,
                "validate_before_write": self.output.validate_before_write,
                "atomic_write": self.output.atomic_write,
            },
        }
