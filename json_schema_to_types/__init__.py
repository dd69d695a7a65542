"""JSON Schema to Types Generator

A Python package for generating native type declarations from JSON Schema
definitions. Supports Python (dataclasses) and Rust (serde) output, with
deterministic naming, structural deduplication and optional formatting.
"""

__version__ = "1.0.0"

from .errors import (
    DanglingReference,
    IncompatibleComposition,
    MalformedSchema,
    OutputError,
    SchemaError,
    UnsupportedKeyword,
)
from .pipeline import (
    AtomicWriter,
    CodeGeneratorConfig,
    FormatterConfig,
    OutputConfig,
    OutputMode,
    PipelineGenerator,
)

__all__ = [
    "PipelineGenerator",
    "CodeGeneratorConfig",
    "FormatterConfig",
    "OutputConfig",
    "OutputMode",
    "AtomicWriter",
    "SchemaError",
    "MalformedSchema",
    "DanglingReference",
    "UnsupportedKeyword",
    "IncompatibleComposition",
    "OutputError",
]
