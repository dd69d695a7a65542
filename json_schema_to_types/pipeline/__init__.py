"""
Pipeline - JSON Schema to native type declarations.

This module provides a multi-phase architecture for generating type
declarations from JSON schemas:

1. Phase 1 (Loader): Parse and link JSON Schema documents into a SchemaNode graph
2. Phase 2 (Analyzer): Dedupe, name, compose and order types into a GenerationUnit
3. Phase 3 (Emitter): Render the GenerationUnit for a target language
4. Phase 4 (Formatter): Optional post-processing (ruff or black for Python, rustfmt for Rust)
5. Phase 5 (Writer): Optional atomic write to the output file
"""

from __future__ import annotations

from .config import CodeGeneratorConfig, FormatterConfig, OutputConfig, OutputMode
from .generator import PipelineGenerator
from .writer import AtomicWriter

__all__ = [
    "PipelineGenerator",
    "CodeGeneratorConfig",
    "FormatterConfig",
    "OutputConfig",
    "OutputMode",
    "AtomicWriter",
]
