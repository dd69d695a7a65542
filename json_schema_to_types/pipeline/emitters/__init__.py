"""
Target-language emitters.
"""

from __future__ import annotations

from ..config import CodeGeneratorConfig
from .base import Emitter, TargetProfile
from .python_emitter import PythonEmitter
from .rust_emitter import RustEmitter

EMITTERS: dict[str, type[Emitter]] = {
    "python": PythonEmitter,
    "rust": RustEmitter,
}


def get_emitter(language: str, config: CodeGeneratorConfig | None = None) -> Emitter:
    """Return the emitter for a target language."""
    if language not in EMITTERS:
        raise ValueError(f"Unsupported language: {language}")
    return EMITTERS[language](config)


__all__ = [
    "EMITTERS",
    "Emitter",
    "PythonEmitter",
    "RustEmitter",
    "TargetProfile",
    "get_emitter",
]
