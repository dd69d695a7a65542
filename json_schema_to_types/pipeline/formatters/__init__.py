"""
Post-processing formatters for generated code.
"""

from __future__ import annotations

from .base import Formatter
from .black_formatter import BlackFormatter
from .ruff_formatter import RuffFormatter
from .rustfmt_formatter import RustfmtFormatter

FORMATTERS: dict[str, type[Formatter]] = {
    "ruff": RuffFormatter,
    "black": BlackFormatter,
    "rustfmt": RustfmtFormatter,
}

# Formatter used when FormatterConfig.tool is empty
DEFAULT_FORMATTERS = {
    "python": "ruff",
    "rust": "rustfmt",
}


def get_formatter(language: str, tool: str = "") -> Formatter:
    """
    Return the formatter for a language.

    Args:
        language: Target language
        tool: Formatter name, or "" for the language default

    Raises:
        ValueError: If the tool is unknown or does not format this language
    """
    tool = tool or DEFAULT_FORMATTERS.get(language, "")
    if tool not in FORMATTERS:
        raise ValueError(f"Unknown formatter: {tool!r}")
    formatter = FORMATTERS[tool]()
    if formatter.language != language:
        raise ValueError(f"Formatter {tool} does not format {language} code")
    return formatter


__all__ = [
    "BlackFormatter",
    "DEFAULT_FORMATTERS",
    "FORMATTERS",
    "Formatter",
    "RuffFormatter",
    "RustfmtFormatter",
    "get_formatter",
]
