"""
Black formatter for Python code.
"""

from __future__ import annotations

from loguru import logger

from ..config import FormatterConfig
from .base import Formatter


class BlackFormatter(Formatter):
    """Formatter using black for Python code."""

    name = "black"
    language = "python"

    def __init__(self):
        self._black = None
        self._available = None

    def is_available(self) -> bool:
        """Check if black is installed."""
        if self._available is None:
            try:
                import black

                self._black = black
                self._available = True
            except ImportError:
                self._available = False
        return self._available

    def format(self, code: str, config: FormatterConfig) -> str:
        """
        Format Python code using black.

        Args:
            code: Python source code to format
            config: Formatter configuration

        Returns:
            Formatted code
        """
        if not self.is_available():
            logger.warning("black is not installed, leaving the generated code unformatted")
            return code

        black = self._black

        # Unknown targets (newer than the installed black) are left to black's inference
        target_versions = set()
        target = getattr(black.TargetVersion, config.target_version.upper(), None) if config.target_version else None
        if target is not None:
            target_versions.add(target)

        mode = black.Mode(
            target_versions=target_versions,
            line_length=config.line_length,
            string_normalization=config.string_normalization,
            magic_trailing_comma=config.magic_trailing_comma,
        )

        try:
            return black.format_str(code, mode=mode)
        except black.InvalidInput as e:
            logger.warning(f"black could not format the generated code: {e}")
            return code
