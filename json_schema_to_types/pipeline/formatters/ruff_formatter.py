"""
Ruff formatter for Python code.
"""

from __future__ import annotations

import subprocess

from loguru import logger

from ..config import FormatterConfig
from .base import Formatter


class RuffFormatter(Formatter):
    """Formatter using ``ruff format`` for Python code."""

    name = "ruff"
    language = "python"

    def __init__(self):
        self._available = None

    def is_available(self) -> bool:
        """Check if ruff is installed."""
        if self._available is None:
            try:
                result = subprocess.run(
                    ["ruff", "--version"],
                    capture_output=True,
                    text=True,
                    timeout=5,
                )
                self._available = result.returncode == 0
            except (subprocess.SubprocessError, FileNotFoundError):
                self._available = False
        return self._available

    def format(self, code: str, config: FormatterConfig) -> str:
        """
        Format Python code using ruff.

        Args:
            code: Python source code to format
            config: Formatter configuration

        Returns:
            Formatted code
        """
        if not self.is_available():
            logger.warning("ruff is not installed, leaving the generated code unformatted")
            return code

        cmd = ["ruff", "format", "--stdin-filename", "generated.py"]

        if config.line_length:
            cmd.extend(["--line-length", str(config.line_length)])

        if config.target_version:
            cmd.extend(["--target-version", config.target_version])

        try:
            result = subprocess.run(
                cmd,
                input=code,
                capture_output=True,
                text=True,
                timeout=30,
            )
        except subprocess.SubprocessError as e:
            logger.warning(f"ruff format failed: {e}")
            return code

        if result.returncode != 0:
            logger.warning(f"ruff format failed: {result.stderr.strip()}")
            return code
        return result.stdout
