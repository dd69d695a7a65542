"""
rustfmt formatter for Rust code.
"""

from __future__ import annotations

import subprocess

from loguru import logger

from ..config import FormatterConfig
from .base import Formatter


class RustfmtFormatter(Formatter):
    """Formatter piping Rust code through ``rustfmt``."""

    name = "rustfmt"
    language = "rust"

    def __init__(self):
        self._available = None

    def is_available(self) -> bool:
        """Check if rustfmt is installed."""
        if self._available is None:
            try:
                result = subprocess.run(
                    ["rustfmt", "--version"],
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
        Format Rust code using rustfmt (stdin to stdout).

        Args:
            code: Rust source code to format
            config: Formatter configuration

        Returns:
            Formatted code
        """
        if not self.is_available():
            logger.warning("rustfmt is not installed, leaving the generated code unformatted")
            return code

        cmd = ["rustfmt"]
        if config.rust_edition:
            cmd.extend(["--edition", config.rust_edition])
        if config.line_length:
            cmd.extend(["--config", f"max_width={config.line_length}"])

        try:
            result = subprocess.run(
                cmd,
                input=code,
                capture_output=True,
                text=True,
                timeout=30,
            )
        except subprocess.SubprocessError as e:
            logger.warning(f"rustfmt failed: {e}")
            return code

        if result.returncode != 0:
            logger.warning(f"rustfmt failed: {result.stderr.strip()}")
            return code
        return result.stdout
