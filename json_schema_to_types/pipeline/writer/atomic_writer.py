"""
Atomic file writer for generated code.

Ensures that an output file is either fully written or left untouched, so
a failed run never leaves partial output behind.
"""

from __future__ import annotations

import ast
import re
import tempfile
from collections.abc import Callable
from pathlib import Path

from loguru import logger

from ...errors import OutputError

_RUST_STRING = re.compile(r'"(?:\\.|[^"\\])*"')
_RUST_COMMENT_LINE = re.compile(r"^\s*//.*$", re.MULTILINE)


class AtomicWriter:
    """Handles atomic file writes with validation.

    Uses a two-phase commit approach:
    1. Write to a temporary file in the same directory
    2. Validate the content
    3. Atomically replace the target file
    """

    def __init__(
        self,
        validate_python: Callable[[str], None] | None = None,
        validate_rust: Callable[[str], None] | None = None,
        atomic: bool = True,
    ):
        """Initialize the atomic writer.

        Args:
            validate_python: Optional validation function for Python code
            validate_rust: Optional validation function for Rust code
            atomic: Write through a temporary file (False writes in place)
        """
        self.atomic = atomic
        self._validators = {
            "python": validate_python or self._default_validate_python,
            "rust": validate_rust or self._default_validate_rust,
        }

    def write(
        self,
        path: Path,
        content: str,
        language: str,
        validate: bool = True,
    ) -> None:
        """Write content to file atomically.

        Args:
            path: Target file path
            content: Content to write
            language: Language for validation ("python" or "rust")
            validate: Whether to validate before finalizing

        Raises:
            OutputError: If validation or a file operation fails
        """
        if validate:
            self._validate_content(content, language)

        if not self.atomic:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
            except OSError as e:
                raise OutputError(f"Cannot write {path}: {e}") from e
            return

        try:
            path.parent.mkdir(parents=True, exist_ok=True)

            # Same directory ensures atomic rename on the same filesystem
            temp_fd, temp_path_str = tempfile.mkstemp(
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                text=True,
            )
        except OSError as e:
            raise OutputError(f"Cannot write {path}: {e}") from e

        temp_path = Path(temp_path_str)
        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            temp_path.replace(path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise OutputError(f"Cannot write {path}: {e}") from e

        logger.debug(f"Wrote {len(content)} characters to {path}")

    def write_if_not_exists(
        self,
        path: Path,
        content: str,
        language: str,
        validate: bool = True,
    ) -> None:
        """Write content only if the file doesn't exist.

        Raises:
            OutputError: If the file already exists, or the write fails
        """
        if path.exists():
            raise OutputError(f"Output file already exists: {path}. Use --force to overwrite it.")

        self.write(path, content, language, validate)

    def _validate_content(self, content: str, language: str) -> None:
        validator = self._validators.get(language)
        if validator is not None:
            validator(content)

    def _default_validate_python(self, content: str) -> None:
        """Default Python validation: the code must parse.

        Raises:
            OutputError: If validation fails
        """
        try:
            ast.parse(content)
        except SyntaxError as e:
            raise OutputError(f"Generated Python code is not valid: {e}") from e

    def _default_validate_rust(self, content: str) -> None:
        """Default Rust validation (no parser available): balanced delimiters.

        Raises:
            OutputError: If validation fails
        """
        code = _RUST_STRING.sub('""', _RUST_COMMENT_LINE.sub("", content))
        for opening, closing in ("{}", "()", "[]"):
            if code.count(opening) != code.count(closing):
                raise OutputError(
                    f"Generated Rust code has unbalanced {opening}{closing}: "
                    f"{code.count(opening)} open, {code.count(closing)} close"
                )
