"""
Utility functions for JSON Schema to types generator.
"""

import keyword
import re

# Regex pattern to split text into words, handling camelCase boundaries
_WORD_PATTERN = re.compile(r"[a-z]+|[A-Z]+(?![a-z])|[A-Z][a-z]*|[0-9]+")


def _normalize_separators(text: str) -> str:
    """Normalize separators (underscores, hyphens, dots, slashes) to spaces."""
    return re.sub(r"[_\-./]", " ", text)


def _split_into_words(text: str) -> list[str]:
    """Split text into words, handling camelCase boundaries."""
    return _WORD_PATTERN.findall(text)


def _capitalize_and_join(words: list[str]) -> str:
    """Capitalize each word and join them together."""
    return "".join(word.capitalize() for word in words if word)


def snake_to_pascal_case(text: str) -> str:
    """Convert snake_case, camelCase, or space-separated text to PascalCase.

    Examples:
        "first_name" -> "FirstName"
        "FIRST_NAME" -> "FirstName"
        "actionTemplate" -> "ActionTemplate"
        "first 3 rows" -> "First3Rows"
        "ABC" -> "Abc"
        "Full" -> "Full"

    Args:
        text: The text to convert (snake_case, camelCase, UPPER_SNAKE_CASE, or space-separated)

    Returns:
        PascalCase string
    """
    if not text:
        return ""
    normalized = _normalize_separators(text)
    words = _split_into_words(normalized)
    return _capitalize_and_join(words)


def to_snake_case(text: str) -> str:
    """Convert camelCase, PascalCase or kebab-case text to snake_case.

    Examples:
        "mimeType" -> "mime_type"
        "_meta" -> "meta"
        "isError" -> "is_error"
        "HTTPStatus" -> "http_status"
    """
    words = _split_into_words(_normalize_separators(text))
    return "_".join(word.lower() for word in words)


def to_upper_snake_case(text: str) -> str:
    """Convert any identifier-ish text to UPPER_SNAKE_CASE (enum member style)."""
    return to_snake_case(text).upper()


def escape_python_identifier(name: str) -> str:
    """Make a name usable as a Python identifier."""
    if not name:
        return "field_"
    if name[0].isdigit():
        name = f"_{name}"
    if keyword.iskeyword(name):
        name = f"{name}_"
    return name


def disambiguate(names: list[str], separator: str = "") -> list[str]:
    """Make names unique by suffixing repeats with 2, 3, ... in order.

    Examples:
        ["id", "id"] -> ["id", "id2"]
        ["foo", "foo", "foo"], "_" -> ["foo", "foo_2", "foo_3"]
    """
    taken = set(names)
    seen: set[str] = set()
    result = []
    for name in names:
        if name in seen:
            i = 2
            while f"{name}{separator}{i}" in taken:
                i += 1
            name = f"{name}{separator}{i}"
            taken.add(name)
        seen.add(name)
        result.append(name)
    return result
