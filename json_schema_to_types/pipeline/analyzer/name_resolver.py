"""
Name resolver for type names and collisions.

Converts titles, definition keys and property paths to PascalCase type
names and disambiguates collisions with a numeric suffix, in the order the
names are claimed.
"""

from __future__ import annotations

from loguru import logger

from ...utils import snake_to_pascal_case

# Type names that would shadow names the generated code relies on
RESERVED_TYPE_NAMES = {
    "python": {
        "Any",
        "ClassVar",
        "Enum",
        "False",
        "Literal",
        "None",
        "Optional",
        "True",
        "TypeAlias",
        "Union",
    },
    "rust": {
        "BTreeMap",
        "Box",
        "Deserialize",
        "Err",
        "None",
        "Ok",
        "Option",
        "Result",
        "Self",
        "Serialize",
        "Some",
        "String",
        "TryFrom",
        "Vec",
    },
}


class NameResolver:
    """Resolves type names and handles collisions."""

    def __init__(self, language: str = "python"):
        """
        Initialize the resolver.

        Args:
            language: Target language ("python" or "rust")
        """
        self.language = language
        self._reserved = RESERVED_TYPE_NAMES.get(language, set())
        self._taken: set[str] = set()

    def type_name(self, text: str) -> str:
        """Convert text to a PascalCase type name (before disambiguation)."""
        result = snake_to_pascal_case(text) or "Type"

        if result[0].isdigit():
            result = "Type" + result

        if result in self._reserved:
            result = result + "Type"

        return result

    def claim(self, base: str) -> str:
        """Reserve ``base``, or ``base2``, ``base3``... if it is already taken."""
        if base not in self._taken:
            self._taken.add(base)
            return base

        i = 2
        while f"{base}{i}" in self._taken:
            i += 1
        name = f"{base}{i}"
        self._taken.add(name)
        logger.debug(f"Type name {base} is taken, using {name}")
        return name

    def is_taken(self, name: str) -> bool:
        return name in self._taken
