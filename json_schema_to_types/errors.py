"""
Error taxonomy for schema loading and type resolution.

Every failure aborts the whole run: the generated types must type-check as a
set, so there is no partial output to fall back to.
"""

from __future__ import annotations


class SchemaError(Exception):
    """Base class for all generation failures.

    Attributes:
        location: Schema location as ``file#/json/pointer``
        message: The violated rule, in plain words
    """

    def __init__(self, location: str, message: str):
        self.location = location
        self.message = message
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.__class__.__name__} at {self.location}: {self.message}"


class MalformedSchema(SchemaError):
    """Raised when the input is not parseable as a JSON Schema document."""


class DanglingReference(SchemaError):
    """Raised when a $ref does not resolve to any schema."""


class UnsupportedKeyword(SchemaError):
    """Raised for schema keywords (or keyword combinations) that are not modeled."""


class IncompatibleComposition(SchemaError):
    """Raised when allOf members cannot be merged into one object shape."""


class OutputError(Exception):
    """Raised when the generated code cannot be written to its destination."""
