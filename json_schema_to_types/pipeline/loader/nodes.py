"""
Node definitions for the loaded JSON Schema graph.

A single node class tagged by NodeKind represents every schema shape; the
set of shapes is closed, so code that consumes nodes dispatches on ``kind``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NodeKind(Enum):
    """Kind of schema node."""

    OBJECT = "object"  # properties + required
    MAP = "map"  # object described only by additionalProperties
    ARRAY = "array"  # items
    PRIMITIVE = "primitive"  # string, integer, number, boolean, null
    ENUM = "enum"  # enum or const
    UNION = "union"  # oneOf, anyOf or a list of types
    ALL_OF = "all_of"  # allOf members, merged by the resolver
    REFERENCE = "reference"  # $ref, linked after loading
    ANY = "any"  # true, {} or annotation-only schemas


@dataclass(eq=False)
class SchemaNode:
    """A parsed unit of a JSON Schema document.

    Nodes compare by identity: two nodes are the same only if they come from
    the same schema location.
    """

    kind: NodeKind = NodeKind.ANY

    # Original source location ("file#/json/pointer", for error messages)
    location: str = ""

    # Naming hints
    title: str | None = None
    name_hint: str | None = None  # definition key or file stem
    description: str | None = None

    # OBJECT
    properties: dict[str, SchemaNode] = field(default_factory=dict)
    required: list[str] = field(default_factory=list)

    # ARRAY
    items: SchemaNode | None = None

    # MAP
    values: SchemaNode | None = None

    # UNION / ALL_OF
    variants: list[SchemaNode] = field(default_factory=list)
    union_keyword: str = ""  # "oneOf", "anyOf" or "type"
    discriminator: str | None = None  # discriminator.propertyName, if declared

    # ENUM
    enum_values: list[Any] = field(default_factory=list)
    is_const: bool = False

    # PRIMITIVE
    primitive: str = ""  # "string", "integer", "number", "boolean", "null"
    format: str | None = None

    # REFERENCE
    ref: str = ""
    ref_target: SchemaNode | None = None

    # Default value declared on the schema
    default: Any = None
    has_default: bool = False

    def deref(self) -> SchemaNode:
        """Follow reference links to the first non-reference node."""
        node = self
        seen: set[int] = set()
        while node.kind is NodeKind.REFERENCE and node.ref_target is not None:
            if id(node) in seen:
                break
            seen.add(id(node))
            node = node.ref_target
        return node

    def __repr__(self) -> str:
        return f"SchemaNode({self.kind.value}, {self.location!r})"


@dataclass
class SchemaDocument:
    """A loaded schema file (or in-memory schema)."""

    uri: str = ""  # file path, or "<name>" for in-memory schemas
    raw: Any = None
    root: SchemaNode | None = None
    root_name: str = ""

    # Definition pointer -> node, in sorted key order
    definitions: dict[str, SchemaNode] = field(default_factory=dict)


@dataclass
class SchemaGraph:
    """The linked schema graph produced by the loader."""

    # Root documents in load order (one per input file)
    documents: list[SchemaDocument] = field(default_factory=list)

    # Every document loaded, including those reached through file references
    loaded: dict[str, SchemaDocument] = field(default_factory=dict)
