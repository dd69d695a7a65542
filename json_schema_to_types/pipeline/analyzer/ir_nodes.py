"""
IR (Intermediate Representation) node definitions.

These nodes represent the resolved, deduplicated type set, ready for
emission. Types refer to each other by name only; the GenerationUnit is
the table those names are looked up in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TypeKind(Enum):
    """Kind of type reference in the IR."""

    PRIMITIVE = "primitive"  # string, integer, number, boolean, null
    NAMED = "named"  # A generated TypeIdentity
    ARRAY = "array"  # list[T]
    MAP = "map"  # dict[str, T]
    ANY = "any"  # Any JSON value


class TypeShape(Enum):
    """Shape of a generated type."""

    STRUCT = "struct"
    ENUM = "enum"
    UNION = "union"
    ALIAS = "alias"


@dataclass
class TypeRef:
    """A resolved type reference."""

    kind: TypeKind = TypeKind.ANY
    name: str = ""  # Primitive name or TypeIdentity name

    # For ARRAY and MAP
    item: TypeRef | None = None

    # Whether null is accepted too
    nullable: bool = False

    # Whether this reference closes a cycle back to a type being declared
    back_reference: bool = False

    def walk(self):
        """Yield this reference and every nested one."""
        yield self
        if self.item is not None:
            yield from self.item.walk()

    def named(self) -> list[str]:
        """Names of the TypeIdentities this reference mentions."""
        return [ref.name for ref in self.walk() if ref.kind is TypeKind.NAMED]


@dataclass
class FieldDef:
    """A field definition in a struct."""

    name: str = ""  # JSON property name
    type_ref: TypeRef | None = None
    is_required: bool = False
    description: str | None = None
    default_value: Any = None
    has_default: bool = False


@dataclass
class VariantDef:
    """A member of a union."""

    name: str = ""  # Variant name (type name, tag, or synthetic index)
    type_ref: TypeRef | None = None
    tag: str | None = None  # Discriminator value, if the union is discriminated


@dataclass
class EnumMember:
    """A member of an enumeration."""

    value: Any = None
    description: str | None = None


@dataclass
class TypeIdentity:
    """A canonical, deduplicated generated type."""

    name: str = ""
    shape: TypeShape = TypeShape.STRUCT
    description: str | None = None

    # Structural dedup key
    fingerprint: Any = None

    # Schema location of the first node that produced this type
    source_path: str = ""

    # STRUCT
    fields: list[FieldDef] = field(default_factory=list)

    # UNION
    variants: list[VariantDef] = field(default_factory=list)
    discriminator: str | None = None  # Property carrying the variant tag

    # ENUM
    members: list[EnumMember] = field(default_factory=list)
    value_type: str = "string"  # "string", "integer", "number", "boolean" or "mixed"

    # ALIAS
    target: TypeRef | None = None

    def references(self) -> list[TypeRef]:
        """Every top-level type reference this type holds."""
        if self.shape is TypeShape.STRUCT:
            return [f.type_ref for f in self.fields if f.type_ref]
        if self.shape is TypeShape.UNION:
            return [v.type_ref for v in self.variants if v.type_ref]
        if self.shape is TypeShape.ALIAS and self.target:
            return [self.target]
        return []

    def dependencies(self) -> list[str]:
        """Names of the types this type mentions, in declaration order."""
        names: list[str] = []
        for ref in self.references():
            for name in ref.named():
                if name not in names:
                    names.append(name)
        return names


@dataclass
class GenerationUnit:
    """The complete set of types handed to the emitter.

    ``types`` is the arena keyed by name; ``order`` is the insertion order,
    which is what every observable operation iterates.
    """

    types: dict[str, TypeIdentity] = field(default_factory=dict)
    order: list[str] = field(default_factory=list)

    # Names of the root types (one per root document that has a shape)
    roots: list[str] = field(default_factory=list)

    def add(self, identity: TypeIdentity) -> None:
        if identity.name in self.types:
            raise ValueError(f"Type {identity.name} is already declared")
        self.types[identity.name] = identity
        self.order.append(identity.name)

    def get(self, name: str) -> TypeIdentity:
        return self.types[name]

    def __len__(self) -> int:
        return len(self.order)

    def encounter_order(self) -> list[TypeIdentity]:
        """Types in source-encounter order."""
        return [self.types[name] for name in self.order]

    def topological_order(self) -> list[TypeIdentity]:
        """Types with dependencies declared first.

        Back references are ignored so cycles do not prevent ordering; ties are
        broken by encounter order.
        """
        ordered: list[TypeIdentity] = []
        visited: set[str] = set()

        def visit(name: str) -> None:
            if name in visited:
                return
            visited.add(name)
            identity = self.types[name]
            for ref in identity.references():
                for nested in ref.walk():
                    if nested.kind is TypeKind.NAMED and not nested.back_reference and nested.name in self.types:
                        visit(nested.name)
            ordered.append(identity)

        for name in self.order:
            visit(name)
        return ordered
