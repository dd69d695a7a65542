"""
Analyzer module.

Contains name resolution, type resolution, and the IR the emitters consume.
"""

from __future__ import annotations

from .ir_nodes import (
    EnumMember,
    FieldDef,
    GenerationUnit,
    TypeIdentity,
    TypeKind,
    TypeRef,
    TypeShape,
    VariantDef,
)
from .name_resolver import NameResolver
from .type_resolver import TypeResolver

__all__ = [
    "EnumMember",
    "FieldDef",
    "GenerationUnit",
    "NameResolver",
    "TypeIdentity",
    "TypeKind",
    "TypeRef",
    "TypeShape",
    "TypeResolver",
    "VariantDef",
]
