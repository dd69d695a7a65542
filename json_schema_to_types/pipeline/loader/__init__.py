"""
Schema loader module.

Contains the SchemaNode graph definitions and the loader that builds it.
"""

from __future__ import annotations

from .loader import SchemaLoader
from .nodes import NodeKind, SchemaDocument, SchemaGraph, SchemaNode

__all__ = [
    "NodeKind",
    "SchemaNode",
    "SchemaDocument",
    "SchemaGraph",
    "SchemaLoader",
]
