"""
Type resolver that turns the schema graph into a GenerationUnit.

Phase 2 of the pipeline: fingerprint schema shapes, collapse identical
shapes into one TypeIdentity, name them, resolve allOf/oneOf/anyOf/enum,
and flag the references that close cycles.
"""

from __future__ import annotations

import json
import math
from typing import Any

from loguru import logger

from ...errors import IncompatibleComposition
from ...utils import snake_to_pascal_case
from ..config import CodeGeneratorConfig
from ..loader.nodes import NodeKind, SchemaGraph, SchemaNode
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

_NO_BACK_EDGE = math.inf


class TypeResolver:
    """Resolves a SchemaGraph into deduplicated, named, ordered types."""

    def __init__(self, config: CodeGeneratorConfig | None = None, language: str = "python"):
        """
        Initialize the resolver.

        Args:
            config: Code generation configuration
            language: Target language, for reserved type names
        """
        self.config = config or CodeGeneratorConfig()
        self.names = NameResolver(language)
        self.unit = GenerationUnit()

        # Structural fingerprint -> identity name
        self._by_fingerprint: dict[Any, str] = {}
        # id(node) -> (identity name, nullable), for nodes already resolved to an identity
        self._node_refs: dict[int, tuple[str, bool]] = {}
        # identity name -> name before collision disambiguation
        self._base_names: dict[str, str] = {}
        self._alias_bases: set[str] = set()

        self._fp_cache: dict[int, Any] = {}
        self._merge_cache: dict[int, tuple[dict[str, SchemaNode], list[str]]] = {}
        self._merging: set[int] = set()
        self._in_progress: set[int] = set()

    def resolve(self, graph: SchemaGraph) -> GenerationUnit:
        """
        Resolve the schema graph.

        Args:
            graph: The linked schema graph

        Returns:
            GenerationUnit with every type to emit

        Raises:
            IncompatibleComposition: If allOf members cannot be merged
        """
        for doc in graph.documents:
            if doc.root is not None and doc.root.deref().kind is not NodeKind.ANY:
                ref = self._resolve(doc.root, doc.root_name)
                if ref.kind is TypeKind.NAMED and ref.name not in self.unit.roots:
                    self.unit.roots.append(ref.name)

            for node in doc.definitions.values():
                self._resolve(node, node.name_hint or "")

        self._mark_back_references()
        logger.debug(f"Resolved {len(self.unit)} types: {', '.join(self.unit.order)}")
        return self.unit

    # Naming

    def _explicit_name(self, node: SchemaNode) -> str | None:
        return node.title or node.name_hint

    # Resolution

    def _resolve(self, node: SchemaNode, context: str) -> TypeRef:
        """
        Resolve a node to a type reference.

        Args:
            node: The schema node
            context: Name to use when the node has no title or definition key

        Returns:
            TypeRef to a primitive, container or named type
        """
        if id(node) in self._node_refs:
            name, nullable = self._node_refs[id(node)]
            return TypeRef(kind=TypeKind.NAMED, name=name, nullable=nullable)

        name = self._explicit_name(node) or context

        # Reached again while its own shape is being resolved: refer to it by name
        if id(node) in self._in_progress:
            identity = self._create_identity(node, name, TypeShape.ALIAS, ("alias", node.location))
            return TypeRef(kind=TypeKind.NAMED, name=identity.name)

        self._in_progress.add(id(node))
        try:
            if node.kind is NodeKind.REFERENCE:
                ref = self._resolve(node.deref(), context)
            else:
                ref = self._resolve_shape(node, name)
        finally:
            self._in_progress.discard(id(node))

        if id(node) in self._node_refs:
            identity = self.unit.get(self._node_refs[id(node)][0])
            if identity.shape is TypeShape.ALIAS and identity.target is None:
                identity.target = ref
                return TypeRef(kind=TypeKind.NAMED, name=identity.name)
            return ref

        if node.name_hint is None:
            return ref

        # A definition that resolved to a type of its own name is that type
        if ref.kind is TypeKind.NAMED and self._base_names.get(ref.name) == self.names.type_name(name):
            self._node_refs[id(node)] = (ref.name, ref.nullable)
            return ref

        # Other named definitions (inline types, references, collapsed unions) become aliases
        identity = self._create_identity(node, name, TypeShape.ALIAS, ("alias", node.location))
        identity.target = ref
        return TypeRef(kind=TypeKind.NAMED, name=identity.name)

    def _resolve_shape(self, node: SchemaNode, name: str) -> TypeRef:
        kind = node.kind

        if kind is NodeKind.PRIMITIVE:
            return TypeRef(kind=TypeKind.PRIMITIVE, name=node.primitive)

        if kind is NodeKind.ANY:
            return TypeRef(kind=TypeKind.ANY)

        if kind is NodeKind.ARRAY:
            item = self._resolve(node.items, f"{name}Item") if node.items else TypeRef(kind=TypeKind.ANY)
            return TypeRef(kind=TypeKind.ARRAY, item=item)

        if kind is NodeKind.MAP:
            item = self._resolve(node.values, f"{name}Value") if node.values else TypeRef(kind=TypeKind.ANY)
            return TypeRef(kind=TypeKind.MAP, item=item)

        if kind in (NodeKind.OBJECT, NodeKind.ALL_OF):
            return self._resolve_struct(node, name)

        if kind is NodeKind.ENUM:
            return self._resolve_enum(node, name)

        if kind is NodeKind.UNION:
            return self._resolve_union(node, name)

        raise ValueError(f"Unexpected node kind {kind} at {node.location}")

    def _resolve_struct(self, node: SchemaNode, name: str) -> TypeRef:
        properties, required = self._object_members(node)
        fingerprint = self._fingerprint(node)

        existing = self._lookup(node, fingerprint)
        if existing is not None:
            return existing

        identity = self._create_identity(node, name, TypeShape.STRUCT, fingerprint)
        for prop_name, child in properties.items():
            target = child.deref()
            field_ref = self._resolve(child, f"{identity.name}{snake_to_pascal_case(prop_name)}")
            default_node = child if child.has_default else target
            identity.fields.append(
                FieldDef(
                    name=prop_name,
                    type_ref=field_ref,
                    is_required=prop_name in required,
                    description=child.description,
                    default_value=default_node.default,
                    has_default=default_node.has_default,
                )
            )
        return TypeRef(kind=TypeKind.NAMED, name=identity.name)

    def _resolve_enum(self, node: SchemaNode, name: str) -> TypeRef:
        if node.is_const and not self.config.const_as_enum:
            value = node.enum_values[0]
            if isinstance(value, (dict, list)):
                return TypeRef(kind=TypeKind.ANY)
            return TypeRef(kind=TypeKind.PRIMITIVE, name=_json_type(value))

        values = _unique(node.enum_values)
        nullable = None in values
        members = [v for v in values if v is not None]
        if not members:
            return TypeRef(kind=TypeKind.PRIMITIVE, name="null")

        fingerprint = ("enum", json.dumps(members))
        existing = self._lookup(node, fingerprint, nullable)
        if existing is not None:
            return existing

        identity = self._create_identity(node, name, TypeShape.ENUM, fingerprint, nullable)
        identity.members = [EnumMember(value=v) for v in members]
        identity.value_type = _enum_value_type(members)
        return TypeRef(kind=TypeKind.NAMED, name=identity.name, nullable=nullable)

    def _resolve_union(self, node: SchemaNode, name: str) -> TypeRef:
        variants = [v for v in node.variants if not _is_null(v)]
        nullable = len(variants) < len(node.variants)

        if not variants:
            return TypeRef(kind=TypeKind.PRIMITIVE, name="null")

        # A single concrete type is not wrapped in a union
        if len(variants) == 1:
            ref = self._resolve(variants[0], name)
            ref.nullable = ref.nullable or nullable
            return ref

        discriminator, tags = self._discriminator(node, variants)
        fingerprint = ("union", discriminator, tuple(self._fingerprint(v) for v in variants))
        existing = self._lookup(node, fingerprint, nullable)
        if existing is not None:
            return existing

        identity = self._create_identity(node, name, TypeShape.UNION, fingerprint, nullable)
        identity.discriminator = discriminator
        for i, variant in enumerate(variants):
            tag = tags[i] if tags else None
            context = f"{identity.name}{snake_to_pascal_case(tag)}" if tag else f"{identity.name}Variant{i}"
            variant_ref = self._resolve(variant, context)
            identity.variants.append(VariantDef(type_ref=variant_ref, tag=tag))
        _name_variants(identity)

        return TypeRef(kind=TypeKind.NAMED, name=identity.name, nullable=nullable)

    def _lookup(self, node: SchemaNode, fingerprint: Any, nullable: bool = False) -> TypeRef | None:
        """Return the identity already created for this shape, if any."""
        name = self._by_fingerprint.get(fingerprint)
        if name is None:
            return None

        self._node_refs[id(node)] = (name, nullable)
        logger.debug(f"{node.location} collapses into {name}")

        # Keep the name of a named definition that collapsed into another shape
        explicit = self._explicit_name(node)
        if explicit and self.config.alias_collapsed_definitions:
            base = self.names.type_name(explicit)
            if base != self._base_names[name] and base not in self._alias_bases:
                self._alias_bases.add(base)
                alias = self._create_identity(None, explicit, TypeShape.ALIAS, ("alias", node.location))
                alias.target = TypeRef(kind=TypeKind.NAMED, name=name)
                alias.source_path = node.location

        return TypeRef(kind=TypeKind.NAMED, name=name, nullable=nullable)

    def _create_identity(
        self,
        node: SchemaNode | None,
        name: str,
        shape: TypeShape,
        fingerprint: Any,
        nullable: bool = False,
    ) -> TypeIdentity:
        base = self.names.type_name(name)
        identity = TypeIdentity(
            name=self.names.claim(base),
            shape=shape,
            fingerprint=fingerprint,
        )
        if node is not None:
            target = node.deref()
            identity.description = target.description
            identity.source_path = target.location
            self._node_refs[id(node)] = (identity.name, nullable)

        self.unit.add(identity)
        self._by_fingerprint[fingerprint] = identity.name
        self._base_names[identity.name] = base
        logger.debug(f"Created {shape.value} {identity.name} from {identity.source_path}")
        return identity

    # Composition

    def _object_members(self, node: SchemaNode) -> tuple[dict[str, SchemaNode], list[str]]:
        """Properties and required names of an object or merged allOf."""
        node = node.deref()
        if node.kind is NodeKind.OBJECT:
            return node.properties, node.required
        return self._merge_all_of(node)

    def _merge_all_of(self, node: SchemaNode) -> tuple[dict[str, SchemaNode], list[str]]:
        """Merge allOf members into one property set."""
        key = id(node)
        if key in self._merge_cache:
            return self._merge_cache[key]
        if key in self._merging:
            raise IncompatibleComposition(node.location, "allOf includes itself")
        self._merging.add(key)

        properties: dict[str, SchemaNode] = {}
        required: list[str] = []
        for member in node.variants:
            target = member.deref()
            if target.kind is NodeKind.ANY:
                continue
            if target.kind not in (NodeKind.OBJECT, NodeKind.ALL_OF):
                raise IncompatibleComposition(member.location, f"allOf member is {target.kind.value}, not an object")

            member_props, member_required = self._object_members(target)
            for prop_name, child in member_props.items():
                if prop_name in properties:
                    properties[prop_name] = self._merge_property(prop_name, properties[prop_name], child)
                else:
                    properties[prop_name] = child
            required.extend(r for r in member_required if r not in required)

        self._merging.discard(key)
        merged = (dict(sorted(properties.items())), required)
        self._merge_cache[key] = merged
        return merged

    def _merge_property(self, name: str, current: SchemaNode, incoming: SchemaNode) -> SchemaNode:
        """Pick the narrower of two definitions of one property, or fail."""
        a, b = current.deref(), incoming.deref()
        if a is b or self._fingerprint(a) == self._fingerprint(b):
            return current
        if a.kind is NodeKind.ANY:
            return incoming
        if b.kind is NodeKind.ANY:
            return current
        if _narrows(b, a):
            return incoming
        if _narrows(a, b):
            return current
        raise IncompatibleComposition(
            incoming.location,
            f"property '{name}' conflicts with the definition at {current.location}",
        )

    def _discriminator(self, node: SchemaNode, variants: list[SchemaNode]) -> tuple[str | None, list[str]]:
        """Find the property whose constant value tells the variants apart."""
        constants: list[dict[str, str]] = []
        for variant in variants:
            target = variant.deref()
            if target.kind not in (NodeKind.OBJECT, NodeKind.ALL_OF):
                constants = []
                break
            properties, required = self._object_members(target)
            constants.append(
                {
                    prop_name: child.deref().enum_values[0]
                    for prop_name, child in properties.items()
                    if prop_name in required and _single_string(child.deref())
                }
            )

        if node.discriminator:
            if constants and all(node.discriminator in c for c in constants):
                tags = [c[node.discriminator] for c in constants]
                if len(set(tags)) == len(tags):
                    return node.discriminator, tags
                logger.debug(f"{node.location}: variants share a '{node.discriminator}' value, tagging them by name")
            tags = [self._explicit_name(v.deref()) or f"Variant{i}" for i, v in enumerate(variants)]
            if len(set(tags)) != len(tags):
                tags = [f"Variant{i}" for i in range(len(variants))]
            return node.discriminator, tags

        if not constants:
            return None, []

        common = set(constants[0]).intersection(*constants[1:])
        for prop_name in sorted(common):
            tags = [c[prop_name] for c in constants]
            if len(set(tags)) == len(tags):
                return prop_name, tags
        return None, []

    # Fingerprints

    def _fingerprint(self, node: SchemaNode) -> Any:
        return self._fp(node, [])[0]

    def _fp(self, node: SchemaNode, stack: list[int]) -> tuple[Any, float]:
        """
        Structural fingerprint of a node.

        Recursion is encoded as the distance to the node being re-entered, so
        equivalent cycles produce equal fingerprints.

        Returns:
            (fingerprint, shallowest stack index referenced by a back edge)
        """
        node = node.deref()
        key = id(node)
        if key in self._fp_cache:
            return self._fp_cache[key], _NO_BACK_EDGE
        if key in stack:
            depth = stack.index(key)
            return ("cycle", len(stack) - depth), depth

        depth = len(stack)
        stack.append(key)
        lowest = _NO_BACK_EDGE

        def child(n: SchemaNode | None) -> Any:
            nonlocal lowest
            if n is None:
                return ("any",)
            fp, low = self._fp(n, stack)
            lowest = min(lowest, low)
            return fp

        kind = node.kind
        if kind is NodeKind.ALL_OF and key in self._merging:
            fp: Any = ("all_of", node.location)
        elif kind in (NodeKind.OBJECT, NodeKind.ALL_OF):
            properties, required = self._object_members(node)
            fp = ("struct", tuple((name, child(p), name in required) for name, p in properties.items()))
        elif kind is NodeKind.ARRAY:
            fp = ("array", child(node.items))
        elif kind is NodeKind.MAP:
            fp = ("map", child(node.values))
        elif kind is NodeKind.PRIMITIVE:
            fp = ("primitive", node.primitive)
        elif kind is NodeKind.ENUM:
            fp = ("enum", json.dumps(node.enum_values))
        elif kind is NodeKind.UNION:
            fp = ("union", node.discriminator, tuple(child(v) for v in node.variants))
        else:
            fp = ("any",)

        stack.pop()
        if lowest >= depth:
            self._fp_cache[key] = fp
            lowest = _NO_BACK_EDGE
        return fp, lowest

    # Cycles

    def _mark_back_references(self) -> None:
        """Flag references that reach a type still being declared (DFS)."""
        on_stack: set[str] = set()
        done: set[str] = set()

        def visit(name: str) -> None:
            on_stack.add(name)
            for ref in self.unit.get(name).references():
                for nested in ref.walk():
                    if nested.kind is not TypeKind.NAMED:
                        continue
                    if nested.name in on_stack:
                        nested.back_reference = True
                        logger.debug(f"{name} refers back to {nested.name}")
                    elif nested.name not in done:
                        visit(nested.name)
            on_stack.discard(name)
            done.add(name)

        for name in self.unit.order:
            if name not in done:
                visit(name)


def _unique(values: list[Any]) -> list[Any]:
    """Drop repeated enum values, keeping 1, 1.0 and true apart."""
    seen: set[str] = set()
    result = []
    for value in values:
        key = json.dumps(value)
        if key not in seen:
            seen.add(key)
            result.append(value)
    return result


def _is_null(node: SchemaNode) -> bool:
    target = node.deref()
    return target.kind is NodeKind.PRIMITIVE and target.primitive == "null"


def _single_string(node: SchemaNode) -> bool:
    return node.kind is NodeKind.ENUM and len(node.enum_values) == 1 and isinstance(node.enum_values[0], str)


def _narrows(narrow: SchemaNode, wide: SchemaNode) -> bool:
    """Whether ``narrow`` is an enum whose values all belong to primitive ``wide``."""
    if narrow.kind is not NodeKind.ENUM or wide.kind is not NodeKind.PRIMITIVE:
        return False
    return all(_json_type(v) == wide.primitive or (_json_type(v) == "integer" and wide.primitive == "number") for v in narrow.enum_values)


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    return "object"


def _enum_value_type(values: list[Any]) -> str:
    types = {_json_type(v) for v in values}
    if types == {"integer", "number"}:
        return "number"
    if len(types) == 1:
        return types.pop()
    return "mixed"


def _name_variants(identity: TypeIdentity) -> None:
    """Name union variants after their tag or type, else by position."""
    names = []
    for variant in identity.variants:
        ref = variant.type_ref
        if variant.tag:
            name = snake_to_pascal_case(variant.tag)
        elif ref.kind is TypeKind.NAMED:
            name = ref.name
        elif ref.kind is TypeKind.PRIMITIVE:
            name = snake_to_pascal_case(ref.name)
        else:
            name = snake_to_pascal_case(ref.kind.value)
        names.append(name)

    if len(set(names)) != len(names) or not all(names) or any(n[0].isdigit() for n in names):
        names = [f"Variant{i}" for i in range(len(names))]

    for variant, name in zip(identity.variants, names):
        variant.name = name
