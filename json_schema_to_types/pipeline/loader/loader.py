"""
Schema loader that builds the linked SchemaNode graph.

Phase 1 of the pipeline: read the root document(s), parse every schema
location once, then link each $ref to the node at its target location,
loading referenced files on demand.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger

from ...errors import DanglingReference, MalformedSchema, UnsupportedKeyword
from ...utils import snake_to_pascal_case
from ..config import CodeGeneratorConfig
from .nodes import NodeKind, SchemaDocument, SchemaGraph, SchemaNode

PRIMITIVE_TYPES = {"string", "integer", "number", "boolean", "null"}
JSON_TYPES = PRIMITIVE_TYPES | {"object", "array"}

# Keywords that change the generated type shape
MODELED_KEYWORDS = {
    "$ref",
    "type",
    "properties",
    "required",
    "items",
    "additionalProperties",
    "enum",
    "const",
    "oneOf",
    "anyOf",
    "allOf",
    "definitions",
    "$defs",
    "discriminator",
    "title",
    "description",
    "default",
    "format",
}

# Validation and annotation keywords: accepted, no effect on the type shape
ANNOTATION_KEYWORDS = {
    "$schema",
    "$id",
    "id",
    "$comment",
    "examples",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minLength",
    "maxLength",
    "pattern",
    "minItems",
    "maxItems",
    "uniqueItems",
    "minProperties",
    "maxProperties",
    "readOnly",
    "writeOnly",
    "deprecated",
    "contentEncoding",
    "contentMediaType",
}

# Structural keywords with semantics this generator does not model
UNSUPPORTED_KEYWORDS = {
    "patternProperties",
    "if",
    "then",
    "else",
    "not",
    "prefixItems",
    "additionalItems",
    "contains",
    "dependencies",
    "dependentSchemas",
    "dependentRequired",
    "propertyNames",
    "unevaluatedProperties",
    "unevaluatedItems",
    "$anchor",
    "$dynamicRef",
    "$recursiveRef",
}

# Keywords that may sit next to a $ref without changing its meaning
REF_SIBLINGS = ANNOTATION_KEYWORDS | {"title", "description", "default", "definitions", "$defs"}


def _escape_pointer_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def _unescape_pointer_token(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def _child(pointer: str, *tokens: str | int) -> str:
    return pointer + "".join(f"/{_escape_pointer_token(str(t))}" for t in tokens)


def root_name_for(path: Path) -> str:
    """Root type name for a schema file: ``tool_call.schema.json`` -> ``ToolCall``."""
    stem = path.name
    for suffix in (".json", ".schema"):
        stem = stem.removesuffix(suffix)
    return snake_to_pascal_case(stem) or "Root"


class SchemaLoader:
    """Loads JSON Schema documents into a linked SchemaNode graph."""

    def __init__(self, config: CodeGeneratorConfig | None = None):
        """
        Initialize the loader.

        Args:
            config: Code generation configuration
        """
        self.config = config or CodeGeneratorConfig()
        self._documents: dict[str, SchemaDocument] = {}
        self._base_dirs: dict[str, Path] = {}
        self._nodes: dict[str, SchemaNode] = {}
        self._pending: list[tuple[SchemaNode, SchemaDocument]] = []

    def load(self, path: str | Path, root_name: str | None = None) -> SchemaGraph:
        """
        Load a schema file, or every ``*.json`` file of a directory.

        Args:
            path: Schema file or directory
            root_name: Name for the root type (single file only)

        Returns:
            The linked schema graph

        Raises:
            MalformedSchema, UnsupportedKeyword, DanglingReference
        """
        path = Path(path)
        if path.is_dir():
            files = sorted(p for p in path.glob("*.json") if p.is_file())
            if not files:
                raise MalformedSchema(str(path), "directory contains no *.json schema files")
            root_name = None
        else:
            files = [path]

        graph = SchemaGraph()
        for file_path in files:
            name = root_name or root_name_for(file_path)
            graph.documents.append(self._load_file(file_path.resolve(), name))

        self._link()
        graph.loaded = dict(self._documents)
        return graph

    def load_schema(self, schema: Any, root_name: str = "Root", base_dir: str | Path | None = None) -> SchemaGraph:
        """
        Load an in-memory schema.

        Args:
            schema: The JSON Schema value (a dict or a boolean)
            root_name: Name for the root type
            base_dir: Directory that file-relative $refs are resolved against

        Returns:
            The linked schema graph
        """
        uri = f"<{root_name}>"
        doc = SchemaDocument(uri=uri, raw=schema, root_name=root_name)
        self._documents[uri] = doc
        self._base_dirs[uri] = Path(base_dir) if base_dir else Path.cwd()
        self._parse_document(doc)

        self._link()
        return SchemaGraph(documents=[doc], loaded=dict(self._documents))

    def _load_file(self, path: Path, root_name: str | None = None, referrer: str | None = None) -> SchemaDocument:
        """Read, decode and parse one schema file (once per path)."""
        key = str(path)
        if key in self._documents:
            return self._documents[key]

        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            if referrer is not None:
                raise DanglingReference(referrer, f"referenced schema file {path} does not exist") from e
            raise MalformedSchema(key, "schema file does not exist") from e
        except UnicodeDecodeError as e:
            raise MalformedSchema(key, f"not valid UTF-8: {e.reason} at byte {e.start}") from e
        except OSError as e:
            raise MalformedSchema(key, f"cannot read schema file: {e.strerror}") from e

        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedSchema(key, f"invalid JSON at line {e.lineno} column {e.colno}: {e.msg}") from e

        logger.debug(f"Loaded schema document {key}")
        doc = SchemaDocument(uri=key, raw=raw, root_name=root_name or root_name_for(path))
        self._documents[key] = doc
        self._base_dirs[key] = path.parent
        self._parse_document(doc)
        return doc

    def _parse_document(self, doc: SchemaDocument) -> None:
        if not isinstance(doc.raw, (dict, bool)):
            raise MalformedSchema(f"{doc.uri}#", f"expected a schema object, got {type(doc.raw).__name__}")
        doc.root = self._parse(doc.raw, doc, "", name_hint=doc.root_name)

    def _parse(self, raw: Any, doc: SchemaDocument, pointer: str, name_hint: str | None = None) -> SchemaNode:
        """
        Parse the schema at ``pointer`` of ``doc`` (memoized by location).

        Args:
            raw: The schema value at that location
            doc: The document being parsed
            pointer: JSON pointer of the value inside the document
            name_hint: Definition key or root name, used for naming

        Returns:
            The SchemaNode for that location
        """
        location = f"{doc.uri}#{pointer}"
        if location in self._nodes:
            return self._nodes[location]

        if raw is True:
            node = SchemaNode(kind=NodeKind.ANY, location=location, name_hint=name_hint)
            self._nodes[location] = node
            return node
        if raw is False:
            raise UnsupportedKeyword(location, "the false schema matches nothing and has no type")
        if not isinstance(raw, dict):
            raise MalformedSchema(location, f"expected a schema object, got {type(raw).__name__}")

        self._check_keywords(raw, location)

        node = SchemaNode(
            location=location,
            name_hint=name_hint,
            title=self._get_str(raw, "title", location),
            description=self._get_str(raw, "description", location),
        )
        if "default" in raw:
            node.default = raw["default"]
            node.has_default = True
        self._nodes[location] = node

        # Named definitions may appear at any level
        for container in ("definitions", "$defs"):
            if container in raw:
                self._parse_definitions(raw[container], doc, _child(pointer, container))

        if "$ref" in raw:
            self._parse_reference(node, raw, doc)
        elif "const" in raw or "enum" in raw:
            self._parse_enum(node, raw)
        elif "oneOf" in raw or "anyOf" in raw:
            self._parse_union(node, raw, doc, pointer)
        elif "allOf" in raw:
            self._parse_all_of(node, raw, doc, pointer)
        elif "type" in raw:
            self._parse_typed(node, raw, doc, pointer)
        elif "properties" in raw or "additionalProperties" in raw:
            self._parse_object(node, raw, doc, pointer)
        elif "items" in raw:
            self._parse_array(node, raw, doc, pointer)

        return node

    def _check_keywords(self, raw: dict[str, Any], location: str) -> None:
        """Reject keywords (and combinations) that have no modeled semantics."""
        for key in raw:
            if key.startswith("x-"):
                continue
            if key in UNSUPPORTED_KEYWORDS:
                raise UnsupportedKeyword(location, f"keyword '{key}' is not supported")
            if key not in MODELED_KEYWORDS and key not in ANNOTATION_KEYWORDS and not self.config.allow_unknown_keywords:
                raise UnsupportedKeyword(location, f"unknown keyword '{key}'")

        if "$ref" in raw:
            structural = sorted(k for k in raw if k not in REF_SIBLINGS and k != "$ref" and not k.startswith("x-"))
            if structural:
                raise UnsupportedKeyword(location, f"$ref combined with {', '.join(structural)} is not supported")
        if "oneOf" in raw and "anyOf" in raw:
            raise UnsupportedKeyword(location, "oneOf combined with anyOf is not supported")
        if "allOf" in raw and ("oneOf" in raw or "anyOf" in raw):
            raise UnsupportedKeyword(location, "allOf combined with oneOf/anyOf is not supported")
        if ("oneOf" in raw or "anyOf" in raw) and "properties" in raw:
            raise UnsupportedKeyword(location, "properties next to oneOf/anyOf are not supported")
        if "const" in raw and "enum" in raw:
            raise UnsupportedKeyword(location, "const combined with enum is not supported")

    def _get_str(self, raw: dict[str, Any], key: str, location: str) -> str | None:
        value = raw.get(key)
        if value is not None and not isinstance(value, str):
            raise MalformedSchema(location, f"'{key}' must be a string")
        return value

    def _parse_definitions(self, defs: Any, doc: SchemaDocument, pointer: str) -> None:
        if not isinstance(defs, dict):
            raise MalformedSchema(f"{doc.uri}#{pointer}", "definitions must be an object")
        for key in sorted(defs):
            # Comment strings sometimes live among definitions
            if isinstance(defs[key], str) or key.startswith("_comment"):
                continue
            child = self._parse(defs[key], doc, _child(pointer, key), name_hint=key)
            if child not in doc.definitions.values():
                doc.definitions[_child(pointer, key)] = child

    def _parse_reference(self, node: SchemaNode, raw: dict[str, Any], doc: SchemaDocument) -> None:
        ref = raw["$ref"]
        if not isinstance(ref, str):
            raise MalformedSchema(node.location, "$ref must be a string")
        node.kind = NodeKind.REFERENCE
        node.ref = ref
        self._pending.append((node, doc))

    def _parse_enum(self, node: SchemaNode, raw: dict[str, Any]) -> None:
        node.kind = NodeKind.ENUM
        if "const" in raw:
            node.enum_values = [raw["const"]]
            node.is_const = True
            return

        values = raw["enum"]
        if not isinstance(values, list) or not values:
            raise MalformedSchema(node.location, "enum must be a non-empty array")
        if any(isinstance(v, (dict, list)) for v in values):
            raise UnsupportedKeyword(node.location, "enum values must be literals, not objects or arrays")
        node.enum_values = list(values)

    def _parse_union(self, node: SchemaNode, raw: dict[str, Any], doc: SchemaDocument, pointer: str) -> None:
        keyword = "oneOf" if "oneOf" in raw else "anyOf"
        members = raw[keyword]
        if not isinstance(members, list) or not members:
            raise MalformedSchema(node.location, f"{keyword} must be a non-empty array")

        node.kind = NodeKind.UNION
        node.union_keyword = keyword
        node.variants = [self._parse(member, doc, _child(pointer, keyword, i)) for i, member in enumerate(members)]

        discriminator = raw.get("discriminator")
        if discriminator is not None:
            if not isinstance(discriminator, dict) or not isinstance(discriminator.get("propertyName"), str):
                raise MalformedSchema(node.location, "discriminator must be an object with a propertyName string")
            node.discriminator = discriminator["propertyName"]

    def _parse_all_of(self, node: SchemaNode, raw: dict[str, Any], doc: SchemaDocument, pointer: str) -> None:
        members = raw["allOf"]
        if not isinstance(members, list) or not members:
            raise MalformedSchema(node.location, "allOf must be a non-empty array")

        node.kind = NodeKind.ALL_OF
        node.variants = [self._parse(member, doc, _child(pointer, "allOf", i)) for i, member in enumerate(members)]

        # Properties written next to allOf act as one more member
        if "properties" in raw or "required" in raw:
            extra = SchemaNode(location=f"{node.location}/properties")
            self._parse_object(extra, raw, doc, pointer, force_object=True)
            node.variants.append(extra)

    def _parse_typed(self, node: SchemaNode, raw: dict[str, Any], doc: SchemaDocument, pointer: str) -> None:
        type_value = raw["type"]

        if isinstance(type_value, list):
            if not type_value or not all(isinstance(t, str) for t in type_value):
                raise MalformedSchema(node.location, "type must be a string or a non-empty array of strings")
            # Single-element type array is not a union
            if len(type_value) == 1:
                type_value = type_value[0]
            else:
                self._parse_type_union(node, raw, list(dict.fromkeys(type_value)), doc, pointer)
                return

        if not isinstance(type_value, str) or type_value not in JSON_TYPES:
            raise MalformedSchema(node.location, f"unknown type {type_value!r}")

        if type_value == "object":
            self._parse_object(node, raw, doc, pointer)
        elif type_value == "array":
            self._parse_array(node, raw, doc, pointer)
        else:
            node.kind = NodeKind.PRIMITIVE
            node.primitive = type_value
            node.format = self._get_str(raw, "format", node.location)

    def _parse_type_union(
        self,
        node: SchemaNode,
        raw: dict[str, Any],
        types: list[str],
        doc: SchemaDocument,
        pointer: str,
    ) -> None:
        """Parse a union of types (e.g., ["string", "null"])."""
        for t in types:
            if t not in JSON_TYPES:
                raise MalformedSchema(node.location, f"unknown type {t!r}")

        node.kind = NodeKind.UNION
        node.union_keyword = "type"
        siblings = {k: v for k, v in raw.items() if k not in ("type", "definitions", "$defs", "default")}
        node.variants = [
            self._parse({**siblings, "type": t}, doc, _child(pointer, "type", t)) for t in types
        ]

    def _parse_object(
        self,
        node: SchemaNode,
        raw: dict[str, Any],
        doc: SchemaDocument,
        pointer: str,
        force_object: bool = False,
    ) -> None:
        properties = raw.get("properties")
        additional = raw.get("additionalProperties")
        required = raw.get("required", [])

        if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
            raise MalformedSchema(node.location, "required must be an array of strings")

        open_schema = additional is None or additional is True or additional is False or additional == {}

        if properties is None and additional is not False and not force_object:
            # No declared properties: a string-keyed map
            node.kind = NodeKind.MAP
            if not open_schema:
                node.values = self._parse(additional, doc, _child(pointer, "additionalProperties"))
            return

        if properties is None:
            properties = {}
        if not isinstance(properties, dict):
            raise MalformedSchema(node.location, "properties must be an object")
        if not open_schema:
            raise UnsupportedKeyword(node.location, "an additionalProperties schema next to properties is not supported")

        node.kind = NodeKind.OBJECT
        node.required = list(dict.fromkeys(required))
        for name in sorted(properties):
            node.properties[name] = self._parse(properties[name], doc, _child(pointer, "properties", name))

    def _parse_array(self, node: SchemaNode, raw: dict[str, Any], doc: SchemaDocument, pointer: str) -> None:
        node.kind = NodeKind.ARRAY
        items = raw.get("items")
        if isinstance(items, list):
            raise UnsupportedKeyword(node.location, "tuple-style items arrays are not supported")
        if items is not None:
            node.items = self._parse(items, doc, _child(pointer, "items"))

    def _link(self) -> None:
        """Resolve every pending $ref, loading referenced files as needed."""
        while self._pending:
            node, doc = self._pending.pop(0)
            node.ref_target = self._resolve_ref(node, doc)
            logger.debug(f"Linked {node.location} -> {node.ref_target.location}")

        for node in self._nodes.values():
            if node.kind is NodeKind.REFERENCE and node.deref().kind is NodeKind.REFERENCE:
                raise MalformedSchema(node.location, f"$ref '{node.ref}' only leads to other references")

    def _resolve_ref(self, node: SchemaNode, doc: SchemaDocument) -> SchemaNode:
        ref = node.ref
        file_part, _, fragment = ref.partition("#")

        if file_part:
            target_path = (self._base_dirs[doc.uri] / file_part).resolve()
            target_doc = self._load_file(target_path, referrer=node.location)
        else:
            target_doc = doc

        if fragment and not fragment.startswith("/"):
            raise UnsupportedKeyword(node.location, f"$ref fragment '#{fragment}' is not a JSON pointer")

        raw = target_doc.raw
        tokens = [_unescape_pointer_token(t) for t in fragment.split("/")[1:]] if fragment else []
        for token in tokens:
            if isinstance(raw, dict) and token in raw:
                raw = raw[token]
            elif isinstance(raw, list) and token.isdigit() and int(token) < len(raw):
                raw = raw[int(token)]
            else:
                raise DanglingReference(node.location, f"$ref '{ref}' does not resolve")

        name_hint = None
        if len(tokens) >= 2 and tokens[-2] in ("definitions", "$defs"):
            name_hint = tokens[-1]
        elif not tokens:
            name_hint = target_doc.root_name
        return self._parse(raw, target_doc, fragment, name_hint=name_hint)
