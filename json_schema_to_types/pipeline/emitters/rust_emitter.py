"""
Rust emitter.

Generates serde structs, enums and type aliases from the IR, in the style of
schemafy output: sorted fields, ``#[doc]`` attributes, ``Option`` for
optional fields and ``#[serde(rename)]`` for JSON names that are not
snake_case identifiers.
"""

from __future__ import annotations

import json
from typing import Any

import jinja2

from ...utils import disambiguate, snake_to_pascal_case, to_snake_case
from ..analyzer.ir_nodes import TypeIdentity, TypeKind, TypeRef, TypeShape
from .base import Emitter, TargetProfile

RUST_KEYWORDS = {
    "abstract", "as", "async", "await", "become", "box", "break", "const", "continue",
    "crate", "do", "dyn", "else", "enum", "extern", "false", "final", "fn", "for", "if",
    "impl", "in", "let", "loop", "macro", "match", "mod", "move", "mut", "override",
    "priv", "pub", "ref", "return", "self", "static", "struct", "super", "trait",
    "true", "try", "type", "typeof", "unsafe", "unsized", "use", "virtual", "where",
    "while", "yield",
}  # fmt: skip

MAP_TYPE = "::std::collections::BTreeMap"

# Inner type of the newtype wrapper for non-string enumerations
ENUM_VALUE_TYPES = {
    "integer": "i64",
    "number": "f64",
    "boolean": "bool",
    "mixed": "serde_json::Value",
}


class RustEmitter(Emitter):
    """Rust code emitter."""

    PROFILE = TargetProfile(
        language="rust",
        file_extension="rs",
        primitive_types={
            "string": "String",
            "integer": "i64",
            "number": "f64",
            "boolean": "bool",
            "null": "()",
        },
        any_type="serde_json::Value",
        comment_prefix="//",
        blank_lines=1,
    )

    def _setup_templates(self) -> None:
        super()._setup_templates()
        self.enum_wrapper_template = self.jinja_env.get_template("enum_wrapper.rs.jinja2")

    def template_for(self, identity: TypeIdentity) -> jinja2.Template:
        if identity.shape is TypeShape.ENUM and identity.value_type != "string":
            return self.enum_wrapper_template
        return super().template_for(identity)

    def assemble_imports(self) -> list[str]:
        serde = [name for name in ("Deserialize", "Serialize") if name in self.config.rust_derives]
        if not serde:
            return []
        return [f"use serde::{{{', '.join(serde)}}};"]

    def prepare_context(self, identity: TypeIdentity) -> dict[str, Any]:
        context: dict[str, Any] = {
            "name": identity.name,
            "doc": _doc_attributes(self.description_lines(identity.description)),
            "derives": list(self.config.rust_derives),
        }

        if identity.shape is TypeShape.STRUCT:
            context.update(self._struct_context(identity))
        elif identity.shape is TypeShape.ENUM:
            context.update(self._enum_context(identity))
        elif identity.shape is TypeShape.UNION:
            context["variants"] = [
                {"name": variant.name, "type": self.translate_type(variant.type_ref or TypeRef(kind=TypeKind.ANY))}
                for variant in identity.variants
            ]
        else:
            context["target"] = self.translate_type(identity.target or TypeRef(kind=TypeKind.ANY))
        return context

    # Types

    def translate_type(self, type_ref: TypeRef, optional: bool = False) -> str:
        """Translate IR type to Rust type string."""
        result = self._translate_inner(type_ref)

        # Back references outside a container need indirection
        if type_ref.kind is TypeKind.NAMED and type_ref.back_reference:
            result = f"Box<{result}>"

        if type_ref.nullable or optional:
            result = f"Option<{result}>"
        return result

    def _translate_inner(self, type_ref: TypeRef) -> str:
        if type_ref.kind is TypeKind.PRIMITIVE:
            return self.translate_primitive(type_ref.name)
        if type_ref.kind is TypeKind.NAMED:
            return type_ref.name
        if type_ref.kind is TypeKind.ARRAY:
            return f"Vec<{self._container_item(type_ref.item)}>"
        if type_ref.kind is TypeKind.MAP:
            return f"{MAP_TYPE}<String, {self._container_item(type_ref.item)}>"
        return self.PROFILE.any_type

    def _container_item(self, item: TypeRef | None) -> str:
        if item is None:
            return self.PROFILE.any_type
        result = self._translate_inner(item)
        if item.nullable:
            result = f"Option<{result}>"
        return result

    # Structs

    def _struct_context(self, identity: TypeIdentity) -> dict[str, Any]:
        names = disambiguate([_rust_field_name(f.name) for f in identity.fields], "_")
        fields = []
        all_optional = True
        for field_def, name in zip(identity.fields, names):
            type_ref = field_def.type_ref or TypeRef(kind=TypeKind.ANY)
            optional = not field_def.is_required
            all_optional = all_optional and (optional or type_ref.nullable)

            attributes = _doc_attributes(self.description_lines(field_def.description))
            if optional:
                attributes.append('#[serde(skip_serializing_if = "Option::is_none")]')
            if name != field_def.name:
                attributes.append(f"#[serde(rename = {_rust_string(field_def.name)})]")

            fields.append(
                {
                    "name": name,
                    "type": self.translate_type(type_ref, optional=optional and not type_ref.nullable),
                    "attributes": attributes,
                }
            )

        derives = list(self.config.rust_derives)
        if all_optional and "Default" not in derives:
            position = derives.index("Deserialize") if "Deserialize" in derives else len(derives)
            derives.insert(position, "Default")

        return {"fields": fields, "derives": derives}

    # Enums

    def _enum_context(self, identity: TypeIdentity) -> dict[str, Any]:
        if identity.value_type == "string":
            names = disambiguate([_variant_name(str(m.value)) for m in identity.members])
            members = [
                {"name": name, "rename": _rust_string(m.value) if name != m.value else None}
                for name, m in zip(names, identity.members)
            ]
            return {"members": members}

        value_type = ENUM_VALUE_TYPES[identity.value_type]
        return {
            "value_type": value_type,
            "values": [_rust_literal(m.value, identity.value_type) for m in identity.members],
        }


def _rust_field_name(json_name: str) -> str:
    name = to_snake_case(json_name) or "field"
    if name[0].isdigit():
        name = f"_{name}"
    if name in RUST_KEYWORDS:
        name = f"{name}_"
    return name


def _variant_name(value: str) -> str:
    name = snake_to_pascal_case(value) or "Empty"
    if name[0].isdigit():
        name = f"Value{name}"
    if name == "Self":
        name = "SelfValue"
    return name


def _rust_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n").replace("\r", "\\r")
    return f'"{escaped}"'


def _rust_literal(value: Any, value_type: str) -> str:
    if value_type == "mixed":
        return f"serde_json::json!({json.dumps(value)})"
    if isinstance(value, bool):
        return "true" if value else "false"
    if value_type == "number":
        return repr(float(value))
    return str(value)


def _doc_attributes(lines: list[str]) -> list[str]:
    """``#[doc]`` attributes, one per description line."""
    return [f"#[doc = {_rust_string(' ' + line)}]" for line in lines]
