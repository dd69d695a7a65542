"""
Python emitter.

Generates dataclasses, Enum classes, tagged union wrappers and type aliases
from the IR.
"""

from __future__ import annotations

import collections
import json
import math
from typing import Any

from ...utils import disambiguate, escape_python_identifier, to_snake_case, to_upper_snake_case
from ..analyzer.ir_nodes import FieldDef, TypeIdentity, TypeKind, TypeRef, TypeShape
from .base import Emitter, TargetProfile

# Field names that would shadow a name the class body uses at runtime
SHADOWED_FIELD_NAMES = {"bool", "config", "dict", "field", "float", "int", "list", "str"}

# isinstance() targets for union variant checks
RUNTIME_TYPES = {
    "string": "str",
    "integer": "int",
    "number": "(int, float)",
    "boolean": "bool",
    "null": "type(None)",
}


class PythonEmitter(Emitter):
    """Python code emitter."""

    PROFILE = TargetProfile(
        language="python",
        file_extension="py",
        primitive_types={
            "string": "str",
            "integer": "int",
            "number": "float",
            "boolean": "bool",
            "null": "None",
        },
        any_type="Any",
        comment_prefix="#",
        blank_lines=2,
    )

    def reset(self) -> None:
        self.python_imports: set[tuple[str, str]] = set()
        if self.config.use_future_annotations:
            self.python_imports.add(("__future__", "annotations"))

    def template_for(self, identity: TypeIdentity):
        if identity.shape is TypeShape.ENUM and _is_literal_enum(identity):
            return self.templates[TypeShape.ALIAS]
        return super().template_for(identity)

    def prepare_context(self, identity: TypeIdentity) -> dict[str, Any]:
        if identity.shape is TypeShape.STRUCT:
            return self._struct_context(identity)
        if identity.shape is TypeShape.ENUM:
            if _is_literal_enum(identity):
                return self._literal_enum_context(identity)
            return self._enum_context(identity)
        if identity.shape is TypeShape.UNION:
            return self._union_context(identity)
        return self._alias_context(identity)

    # Types

    def translate_type(self, type_ref: TypeRef) -> str:
        """Translate IR type to Python type string."""
        if type_ref.kind is TypeKind.PRIMITIVE:
            result = self.translate_primitive(type_ref.name)
        elif type_ref.kind is TypeKind.NAMED:
            result = type_ref.name
        elif type_ref.kind is TypeKind.ARRAY:
            result = f"list[{self.translate_type(type_ref.item) if type_ref.item else 'Any'}]"
        elif type_ref.kind is TypeKind.MAP:
            result = f"dict[str, {self.translate_type(type_ref.item) if type_ref.item else 'Any'}]"
        else:
            result = "Any"

        if "Any" in result:
            self.python_imports.add(("typing", "Any"))

        # Handle nullability
        if type_ref.nullable and result not in ("None", "Any"):
            result = f"{result} | None"

        return result

    def _annotation(self, type_ref: TypeRef, optional: bool = False) -> str:
        result = self.translate_type(type_ref)
        if optional and not result.endswith("| None") and result not in ("None", "Any"):
            result = f"{result} | None"

        # Cycles need a string annotation when annotations are evaluated eagerly
        if not self.config.use_future_annotations and _has_back_reference(type_ref):
            result = json.dumps(result)
        return result

    def _runtime_check(self, type_ref: TypeRef) -> str:
        """isinstance() target matching values of a type."""
        ref = self.resolve_alias(type_ref)
        if ref.kind is TypeKind.PRIMITIVE:
            check = RUNTIME_TYPES.get(ref.name, "object")
        elif ref.kind is TypeKind.NAMED:
            identity = self.unit.types.get(ref.name)
            if identity is not None and identity.shape is TypeShape.ENUM and _is_literal_enum(identity):
                value_types = dict.fromkeys(type(member.value).__name__ for member in identity.members)
                check = f"({', '.join(value_types)})" if len(value_types) > 1 else next(iter(value_types))
            else:
                check = ref.name
        elif ref.kind is TypeKind.ARRAY:
            check = "list"
        elif ref.kind is TypeKind.MAP:
            check = "dict"
        else:
            return "object"

        if ref.nullable and check != "type(None)":
            return f"({check.strip('()')}, type(None))"
        return check

    # Structs

    def _decorators(self) -> list[str]:
        self.python_imports.add(("dataclasses", "dataclass"))
        decorators = []
        if self.config.use_dataclasses_json:
            self.python_imports.add(("dataclasses_json", "dataclass_json"))
            decorators.append("@dataclass_json")
        decorators.append("@dataclass(kw_only=True)")
        return decorators

    def _struct_context(self, identity: TypeIdentity) -> dict[str, Any]:
        names = disambiguate([_python_field_name(f.name) for f in identity.fields], "_")
        fields = []
        for field_def, name in zip(identity.fields, names):
            fields.append(
                {
                    "comment": [f"# {line}".rstrip() for line in self.description_lines(field_def.description)],
                    "declaration": self._field_declaration(field_def, name),
                }
            )

        return {
            "name": identity.name,
            "decorators": self._decorators(),
            "docstring": _docstring_lines(identity.description, "    "),
            "fields": fields,
        }

    def _field_declaration(self, field_def: FieldDef, name: str) -> str:
        type_ref = field_def.type_ref or TypeRef(kind=TypeKind.ANY)
        has_value_default = field_def.has_default and field_def.default_value is not None

        if not field_def.is_required and not has_value_default:
            annotation = self._annotation(type_ref, optional=True)
            default: tuple[str, str] | None = ("value", "None")
        else:
            annotation = self._annotation(type_ref)
            default = None
            if has_value_default:
                default = self._default_value(field_def.default_value, type_ref)
            elif field_def.has_default and type_ref.nullable:
                default = ("value", "None")

        metadata = None
        if name != field_def.name:
            if self.config.use_dataclasses_json:
                self.python_imports.add(("dataclasses_json", "config"))
                metadata = f"config(field_name={json.dumps(field_def.name, ensure_ascii=False)})"
            else:
                metadata = f'{{"json_name": {json.dumps(field_def.name, ensure_ascii=False)}}}'

        declaration = f"{name}: {annotation}"
        if default is None and metadata is None:
            return declaration
        if metadata is None and default[0] == "value":
            return f"{declaration} = {default[1]}"

        self.python_imports.add(("dataclasses", "field"))
        args = []
        if default is not None:
            args.append(f"default={default[1]}" if default[0] == "value" else f"default_factory={default[1]}")
        if metadata is not None:
            args.append(f"metadata={metadata}")
        return f"{declaration} = field({', '.join(args)})"

    def _default_value(self, value: Any, type_ref: TypeRef) -> tuple[str, str]:
        """
        Format a schema default as a field default.

        Returns:
            ("value", expression) or ("factory", callable expression)
        """
        target = self.unit.types.get(type_ref.name) if type_ref.kind is TypeKind.NAMED else None

        if target is not None and target.shape is TypeShape.ENUM and not _is_literal_enum(target):
            for member_name, member in zip(_enum_member_names(target), target.members):
                if json.dumps(member.value) == json.dumps(value):
                    return "value", f"{target.name}.{member_name}"

        if target is not None and target.shape is TypeShape.STRUCT and isinstance(value, dict) and self.config.use_dataclasses_json:
            return "factory", f"lambda: {target.name}.from_dict({_python_literal(value)})"

        if isinstance(value, list):
            return "factory", f"lambda: {_python_literal(value)}" if value else "list"

        if isinstance(value, dict):
            return "factory", f"lambda: {_python_literal(value)}" if value else "dict"

        return "value", _python_literal(value)

    # Enums

    def _enum_context(self, identity: TypeIdentity) -> dict[str, Any]:
        self.python_imports.add(("enum", "Enum"))
        if identity.value_type == "string":
            bases = "str, Enum"
        elif identity.value_type == "integer":
            bases = "int, Enum"
        else:
            bases = "Enum"

        members = [
            {"name": name, "value": _python_literal(member.value)}
            for name, member in zip(_enum_member_names(identity), identity.members)
        ]
        return {
            "name": identity.name,
            "bases": bases,
            "docstring": _docstring_lines(identity.description, "    "),
            "members": members,
        }

    def _literal_enum_context(self, identity: TypeIdentity) -> dict[str, Any]:
        """Enum values that an Enum class would merge (1, 1.0, true) are kept apart as a Literal."""
        self.python_imports.add(("typing", "Literal"))
        self.python_imports.add(("typing", "TypeAlias"))
        return {
            "name": identity.name,
            "comment": [f"# {line}".rstrip() for line in self.description_lines(identity.description)],
            "target": f"Literal[{', '.join(_python_literal(member.value) for member in identity.members)}]",
        }

    # Unions

    def _union_context(self, identity: TypeIdentity) -> dict[str, Any]:
        self.python_imports.add(("typing", "Literal"))

        discriminator = None
        if identity.discriminator:
            self.python_imports.add(("typing", "ClassVar"))
            discriminator = json.dumps(identity.discriminator, ensure_ascii=False)

        variants = []
        value_types: list[str] = []
        for variant in identity.variants:
            type_ref = variant.type_ref or TypeRef(kind=TypeKind.ANY)
            variants.append(
                {
                    "tag": json.dumps(variant.tag or variant.name, ensure_ascii=False),
                    "check": self._runtime_check(type_ref),
                }
            )
            annotation = self.translate_type(type_ref)
            if annotation not in value_types:
                value_types.append(annotation)

        value_type = " | ".join(value_types)
        if not self.config.use_future_annotations and any(_has_back_reference(v.type_ref) for v in identity.variants):
            value_type = json.dumps(value_type)

        return {
            "name": identity.name,
            "decorators": self._decorators(),
            "docstring": _docstring_lines(identity.description, "    "),
            "discriminator": discriminator,
            "variants": variants,
            "value_type": value_type,
        }

    # Aliases

    def _alias_context(self, identity: TypeIdentity) -> dict[str, Any]:
        self.python_imports.add(("typing", "TypeAlias"))
        target_ref = identity.target or TypeRef(kind=TypeKind.ANY)
        target = self.translate_type(target_ref)

        # Alias values are evaluated at import time
        if _has_back_reference(target_ref):
            target = json.dumps(target)

        return {
            "name": identity.name,
            "comment": [f"# {line}".rstrip() for line in self.description_lines(identity.description)],
            "target": target,
        }

    # Imports

    def assemble_imports(self) -> list[str]:
        """Assemble Python import statements."""
        # Group imports by module
        import_groups: dict[str, set[str]] = collections.defaultdict(set)
        for module, name in self.python_imports:
            import_groups[module].add(name)

        STDLIB_MODULES = {"dataclasses", "enum", "typing"}

        stdlib_groups = {m: import_groups[m] for m in import_groups if m in STDLIB_MODULES}
        third_party_groups = {m: import_groups[m] for m in import_groups if m not in STDLIB_MODULES and m != "__future__"}

        assembled = []

        # __future__ imports first
        if "__future__" in import_groups:
            assembled.append(f"from __future__ import {', '.join(sorted(import_groups['__future__']))}")
            if stdlib_groups or third_party_groups:
                assembled.append("")

        for module in sorted(stdlib_groups):
            assembled.append(f"from {module} import {', '.join(sorted(stdlib_groups[module]))}")

        if stdlib_groups and third_party_groups:
            assembled.append("")

        for module in sorted(third_party_groups):
            assembled.append(f"from {module} import {', '.join(sorted(third_party_groups[module]))}")

        return assembled


def _has_back_reference(type_ref: TypeRef | None) -> bool:
    return type_ref is not None and any(ref.back_reference for ref in type_ref.walk())


def _python_field_name(json_name: str) -> str:
    name = escape_python_identifier(to_snake_case(json_name))
    if name in SHADOWED_FIELD_NAMES:
        name = f"{name}_"
    return name


def _is_literal_enum(identity: TypeIdentity) -> bool:
    """True when two distinct JSON values of the enum compare equal in Python."""
    seen: list[Any] = []
    for member in identity.members:
        if any(member.value == other for other in seen):
            return True
        seen.append(member.value)
    return False


def _enum_member_names(identity: TypeIdentity) -> list[str]:
    names = []
    for member in identity.members:
        value = member.value
        if isinstance(value, bool):
            name = "TRUE" if value else "FALSE"
        elif isinstance(value, (int, float)):
            name = "VALUE_" + str(value).replace("-", "MINUS_").replace(".", "_").replace("+", "")
        else:
            name = to_upper_snake_case(str(value)) or "EMPTY"
            if name[0].isdigit():
                name = f"VALUE_{name}"
        names.append(name)
    return disambiguate(names, "_")


def _python_literal(value: Any) -> str:
    """Python expression for a JSON value."""
    if value is None or isinstance(value, bool):
        return repr(value)
    if isinstance(value, float) and not math.isfinite(value):
        return f'float("{value}")'
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, list):
        return "[" + ", ".join(_python_literal(v) for v in value) + "]"
    if isinstance(value, dict):
        return "{" + ", ".join(f"{json.dumps(k, ensure_ascii=False)}: {_python_literal(v)}" for k, v in value.items()) + "}"
    return repr(value)


def _docstring_lines(text: str | None, indent: str) -> list[str]:
    """Docstring lines, indented, for a description."""
    if not text or not text.strip():
        return []
    text = text.strip().replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if text.endswith('"'):
        text = text[:-1] + '\\"'

    lines = [line.rstrip() for line in text.splitlines()]
    if len(lines) == 1:
        return [f'{indent}"""{lines[0]}"""']
    return [f'{indent}"""{lines[0]}'] + [f"{indent}{line}" if line else "" for line in lines[1:]] + [f'{indent}"""']
