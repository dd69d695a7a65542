"""
Base class for target-language emitters.

Defines the interface that all language-specific emitters implement and the
TargetProfile table each of them declares.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jinja2
from loguru import logger

from ..analyzer.ir_nodes import GenerationUnit, TypeIdentity, TypeKind, TypeRef, TypeShape
from ..config import CodeGeneratorConfig


@dataclass
class TargetProfile:
    """Per-language emission table."""

    # Template directory name under templates/
    language: str = ""

    # File extension of the generated source
    file_extension: str = ""

    # JSON Schema primitive -> target type
    primitive_types: dict[str, str] = field(default_factory=dict)

    # Target type for any JSON value
    any_type: str = ""

    # Line comment prefix for the generation header
    comment_prefix: str = "#"

    # Blank lines between top-level declarations
    blank_lines: int = 1


class Emitter(ABC):
    """Abstract base class for emitters."""

    PROFILE: TargetProfile = TargetProfile()

    # Template names, rendered in this order for each shape
    SHAPE_TEMPLATES = {
        TypeShape.STRUCT: "struct",
        TypeShape.ENUM: "enum",
        TypeShape.UNION: "union",
        TypeShape.ALIAS: "alias",
    }

    def __init__(self, config: CodeGeneratorConfig | None = None):
        """
        Initialize the emitter.

        Args:
            config: Code generation configuration
        """
        self.config = config or CodeGeneratorConfig()
        self.unit = GenerationUnit()
        self._setup_templates()

    def _setup_templates(self) -> None:
        """Set up Jinja2 templates."""
        template_dir = Path(__file__).parent.parent.parent / "templates" / self.PROFILE.language
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            lstrip_blocks=True,
            trim_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )
        ext = self.PROFILE.file_extension
        self.prefix_template = self.jinja_env.get_template(f"prefix.{ext}.jinja2")
        self.templates = {shape: self.jinja_env.get_template(f"{name}.{ext}.jinja2") for shape, name in self.SHAPE_TEMPLATES.items()}

    def emit(self, unit: GenerationUnit, generation_comment: list[str] | None = None) -> str:
        """
        Render a GenerationUnit as one source buffer.

        Args:
            unit: The resolved types
            generation_comment: Header lines, written as line comments

        Returns:
            Generated source code
        """
        self.unit = unit
        self.reset()

        blocks = []
        for identity in self.declaration_order(unit):
            context = self.prepare_context(identity)
            blocks.append(self.template_for(identity).render(context).rstrip("\n"))

        prefix = self.prefix_template.render(
            generation_comment=generation_comment if self.config.add_generation_comment else None,
            comment_prefix=self.PROFILE.comment_prefix,
            required_imports=self.assemble_imports() if blocks else [],
        )
        logger.debug(f"Emitted {len(blocks)} {self.PROFILE.language} declarations")
        return self.join(prefix, blocks)

    def template_for(self, identity: TypeIdentity) -> jinja2.Template:
        return self.templates[identity.shape]

    def declaration_order(self, unit: GenerationUnit) -> list[TypeIdentity]:
        """Dependencies first; back references are the only forward mentions."""
        return unit.topological_order()

    def join(self, prefix: str, blocks: list[str]) -> str:
        if not blocks:
            return prefix
        return prefix + ("\n" * (self.PROFILE.blank_lines + 1)).join(blocks) + "\n"

    def reset(self) -> None:
        """Clear per-run state (imports)."""

    def assemble_imports(self) -> list[str]:
        return []

    @abstractmethod
    def prepare_context(self, identity: TypeIdentity) -> dict[str, Any]:
        """
        Prepare the template context for one type.

        Args:
            identity: The type to declare

        Returns:
            Dictionary of template variables
        """

    @abstractmethod
    def translate_type(self, type_ref: TypeRef) -> str:
        """
        Translate an IR type reference to a target-language type string.

        Args:
            type_ref: The type reference

        Returns:
            Language-specific type string
        """

    def translate_primitive(self, name: str) -> str:
        return self.PROFILE.primitive_types.get(name, self.PROFILE.any_type)

    def resolve_alias(self, type_ref: TypeRef) -> TypeRef:
        """Follow alias identities to the type they stand for."""
        seen: set[str] = set()
        while type_ref.kind is TypeKind.NAMED and type_ref.name not in seen:
            seen.add(type_ref.name)
            identity = self.unit.types.get(type_ref.name)
            if identity is None or identity.shape is not TypeShape.ALIAS or identity.target is None:
                break
            target = identity.target
            type_ref = TypeRef(
                kind=target.kind,
                name=target.name,
                item=target.item,
                nullable=target.nullable or type_ref.nullable,
            )
        return type_ref

    @staticmethod
    def description_lines(text: str | None) -> list[str]:
        """Split a description into lines, without trailing whitespace."""
        if not text:
            return []
        return [line.rstrip() for line in text.strip().splitlines()]
