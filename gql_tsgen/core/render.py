"""Rendering of Type IR as TypeScript type expressions.

Three rendering modes exist:

- ``result``: operation results. Scalars resolve through the scalar map and
  nullable wrappers become ``| null``.
- ``input``: variables, input objects and field arguments. Scalars reference
  the ``Scalars`` table and nullable wrappers become ``InputMaybe<...>``.
- ``output``: schema object fields in the base types. Scalars reference the
  ``Scalars`` table and nullable wrappers become ``Maybe<...>``.
"""

import re
from typing import Literal

from .ir import (
    ArrayType,
    EnumRef,
    InputRef,
    IRField,
    LiteralType,
    NamedRef,
    NullableType,
    ObjectType,
    ScalarType,
    TypeIR,
    UnionType,
)
from .scalars import ScalarMap

RenderMode = Literal["result", "input", "output"]

EMPTY_VARIABLES = "Exact<{ [key: string]: never; }>"
IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


class TypeScriptRenderer:
    """Renders IR nodes to TypeScript source."""

    def __init__(self, scalars: ScalarMap | None = None, strict_nulls: bool = True):
        self.scalars = scalars or ScalarMap()
        self.strict_nulls = strict_nulls

    def render(self, type_ir: TypeIR, mode: RenderMode = "result", indent: str = "") -> str:
        if isinstance(type_ir, ScalarType):
            if mode == "result":
                return self.scalars.render(type_ir.name, "output")
            return f"Scalars['{type_ir.name}']['{mode}']"
        if isinstance(type_ir, (EnumRef, InputRef, NamedRef)):
            return type_ir.name
        if isinstance(type_ir, LiteralType):
            return f"'{type_ir.value}'"
        if isinstance(type_ir, NullableType):
            inner = self.render(type_ir.inner, mode, indent)
            if mode == "input":
                return f"InputMaybe<{inner}>"
            if mode == "output":
                return f"Maybe<{inner}>"
            return f"{inner} | null" if self.strict_nulls else inner
        if isinstance(type_ir, ArrayType):
            return self._render_array(type_ir, mode, indent)
        if isinstance(type_ir, UnionType):
            return " | ".join(self.render(option, mode, indent) for option in type_ir.options)
        if isinstance(type_ir, ObjectType):
            if not type_ir.fields:
                return "{}"
            return "{ " + ", ".join(self.render_field(f, mode, indent) for f in type_ir.fields) + " }"
        raise TypeError(f"cannot render {type_ir!r}")

    def _render_array(self, type_ir: ArrayType, mode: RenderMode, indent: str) -> str:
        list_type = "ReadonlyArray" if type_ir.readonly else "Array"
        element = type_ir.element
        if isinstance(element, UnionType) and len(element.options) > 1:
            option_indent = indent + "    "
            lines = [
                f"{option_indent}| {self.render(option, mode, option_indent + '  ')}"
                for option in element.options
            ]
            return f"{list_type}<\n" + "\n".join(lines) + f"\n{indent}  >"
        return f"{list_type}<{self.render(element, mode, indent)}>"

    def render_field(self, field: IRField, mode: RenderMode = "result", indent: str = "") -> str:
        prefix = "readonly " if field.readonly else ""
        optional = "?" if field.optional else ""
        name = field.name if IDENTIFIER.match(field.name) else f"'{field.name}'"
        return f"{prefix}{name}{optional}: {self.render(field.type, mode, indent)}"

    def render_variables(self, variables: ObjectType) -> str:
        """The ``Exact<{...}>`` record of an operation's variables."""
        if not variables.fields:
            return EMPTY_VARIABLES
        lines = [f"  {self.render_field(f, 'input')};" for f in variables.fields]
        return "Exact<{\n" + "\n".join(lines) + "\n}>"

    def render_block(self, obj: ObjectType, mode: RenderMode = "output") -> str:
        """A multi-line record body, one field per line."""
        lines = [f"  {self.render_field(f, mode)};" for f in obj.fields]
        return "{\n" + "\n".join(lines) + "\n}"
