"""Intermediate Representation (IR) for synthesized TypeScript types.

This module defines dataclasses that describe the shape of an operation
result, a fragment or a variables record in a language-agnostic way. The
type synthesizer builds these trees and the emitters render them.
"""

from dataclasses import dataclass, field
from typing import Union


@dataclass
class ScalarType:
    """A GraphQL scalar, rendered through the scalar map."""
    name: str


@dataclass
class EnumRef:
    """Reference to a schema enum."""
    name: str


@dataclass
class InputRef:
    """Reference to a schema input object."""
    name: str


@dataclass
class NamedRef:
    """Reference to a named output type (base types only)."""
    name: str


@dataclass
class LiteralType:
    """A string literal type, used for ``__typename``."""
    value: str


@dataclass
class ArrayType:
    """List wrapper."""
    element: "TypeIR"
    readonly: bool = False


@dataclass
class NullableType:
    """Nullable wrapper, distinct from optional presence."""
    inner: "TypeIR"


@dataclass
class IRField:
    """A single entry of an object shape."""
    name: str
    type: "TypeIR"
    optional: bool = False
    nullable: bool = False
    readonly: bool = False


@dataclass
class ObjectType:
    """An anonymous record with ordered fields."""
    fields: list[IRField] = field(default_factory=list)

    def get(self, name: str) -> IRField | None:
        """Look up a field by response name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


@dataclass
class UnionType:
    """Discriminated union, one object option per concrete type."""
    options: list[ObjectType] = field(default_factory=list)

    @property
    def typenames(self) -> list[str]:
        """Return the ``__typename`` literal of each option."""
        names = []
        for option in self.options:
            typename = option.get("__typename")
            if typename is not None and isinstance(typename.type, LiteralType):
                names.append(typename.type.value)
        return names


TypeIR = Union[
    ScalarType,
    EnumRef,
    InputRef,
    NamedRef,
    LiteralType,
    ArrayType,
    NullableType,
    ObjectType,
    UnionType,
]


def unwrap(type_ir: TypeIR) -> TypeIR:
    """Strip Array and Nullable wrappers."""
    while isinstance(type_ir, (ArrayType, NullableType)):
        type_ir = type_ir.element if isinstance(type_ir, ArrayType) else type_ir.inner
    return type_ir


@dataclass
class OperationDescriptor:
    """Everything the emitters need to know about one named operation.

    Built once per operation and cached for the rest of a generator run.
    """
    name: str
    kind: str  # 'query', 'mutation' or 'subscription'
    normalized: str
    hash: str
    fragments: list[str]
    variables: ObjectType
    result: TypeIR
    has_variables: bool = False

    @property
    def suffix(self) -> str:
        return self.kind.capitalize()
