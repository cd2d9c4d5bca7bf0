"""Selection-set type synthesis.

Walks operation and fragment selection sets against the schema and builds
the Type IR (see ir.py) describing the shape of results and variables.

Example usage:
    synthesizer = TypeSynthesizer(schema, doc_set.fragments)
    result_ir = synthesizer.operation_result(operation)
    variables_ir = synthesizer.variables(operation)
"""

import logging
from dataclasses import dataclass, field
from typing import Mapping

from graphql import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLEnumType,
    GraphQLInputObjectType,
    GraphQLScalarType,
    InlineFragmentNode,
    OperationDefinitionNode,
    SchemaMetaFieldDef,
    SelectionSetNode,
    TypeMetaFieldDef,
    get_named_type,
    is_abstract_type,
    is_interface_type,
    is_leaf_type,
    is_list_type,
    is_non_null_type,
    is_object_type,
    is_union_type,
    type_from_ast,
)

from .errors import FragmentResolutionError, SynthesisError
from .ir import (
    ArrayType,
    EnumRef,
    InputRef,
    IRField,
    LiteralType,
    NullableType,
    ObjectType,
    ScalarType,
    TypeIR,
    UnionType,
)
from .schema import SchemaModel

logger = logging.getLogger(__name__)

TYPENAME = "__typename"


@dataclass(frozen=True)
class SynthesisOptions:
    """Options that change the shape of the synthesized IR."""
    skip_typename: bool = False
    avoid_optionals: bool = False
    immutable_types: bool = False

    @property
    def fingerprint(self) -> tuple:
        return (self.skip_typename, self.avoid_optionals, self.immutable_types)


@dataclass
class _Entry:
    """A field collected under one response name."""
    response_name: str
    field_name: str
    type: object = None
    selection_sets: list[SelectionSetNode] = field(default_factory=list)

    @property
    def is_typename(self) -> bool:
        return self.field_name == TYPENAME


class _Collector:
    """Fields of one object level, keyed by response name in insertion order."""

    def __init__(self):
        self.entries: dict[str, _Entry] = {}

    def add(self, response_name: str, field_name: str, type_=None, selection_set=None):
        entry = self.entries.get(response_name)
        if entry is None:
            entry = _Entry(response_name, field_name, type_)
            self.entries[response_name] = entry
        if selection_set is not None and selection_set.selections:
            entry.selection_sets.append(selection_set)

    @property
    def has_typename(self) -> bool:
        return TYPENAME in self.entries


class TypeSynthesizer:
    """Builds Type IR for operations, fragments and variables.

    The synthesizer is a pure function of the schema, the fragment table and
    the options; it keeps no state between calls.
    """

    def __init__(
        self,
        schema: SchemaModel,
        fragments: Mapping[str, FragmentDefinitionNode],
        options: SynthesisOptions | None = None,
    ):
        self.schema = schema
        self.fragments = fragments
        self.options = options or SynthesisOptions()

    # Variables

    def variables(self, operation: OperationDefinitionNode) -> ObjectType:
        """One field per variable definition, in declaration order."""
        fields = []
        for definition in operation.variable_definitions or ():
            gql_type = type_from_ast(self.schema.schema, definition.type)
            if gql_type is None:
                raise SynthesisError(
                    f"unknown type {definition.type} for variable "
                    f"${definition.variable.name.value}"
                )
            non_null = is_non_null_type(gql_type)
            has_default = definition.default_value is not None
            required = self.options.avoid_optionals or (non_null and not has_default)
            fields.append(
                IRField(
                    name=definition.variable.name.value,
                    type=self._input_type(gql_type),
                    optional=not required,
                    nullable=not non_null,
                )
            )
        return ObjectType(fields)

    def _input_type(self, gql_type) -> TypeIR:
        if is_non_null_type(gql_type):
            return self._input_inner(gql_type.of_type)
        return NullableType(self._input_inner(gql_type))

    def _input_inner(self, gql_type) -> TypeIR:
        if is_list_type(gql_type):
            return ArrayType(self._input_type(gql_type.of_type), readonly=self.options.immutable_types)
        if isinstance(gql_type, GraphQLScalarType):
            return ScalarType(gql_type.name)
        if isinstance(gql_type, GraphQLEnumType):
            return EnumRef(gql_type.name)
        if isinstance(gql_type, GraphQLInputObjectType):
            return InputRef(gql_type.name)
        raise SynthesisError(f"{gql_type} is not an input type")

    # Results

    def operation_result(self, operation: OperationDefinitionNode) -> TypeIR:
        """Result shape of an operation, rooted at its Query/Mutation/Subscription type."""
        kind = operation.operation.value
        root = self.schema.root_type(kind)
        if root is None:
            raise SynthesisError(f"schema does not define a {kind} root type")
        return self.selection(root, [operation.selection_set])

    def fragment_result(self, fragment: FragmentDefinitionNode) -> TypeIR:
        """Shape of the data selected by a fragment on its type condition."""
        condition = fragment.type_condition.name.value
        parent = self.schema.get_type(condition)
        if parent is None:
            raise SynthesisError(f"fragment {fragment.name.value!r} targets unknown type {condition!r}")
        return self.selection(parent, [fragment.selection_set])

    def selection(self, parent, selection_sets: list[SelectionSetNode]) -> TypeIR:
        """Synthesize the IR of merged selection sets on a composite parent type."""
        if is_union_type(parent) or (
            is_interface_type(parent) and self._narrows(parent, selection_sets, set())
        ):
            return UnionType(
                [
                    self._object(member, selection_sets, in_union=True)
                    for member in self.schema.possible_types(parent)
                ]
            )
        return self._object(parent, selection_sets, in_union=False)

    def _object(self, parent, selection_sets, in_union: bool) -> ObjectType:
        collector = _Collector()
        for selection_set in selection_sets:
            self._collect(parent, selection_set, collector, frozenset())

        fields: list[IRField] = []
        if in_union and not collector.has_typename:
            fields.append(self._typename_field(TYPENAME, parent, required=True))
        elif not in_union and not collector.has_typename and not self.options.skip_typename:
            fields.append(self._typename_field(TYPENAME, parent, required=self.options.avoid_optionals))

        leaves: list[IRField] = []
        composites: list[IRField] = []
        for entry in collector.entries.values():
            if entry.is_typename:
                leaves.append(self._typename_field(entry.response_name, parent, required=True))
            elif is_leaf_type(get_named_type(entry.type)):
                leaves.append(self._field(entry))
            else:
                composites.append(self._field(entry))
        return ObjectType(fields + leaves + composites)

    def _typename_field(self, name: str, parent, required: bool) -> IRField:
        if is_object_type(parent):
            type_ir = LiteralType(parent.name)
        else:
            type_ir = ScalarType("String")
        return IRField(
            name=name,
            type=type_ir,
            optional=not required,
            readonly=self.options.immutable_types,
        )

    def _field(self, entry: _Entry) -> IRField:
        non_null = is_non_null_type(entry.type)
        return IRField(
            name=entry.response_name,
            type=self._output_type(entry.type, entry.selection_sets),
            optional=not non_null and not self.options.avoid_optionals,
            nullable=not non_null,
            readonly=self.options.immutable_types,
        )

    def _output_type(self, gql_type, selection_sets) -> TypeIR:
        if is_non_null_type(gql_type):
            return self._output_inner(gql_type.of_type, selection_sets)
        return NullableType(self._output_inner(gql_type, selection_sets))

    def _output_inner(self, gql_type, selection_sets) -> TypeIR:
        if is_list_type(gql_type):
            return ArrayType(
                self._output_type(gql_type.of_type, selection_sets),
                readonly=self.options.immutable_types,
            )
        if isinstance(gql_type, GraphQLScalarType):
            return ScalarType(gql_type.name)
        if isinstance(gql_type, GraphQLEnumType):
            return EnumRef(gql_type.name)
        return self.selection(gql_type, selection_sets)

    # Collection

    def _collect(self, parent, selection_set, collector: _Collector, visited: frozenset):
        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                field_name = selection.name.value
                response_name = selection.alias.value if selection.alias else field_name
                if field_name == TYPENAME:
                    collector.add(response_name, field_name)
                    continue
                field_def = self._field_def(parent, field_name)
                if field_def is None:
                    raise SynthesisError(f"field {field_name!r} is not defined on type {parent.name!r}")
                collector.add(response_name, field_name, field_def.type, selection.selection_set)
            elif isinstance(selection, InlineFragmentNode):
                condition = selection.type_condition.name.value if selection.type_condition else None
                if self._applies(condition, parent):
                    self._collect(parent, selection.selection_set, collector, visited)
            elif isinstance(selection, FragmentSpreadNode):
                name = selection.name.value
                if name in visited:
                    continue
                fragment = self._fragment(name)
                if self._applies(fragment.type_condition.name.value, parent):
                    self._collect(parent, fragment.selection_set, collector, visited | {name})

    def _field_def(self, parent, field_name: str):
        if parent is self.schema.query_type:
            if field_name == "__schema":
                return SchemaMetaFieldDef
            if field_name == "__type":
                return TypeMetaFieldDef
        return parent.fields.get(field_name)

    def _narrows(self, parent, selection_sets, visited: set) -> bool:
        """True if some fragment targets a type more specific than the interface."""
        for selection_set in selection_sets:
            for selection in selection_set.selections:
                if isinstance(selection, InlineFragmentNode):
                    condition = selection.type_condition.name.value if selection.type_condition else None
                    sub = selection.selection_set
                elif isinstance(selection, FragmentSpreadNode):
                    if selection.name.value in visited:
                        continue
                    visited.add(selection.name.value)
                    fragment = self._fragment(selection.name.value)
                    condition = fragment.type_condition.name.value
                    sub = fragment.selection_set
                else:
                    continue
                if not self._applies(condition, parent):
                    return True
                if self._narrows(parent, [sub], visited):
                    return True
        return False

    def _applies(self, condition: str | None, parent) -> bool:
        if condition is None or condition == parent.name:
            return True
        if any(interface.name == condition for interface in getattr(parent, "interfaces", ())):
            return True
        condition_type = self.schema.get_type(condition)
        if condition_type is not None and is_abstract_type(condition_type) and is_object_type(parent):
            return self.schema.schema.is_sub_type(condition_type, parent)
        return False

    def _fragment(self, name: str) -> FragmentDefinitionNode:
        fragment = self.fragments.get(name)
        if fragment is None:
            raise FragmentResolutionError(name)
        return fragment
