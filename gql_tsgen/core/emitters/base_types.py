"""Schema-derived base types: scalars table, enums, inputs, objects, interfaces and unions."""

from graphql import (
    GraphQLEnumType,
    GraphQLInputObjectType,
    GraphQLInterfaceType,
    GraphQLObjectType,
    GraphQLScalarType,
    GraphQLUnionType,
    is_list_type,
    is_non_null_type,
)
from graphql.pyutils import Undefined

from ..ir import ArrayType, EnumRef, InputRef, IRField, LiteralType, NamedRef, NullableType, ScalarType
from ..naming import enum_member_name, jsdoc, pascal_case
from ..placement import ArtifactFragment
from .base import EmitContext

# Order used by the Scalars table for built-ins.
SCALAR_TABLE_ORDER = ("ID", "String", "Boolean", "Int", "Float")


def _describe(description: str | None, deprecation: str | None = None, indent: str = "") -> str:
    text = description or ""
    if deprecation:
        text = f"{text}\n@deprecated {deprecation}".strip()
    return jsdoc(text, indent)


class BaseTypesEmitter:
    name = "base-types"

    def emit(self, ctx: EmitContext) -> list[ArtifactFragment]:
        scalar_names = list(SCALAR_TABLE_ORDER) + ctx.schema.custom_scalars()
        declarations = []
        for named_type in ctx.schema.named_types():
            if isinstance(named_type, GraphQLScalarType):
                continue
            declarations.extend(self._declare(ctx, named_type))

        content = ctx.render_template(
            "base_types.ts.j2",
            scalars=ctx.scalars.resolve(scalar_names),
            declarations=declarations,
        )
        return [ArtifactFragment("", content + "\n")]

    def _declare(self, ctx: EmitContext, named_type) -> list[str]:
        if isinstance(named_type, GraphQLEnumType):
            return [self._enum(ctx, named_type)]
        if isinstance(named_type, GraphQLUnionType):
            members = " | ".join(t.name for t in named_type.types)
            return [f"{_describe(named_type.description)}{ctx.export}type {named_type.name} = {members};"]
        if isinstance(named_type, GraphQLInputObjectType):
            fields = [
                (name, self._input_field(ctx, name, f.type, f.default_value), f.description, f.deprecation_reason)
                for name, f in named_type.fields.items()
            ]
            return [self._record(ctx, named_type, fields, "input")]
        if isinstance(named_type, (GraphQLObjectType, GraphQLInterfaceType)):
            return [self._composite(ctx, named_type)] + self._arguments(ctx, named_type)
        return []

    def _enum(self, ctx: EmitContext, enum: GraphQLEnumType) -> str:
        header = _describe(enum.description)
        if ctx.options.enums_as_types:
            options = "\n".join(f"  | '{value}'" for value in enum.values)
            return f"{header}{ctx.export}type {enum.name} =\n{options};"
        members = []
        for value_name, value in enum.values.items():
            comment = _describe(value.description, value.deprecation_reason, "  ")
            members.append(f"{comment}  {enum_member_name(value_name)} = '{value_name}'")
        return f"{header}{ctx.export}enum {enum.name} {{\n" + ",\n".join(members) + "\n}"

    def _composite(self, ctx: EmitContext, named_type) -> str:
        fields = []
        if isinstance(named_type, GraphQLObjectType) and not ctx.options.skip_typename:
            typename = IRField(
                "__typename",
                LiteralType(named_type.name),
                optional=True,
                readonly=ctx.options.immutable_types,
            )
            fields.append(("__typename", typename, None, None))
        for name, f in named_type.fields.items():
            ir_field = IRField(
                name,
                self._type_ir(ctx, f.type),
                optional=not is_non_null_type(f.type) and not ctx.options.avoid_optionals,
                nullable=not is_non_null_type(f.type),
                readonly=ctx.options.immutable_types,
            )
            fields.append((name, ir_field, f.description, f.deprecation_reason))
        return self._record(ctx, named_type, fields, "output")

    def _record(self, ctx: EmitContext, named_type, fields, mode) -> str:
        interfaces = [i.name for i in getattr(named_type, "interfaces", ())]
        prefix = " & ".join(interfaces) + " & " if interfaces else ""
        lines = []
        for _, ir_field, description, deprecation in fields:
            lines.append(
                _describe(description, deprecation, "  ")
                + f"  {ctx.renderer.render_field(ir_field, mode)};"
            )
        body = "{\n" + "\n".join(lines) + "\n}" if lines else "{}"
        return f"{_describe(named_type.description)}{ctx.export}type {named_type.name} = {prefix}{body};"

    def _input_field(self, ctx: EmitContext, name: str, gql_type, default_value) -> IRField:
        non_null = is_non_null_type(gql_type)
        has_default = default_value is not Undefined
        return IRField(
            name,
            self._type_ir(ctx, gql_type),
            optional=(not non_null or has_default) and not ctx.options.avoid_optionals,
            nullable=not non_null,
            readonly=ctx.options.immutable_types,
        )

    def _arguments(self, ctx: EmitContext, named_type) -> list[str]:
        declarations = []
        for field_name, f in named_type.fields.items():
            if not f.args:
                continue
            lines = []
            for arg_name, arg in f.args.items():
                ir_field = self._input_field(ctx, arg_name, arg.type, arg.default_value)
                lines.append(f"  {ctx.renderer.render_field(ir_field, 'input')};")
            type_name = f"{named_type.name}{pascal_case(field_name)}Args"
            declarations.append(f"{ctx.export}type {type_name} = {{\n" + "\n".join(lines) + "\n};")
        return declarations

    def _type_ir(self, ctx: EmitContext, gql_type):
        if is_non_null_type(gql_type):
            return self._inner_ir(ctx, gql_type.of_type)
        return NullableType(self._inner_ir(ctx, gql_type))

    def _inner_ir(self, ctx: EmitContext, gql_type):
        if is_list_type(gql_type):
            return ArrayType(self._type_ir(ctx, gql_type.of_type), readonly=ctx.options.immutable_types)
        if isinstance(gql_type, GraphQLScalarType):
            return ScalarType(gql_type.name)
        if isinstance(gql_type, GraphQLEnumType):
            return EnumRef(gql_type.name)
        if isinstance(gql_type, GraphQLInputObjectType):
            return InputRef(gql_type.name)
        return NamedRef(gql_type.name)

