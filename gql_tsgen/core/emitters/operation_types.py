"""Result and variables types for every named operation, and a type per fragment."""

from ..ir import IRField, LiteralType, ObjectType, UnionType
from ..placement import ArtifactFragment
from .base import EmitContext


def _with_fragment_name(type_ir, fragment_type_name: str):
    """Add the optional ' $fragmentName' marker used by fragment masking."""
    marker = IRField(" $fragmentName", LiteralType(fragment_type_name), optional=True)
    if isinstance(type_ir, ObjectType):
        return ObjectType(type_ir.fields + [marker])
    if isinstance(type_ir, UnionType):
        return UnionType([ObjectType(option.fields + [marker]) for option in type_ir.options])
    return type_ir


class OperationTypesEmitter:
    name = "operation-types"

    def emit(self, ctx: EmitContext) -> list[ArtifactFragment]:
        sections = []
        for operation, _ in ctx.documents.operations():
            ctx.check_cancelled()
            sections.append(self._operation(ctx, operation))
        for fragment in ctx.documents.fragments.values():
            ctx.check_cancelled()
            sections.append(self._fragment(ctx, fragment))
        if not sections:
            return []
        return [ArtifactFragment("", "\n\n".join(sections) + "\n\n")]

    def _operation(self, ctx: EmitContext, operation) -> str:
        descriptor = ctx.descriptor(operation)
        variables = ctx.renderer.render_variables(descriptor.variables)
        result = ctx.renderer.render(descriptor.result)
        return (
            f"{ctx.export}type {ctx.variables_type_name(operation)} = {variables};\n\n\n"
            f"{ctx.export}type {ctx.operation_type_name(operation)} = {result};"
        )

    def _fragment(self, ctx: EmitContext, fragment) -> str:
        type_name = ctx.fragment_type_name(fragment)
        type_ir = ctx.fragment_type(fragment)
        if ctx.options.fragment_masking:
            type_ir = _with_fragment_name(type_ir, type_name)
        return f"{ctx.export}type {type_name} = {ctx.renderer.render(type_ir)};"
