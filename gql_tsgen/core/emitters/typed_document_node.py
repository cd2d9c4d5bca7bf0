"""Typed document constants for every named operation and fragment.

Three document forms exist:

- ``ast``: the parsed document as a JSON object literal in graphql-js shape
- ``string``: a ``TypedDocumentString`` wrapping the printed document
- ``tag``: the printed document inside a ``gql`` tagged template

Import lines are emitted as a separate fragment with ``prepend`` placement so
they end up above everything else in the artifact.
"""

import json
from enum import Enum
from typing import Any

from graphql import (
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    Node,
    print_ast,
)
from pydantic.alias_generators import to_camel, to_pascal

from ..fragments import operation_fragments
from ..placement import ArtifactFragment, Placement
from .base import EmitContext


def ast_to_dict(value: Any) -> Any:
    """Convert a graphql-core AST into plain JSON data in graphql-js shape.

    Locations, unset attributes and empty lists are left out.
    """
    if isinstance(value, Node):
        result = {"kind": to_pascal(value.kind)}
        for key in value.keys:
            if key == "loc":
                continue
            item = getattr(value, key, None)
            if item is None or (isinstance(item, (list, tuple)) and not item):
                continue
            result[to_camel(key)] = ast_to_dict(item)
        return result
    if isinstance(value, (list, tuple)):
        return [ast_to_dict(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    return value


def deferred_fields(definition, fragments) -> dict[str, list[str]]:
    """Top-level field names of every fragment spread marked with @defer."""
    result: dict[str, list[str]] = {}

    def walk(selection_set):
        if selection_set is None:
            return
        for selection in selection_set.selections:
            if isinstance(selection, FragmentSpreadNode):
                if any(d.name.value == "defer" for d in selection.directives or ()):
                    fragment = fragments.get(selection.name.value)
                    if fragment is not None:
                        result[selection.name.value] = [
                            (s.alias or s.name).value
                            for s in fragment.selection_set.selections
                            if isinstance(s, FieldNode)
                        ]
            else:
                walk(selection.selection_set)

    walk(definition.selection_set)
    return result


def _template_literal(text: str) -> str:
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


def _gql_import(gql_import: str | None) -> tuple[str, str | None]:
    """Split a ``module#name`` import into module and named export."""
    if not gql_import:
        return "graphql-tag", None
    module, _, name = gql_import.partition("#")
    return module, name or None


class TypedDocumentNodeEmitter:
    name = "typed-document-node"

    def emit(self, ctx: EmitContext) -> list[ArtifactFragment]:
        definitions = [definition for definition, _ in ctx.documents.definitions()]
        if not definitions:
            return []

        gql_module, gql_name = _gql_import(ctx.options.gql_import)
        imports = ctx.render_template(
            "typed_document_imports.ts.j2", gql_module=gql_module, gql_name=gql_name
        )

        sections = []
        if ctx.options.document_mode == "string":
            sections.append(ctx.render_template("typed_document_string.ts.j2").rstrip("\n"))
        for definition in definitions:
            ctx.check_cancelled()
            sections.append(self._constant(ctx, definition, gql_name or "gql"))

        return [
            ArtifactFragment("", imports + "\n", Placement.PREPEND),
            ArtifactFragment("", "\n\n".join(sections) + "\n\n"),
        ]

    def _types(self, ctx: EmitContext, definition) -> tuple[str, str]:
        if isinstance(definition, FragmentDefinitionNode):
            return ctx.fragment_type_name(definition), "unknown"
        return ctx.operation_type_name(definition), ctx.variables_type_name(definition)

    def _constant(self, ctx: EmitContext, definition, tag: str) -> str:
        fragments = ctx.documents.fragments
        document = DocumentNode(
            definitions=(definition, *operation_fragments(definition, fragments))
        )
        constant = ctx.document_constant(definition)
        result_type, variables_type = self._types(ctx, definition)
        deferred = deferred_fields(definition, fragments)
        mode = ctx.options.document_mode

        if mode == "ast":
            data = ast_to_dict(document)
            if deferred:
                data["__meta__"] = {"deferredFields": deferred}
            body = json.dumps(data, separators=(",", ":"), ensure_ascii=False)
            return (
                f"{ctx.export}const {constant} = {body} "
                f"as unknown as DocumentNode<{result_type}, {variables_type}>;"
            )

        text = _template_literal(print_ast(document))
        if mode == "string":
            meta = {}
            if isinstance(definition, FragmentDefinitionNode):
                meta["fragmentName"] = definition.name.value
            if deferred:
                meta["deferredFields"] = deferred
            meta_arg = f", {json.dumps(meta, separators=(',', ':'))}" if meta else ""
            return (
                f"{ctx.export}const {constant} = new TypedDocumentString(`\n{text}\n`{meta_arg}) "
                f"as unknown as TypedDocumentString<{result_type}, {variables_type}>;"
            )
        return (
            f"{ctx.export}const {constant} = {tag}`\n{text}\n` "
            f"as unknown as DocumentNode<{result_type}, {variables_type}>;"
        )
