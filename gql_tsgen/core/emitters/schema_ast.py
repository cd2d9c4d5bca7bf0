"""The schema itself: printed SDL, or a TypeScript constant built from it.

A destination ending in ``.graphql`` gets the plain SDL. Anything else gets
a module exporting the schema in ``outputFormat``:

    graphql        the SDL in a template literal plus ``buildSchema(...)``
    ast            the parsed SDL as a graphql-js DocumentNode
    introspection  the introspection result of the schema
"""

import json

from graphql import (
    introspection_from_schema,
    lexicographic_sort_schema,
    parse,
    print_introspection_schema,
    print_schema,
)

from ..placement import ArtifactFragment, Placement
from .base import EmitContext
from .typed_document_node import ast_to_dict

SDL_EXTENSIONS = (".graphql", ".graphqls", ".gql")


def template_literal(text: str) -> str:
    """Escape text for use inside a JavaScript template literal."""
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")


class SchemaAstEmitter:
    name = "schema-ast"

    def emit(self, ctx: EmitContext) -> list[ArtifactFragment]:
        schema = ctx.schema.schema
        if ctx.options.sort:
            schema = lexicographic_sort_schema(schema)
        sdl = print_schema(schema)
        if ctx.options.include_introspection_types:
            sdl = f"{sdl}\n\n{print_introspection_schema(schema)}"

        if ctx.destination.endswith(SDL_EXTENSIONS):
            return [ArtifactFragment("", sdl + "\n")]

        output_format = ctx.options.output_format
        data = None
        if output_format == "ast":
            data = json.dumps(ast_to_dict(parse(sdl, no_location=True)), indent=2, ensure_ascii=False)
        elif output_format == "introspection":
            data = json.dumps(introspection_from_schema(schema), indent=2, ensure_ascii=False)

        content = ctx.render_template(
            "schema_ast.ts.j2",
            format=output_format,
            name=ctx.options.const_name,
            sdl=template_literal(sdl),
            data=data,
        )
        fragments = [ArtifactFragment("", content + "\n")]
        import_line = self._import(ctx)
        if import_line:
            fragments.insert(0, ArtifactFragment("", import_line + "\n\n", Placement.PREPEND))
        return fragments

    @staticmethod
    def _import(ctx: EmitContext) -> str | None:
        if ctx.options.output_format == "graphql":
            return "import { buildSchema } from 'graphql';"
        if ctx.options.output_format == "ast":
            import_kw = "import type" if ctx.options.use_type_imports else "import"
            return f"{import_kw} {{ DocumentNode }} from 'graphql';"
        return None
