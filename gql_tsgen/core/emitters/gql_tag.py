"""The ``graphql(source)`` registry mapping document sources to typed constants."""

import json

from ..placement import ArtifactFragment
from .base import EmitContext


class GqlTagRegistryEmitter:
    name = "gql-tag-registry"

    def emit(self, ctx: EmitContext) -> list[ArtifactFragment]:
        entries = []
        seen = set()
        for document in ctx.documents.documents:
            ctx.check_cancelled()
            definitions = document.definitions
            if not definitions:
                continue
            key = json.dumps(document.text, ensure_ascii=False)
            if key in seen:
                continue
            seen.add(key)
            entries.append({"key": key, "constant": ctx.document_constant(definitions[0])})

        content = ctx.render_template("gql_tag.ts.j2", entries=entries, tag=ctx.options.gql_tag_name)
        return [ArtifactFragment("", content + "\n")]
