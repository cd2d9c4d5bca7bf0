"""A literal block of text, prepended to the artifact by default."""

from ..errors import EmitterError
from ..placement import ArtifactFragment, Placement
from .base import EmitContext


class PrefixEmitter:
    name = "prefix"

    def emit(self, ctx: EmitContext) -> list[ArtifactFragment]:
        content = ctx.options.content
        if content is None:
            raise EmitterError("prefix emitter requires 'content'")
        if isinstance(content, list):
            content = "\n".join(content)
        placement = Placement.parse(ctx.options.placement)
        return [ArtifactFragment("", content.rstrip("\n") + "\n", placement)]
