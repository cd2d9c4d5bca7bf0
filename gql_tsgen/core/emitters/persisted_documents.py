"""Persisted documents manifest: hash -> normalized operation text."""

import json

from ..errors import EmitterError
from ..normalizer import HASH_ALGORITHMS
from ..placement import ArtifactFragment
from .base import EmitContext


def render_manifest(entries: dict[str, str]) -> str:
    """JSON object with ascending keys, two-space indentation and a trailing newline."""
    return json.dumps(entries, indent=2, ensure_ascii=False, sort_keys=True) + "\n"


class PersistedDocumentsEmitter:
    name = "persisted-documents"

    def emit(self, ctx: EmitContext) -> list[ArtifactFragment]:
        if ctx.options.hash_algorithm not in HASH_ALGORITHMS:
            raise EmitterError(f"unsupported hash algorithm {ctx.options.hash_algorithm!r}")

        entries = {}
        for operation, _ in ctx.documents.operations():
            ctx.check_cancelled()
            descriptor = ctx.descriptor(operation)
            entries[descriptor.hash] = descriptor.normalized
        return [ArtifactFragment("", render_manifest(entries))]
