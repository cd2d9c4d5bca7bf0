"""The fixed set of named emitters."""

from ..errors import EmitterError
from .base import DescriptorCache, EmitContext, Emitter
from .base_types import BaseTypesEmitter
from .fragment_masking import FragmentMaskingEmitter
from .gql_tag import GqlTagRegistryEmitter
from .operation_types import OperationTypesEmitter
from .persisted_documents import PersistedDocumentsEmitter
from .prefix import PrefixEmitter
from .schema_ast import SchemaAstEmitter
from .typed_document_node import TypedDocumentNodeEmitter

EMITTERS: dict[str, Emitter] = {
    emitter.name: emitter
    for emitter in (
        BaseTypesEmitter(),
        OperationTypesEmitter(),
        TypedDocumentNodeEmitter(),
        GqlTagRegistryEmitter(),
        FragmentMaskingEmitter(),
        PersistedDocumentsEmitter(),
        PrefixEmitter(),
        SchemaAstEmitter(),
    )
}


def get_emitter(name: str) -> Emitter:
    """Look up an emitter by name.

    Raises:
        EmitterError: if no emitter has that name
    """
    try:
        return EMITTERS[name]
    except KeyError:
        available = ", ".join(sorted(EMITTERS))
        raise EmitterError(f"unknown emitter {name!r}, available: {available}") from None


__all__ = [
    "EMITTERS",
    "DescriptorCache",
    "EmitContext",
    "Emitter",
    "get_emitter",
]
