"""Canonical document text and hashes for persisted documents."""

import hashlib
from typing import Mapping

from graphql import (
    REMOVE,
    DirectiveNode,
    DocumentNode,
    FragmentDefinitionNode,
    OperationDefinitionNode,
    Visitor,
    parse,
    print_ast,
    visit,
)

from .fragments import fragment_closure

CLIENT_ONLY_DIRECTIVES = frozenset({"client", "connection", "defer", "stream"})

HASH_ALGORITHMS = ("sha1", "sha256")


class _StripClientDirectives(Visitor):
    def enter_directive(self, node: DirectiveNode, *_args):
        if node.name.value in CLIENT_ONLY_DIRECTIVES:
            return REMOVE
        return None


def strip_client_directives(document: DocumentNode) -> DocumentNode:
    """Remove client-only directives at every level of the document."""
    return visit(document, _StripClientDirectives())


def print_canonical(document: DocumentNode) -> str:
    text = print_ast(document).replace("\r\n", "\n")
    return "\n".join(line.rstrip() for line in text.split("\n"))


def normalize_operation(
    operation: OperationDefinitionNode,
    fragments: Mapping[str, FragmentDefinitionNode],
) -> str:
    """Printed operation followed by its fragment closure in name order."""
    closure = fragment_closure(operation.selection_set, fragments)
    document = DocumentNode(definitions=(operation, *closure))
    return print_canonical(strip_client_directives(document))


def hash_document(text: str, algorithm: str = "sha1") -> str:
    """Lowercase hex digest of the normalized text."""
    if algorithm not in HASH_ALGORITHMS:
        raise ValueError(f"unsupported hash algorithm {algorithm!r}, expected one of {HASH_ALGORITHMS}")
    text = text.replace("\r\n", "\n")
    return hashlib.new(algorithm, text.encode("utf-8")).hexdigest()


def normalize_source(text: str) -> str:
    """Normalize every named operation of a document text.

    Fragments defined in the text are used for the closures. The result is
    the normalized operations joined by a blank line, so normalizing it again
    gives the same bytes.
    """
    if not text.strip():
        return ""
    document = parse(text.replace("\r\n", "\n"))
    fragments = {
        d.name.value: d for d in document.definitions if isinstance(d, FragmentDefinitionNode)
    }
    operations = [
        d for d in document.definitions
        if isinstance(d, OperationDefinitionNode) and d.name is not None
    ]
    return "\n\n".join(normalize_operation(op, fragments) for op in operations)
