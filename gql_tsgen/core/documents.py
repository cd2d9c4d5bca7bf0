"""Executable documents: parsing, validation and aggregation.

Each document is first validated on its own, with the rules that need to
see fragments from other documents left out. Once every document is
loaded, DocumentSet builds the global fragment table and re-validates each
document together with the fragments it pulls in from elsewhere.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Iterator, Literal

from graphql import (
    DocumentNode,
    FragmentDefinitionNode,
    GraphQLError,
    KnownFragmentNamesRule,
    NoUnusedFragmentsRule,
    NoUnusedVariablesRule,
    OperationDefinitionNode,
    Source,
    parse,
    specified_rules,
    validate,
)

from .errors import DocumentValidationError, DuplicateFragmentError, FragmentResolutionError
from .fragments import fragment_closure
from .schema import SchemaModel

logger = logging.getLogger(__name__)

AnonymousPolicy = Literal["skip", "error"]

# Rules that can only be decided once all documents are known.
CROSS_DOCUMENT_RULES = (KnownFragmentNamesRule, NoUnusedFragmentsRule, NoUnusedVariablesRule)

LOCAL_RULES = tuple(rule for rule in specified_rules if rule not in CROSS_DOCUMENT_RULES)
AGGREGATE_RULES = tuple(rule for rule in specified_rules if rule is not NoUnusedFragmentsRule)


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


@dataclass
class Document:
    """A parsed executable document and the text it came from."""
    origin: str
    text: str
    ast: DocumentNode
    hash: str

    @property
    def operations(self) -> list[OperationDefinitionNode]:
        """Named operations, in document order."""
        return [
            d for d in self.ast.definitions
            if isinstance(d, OperationDefinitionNode) and d.name is not None
        ]

    @property
    def anonymous_operations(self) -> list[OperationDefinitionNode]:
        return [
            d for d in self.ast.definitions
            if isinstance(d, OperationDefinitionNode) and d.name is None
        ]

    @property
    def fragments(self) -> list[FragmentDefinitionNode]:
        return [d for d in self.ast.definitions if isinstance(d, FragmentDefinitionNode)]

    @property
    def definitions(self) -> list[OperationDefinitionNode | FragmentDefinitionNode]:
        """Named operations and fragments, in document order."""
        return [
            d for d in self.ast.definitions
            if isinstance(d, FragmentDefinitionNode)
            or (isinstance(d, OperationDefinitionNode) and d.name is not None)
        ]


def parse_document(text: str, origin: str) -> Document:
    """Parse text into a Document without validating it."""
    text = normalize_newlines(text)
    try:
        ast = parse(Source(text, origin))
    except GraphQLError as e:
        raise DocumentValidationError(origin, [e.message]) from e
    return Document(
        origin=origin,
        text=text,
        ast=ast,
        hash=hashlib.sha256(text.encode("utf-8")).hexdigest(),
    )


def load_document(schema: SchemaModel, text: str, origin: str) -> Document:
    """Parse a document and validate it against the schema.

    Raises:
        DocumentValidationError: on syntax errors or validation failures
    """
    document = parse_document(text, origin)
    errors = validate(schema.schema, document.ast, LOCAL_RULES)
    if errors:
        raise DocumentValidationError(origin, [error.message for error in errors])
    return document


@dataclass
class DocumentSet:
    """All documents of a run plus the shared fragment table."""
    schema: SchemaModel
    documents: list[Document] = field(default_factory=list)
    fragments: dict[str, FragmentDefinitionNode] = field(default_factory=dict)
    fragment_origins: dict[str, str] = field(default_factory=dict)
    operation_origins: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        schema: SchemaModel,
        documents: list[Document],
        lenient: bool = False,
        anonymous: AnonymousPolicy = "skip",
        cancel=None,
    ) -> "DocumentSet":
        """Aggregate documents, build the fragment table and validate across documents.

        Args:
            schema: The schema every document is validated against
            documents: Documents in load order
            lenient: Skip invalid documents with a warning instead of failing
            anonymous: 'skip' drops anonymous operations with a warning,
                'error' rejects them
            cancel: Optional cancellation token checked per document
        """
        doc_set = cls(schema=schema)
        accepted: list[Document] = []
        texts: dict[str, str] = {}

        for document in documents:
            if cancel is not None:
                cancel.raise_if_cancelled()
            if document.hash in texts:
                logger.debug("Skipping %s, same text as %s", document.origin, texts[document.hash])
                continue
            try:
                doc_set._check_anonymous(document, anonymous)
                doc_set._check_operation_names(document)
                doc_set._register_fragments(document)
            except DocumentValidationError as e:
                if not lenient:
                    raise
                doc_set._warn(f"skipping document {document.origin}: {e}")
                continue
            for operation in document.operations:
                doc_set.operation_origins[operation.name.value] = document.origin
            texts[document.hash] = document.origin
            accepted.append(document)

        # Skipping a document removes its fragments, which can invalidate others.
        while True:
            invalid = []
            for document in accepted:
                if cancel is not None:
                    cancel.raise_if_cancelled()
                try:
                    doc_set._validate_with_closure(document)
                except DocumentValidationError as e:
                    if not lenient:
                        raise
                    doc_set._warn(f"skipping document {document.origin}: {e}")
                    invalid.append(document)
            if not invalid:
                break
            accepted = [d for d in accepted if d not in invalid]
            for document in invalid:
                for fragment in document.fragments:
                    doc_set.fragments.pop(fragment.name.value, None)
                    doc_set.fragment_origins.pop(fragment.name.value, None)
                for operation in document.operations:
                    doc_set.operation_origins.pop(operation.name.value, None)

        doc_set.documents = accepted
        doc_set._warn_unreachable()
        return doc_set

    def _warn(self, message: str):
        logger.warning(message)
        self.warnings.append(message)

    def _check_anonymous(self, document: Document, anonymous: AnonymousPolicy):
        count = len(document.anonymous_operations)
        if not count:
            return
        if anonymous == "error":
            raise DocumentValidationError(
                document.origin, ["anonymous operations are not supported, name the operation"]
            )
        self._warn(f"anonymous operation in {document.origin} was dropped")

    def _check_operation_names(self, document: Document):
        for operation in document.operations:
            first = self.operation_origins.get(operation.name.value)
            if first is not None:
                raise DocumentValidationError(
                    document.origin,
                    [f"operation {operation.name.value!r} is already defined in {first}"],
                )

    def _register_fragments(self, document: Document):
        seen = {}
        for fragment in document.fragments:
            name = fragment.name.value
            first = self.fragment_origins.get(name) or seen.get(name)
            if first is not None:
                raise DuplicateFragmentError(name, first, document.origin)
            seen[name] = document.origin
        for fragment in document.fragments:
            self.fragments[fragment.name.value] = fragment
            self.fragment_origins[fragment.name.value] = document.origin

    def _validate_with_closure(self, document: Document):
        local = {f.name.value for f in document.fragments}
        extra: dict[str, FragmentDefinitionNode] = {}
        try:
            for definition in document.ast.definitions:
                selection_set = getattr(definition, "selection_set", None)
                for fragment in fragment_closure(selection_set, self.fragments):
                    if fragment.name.value not in local:
                        extra[fragment.name.value] = fragment
        except FragmentResolutionError as e:
            raise DocumentValidationError(document.origin, [f'Unknown fragment "{e.name}".']) from e

        combined = DocumentNode(
            definitions=tuple(document.ast.definitions) + tuple(extra[n] for n in sorted(extra))
        )
        errors = validate(self.schema.schema, combined, AGGREGATE_RULES)
        if errors:
            raise DocumentValidationError(document.origin, [error.message for error in errors])

    def _warn_unreachable(self):
        reachable: set[str] = set()
        for operation, _ in self.operations():
            reachable.update(f.name.value for f in fragment_closure(operation.selection_set, self.fragments))
        for name in self.fragments:
            if name not in reachable:
                self._warn(f"fragment {name!r} ({self.fragment_origins[name]}) is not used by any operation")

    def operations(self) -> Iterator[tuple[OperationDefinitionNode, Document]]:
        """Named operations with their documents, in load order."""
        for document in self.documents:
            for operation in document.operations:
                yield operation, document

    def definitions(self) -> Iterator[tuple[OperationDefinitionNode | FragmentDefinitionNode, Document]]:
        """Named operations and fragments with their documents, in load order."""
        for document in self.documents:
            for definition in document.definitions:
                yield definition, document

    def get_fragment(self, name: str) -> FragmentDefinitionNode | None:
        return self.fragments.get(name)
