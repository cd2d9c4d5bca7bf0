"""Merging of several parsed SDL documents into one.

Types appearing in more than one source are compared structurally. The
three operation roots are merged by field union. Conflicts either abort the
merge or are resolved by picking one side, depending on the policy.
"""

import logging
from enum import Enum

from graphql import (
    DirectiveDefinitionNode,
    DocumentNode,
    EnumTypeDefinitionNode,
    InputObjectTypeDefinitionNode,
    InterfaceTypeDefinitionNode,
    NamedTypeNode,
    NameNode,
    ObjectTypeDefinitionNode,
    OperationType,
    OperationTypeDefinitionNode,
    ScalarTypeDefinitionNode,
    SchemaDefinitionNode,
    TypeDefinitionNode,
    UnionTypeDefinitionNode,
    print_ast,
)

from .errors import SchemaMergeConflict

logger = logging.getLogger(__name__)

DEFAULT_ROOT_NAMES = {
    OperationType.QUERY: "Query",
    OperationType.MUTATION: "Mutation",
    OperationType.SUBSCRIPTION: "Subscription",
}

KIND_LABELS = {
    ScalarTypeDefinitionNode: "SCALAR",
    ObjectTypeDefinitionNode: "OBJECT",
    InterfaceTypeDefinitionNode: "INTERFACE",
    UnionTypeDefinitionNode: "UNION",
    EnumTypeDefinitionNode: "ENUM",
    InputObjectTypeDefinitionNode: "INPUT_OBJECT",
}


class ConflictPolicy(str, Enum):
    """How to resolve two incompatible definitions of the same name."""
    ERROR = "error"
    USE_FIRST = "use-first"
    USE_LAST = "use-last"


def types_equal(left, right) -> bool:
    """Structural equality of two type references (NonNull/List/Named)."""
    if left is None or right is None:
        return left is right
    return print_ast(left) == print_ast(right)


def arguments_equal(left, right, compare_defaults: bool = False) -> bool:
    """Argument lists are equal by name and type, regardless of order."""
    left = left or ()
    right = right or ()
    if len(left) != len(right):
        return False
    by_name = {arg.name.value: arg for arg in left}
    for arg in right:
        other = by_name.get(arg.name.value)
        if other is None or not types_equal(other.type, arg.type):
            return False
        if compare_defaults and (other.default_value is None) != (arg.default_value is None):
            return False
    return True


def directives_equal(left: DirectiveDefinitionNode, right: DirectiveDefinitionNode) -> bool:
    if left.name.value != right.name.value:
        return False
    if not arguments_equal(left.arguments, right.arguments, compare_defaults=True):
        return False
    left_locations = {loc.value for loc in left.locations}
    right_locations = {loc.value for loc in right.locations}
    return left_locations == right_locations


def kind_of(node: TypeDefinitionNode) -> str:
    return KIND_LABELS.get(type(node), node.kind)


def replace_node(node, **changes):
    """A new AST node of the same kind with some attributes replaced."""
    attributes = {key: getattr(node, key, None) for key in node.keys}
    attributes.update(changes)
    return type(node)(**attributes)


class SchemaMerger:
    """Combines parsed SDL documents left to right.

    Example:
        merger = SchemaMerger(ConflictPolicy.USE_LAST)
        document = merger.merge([doc_a, doc_b], ["a.graphql", "b.graphql"])
        merger.conflicts  # conflicts resolved under the policy
    """

    def __init__(self, policy: ConflictPolicy | str = ConflictPolicy.ERROR):
        self.policy = ConflictPolicy(policy)
        self.conflicts: list[SchemaMergeConflict] = []
        self._types: dict[str, TypeDefinitionNode] = {}
        self._type_sources: dict[str, str] = {}
        self._directives: dict[str, DirectiveDefinitionNode] = {}
        self._directive_sources: dict[str, str] = {}
        self._root_names: dict[OperationType, str] = {}
        self._extensions: list = []
        self._custom_roots = False

    def merge(self, documents: list[DocumentNode], sources: list[str]) -> DocumentNode:
        """Merge documents and return a single SDL document."""
        if not documents:
            raise ValueError("no schemas provided")
        if len(documents) != len(sources):
            raise ValueError(
                f"number of schemas ({len(documents)}) must match "
                f"number of sources ({len(sources)})"
            )
        if len(documents) == 1:
            return documents[0]

        for document, source in zip(documents, sources):
            self._merge_document(document, source)
        return self._build_document()

    def _merge_document(self, document: DocumentNode, source: str):
        roots = self._document_roots(document)
        root_by_name = {name: op for op, name in roots.items()}

        for definition in document.definitions:
            if isinstance(definition, SchemaDefinitionNode):
                continue
            if isinstance(definition, DirectiveDefinitionNode):
                self._merge_directive(definition, source)
            elif isinstance(definition, TypeDefinitionNode):
                name = definition.name.value
                if name.startswith("__"):
                    continue
                if name in root_by_name and isinstance(definition, ObjectTypeDefinitionNode):
                    self._merge_root(root_by_name[name], definition, source)
                else:
                    self._merge_type(definition, source)
            else:
                # type and schema extensions are applied when the schema is built
                self._extensions.append(definition)

    def _document_roots(self, document: DocumentNode) -> dict[OperationType, str]:
        for definition in document.definitions:
            if isinstance(definition, SchemaDefinitionNode):
                roots = {
                    op_type.operation: op_type.type.name.value
                    for op_type in definition.operation_types
                }
                if any(DEFAULT_ROOT_NAMES[op] != name for op, name in roots.items()):
                    self._custom_roots = True
                return roots
        defined = {
            d.name.value for d in document.definitions if isinstance(d, ObjectTypeDefinitionNode)
        }
        return {op: name for op, name in DEFAULT_ROOT_NAMES.items() if name in defined}

    def _merge_root(self, operation: OperationType, node: ObjectTypeDefinitionNode, source: str):
        root_name = self._root_names.setdefault(operation, node.name.value)
        existing = self._types.get(root_name)
        if existing is None:
            if node.name.value != root_name:
                node = replace_node(node, name=NameNode(value=root_name))
            self._types[root_name] = node
            self._type_sources[root_name] = source
            return

        fields = list(existing.fields or ())
        index = {f.name.value: i for i, f in enumerate(fields)}
        for field_node in node.fields or ():
            name = field_node.name.value
            if name not in index:
                index[name] = len(fields)
                fields.append(field_node)
                continue
            current = fields[index[name]]
            details = None
            conflict_type = "field"
            if not types_equal(current.type, field_node.type):
                details = (
                    f"field {name!r} has different types: "
                    f"{print_ast(current.type)} vs {print_ast(field_node.type)}"
                )
            elif not arguments_equal(current.arguments, field_node.arguments):
                conflict_type = "argument"
                details = f"field {name!r} has different arguments"
            if details is None:
                continue
            self._conflict(root_name, source, conflict_type, details)
            if self.policy is ConflictPolicy.USE_LAST:
                fields[index[name]] = field_node

        self._types[root_name] = replace_node(existing, fields=tuple(fields))
        self._type_sources[root_name] = f"{self._type_sources[root_name]}+{source}"

    def _merge_type(self, node: TypeDefinitionNode, source: str):
        name = node.name.value
        existing = self._types.get(name)
        if existing is None:
            self._types[name] = node
            self._type_sources[name] = source
            return

        conflict = self._detect_conflict(existing, node)
        if conflict is None:
            self._types[name] = self._union_fields(existing, node)
            self._type_sources[name] = f"{self._type_sources[name]}+{source}"
            return

        conflict_type, details = conflict
        self._conflict(name, source, conflict_type, details)
        if self.policy is ConflictPolicy.USE_LAST:
            self._types[name] = node
            self._type_sources[name] = source

    def _detect_conflict(self, left, right) -> tuple[str, str] | None:
        if type(left) is not type(right):
            return "type", f"different kinds: {kind_of(left)} vs {kind_of(right)}"
        if isinstance(left, ScalarTypeDefinitionNode):
            return None
        if isinstance(left, EnumTypeDefinitionNode):
            left_values = {v.name.value for v in left.values or ()}
            right_values = {v.name.value for v in right.values or ()}
            if left_values != right_values:
                only = sorted(left_values ^ right_values)
                return "enum", f"enum values differ: {', '.join(only)}"
            return None
        if isinstance(left, UnionTypeDefinitionNode):
            left_members = {t.name.value for t in left.types or ()}
            right_members = {t.name.value for t in right.types or ()}
            if left_members != right_members:
                only = sorted(left_members ^ right_members)
                return "union", f"union members differ: {', '.join(only)}"
            return None
        return self._detect_field_conflict(left, right)

    @staticmethod
    def _detect_field_conflict(left, right) -> tuple[str, str] | None:
        left_fields = {f.name.value: f for f in left.fields or ()}
        right_fields = {f.name.value: f for f in right.fields or ()}

        for name, left_field in left_fields.items():
            right_field = right_fields.get(name)
            if right_field is None:
                continue
            if not types_equal(left_field.type, right_field.type):
                return "field", (
                    f"field {name!r} has different types: "
                    f"{print_ast(left_field.type)} vs {print_ast(right_field.type)}"
                )
            if not arguments_equal(
                getattr(left_field, "arguments", None),
                getattr(right_field, "arguments", None),
            ):
                return "argument", f"field {name!r} has different arguments"

        left_only = [n for n in left_fields if n not in right_fields]
        right_only = [n for n in right_fields if n not in left_fields]
        if left_only and right_only:
            return "field", (
                f"types have different fields - left only: {left_only}, "
                f"right only: {right_only}"
            )
        return None

    @staticmethod
    def _union_fields(left, right):
        if not hasattr(left, "fields"):
            return left
        known = {f.name.value for f in left.fields or ()}
        extra = [f for f in right.fields or () if f.name.value not in known]
        if not extra:
            return left
        return replace_node(left, fields=tuple(left.fields or ()) + tuple(extra))

    def _merge_directive(self, node: DirectiveDefinitionNode, source: str):
        name = node.name.value
        existing = self._directives.get(name)
        if existing is None:
            self._directives[name] = node
            self._directive_sources[name] = source
            return
        if directives_equal(existing, node):
            return
        self._conflict(
            name,
            source,
            "directive",
            f"directive {name!r} has conflicting definitions",
            left_source=self._directive_sources[name],
        )
        if self.policy is ConflictPolicy.USE_LAST:
            self._directives[name] = node
            self._directive_sources[name] = source

    def _conflict(
        self,
        name: str,
        source: str,
        conflict_type: str,
        details: str,
        left_source: str | None = None,
    ):
        conflict = SchemaMergeConflict(
            type_name=name,
            left_source=left_source or self._type_sources.get(name, "unknown"),
            right_source=source,
            conflict_type=conflict_type,
            details=details,
        )
        if self.policy is ConflictPolicy.ERROR:
            raise conflict
        logger.debug("Resolved schema conflict (%s): %s", self.policy.value, conflict)
        self.conflicts.append(conflict)

    def _build_document(self) -> DocumentNode:
        definitions: list = []
        if self._custom_roots:
            definitions.append(
                SchemaDefinitionNode(
                    directives=(),
                    operation_types=tuple(
                        OperationTypeDefinitionNode(
                            operation=operation,
                            type=NamedTypeNode(name=NameNode(value=name)),
                        )
                        for operation, name in self._root_names.items()
                    ),
                )
            )
        definitions.extend(self._directives.values())
        definitions.extend(self._types.values())
        definitions.extend(self._extensions)
        return DocumentNode(definitions=tuple(definitions))


def merge_schemas(
    documents: list[DocumentNode],
    sources: list[str],
    policy: ConflictPolicy | str = ConflictPolicy.ERROR,
) -> tuple[DocumentNode, list[SchemaMergeConflict]]:
    """Merge documents, returning the merged document and resolved conflicts."""
    merger = SchemaMerger(policy)
    document = merger.merge(documents, sources)
    return document, merger.conflicts
