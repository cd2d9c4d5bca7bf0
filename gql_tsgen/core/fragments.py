"""Fragment resolution: transitive fragment closures of selection sets."""

from typing import Mapping

from graphql import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    OperationDefinitionNode,
    SelectionSetNode,
)

from .errors import FragmentResolutionError


def fragment_closure(
    selection_set: SelectionSetNode | None,
    fragments: Mapping[str, FragmentDefinitionNode],
) -> list[FragmentDefinitionNode]:
    """Return every fragment transitively spread from a selection set.

    The traversal is depth-first in selection order; each fragment is
    visited once. The result is sorted by fragment name.

    Raises:
        FragmentResolutionError: if a spread names an unknown fragment
    """
    visited: dict[str, FragmentDefinitionNode] = {}
    _collect(selection_set, fragments, visited)
    return [visited[name] for name in sorted(visited)]


def _collect(selection_set, fragments, visited):
    if selection_set is None:
        return
    for selection in selection_set.selections:
        if isinstance(selection, FieldNode):
            _collect(selection.selection_set, fragments, visited)
        elif isinstance(selection, InlineFragmentNode):
            _collect(selection.selection_set, fragments, visited)
        elif isinstance(selection, FragmentSpreadNode):
            name = selection.name.value
            if name in visited:
                continue
            definition = fragments.get(name)
            if definition is None:
                raise FragmentResolutionError(name)
            visited[name] = definition
            _collect(definition.selection_set, fragments, visited)


def fragment_names(
    selection_set: SelectionSetNode | None,
    fragments: Mapping[str, FragmentDefinitionNode],
) -> list[str]:
    return [f.name.value for f in fragment_closure(selection_set, fragments)]


def operation_fragments(
    operation: OperationDefinitionNode | FragmentDefinitionNode,
    fragments: Mapping[str, FragmentDefinitionNode],
) -> list[FragmentDefinitionNode]:
    """Fragment closure of an operation (or of a fragment, excluding itself)."""
    closure = fragment_closure(operation.selection_set, fragments)
    if isinstance(operation, FragmentDefinitionNode):
        closure = [f for f in closure if f.name.value != operation.name.value]
    return closure

