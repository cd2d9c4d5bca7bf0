"""Shared emitter plumbing: the emit context and the descriptor cache."""

import logging
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Protocol, runtime_checkable

from graphql import FragmentDefinitionNode, OperationDefinitionNode
from jinja2 import Environment

from ...config import EmitterOptions
from ..cancellation import CancellationToken
from ..documents import DocumentSet
from ..fragments import operation_fragments
from ..ir import OperationDescriptor, TypeIR
from ..naming import pascal_case
from ..normalizer import hash_document, normalize_operation
from ..placement import ArtifactFragment
from ..render import TypeScriptRenderer
from ..scalars import ScalarMap
from ..schema import SchemaModel
from ..synthesizer import SynthesisOptions, TypeSynthesizer

logger = logging.getLogger(__name__)


class DescriptorCache:
    """Synthesized IR per operation and fragment for one generator run.

    Keys include the schema hash and the options that change the IR, so
    destinations with different options never share entries.
    """

    def __init__(self):
        self._entries: dict[tuple, Any] = {}

    def get_or_build(self, key: tuple, build):
        if key not in self._entries:
            self._entries[key] = build()
        return self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self):
        self._entries.clear()


@dataclass
class EmitContext:
    """Everything an emitter may read while producing one destination."""
    schema: SchemaModel
    documents: DocumentSet
    options: EmitterOptions
    destination: str
    env: Environment
    cache: DescriptorCache = field(default_factory=DescriptorCache)
    warnings: list[str] = field(default_factory=list)
    cancel: CancellationToken | None = None

    def warn(self, message: str):
        logger.warning(message)
        self.warnings.append(message)

    def check_cancelled(self):
        if self.cancel is not None:
            self.cancel.raise_if_cancelled()

    @cached_property
    def scalars(self) -> ScalarMap:
        """Scalar table of the destination, warning once per unmapped custom scalar."""
        scalars = ScalarMap(self.options.scalars, default=self.options.default_scalar_type)
        for scalar in scalars.missing(self.schema.custom_scalars()):
            self.warn(f"{self.destination}: scalar {scalar!r} has no mapping, using {scalars.default!r}")
        return scalars

    @cached_property
    def renderer(self) -> TypeScriptRenderer:
        return TypeScriptRenderer(self.scalars, strict_nulls=self.options.strict_nulls)

    @cached_property
    def synthesis_options(self) -> SynthesisOptions:
        return SynthesisOptions(
            skip_typename=self.options.skip_typename,
            avoid_optionals=self.options.avoid_optionals,
            immutable_types=self.options.immutable_types,
        )

    @cached_property
    def synthesizer(self) -> TypeSynthesizer:
        return TypeSynthesizer(self.schema, self.documents.fragments, self.synthesis_options)

    @property
    def export(self) -> str:
        return "" if self.options.no_export else "export "

    def descriptor(self, operation: OperationDefinitionNode) -> OperationDescriptor:
        """The cached descriptor of a named operation."""
        key = (
            self.schema.hash,
            "operation",
            operation.name.value,
            self.synthesis_options.fingerprint,
            self.options.hash_algorithm,
        )
        return self.cache.get_or_build(key, lambda: self._build_descriptor(operation))

    def _build_descriptor(self, operation: OperationDefinitionNode) -> OperationDescriptor:
        self.check_cancelled()
        normalized = normalize_operation(operation, self.documents.fragments)
        variables = self.synthesizer.variables(operation)
        return OperationDescriptor(
            name=operation.name.value,
            kind=operation.operation.value,
            normalized=normalized,
            hash=hash_document(normalized, self.options.hash_algorithm),
            fragments=[f.name.value for f in operation_fragments(operation, self.documents.fragments)],
            variables=variables,
            result=self.synthesizer.operation_result(operation),
            has_variables=bool(variables.fields),
        )

    def fragment_type(self, fragment: FragmentDefinitionNode) -> TypeIR:
        key = (self.schema.hash, "fragment", fragment.name.value, self.synthesis_options.fingerprint)
        return self.cache.get_or_build(key, lambda: self.synthesizer.fragment_result(fragment))

    def operation_type_name(self, operation: OperationDefinitionNode) -> str:
        """Result type name, e.g. GetUserQuery (or GetUser with omitOperationSuffix)."""
        name = pascal_case(operation.name.value)
        if self.options.omit_operation_suffix:
            return name
        return name + operation.operation.value.capitalize()

    def variables_type_name(self, operation: OperationDefinitionNode) -> str:
        return self.operation_type_name(operation) + "Variables"

    @staticmethod
    def fragment_type_name(fragment: FragmentDefinitionNode) -> str:
        return pascal_case(fragment.name.value) + "Fragment"

    def document_constant(self, definition) -> str:
        """Name of the typed document constant of an operation or fragment."""
        if isinstance(definition, FragmentDefinitionNode):
            return pascal_case(definition.name.value) + "FragmentDoc"
        return pascal_case(definition.name.value) + "Document"

    def render_template(self, template_name: str, **context) -> str:
        template = self.env.get_template(template_name)
        return template.render(options=self.options, export=self.export, **context)


@runtime_checkable
class Emitter(Protocol):
    """A named producer of artifact fragments for one destination."""

    name: str

    def emit(self, ctx: EmitContext) -> list[ArtifactFragment]:
        ...
