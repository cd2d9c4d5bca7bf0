"""Schema model built from one or more SDL sources."""

import hashlib
import logging
from dataclasses import dataclass, field
from functools import cached_property

from graphql import (
    GraphQLError,
    GraphQLNamedType,
    GraphQLSchema,
    GraphQLScalarType,
    Source,
    build_ast_schema,
    is_abstract_type,
    parse,
    print_schema,
    specified_scalar_types,
    validate_schema,
)

from .errors import SchemaLoadError, SchemaMergeConflict
from .merger import ConflictPolicy, merge_schemas

logger = logging.getLogger(__name__)

BUILTIN_SCALAR_NAMES = ("ID", "String", "Int", "Float", "Boolean")


@dataclass(frozen=True)
class SchemaSource:
    """A named SDL buffer."""
    name: str
    sdl: str


@dataclass(frozen=True)
class SchemaModel:
    """A validated, immutable GraphQL schema.

    Wraps graphql-core's GraphQLSchema together with the names of the sources
    it was merged from and any conflicts resolved while merging.
    """
    schema: GraphQLSchema
    sources: tuple[str, ...] = ()
    conflicts: tuple[SchemaMergeConflict, ...] = field(default=(), compare=False)

    @classmethod
    def from_sdl(cls, sdl: str, name: str = "schema.graphql") -> "SchemaModel":
        """Build a model from a single SDL string."""
        return load_schema([SchemaSource(name, sdl)])

    @cached_property
    def sdl(self) -> str:
        return print_schema(self.schema)

    @cached_property
    def hash(self) -> str:
        """SHA-256 of the printed schema."""
        return hashlib.sha256(self.sdl.encode("utf-8")).hexdigest()

    @property
    def query_type(self):
        return self.schema.query_type

    @property
    def mutation_type(self):
        return self.schema.mutation_type

    @property
    def subscription_type(self):
        return self.schema.subscription_type

    def root_type(self, kind: str):
        """Root object type for 'query', 'mutation' or 'subscription'."""
        return {
            "query": self.schema.query_type,
            "mutation": self.schema.mutation_type,
            "subscription": self.schema.subscription_type,
        }.get(kind)

    def get_type(self, name: str) -> GraphQLNamedType | None:
        return self.schema.get_type(name)

    def named_types(self) -> list[GraphQLNamedType]:
        """User-defined and built-in scalar types, sorted by name, introspection types excluded."""
        return [
            self.schema.type_map[name]
            for name in sorted(self.schema.type_map)
            if not name.startswith("__")
        ]

    def custom_scalars(self) -> list[str]:
        """Names of scalars that are not GraphQL built-ins, sorted."""
        return [
            t.name
            for t in self.named_types()
            if isinstance(t, GraphQLScalarType) and t.name not in BUILTIN_SCALAR_NAMES
        ]

    def possible_types(self, type_) -> list:
        """Concrete members of an abstract type, in schema order."""
        if not is_abstract_type(type_):
            return [type_]
        return list(self.schema.get_possible_types(type_))


def load_schema(
    sources: list[SchemaSource],
    policy: ConflictPolicy | str = ConflictPolicy.ERROR,
) -> SchemaModel:
    """Parse, merge and validate SDL sources into a SchemaModel.

    Raises:
        SchemaLoadError: on parse errors, unresolved types or an invalid schema
        SchemaMergeConflict: on a merge conflict under the 'error' policy
    """
    if not sources:
        raise SchemaLoadError("no schema sources provided")

    documents = []
    for source in sources:
        try:
            documents.append(parse(Source(source.sdl, source.name)))
        except GraphQLError as e:
            raise SchemaLoadError(f"failed to parse schema {source.name}: {e.message}") from e

    names = [source.name for source in sources]
    merged, conflicts = merge_schemas(documents, names, policy)

    try:
        schema = build_ast_schema(merged)
    except (GraphQLError, TypeError) as e:
        raise SchemaLoadError(f"invalid schema ({', '.join(names)}): {e}") from e

    schema = with_builtin_scalars(schema)
    errors = validate_schema(schema)
    if errors:
        messages = "; ".join(error.message for error in errors)
        raise SchemaLoadError(f"invalid schema ({', '.join(names)}): {messages}")

    logger.debug("Loaded schema from %d source(s): %s", len(sources), ", ".join(names))
    return SchemaModel(schema=schema, sources=tuple(names), conflicts=tuple(conflicts))


def with_builtin_scalars(schema: GraphQLSchema) -> GraphQLSchema:
    """Rebuild a schema so all five built-in scalars are in its type map.

    build_ast_schema only registers the built-ins the SDL references.
    """
    missing = [t for t in specified_scalar_types.values() if t.name not in schema.type_map]
    if not missing:
        return schema
    types = [t for name, t in schema.type_map.items() if not name.startswith("__")]
    return GraphQLSchema(
        query=schema.query_type,
        mutation=schema.mutation_type,
        subscription=schema.subscription_type,
        types=types + missing,
        directives=schema.directives,
        description=schema.description,
        extensions=schema.extensions,
        ast_node=schema.ast_node,
        extension_ast_nodes=schema.extension_ast_nodes,
    )
