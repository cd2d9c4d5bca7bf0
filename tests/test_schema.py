"""Tests for the schema model and the SDL merger."""

import pytest
from graphql import NameNode, parse, print_ast

from gql_tsgen.core.errors import SchemaLoadError, SchemaMergeConflict
from gql_tsgen.core.merger import ConflictPolicy, SchemaMerger, merge_schemas, replace_node
from gql_tsgen.core.schema import SchemaModel, SchemaSource, load_schema

USER_INT = "type Query { user: User } type User { id: ID!, age: Int }"
USER_STRING = "type Query { user: User } type User { id: ID!, age: String }"


class TestLoadSchema:
    """Tests for load_schema."""

    def test_builtin_scalars_present(self, schema):
        for name in ("ID", "String", "Int", "Float", "Boolean"):
            assert schema.get_type(name) is not None

    def test_unreferenced_builtin_scalars(self):
        schema = SchemaModel.from_sdl("type Query { user(id: ID!): String }")
        for name in ("Int", "Float", "Boolean"):
            assert schema.get_type(name) is not None
        assert schema.custom_scalars() == []
        assert "scalar Float" not in schema.sdl

    def test_root_types(self, schema):
        assert schema.query_type.name == "Query"
        assert schema.mutation_type.name == "Mutation"
        assert schema.subscription_type is None
        assert schema.root_type("query").name == "Query"

    def test_named_types_sorted_without_introspection(self, schema):
        names = [t.name for t in schema.named_types()]
        assert names == sorted(names)
        assert not any(name.startswith("__") for name in names)

    def test_custom_scalars(self, schema):
        assert schema.custom_scalars() == ["DateTime"]

    def test_possible_types_in_schema_order(self, schema):
        result = schema.get_type("Result")
        assert [t.name for t in schema.possible_types(result)] == ["User", "Post"]

    def test_hash_is_stable(self, schema):
        assert SchemaModel.from_sdl(schema.sdl).hash == schema.hash
        assert len(schema.hash) == 64

    def test_parse_error(self):
        with pytest.raises(SchemaLoadError, match="failed to parse schema broken.graphql"):
            load_schema([SchemaSource("broken.graphql", "type Query {")])

    def test_unresolved_type(self):
        with pytest.raises(SchemaLoadError, match="invalid schema"):
            load_schema([SchemaSource("a.graphql", "type Query { user: Missing }")])

    def test_no_sources(self):
        with pytest.raises(SchemaLoadError):
            load_schema([])

    def test_merges_sources(self):
        schema = load_schema(
            [
                SchemaSource("users.graphql", "type Query { user: User } type User { id: ID! }"),
                SchemaSource("posts.graphql", "type Query { post: Post } type Post { id: ID! }"),
            ]
        )
        assert set(schema.query_type.fields) == {"user", "post"}
        assert schema.sources == ("users.graphql", "posts.graphql")

    def test_type_extensions_applied(self):
        schema = load_schema(
            [
                SchemaSource("a.graphql", "type Query { user: User } type User { id: ID! }"),
                SchemaSource("b.graphql", "extend type User { name: String }"),
            ]
        )
        assert "name" in schema.get_type("User").fields


class TestSchemaMerger:
    """Tests for SchemaMerger conflict detection and policies."""

    def test_field_conflict_error_policy(self):
        with pytest.raises(SchemaMergeConflict) as exc_info:
            load_schema(
                [SchemaSource("schema1.graphql", USER_INT), SchemaSource("schema2.graphql", USER_STRING)]
            )
        error = exc_info.value
        assert error.type_name == "User"
        assert error.conflict_type == "field"
        message = str(error)
        assert "schema1.graphql" in message
        assert "schema2.graphql" in message
        assert "'age'" in message
        assert "Int" in message and "String" in message

    def test_use_first_policy(self):
        schema = load_schema(
            [SchemaSource("a.graphql", USER_INT), SchemaSource("b.graphql", USER_STRING)],
            ConflictPolicy.USE_FIRST,
        )
        assert str(schema.get_type("User").fields["age"].type) == "Int"
        assert len(schema.conflicts) == 1

    def test_use_last_policy(self):
        schema = load_schema(
            [SchemaSource("a.graphql", USER_INT), SchemaSource("b.graphql", USER_STRING)],
            "use-last",
        )
        assert str(schema.get_type("User").fields["age"].type) == "String"
        assert schema.conflicts[0].right_source == "b.graphql"

    def test_single_schema_is_unchanged(self):
        document = parse(USER_INT)
        merged, conflicts = merge_schemas([document], ["a.graphql"])
        assert print_ast(merged) == print_ast(document)
        assert conflicts == []

    def test_compatible_types_merge_by_field_union(self):
        merged, _ = merge_schemas(
            [parse("type User { id: ID! }"), parse("type User { id: ID!, name: String }")],
            ["a", "b"],
        )
        printed = print_ast(merged)
        assert "name: String" in printed
        assert printed.count("type User") == 1

    def test_disjoint_fields_conflict(self):
        with pytest.raises(SchemaMergeConflict, match="different fields"):
            merge_schemas(
                [parse("type User { id: ID! }"), parse("type User { name: String }")],
                ["a", "b"],
            )

    def test_kind_conflict(self):
        with pytest.raises(SchemaMergeConflict) as exc_info:
            merge_schemas([parse("scalar Thing"), parse("type Thing { id: ID }")], ["a", "b"])
        assert exc_info.value.conflict_type == "type"

    def test_enum_conflict(self):
        with pytest.raises(SchemaMergeConflict) as exc_info:
            merge_schemas([parse("enum Role { A B }"), parse("enum Role { A C }")], ["a", "b"])
        assert exc_info.value.conflict_type == "enum"

    def test_enum_order_ignored(self):
        _, conflicts = merge_schemas([parse("enum Role { A B }"), parse("enum Role { B A }")], ["a", "b"])
        assert conflicts == []

    def test_union_conflict(self):
        sdl = "type A { id: ID } type B { id: ID } type C { id: ID } "
        with pytest.raises(SchemaMergeConflict) as exc_info:
            merge_schemas(
                [parse(sdl + "union U = A | B"), parse(sdl + "union U = A | C")],
                ["a", "b"],
            )
        assert exc_info.value.type_name == "U"
        assert exc_info.value.conflict_type == "union"

    def test_argument_conflict(self):
        with pytest.raises(SchemaMergeConflict) as exc_info:
            merge_schemas(
                [parse("type User { posts(first: Int): [ID] }"), parse("type User { posts(last: Int): [ID] }")],
                ["a", "b"],
            )
        assert exc_info.value.conflict_type == "argument"

    def test_directive_conflict(self):
        with pytest.raises(SchemaMergeConflict) as exc_info:
            merge_schemas(
                [parse("directive @auth on FIELD_DEFINITION"), parse("directive @auth on OBJECT")],
                ["a", "b"],
            )
        assert exc_info.value.conflict_type == "directive"

    def test_root_conflict(self):
        with pytest.raises(SchemaMergeConflict) as exc_info:
            merge_schemas(
                [parse("type Query { count: Int }"), parse("type Query { count: String }")],
                ["a", "b"],
            )
        assert exc_info.value.type_name == "Query"

    def test_custom_root_names(self):
        merger = SchemaMerger()
        merged = merger.merge(
            [
                parse("schema { query: RootQuery } type RootQuery { a: Int }"),
                parse("type Query { b: Int }"),
            ],
            ["a", "b"],
        )
        printed = print_ast(merged)
        assert "query: RootQuery" in printed
        assert "b: Int" in printed

    def test_inputs_not_modified(self):
        first = parse("schema { query: RootQuery } type RootQuery { a: Int } type User { id: ID! }")
        second = parse("type Query { b: Int } type User { id: ID!, name: String }")
        before = (print_ast(first), print_ast(second))
        merged, _ = merge_schemas([first, second], ["a", "b"])
        assert (print_ast(first), print_ast(second)) == before
        printed = print_ast(merged)
        assert "type RootQuery {\n  a: Int\n  b: Int\n}" in printed
        assert "type User {\n  id: ID!\n  name: String\n}" in printed

    def test_replace_node(self):
        node = parse("type User { id: ID! }").definitions[0]
        renamed = replace_node(node, name=NameNode(value="Person"))
        assert renamed is not node
        assert node.name.value == "User"
        assert renamed.name.value == "Person"
        assert renamed.fields == node.fields

    def test_mismatched_sources(self):
        with pytest.raises(ValueError):
            SchemaMerger().merge([parse("type Query { a: Int }")], [])

    def test_invalid_policy(self):
        with pytest.raises(ValueError):
            SchemaMerger("pick-one")
