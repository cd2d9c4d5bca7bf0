"""Shared fixtures for gql-tsgen tests."""

import pytest

from gql_tsgen.config import EmitterOptions
from gql_tsgen.core.documents import DocumentSet, load_document
from gql_tsgen.core.emitters import DescriptorCache, EmitContext
from gql_tsgen.core.generator import create_environment
from gql_tsgen.core.schema import SchemaModel

SCHEMA_SDL = """
\"\"\"Anything with an id\"\"\"
interface Node {
  id: ID!
}

type Query {
  user(id: ID!): User
  me: User
  node(id: ID!): Node
  search(term: String): [Result!]!
  numbers: [Int!]!
  maybeNumbers: [Int]
  users(filter: UserFilter, first: Int = 10): [User!]!
}

type Mutation {
  updateUser(id: ID!, name: String): User
}

type User implements Node {
  id: ID!
  name: String!
  email: String
  role: Role
  createdAt: DateTime
  posts: [Post!]!
  legacyId: Int @deprecated(reason: "Use id")
}

type Post implements Node {
  id: ID!
  title: String!
  author: User
}

union Result = User | Post

enum Role {
  ADMIN
  SUPER_ADMIN
}

input UserFilter {
  role: Role
  name: String
  limit: Int = 5
  ids: [ID!]
}

scalar DateTime
"""


@pytest.fixture
def schema_sdl():
    return SCHEMA_SDL


@pytest.fixture
def schema():
    """The shared test schema."""
    return SchemaModel.from_sdl(SCHEMA_SDL)


@pytest.fixture
def make_documents(schema):
    """Build a DocumentSet from document texts, one origin per text."""

    def build(*texts, **kwargs):
        documents = [load_document(schema, text, f"doc{i}.graphql") for i, text in enumerate(texts)]
        return DocumentSet.build(schema, documents, **kwargs)

    return build


@pytest.fixture
def env():
    return create_environment()


@pytest.fixture
def make_context(schema, env):
    """Build an EmitContext for a document set and raw (camelCase) options."""

    def build(documents, destination="out.ts", cache=None, **options):
        return EmitContext(
            schema=schema,
            documents=documents,
            options=EmitterOptions.parse(options),
            destination=destination,
            env=env,
            cache=cache if cache is not None else DescriptorCache(),
        )

    return build
