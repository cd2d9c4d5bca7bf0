"""Tests for schema loading, document scanning and file writing."""

import json
import tarfile
import zipfile

import httpx
import pytest
from graphql import build_schema, introspection_from_schema

from gql_tsgen.config import SchemaSourceConfig
from gql_tsgen.core.errors import DocumentValidationError, SchemaLoadError
from gql_tsgen.core.schema import SchemaModel
from gql_tsgen.loaders import (
    DocumentLoader,
    FileWriter,
    IntrospectionClient,
    SchemaLoader,
    SourceExtractor,
    collect_schema_files,
    extract_archive,
)

USERS_SDL = "type Query { me: User } type User { id: ID! name: String }"


@pytest.fixture
def schema_dir(tmp_path):
    """A project directory with a split schema."""
    schema = tmp_path / "schema"
    schema.mkdir()
    (schema / "users.graphql").write_text("type Query { me: User } type User { id: ID! name: String }")
    (schema / "posts.graphqls").write_text("type Query { posts: [Post!]! } type Post { id: ID! }")
    (schema / "README.md").write_text("not a schema")
    return tmp_path


@pytest.fixture
def introspection():
    return introspection_from_schema(build_schema(USERS_SDL))


class TestSchemaLoader:
    """Tests for SchemaLoader."""

    def test_directory(self, schema_dir):
        schema = SchemaLoader(str(schema_dir)).load([SchemaSourceConfig.model_validate("schema")])
        assert set(schema.query_type.fields) == {"me", "posts"}

    def test_single_file(self, schema_dir):
        schema = SchemaLoader(str(schema_dir)).load(
            [SchemaSourceConfig.model_validate("schema/users.graphql")]
        )
        assert set(schema.query_type.fields) == {"me"}

    def test_collect_schema_files_sorted(self, schema_dir):
        files = collect_schema_files(str(schema_dir / "schema"))
        assert [f.rsplit("/", 1)[-1] for f in files] == ["posts.graphqls", "users.graphql"]

    def test_no_files(self, tmp_path):
        with pytest.raises(SchemaLoadError, match="no schema files"):
            SchemaLoader(str(tmp_path)).load([SchemaSourceConfig.model_validate("missing/*.graphql")])

    def test_introspection_file(self, tmp_path, introspection):
        (tmp_path / "schema.json").write_text(json.dumps({"data": introspection}))
        schema = SchemaLoader(str(tmp_path)).load([SchemaSourceConfig.model_validate("schema.json")])
        assert "name" in schema.get_type("User").fields

    def test_invalid_introspection_file(self, tmp_path):
        (tmp_path / "schema.json").write_text('{"data": {}}')
        with pytest.raises(SchemaLoadError):
            SchemaLoader(str(tmp_path)).load([SchemaSourceConfig.model_validate("schema.json")])

    def test_url(self, introspection):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"data": introspection})

        loader = SchemaLoader(transport=httpx.MockTransport(handler))
        source = SchemaSourceConfig.model_validate(
            {"url": "https://api.example.com/graphql", "headers": {"Authorization": "Bearer t"}}
        )
        schema = loader.load([source])
        assert schema.sources == ("https://api.example.com/graphql",)
        assert requests[0].headers["Authorization"] == "Bearer t"
        assert "__schema" in json.loads(requests[0].content)["query"]

    def test_archive(self, tmp_path):
        archive = tmp_path / "schema.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("schema/users.graphql", USERS_SDL)
        schema = SchemaLoader(str(tmp_path)).load([SchemaSourceConfig.model_validate("schema.zip")])
        assert schema.sources == ("schema/users.graphql",)


class TestIntrospectionClient:
    """Tests for IntrospectionClient error handling."""

    def test_http_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        client = IntrospectionClient("https://api.example.com/graphql", transport=transport)
        with pytest.raises(SchemaLoadError, match="failed to fetch"):
            client.fetch()

    def test_graphql_errors(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"errors": [{"message": "introspection disabled"}]})
        )
        client = IntrospectionClient("https://api.example.com/graphql", transport=transport)
        with pytest.raises(SchemaLoadError, match="introspection disabled"):
            client.fetch()

    def test_invalid_json(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        client = IntrospectionClient("https://api.example.com/graphql", transport=transport)
        with pytest.raises(SchemaLoadError, match="invalid JSON"):
            client.fetch()


class TestExtractArchive:
    """Tests for extract_archive."""

    def test_tar_gz(self, tmp_path):
        source = tmp_path / "schema.graphql"
        source.write_text(USERS_SDL)
        archive = tmp_path / "schema.tar.gz"
        with tarfile.open(archive, "w:gz") as tar:
            tar.add(source, arcname="schema.graphql")
        extracted = extract_archive(archive)
        with open(f"{extracted}/schema.graphql") as f:
            assert f.read() == USERS_SDL

    def test_unsupported(self, tmp_path):
        archive = tmp_path / "schema.rar"
        archive.write_bytes(b"")
        with pytest.raises(ValueError, match="Unsupported archive format"):
            extract_archive(archive)


class TestSourceExtractor:
    """Tests for SourceExtractor."""

    def test_tagged_templates(self):
        content = (
            "const A = gql`query A { me { id } }`;\n"
            "const B = graphql(`query B { me { id } }`);\n"
            "const C = /* GraphQL */ `query C { me { id } }`;\n"
            "const s = `not graphql`;\n"
        )
        texts = [text for _, text in SourceExtractor().extract("a.ts", content)]
        assert texts == ["query A { me { id } }", "query B { me { id } }", "query C { me { id } }"]

    def test_interpolations_dropped(self):
        content = "const A = gql`\n  query A { me { ...F } }\n  ${F}\n`;"
        [(origin, text)] = SourceExtractor().extract("a.tsx", content)
        assert origin == "a.tsx"
        assert "${" not in text
        assert "query A" in text

    def test_can_extract(self):
        extractor = SourceExtractor()
        assert extractor.can_extract("a.tsx")
        assert not extractor.can_extract("a.py")


class TestDocumentLoader:
    """Tests for DocumentLoader."""

    @pytest.fixture
    def project(self, tmp_path):
        src = tmp_path / "src"
        src.mkdir()
        (src / "me.graphql").write_text("query Me { me { id } }")
        (src / "App.tsx").write_text("const Q = graphql(`query Name { me { name } }`);")
        (src / "broken.graphql").write_text("query Broken { me { nope } }")
        (src / "notes.txt").write_text("query Ignored { me { id } }")
        return tmp_path

    @pytest.fixture
    def users_schema(self):
        return SchemaModel.from_sdl(USERS_SDL)

    def test_find_sorted_with_excludes(self, project):
        loader = DocumentLoader(str(project))
        assert loader.find(["src/**/*"], ["src/broken.graphql"]) == [
            "src/App.tsx",
            "src/me.graphql",
            "src/notes.txt",
        ]

    def test_load(self, project, users_schema):
        loader = DocumentLoader(str(project))
        documents = loader.load(users_schema, ["src/**/*"], ["src/broken.graphql"])
        assert [d.origin for d in documents] == ["src/App.tsx", "src/me.graphql"]

    def test_invalid_document(self, project, users_schema):
        with pytest.raises(DocumentValidationError, match="nope"):
            DocumentLoader(str(project)).load(users_schema, ["src/*.graphql"])

    def test_lenient(self, project, users_schema):
        loader = DocumentLoader(str(project), lenient=True)
        documents = loader.load(users_schema, ["src/*.graphql"])
        assert [d.origin for d in documents] == ["src/me.graphql"]
        assert loader.warnings[0].startswith("skipping document src/broken.graphql")


class TestFileWriter:
    """Tests for FileWriter."""

    def test_creates_parents(self, tmp_path):
        path = FileWriter(str(tmp_path)).write("src/gql/graphql.ts", b"export {};\n")
        assert (tmp_path / "src/gql/graphql.ts").read_bytes() == b"export {};\n"
        assert path == str(tmp_path / "src/gql/graphql.ts")

    def test_str_content(self, tmp_path):
        FileWriter(str(tmp_path)).write("a.ts", "é")
        assert (tmp_path / "a.ts").read_text(encoding="utf-8") == "é"
