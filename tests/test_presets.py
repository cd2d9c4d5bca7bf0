"""Tests for generates-entry expansion."""

import pytest

from gql_tsgen.config import OutputTarget
from gql_tsgen.core.errors import ConfigError
from gql_tsgen.presets import ESLINT_DISABLE, Destination, expand_target


def client(**preset_config):
    return OutputTarget.model_validate({"preset": "client", "presetConfig": preset_config})


class TestExpandTarget:
    """Tests for plain generates entries."""

    def test_plugins(self):
        target = OutputTarget.model_validate(
            {"plugins": ["typescript", {"add": {"content": "// x"}}], "config": {"enumsAsTypes": True}}
        )
        assert expand_target("src/types.ts", target) == [
            Destination(
                "src/types.ts",
                [("base-types", {}), ("prefix", {"content": "// x"})],
                {"enumsAsTypes": True},
            )
        ]

    def test_no_plugins(self):
        with pytest.raises(ConfigError, match="no plugins"):
            expand_target("src/types.ts", OutputTarget())


class TestClientPreset:
    """Tests for the client preset."""

    def test_default_files(self):
        paths = [d.path for d in expand_target("src/gql/", client())]
        assert paths == [
            "src/gql/graphql.ts",
            "src/gql/gql.ts",
            "src/gql/fragment-masking.ts",
            "src/gql/index.ts",
        ]

    def test_graphql_module(self):
        graphql = expand_target("src/gql/", client())[0]
        assert [name for name, _ in graphql.emitters] == [
            "base-types",
            "operation-types",
            "typed-document-node",
            "prefix",
        ]
        assert graphql.emitters[1] == ("operation-types", {"fragmentMasking": True})
        assert graphql.emitters[3] == ("prefix", {"content": ESLINT_DISABLE, "placement": "prepend"})

    def test_gql_tag_name(self):
        gql = expand_target("src/gql/", client(gqlTagName="gql"))[1]
        assert gql.emitters[0] == ("gql-tag-registry", {"gqlTagName": "gql"})

    def test_fragment_masking_options(self):
        target = OutputTarget.model_validate(
            {
                "preset": "client",
                "presetConfig": {"fragmentMasking": {"unmaskFunctionName": "getFragmentData"}},
                "config": {"documentMode": "string"},
            }
        )
        masking = expand_target("src/gql/", target)[2]
        assert masking.emitters[0] == (
            "fragment-masking",
            {"unmaskFunctionName": "getFragmentData", "isStringDocumentMode": True},
        )
        assert masking.options == {"documentMode": "string"}

    def test_without_fragment_masking(self):
        destinations = expand_target("src/gql/", client(fragmentMasking=False))
        assert "src/gql/fragment-masking.ts" not in [d.path for d in destinations]
        assert destinations[0].emitters[1] == ("operation-types", {"fragmentMasking": False})
        index = destinations[-1]
        assert index.emitters == [("prefix", {"content": ['export * from "./gql";'], "placement": "append"})]

    def test_index_exports(self):
        index = expand_target("src/gql/", client())[3]
        assert index.emitters[0][1]["content"] == [
            'export * from "./fragment-masking";',
            'export * from "./gql";',
        ]

    def test_persisted_documents(self):
        destinations = expand_target("src/gql/", client(persistedDocuments={"hashAlgorithm": "sha256"}))
        manifest = destinations[-1]
        assert manifest.path == "src/gql/persisted-documents.json"
        assert manifest.emitters == [("persisted-documents", {"hashAlgorithm": "sha256"})]

    def test_requires_directory(self):
        with pytest.raises(ConfigError, match="ending with '/'"):
            expand_target("src/gql", client())
