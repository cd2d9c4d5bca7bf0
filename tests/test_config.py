"""Tests for configuration models and loading."""

import json

import pytest

from gql_tsgen.config import (
    ClientPresetConfig,
    EmitterOptions,
    OutputTarget,
    SchemaSourceConfig,
    discover_config,
    load_config,
    parse_config,
)
from gql_tsgen.core.errors import ConfigError, EmitterError

MINIMAL = {
    "schema": "schema.graphql",
    "documents": ["src/**/*.graphql", "!src/generated/**"],
    "generates": {"src/types.ts": {"plugins": ["base-types"]}},
}


class TestParseConfig:
    """Tests for parse_config."""

    def test_minimal(self):
        config = parse_config(MINIMAL, base_dir="project")
        assert config.base_dir == "project"
        assert [s.path for s in config.schema_sources] == ["schema.graphql"]
        assert config.documents == ["src/**/*.graphql"]
        assert config.exclude == ["src/generated/**"]
        assert config.conflict_policy == "error"
        assert config.anonymous_operations == "skip"

    def test_camel_case_keys(self):
        config = parse_config(
            {**MINIMAL, "conflictPolicy": "use-last", "anonymousOperations": "error", "templateDir": "tpl"}
        )
        assert config.conflict_policy == "use-last"
        assert config.anonymous_operations == "error"
        assert config.template_dir == "tpl"

    def test_missing_generates(self):
        with pytest.raises(ConfigError, match="generates"):
            parse_config({"schema": "schema.graphql"})

    def test_invalid_policy(self):
        with pytest.raises(ConfigError):
            parse_config({**MINIMAL, "conflictPolicy": "newest"})

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError):
            parse_config(["schema.graphql"])


class TestSchemaSourceConfig:
    """Tests for schema source shorthands."""

    def test_file(self):
        source = SchemaSourceConfig.model_validate("schema/*.graphql")
        assert source.kind == "file"
        assert source.label == "schema/*.graphql"

    def test_url(self):
        source = SchemaSourceConfig.model_validate("https://api.example.com/graphql")
        assert source.kind == "url"
        assert source.url == "https://api.example.com/graphql"

    def test_url_with_headers(self):
        source = SchemaSourceConfig.model_validate(
            {"url": "https://api.example.com/graphql", "headers": {"Authorization": "Bearer x"}}
        )
        assert source.kind == "url"
        assert source.headers == {"Authorization": "Bearer x"}

    def test_introspection(self):
        assert SchemaSourceConfig.model_validate("schema.json").kind == "introspection"
        source = SchemaSourceConfig.model_validate({"introspection": "dump.txt"})
        assert source.kind == "introspection"
        assert source.path == "dump.txt"

    def test_url_required(self):
        with pytest.raises(ValueError):
            SchemaSourceConfig.model_validate({"kind": "url"})


class TestEmitterOptions:
    """Tests for EmitterOptions."""

    def test_defaults(self):
        options = EmitterOptions.parse({})
        assert options.strict_nulls is True
        assert options.document_mode == "ast"
        assert options.unmask_function_name == "useFragment"
        assert options.default_scalar_type == "any"

    def test_camel_case(self):
        options = EmitterOptions.parse({"enumsAsTypes": True, "documentMode": "string"})
        assert options.enums_as_types is True
        assert options.document_mode == "string"

    def test_unknown_document_mode(self):
        with pytest.raises(EmitterError, match="documentMode"):
            EmitterOptions.parse({"documentMode": "graphql"})

    def test_invalid_scalar_mapping(self):
        with pytest.raises(EmitterError, match="scalar 'DateTime': invalid scalar mapping: 5"):
            EmitterOptions.parse({"scalars": {"DateTime": 5}})

    def test_scalar_mapping_forms(self):
        options = EmitterOptions.parse({"scalars": {"Date": "string", "Upload": {"input": "File"}}})
        assert options.scalars == {"Date": "string", "Upload": {"input": "File"}}

    def test_merged(self):
        options = EmitterOptions.parse({"scalars": {"Date": "string"}, "skipTypename": True})
        merged = options.merged({"content": "// hi", "skipTypename": False})
        assert merged.content == "// hi"
        assert merged.skip_typename is False
        assert merged.scalars == {"Date": "string"}
        assert options.skip_typename is True

    def test_merged_without_overrides(self):
        options = EmitterOptions.parse({})
        assert options.merged({}) is options


class TestOutputTarget:
    """Tests for OutputTarget emitter lists."""

    def test_plugin_aliases(self):
        target = OutputTarget.model_validate(
            {"plugins": ["typescript", "typescript-operations", {"add": {"content": "// x"}}]}
        )
        assert target.emitters() == [
            ("base-types", {}),
            ("operation-types", {}),
            ("prefix", {"content": "// x"}),
        ]

    def test_scalar_plugin_options(self):
        target = OutputTarget.model_validate({"plugins": [{"prefix": "/* eslint-disable */"}]})
        assert target.emitters() == [("prefix", {"content": "/* eslint-disable */"})]

    def test_multi_key_entry(self):
        target = OutputTarget.model_validate({"plugins": [{"a": {}, "b": {}}]})
        with pytest.raises(ConfigError):
            target.emitters()

    def test_preset_toggles(self):
        preset = ClientPresetConfig.model_validate({"fragmentMasking": False, "persistedDocuments": True})
        assert preset.fragment_masking is None
        assert preset.persisted_documents.hash_algorithm == "sha1"

    def test_preset_defaults(self):
        preset = ClientPresetConfig()
        assert preset.fragment_masking.unmask_function_name == "useFragment"
        assert preset.persisted_documents is None


class TestLoadConfig:
    """Tests for reading config files."""

    def test_yaml_with_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("API_TOKEN", "secret")
        path = tmp_path / "codegen.yml"
        path.write_text(
            "schema:\n"
            "  - url: https://api.example.com/graphql\n"
            "    headers:\n"
            "      Authorization: Bearer ${API_TOKEN}\n"
            "generates:\n"
            "  src/gql/:\n"
            "    preset: client\n"
        )
        config = load_config(path)
        assert config.schema_sources[0].headers["Authorization"] == "Bearer secret"
        assert config.generates["src/gql/"].preset == "client"
        assert config.base_dir == str(tmp_path)

    def test_json(self, tmp_path):
        path = tmp_path / "codegen.json"
        path.write_text(json.dumps(MINIMAL))
        assert load_config(path).documents == ["src/**/*.graphql"]

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "codegen.yml"
        path.write_text("schema: [unclosed\n")
        with pytest.raises(ConfigError, match="cannot parse"):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="cannot read"):
            load_config(tmp_path / "nope.yml")

    def test_discover(self, tmp_path):
        assert discover_config(tmp_path) is None
        (tmp_path / "codegen.json").write_text("{}")
        (tmp_path / "codegen.yml").write_text("")
        assert discover_config(tmp_path) == tmp_path / "codegen.yml"
