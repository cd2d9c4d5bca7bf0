"""Configuration models and loading.

A config file is YAML or JSON:

    schema:
      - schema/*.graphql
      - url: https://api.example.com/graphql
        headers:
          Authorization: Bearer ${API_TOKEN}
    documents:
      - src/**/*.tsx
      - "!src/**/*.test.tsx"
    scalars:
      DateTime: string
    generates:
      src/gql/:
        preset: client
        presetConfig:
          persistedDocuments: true
      src/types.ts:
        plugins:
          - base-types
          - prefix:
              content: "/* eslint-disable */"
"""

import json
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .core.errors import ConfigError, EmitterError
from .core.scalars import ScalarMapping

CONFIG_FILE_NAMES = (
    "codegen.yml",
    "codegen.yaml",
    "codegen.json",
    "gql-tsgen.yml",
    "gql-tsgen.yaml",
    "gql-tsgen.json",
)

# Names used by other codegen tools for the same emitters.
PLUGIN_ALIASES = {
    "typescript": "base-types",
    "typescript-operations": "operation-types",
    "gql-tag-operations": "gql-tag-registry",
    "add": "prefix",
}


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class EmitterOptions(_Model):
    """Options shared by every emitter of a destination."""
    strict_nulls: bool = True
    immutable_types: bool = False
    enums_as_types: bool = False
    no_export: bool = False
    skip_typename: bool = False
    omit_operation_suffix: bool = False
    avoid_optionals: bool = False
    maybe_value: str = "T | null"
    input_maybe_value: str = "Maybe<T>"
    document_mode: Literal["tag", "string", "ast"] = "ast"
    scalars: dict[str, Any] = Field(default_factory=dict)
    default_scalar_type: str = "any"
    gql_tag_name: str = "graphql"
    unmask_function_name: str = "useFragment"
    use_type_imports: bool = False
    is_string_document_mode: bool = False
    hash_algorithm: Literal["sha1", "sha256"] = "sha1"
    content: str | list[str] | None = None
    placement: str = "prepend"
    gql_import: str | None = None
    document_node_import: str = "@graphql-typed-document-node/core"
    types_module: str = "./graphql"
    fragment_masking: bool = False
    output_format: Literal["graphql", "ast", "introspection"] = "graphql"
    const_name: str = "schema"
    sort: bool = True
    include_introspection_types: bool = False

    @field_validator("scalars")
    @classmethod
    def check_scalars(cls, value: dict[str, Any]) -> dict[str, Any]:
        for name, mapping in value.items():
            try:
                ScalarMapping.coerce(mapping)
            except ValueError as e:
                raise ValueError(f"scalar {name!r}: {e}") from e
        return value

    @classmethod
    def parse(cls, values: dict[str, Any]) -> "EmitterOptions":
        """Validate raw options, raising EmitterError on malformed values."""
        try:
            return cls.model_validate(values or {})
        except ValidationError as e:
            raise EmitterError(_format_validation_error(e)) from e

    def merged(self, overrides: dict[str, Any]) -> "EmitterOptions":
        """A copy with per-emitter overrides applied."""
        if not overrides:
            return self
        values = self.model_dump(by_alias=True)
        values.update(overrides)
        return type(self).parse(values)


class SchemaSourceConfig(_Model):
    """One schema source: an SDL file, a URL or an introspection result."""
    kind: Literal["file", "url", "introspection"] = "file"
    path: str | None = None
    url: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float = 30.0

    @model_validator(mode="before")
    @classmethod
    def coerce_shorthand(cls, value: Any) -> Any:
        if isinstance(value, str):
            if value.startswith(("http://", "https://")):
                return {"kind": "url", "url": value}
            if value.endswith(".json"):
                return {"kind": "introspection", "path": value}
            return {"kind": "file", "path": value}
        if isinstance(value, dict) and "kind" not in value:
            if "url" in value:
                return {**value, "kind": "url"}
            if "introspection" in value:
                return {"kind": "introspection", "path": value["introspection"]}
        return value

    @model_validator(mode="after")
    def check_location(self) -> "SchemaSourceConfig":
        if self.kind == "url" and not self.url:
            raise ValueError("url schema source requires 'url'")
        if self.kind != "url" and not self.path:
            raise ValueError(f"{self.kind} schema source requires 'path'")
        return self

    @property
    def label(self) -> str:
        return self.url if self.kind == "url" else self.path


class FragmentMaskingConfig(_Model):
    unmask_function_name: str = "useFragment"


class PersistedDocumentsConfig(_Model):
    hash_algorithm: Literal["sha1", "sha256"] = "sha1"


class ClientPresetConfig(_Model):
    """Options of the client preset."""
    fragment_masking: FragmentMaskingConfig | None = Field(default_factory=FragmentMaskingConfig)
    persisted_documents: PersistedDocumentsConfig | None = None
    gql_tag_name: str = "graphql"

    @field_validator("fragment_masking", "persisted_documents", mode="before")
    @classmethod
    def coerce_toggle(cls, value: Any) -> Any:
        if value is True:
            return {}
        if value is False:
            return None
        return value


class OutputTarget(_Model):
    """One entry of ``generates``: emitters (or a preset) and their options."""
    plugins: list[str | dict[str, Any]] = Field(default_factory=list)
    preset: Literal["client"] | None = None
    preset_config: ClientPresetConfig = Field(default_factory=ClientPresetConfig)
    config: dict[str, Any] = Field(default_factory=dict)

    def emitters(self) -> list[tuple[str, dict[str, Any]]]:
        """Emitter names with their per-emitter option overrides, in order."""
        result = []
        for entry in self.plugins:
            if isinstance(entry, str):
                name, options = entry, {}
            elif len(entry) == 1:
                name, options = next(iter(entry.items()))
                options = options if isinstance(options, dict) else {"content": options}
            else:
                raise ConfigError(f"plugin entry must have a single key: {entry!r}")
            result.append((PLUGIN_ALIASES.get(name, name), options))
        return result


class CodegenConfig(_Model):
    """Top-level configuration."""
    schema_: list[SchemaSourceConfig] = Field(alias="schema")
    documents: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    scalars: dict[str, Any] = Field(default_factory=dict)
    generates: dict[str, OutputTarget]
    conflict_policy: Literal["error", "use-first", "use-last"] = "error"
    lenient: bool = False
    anonymous_operations: Literal["skip", "error"] = "skip"
    template_dir: str | None = None
    base_dir: str = "."

    @field_validator("schema_", mode="before")
    @classmethod
    def coerce_schema(cls, value: Any) -> Any:
        if isinstance(value, (str, dict)):
            return [value]
        return value

    @field_validator("documents", "exclude", mode="before")
    @classmethod
    def coerce_patterns(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value or []

    @model_validator(mode="after")
    def split_negated_documents(self) -> "CodegenConfig":
        negated = [p[1:] for p in self.documents if p.startswith("!")]
        if negated:
            self.documents = [p for p in self.documents if not p.startswith("!")]
            self.exclude = self.exclude + negated
        return self

    @property
    def schema_sources(self) -> list[SchemaSourceConfig]:
        return self.schema_


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)


def parse_config(data: dict[str, Any], base_dir: str = ".") -> CodegenConfig:
    """Validate an already-decoded config mapping."""
    if not isinstance(data, dict):
        raise ConfigError("config must be a mapping")
    try:
        config = CodegenConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid config: {_format_validation_error(e)}") from e
    config.base_dir = base_dir
    return config


def load_config(path: str | Path) -> CodegenConfig:
    """Read a YAML or JSON config file with ${VAR} environment expansion."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e

    text = os.path.expandvars(text)
    try:
        if path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot parse config {path}: {e}") from e

    return parse_config(data, base_dir=str(path.parent))


def discover_config(cwd: str | Path = ".") -> Path | None:
    """Find a config file in a directory."""
    cwd = Path(cwd)
    for name in CONFIG_FILE_NAMES:
        candidate = cwd / name
        if candidate.is_file():
            return candidate
    return None
