"""Expansion of ``generates`` entries into concrete destinations.

A plain entry is one destination with its own emitter list. The ``client``
preset expands an output directory into several files:

    graphql.ts                 base-types, operation-types, typed-document-node
    gql.ts                     gql-tag-registry
    fragment-masking.ts        fragment-masking (when enabled)
    index.ts                   re-exports
    persisted-documents.json   persisted-documents (when enabled)
"""

from dataclasses import dataclass, field
from typing import Any

from .config import OutputTarget
from .core.errors import ConfigError

ESLINT_DISABLE = "/* eslint-disable */"


@dataclass
class Destination:
    """One artifact path, the emitters that write it and its shared options."""
    path: str
    emitters: list[tuple[str, dict[str, Any]]]
    options: dict[str, Any] = field(default_factory=dict)


def expand_target(path: str, target: OutputTarget) -> list[Destination]:
    """Turn one ``generates`` entry into destinations, in output order.

    Raises:
        ConfigError: if the entry has no emitters or a preset path is not a directory
    """
    if target.preset == "client":
        return client_preset(path, target)
    emitters = target.emitters()
    if not emitters:
        raise ConfigError(f"{path}: no plugins configured")
    return [Destination(path, emitters, dict(target.config))]


def client_preset(out_dir: str, target: OutputTarget) -> list[Destination]:
    if not out_dir.endswith("/"):
        raise ConfigError(f"{out_dir}: the client preset needs a directory path ending with '/'")

    preset = target.preset_config
    options = dict(target.config)
    masking = preset.fragment_masking is not None
    string_mode = options.get("documentMode") == "string"
    prefix = ("prefix", {"content": ESLINT_DISABLE, "placement": "prepend"})

    destinations = [
        Destination(
            f"{out_dir}graphql.ts",
            [
                ("base-types", {}),
                ("operation-types", {"fragmentMasking": masking}),
                ("typed-document-node", {}),
                prefix,
            ],
            options,
        ),
        Destination(
            f"{out_dir}gql.ts",
            [("gql-tag-registry", {"gqlTagName": preset.gql_tag_name}), prefix],
            options,
        ),
    ]

    exports = []
    if masking:
        destinations.append(
            Destination(
                f"{out_dir}fragment-masking.ts",
                [
                    (
                        "fragment-masking",
                        {
                            "unmaskFunctionName": preset.fragment_masking.unmask_function_name,
                            "isStringDocumentMode": string_mode,
                        },
                    ),
                    prefix,
                ],
                options,
            )
        )
        exports.append('export * from "./fragment-masking";')
    exports.append('export * from "./gql";')
    destinations.append(
        Destination(
            f"{out_dir}index.ts",
            [("prefix", {"content": exports, "placement": "append"})],
            options,
        )
    )

    if preset.persisted_documents is not None:
        destinations.append(
            Destination(
                f"{out_dir}persisted-documents.json",
                [("persisted-documents", {"hashAlgorithm": preset.persisted_documents.hash_algorithm})],
                options,
            )
        )
    return destinations
