"""Generation entry point: config in, artifact bytes per path out.

Example:
    config = load_config("codegen.yml")
    result = generate(config)
    for path, content in result.files.items():
        FileWriter(config.base_dir).write(path, content)
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from ..config import CodegenConfig, EmitterOptions
from ..hooks import HookRunner
from ..loaders import DocumentLoader, SchemaLoader
from ..presets import Destination, expand_target
from .cancellation import CancellationToken
from .documents import DocumentSet
from .emitters import DescriptorCache, EmitContext, get_emitter
from .errors import CodegenError, GenerationCancelled, GenerationError
from .naming import enum_member_name, jsdoc, pascal_case, safe_comment
from .placement import PlacementEngine
from .schema import SchemaModel

logger = logging.getLogger(__name__)


@dataclass
class GenerateResult:
    """Artifacts in destination order, plus every warning raised on the way."""
    files: dict[str, bytes] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


def create_environment(template_dir: str | None = None) -> Environment:
    """Jinja2 environment for the TypeScript templates.

    Templates in template_dir take precedence over the built-in ones.
    """
    loaders = []
    if template_dir:
        template_path = Path(template_dir)
        if template_path.is_dir():
            loaders.append(FileSystemLoader(str(template_path)))
    loaders.append(PackageLoader("gql_tsgen", "templates"))

    env = Environment(
        loader=ChoiceLoader(loaders),
        autoescape=select_autoescape(),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["pascal_case"] = pascal_case
    env.filters["enum_member_name"] = enum_member_name
    env.filters["safe_comment"] = safe_comment
    env.filters["jsdoc"] = jsdoc
    return env


def finalize(content: str) -> str:
    """Exactly one trailing newline on non-empty content."""
    if not content:
        return content
    return content.rstrip("\n") + "\n"


def generate(
    config: CodegenConfig,
    *,
    schema_loader=None,
    document_loader=None,
    hooks: HookRunner | None = None,
    cancel: CancellationToken | None = None,
) -> GenerateResult:
    """Run the whole pipeline for a config.

    Args:
        config: The validated configuration
        schema_loader: Anything with ``load(sources) -> SchemaModel``
        document_loader: Anything with ``load(schema, includes, excludes) -> list[Document]``
        hooks: Pre- and post-generation hooks
        cancel: Checked per document, per operation and per emitter

    Raises:
        GenerationCancelled: if the token fires; nothing is returned
        GenerationError: when an emitter fails for a destination
        CodegenError: for schema, document and config failures
    """
    result = GenerateResult()
    _check(cancel)

    schema_loader = schema_loader or SchemaLoader(config.base_dir, config.conflict_policy)
    schema = schema_loader.load(config.schema_sources)

    documents = []
    if config.documents:
        document_loader = document_loader or DocumentLoader(config.base_dir, lenient=config.lenient)
        documents = document_loader.load(schema, config.documents, config.exclude)
        result.warnings.extend(getattr(document_loader, "warnings", []))
    if hooks is not None:
        documents = hooks.run_pre_hooks(documents)
    _check(cancel)

    document_set = DocumentSet.build(
        schema,
        documents,
        lenient=config.lenient,
        anonymous=config.anonymous_operations,
        cancel=cancel,
    )
    result.warnings.extend(document_set.warnings)

    destinations = []
    for path, target in config.generates.items():
        destinations.extend(expand_target(path, target))

    template_dir = config.template_dir
    if template_dir and not os.path.isabs(template_dir):
        template_dir = os.path.join(config.base_dir, template_dir)
    env = create_environment(template_dir)
    cache = DescriptorCache()

    for destination in destinations:
        _check(cancel)
        artifacts = _generate_destination(
            destination, config, schema, document_set, env, cache, result, cancel
        )
        for path, content in artifacts.items():
            content = finalize(content)
            if hooks is not None:
                content = hooks.run_post_hooks(path, content)
            result.files[path] = content.encode("utf-8")
            logger.info("Generated %s", path)

    _check(cancel)
    return result


def _generate_destination(
    destination: Destination,
    config: CodegenConfig,
    schema: SchemaModel,
    document_set: DocumentSet,
    env: Environment,
    cache: DescriptorCache,
    result: GenerateResult,
    cancel: CancellationToken | None,
) -> dict[str, str]:
    engine = PlacementEngine(destination.path)
    base_values = _base_options(config, destination)

    for name, overrides in destination.emitters:
        _check(cancel)
        try:
            emitter = get_emitter(name)
            options = EmitterOptions.parse(base_values).merged(overrides)
            ctx = EmitContext(
                schema=schema,
                documents=document_set,
                options=options,
                destination=destination.path,
                env=env,
                cache=cache,
                cancel=cancel,
            )
            logger.debug("Running %s for %s", name, destination.path)
            engine.extend(emitter.emit(ctx))
        except GenerationCancelled:
            raise
        except CodegenError as e:
            raise GenerationError(destination.path, name, e) from e
        for warning in ctx.warnings:
            if warning not in result.warnings:
                result.warnings.append(warning)

    return engine.artifacts()


def _base_options(config: CodegenConfig, destination: Destination) -> dict[str, Any]:
    values = dict(destination.options)
    scalars = dict(config.scalars)
    scalars.update(values.get("scalars") or {})
    values["scalars"] = scalars
    return values


def _check(cancel: CancellationToken | None):
    if cancel is not None:
        cancel.raise_if_cancelled()
