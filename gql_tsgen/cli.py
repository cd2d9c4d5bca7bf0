"""Command-line interface for gql-tsgen."""

import logging
from pathlib import Path

import click

from .config import discover_config, load_config
from .core.errors import CodegenError
from .core.generator import generate as run_generate
from .loaders import FileWriter


@click.group()
@click.version_option()
def main():
    """GraphQL code generator for TypeScript.

    Generate typed TypeScript modules from a GraphQL schema and the
    documents used by your client code.
    """
    pass


@main.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to codegen config (codegen.yml, codegen.json, ...).",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Only print errors.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
def generate(config_path: str | None, quiet: bool, verbose: bool):
    """Generate TypeScript artifacts from a codegen config.

    Examples:

        gql-tsgen generate

        gql-tsgen generate --config ./codegen.yml

        gql-tsgen generate -c ./web/codegen.json -v
    """
    level = logging.DEBUG if verbose else logging.ERROR if quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    if config_path is None:
        found = discover_config(Path.cwd())
        if found is None:
            raise click.ClickException("no config file found, pass --config")
        config_path = str(found)

    try:
        config = load_config(config_path)
        if verbose:
            click.echo(f"Config: {config_path}")
        result = run_generate(config)
    except CodegenError as e:
        raise click.ClickException(str(e)) from e

    if not quiet:
        for warning in result.warnings:
            click.echo(f"Warning: {warning}", err=True)

    writer = FileWriter(config.base_dir)
    for path, content in result.files.items():
        full_path = writer.write(path, content)
        if not quiet:
            click.echo(f"Generated: {full_path}")

    if not quiet:
        click.echo(f"Done! Generated {len(result.files)} file(s)")
