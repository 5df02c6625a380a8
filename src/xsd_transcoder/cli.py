"""Command-line interface for the XSD transcoder."""

import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import DEFAULT_NAMESPACE_MARKER, TranscoderConfig, parse_overrides
from .converter import Transcoder
from .errors import ConversionError, SchemaError
from .logger import LogLevel, create_logger


def validate_schema_file(ctx, param, value):
    """Validate the schema option points at an .xsd resource."""
    if value is None:
        return None

    if not value.lower().endswith(".xsd"):
        raise click.BadParameter(f"Schema must have .xsd extension: {value}")

    return value


def validate_overrides(ctx, param, value):
    """Turn repeated element=valueKey options into a mapping."""
    try:
        return parse_overrides(list(value or ()))
    except ValueError as e:
        raise click.BadParameter(str(e))


def schema_options(command):
    """Options shared by every command that needs a schema."""
    options = [
        click.option(
            "--schema", "-s", "schema_resource",
            required=True,
            callback=validate_schema_file,
            help="Schema resource: a path or a file name found in --schema-path",
        ),
        click.option(
            "--root-element", "-r",
            required=True,
            help="Name of the schema's root element",
        ),
        click.option(
            "--schema-path",
            "schema_paths",
            multiple=True,
            type=click.Path(exists=True, file_okay=False, path_type=Path),
            help="Directory searched for schema resources (repeatable)",
        ),
        click.option(
            "--root-type",
            "root_type_name",
            help="Explicit qualified root type name instead of the namespace-derived one",
        ),
        click.option(
            "--marker",
            "namespace_marker",
            default=DEFAULT_NAMESPACE_MARKER,
            show_default=True,
            help="Substring identifying the platform target namespace",
        ),
        click.option(
            "--log-level",
            type=click.Choice([level.value for level in LogLevel]),
            default=LogLevel.WARN.value,
            show_default=True,
            help="Logging level",
        ),
    ]
    for option in reversed(options):
        command = option(command)
    return command


def io_options(command):
    command = click.option(
        "--output", "-o",
        type=click.Path(dir_okay=False, path_type=Path),
        help="Write the result to a file instead of stdout",
    )(command)
    command = click.option(
        "--pretty/--compact",
        default=False,
        help="Indent the output (default: compact)",
    )(command)
    command = click.argument("input_file", type=click.File("r", encoding="utf-8"), default="-")(command)
    return command


def _build_transcoder(logger, **kwargs) -> Transcoder:
    config = TranscoderConfig.from_cli_args(**kwargs)
    errors = config.validate()
    if errors:
        logger.error("Configuration validation failed", errors=errors)
        for error in errors:
            click.echo(f"Error: {error}", err=True)
        sys.exit(1)

    try:
        return Transcoder.from_config(config)
    except SchemaError as e:
        logger.error("Schema setup failed", error=str(e), type=type(e).__name__)
        click.echo(f"✗ Schema error: {e}", err=True)
        sys.exit(1)


def _emit(result: str, output: Optional[Path]) -> None:
    if output is None:
        click.echo(result)
    else:
        output.write_text(result + "\n", encoding="utf-8")


def _convert(direction: str, input_file, output: Optional[Path], **kwargs) -> None:
    logger = create_logger(level=LogLevel(kwargs["log_level"]), component="cli")
    transcoder = _build_transcoder(logger, **kwargs)

    source = input_file.read()
    logger.info("Starting conversion", direction=direction, rootElement=transcoder.root_element)

    try:
        if direction == "to-json":
            result = transcoder.xml_to_json(source)
        else:
            result = transcoder.json_to_xml(source)
    except ConversionError as e:
        click.echo(f"✗ Conversion failed: {e}", err=True)
        sys.exit(1)

    _emit(result, output)


@click.group()
@click.version_option(__version__)
def main() -> None:
    """Convert configuration documents between XML and JSON using their XSD.

    Examples:
        # XML to JSON
        xsd-transcoder to-json -s vacuumd-configuration.xsd -r VacuumdConfiguration vacuumd.xml

        # JSON back to XML
        xsd-transcoder to-xml -s provisiond-configuration.xsd -r provisiond-configuration config.json
    """


@main.command("to-json")
@schema_options
@io_options
@click.option(
    "--override",
    "overrides",
    multiple=True,
    callback=validate_overrides,
    help="element=valueKey: key used for the text content of a top-level element (repeatable)",
)
def to_json(input_file, output, pretty, overrides, **kwargs) -> None:
    """Convert an XML document (file or stdin) to JSON."""
    _convert("to-json", input_file, output, pretty=pretty, overrides=overrides, **kwargs)


@main.command("to-xml")
@schema_options
@io_options
def to_xml(input_file, output, pretty, **kwargs) -> None:
    """Convert a JSON document (file or stdin) to XML."""
    _convert("to-xml", input_file, output, pretty=pretty, **kwargs)


@main.command("inspect")
@schema_options
def inspect_schema(**kwargs) -> None:
    """Show the namespace, root type and registered types of a schema."""
    logger = create_logger(level=LogLevel(kwargs["log_level"]), component="cli")
    transcoder = _build_transcoder(logger, **kwargs)
    context = transcoder.context

    click.echo(f"Namespace:  {context.definition.namespace}")
    click.echo(f"Root type:  {transcoder.root_type.qualified_name}")
    click.echo(f"Types ({len(context.registry)}):")
    for name in context.registry.type_names():
        descriptor = context.registry.resolve(name)
        click.echo(f"  {name}")
        for field in descriptor.fields:
            click.echo(f"    {field}")
        if descriptor.has_value:
            click.echo(f"    value: {descriptor.value_scalar.value}")


if __name__ == "__main__":
    main()
