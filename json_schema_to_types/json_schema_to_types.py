import json
from pathlib import Path

import click
from loguru import logger

from .cli_utils import reconstruct_command_line
from .errors import OutputError, SchemaError
from .log import setup_logging
from .pipeline import CodeGeneratorConfig, OutputMode, PipelineGenerator


@click.command()
@click.option("--name", "-n", default=None, type=str, help="Root type name (default: derived from the file name)")
@click.option("--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option("--language", "-l", default="python", type=click.Choice(["python", "rust"]))
@click.option(
    "--output",
    "-o",
    default=None,
    type=click.Path(dir_okay=False, resolve_path=True),
    help="Also write the generated code to this file",
)
@click.option("--format/--no-format", "format_", default=None, help="Run the formatter on the generated code")
@click.option("--force", is_flag=True, default=False, help="Overwrite the output file even if the config says not to")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log debug diagnostics")
@click.option(
    "--log-file",
    default=None,
    type=click.Path(dir_okay=False, resolve_path=True),
    help="Redirect diagnostic output to the given file instead of stderr",
)
@click.argument("path", type=click.Path(exists=True, resolve_path=True))
def json_schema_to_types(name, config, language, output, format_, force, verbose, log_file, path):
    """Generate type declarations for the JSON Schema at PATH (a file or a directory of *.json files)."""
    setup_logging(verbose, log_file)

    if config is not None:
        with open(config) as f:
            try:
                config = CodeGeneratorConfig.from_dict(json.load(f))
            except (json.JSONDecodeError, TypeError, ValueError) as e:
                raise click.ClickException(f"Invalid config file {config}: {e}") from e
    else:
        config = CodeGeneratorConfig()

    # CLI flags override the config file
    if format_ is not None:
        config.formatter.enabled = format_
    if force:
        config.output.mode = OutputMode.FORCE

    codegen = PipelineGenerator(name, Path(path), config, language)

    try:
        out = codegen.generate(reconstruct_command_line(json_schema_to_types))
        if output is not None:
            codegen.write(out, output)
    except (SchemaError, OutputError) as e:
        logger.debug(f"Generation failed: {e!r}")
        raise click.ClickException(str(e)) from e

    # Echo even when writing a file, like tee
    click.echo(out, nl=False)
