"""
CLI utilities for command line reconstruction and introspection.
"""

from pathlib import Path

import click

COMMAND_NAME = "json_schema_to_types"

# Diagnostics-only options, left out of the reconstructed command
IGNORED_PARAMS = {"verbose", "log_file"}


def reconstruct_command_line(click_command: click.Command) -> str:
    """
    Reconstruct command line from current Click context using introspection.

    Path values are reduced to their file names, so the result (and the
    generated file header built from it) does not depend on the working
    directory or on whether the output file exists yet.

    Args:
        click_command: Click command object for introspection

    Returns:
        Reconstructed command line string
    """
    try:
        ctx = click.get_current_context()
        cli_args = ctx.params
    except RuntimeError:
        # No active context, return basic command
        return COMMAND_NAME

    if not cli_args:
        return COMMAND_NAME

    arguments = []
    options = []

    for param in click_command.params:
        param_name = param.name
        if param_name not in cli_args or param_name in IGNORED_PARAMS:
            continue

        value = cli_args[param_name]
        if value is None:
            continue

        if isinstance(param, click.Argument):
            arguments.append(_format_value(param, value))
            continue

        if not isinstance(param, click.Option) or value == param.default:
            continue

        if isinstance(value, bool):
            # Boolean flags: --flag, or its --no-flag form when switched off
            if value:
                options.append(param.opts[0])
            elif param.secondary_opts:
                options.append(param.secondary_opts[0])
            continue

        flag = param.opts[0] if param.opts else f"--{param_name}"
        options.extend([flag, _format_value(param, value)])

    return " ".join([COMMAND_NAME, *arguments, *options])


def _format_value(param: click.Parameter, value) -> str:
    if isinstance(param.type, click.Path):
        return Path(str(value)).name
    return str(value)
