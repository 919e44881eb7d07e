# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Config command for jobwire.

Validates the converter configuration file.
"""

import typer

from jobwire.config import load_config, resolve_config_path
from jobwire.errors import ConfigurationError

app = typer.Typer(help="Manage and validate converter configuration")


@app.command()
def validate(
    config_path: str = typer.Option(None, "--config", "-c", help="Path to config file"),
):
    """
    Validate configuration file.

    Checks that the config file is valid YAML with known keys and values.
    """
    typer.echo(f"Validating configuration: {resolve_config_path(config_path)}")
    typer.echo()

    try:
        config = load_config(config_path)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except ConfigurationError as e:
        typer.echo(f"Validation failed: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"script_args_field: {config.script_args_field}")
    typer.echo(f"interpreter_shape: {config.interpreter_shape}")
    typer.echo(f"map entries: <{config.map_entry_tag} {config.map_key_attr}=.. {config.map_value_attr}=..>")
    typer.echo()
    typer.echo("Configuration validation complete!")
