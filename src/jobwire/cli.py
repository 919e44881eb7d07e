# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""
Main CLI entry point for jobwire.

Thin wrapper: reads files, calls the two conversion entry points and the
drift check, prints results. No conversion logic lives here.
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer

from jobwire import __version__
from jobwire.assembler import dump_document, from_wire_document, to_wire_document
from jobwire.compiler import compile_job, dump_job_yaml, load_job_yaml
from jobwire.config import ConverterConfig, load_config
from jobwire.errors import CompileError, ConfigurationError, ConversionError
from jobwire.normalize import diff_jobs
from jobwire.schemas import Diagnostic


app = typer.Typer(
    name="jobwire",
    help="Convert job definitions to and from scheduler wire documents",
    no_args_is_help=True,
)


@app.callback()
def _main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_converter_config(config_path: Optional[str]) -> ConverterConfig:
    try:
        return load_config(config_path)
    except (FileNotFoundError, ConfigurationError) as e:
        typer.echo(f"Config error: {e}", err=True)
        raise typer.Exit(1)


def _report(diagnostics: List[Diagnostic]) -> None:
    for diagnostic in diagnostics:
        typer.echo(f"Skipped {diagnostic}", err=True)


def _read_text(path: str) -> str:
    file_path = Path(path).expanduser()
    if not file_path.exists():
        typer.echo(f"Error: file not found: {file_path}", err=True)
        raise typer.Exit(1)
    return file_path.read_text(encoding="utf-8")


@app.command()
def render(
    job_yaml: str = typer.Argument(..., help="Job definition YAML"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Converter config file"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write JSON here instead of stdout"),
):
    """Render a job definition as a wire JSON document."""
    config = _load_converter_config(config_path)
    try:
        job = compile_job(load_job_yaml(job_yaml))
        result = to_wire_document(job, config)
    except CompileError as e:
        typer.echo(f"Compile error: {e}", err=True)
        raise typer.Exit(1)
    except ConversionError as e:
        typer.echo(f"Conversion error: {e}", err=True)
        raise typer.Exit(1)

    _report(result.diagnostics)
    text = dump_document(result.value)
    if output:
        Path(output).expanduser().write_text(text + "\n", encoding="utf-8")
        typer.echo(f"Wrote {output}", err=True)
    else:
        typer.echo(text)


@app.command()
def read(
    wire_json: str = typer.Argument(..., help="Wire JSON document (job object or export list)"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Converter config file"),
):
    """Read a wire JSON document and print the job definition YAML."""
    config = _load_converter_config(config_path)
    try:
        result = from_wire_document(_read_text(wire_json), config)
    except ConversionError as e:
        typer.echo(f"Conversion error: {e}", err=True)
        raise typer.Exit(1)

    _report(result.diagnostics)
    typer.echo(dump_job_yaml(result.value), nl=False)


@app.command()
def diff(
    job_yaml: str = typer.Argument(..., help="Desired job definition YAML"),
    wire_json: str = typer.Argument(..., help="Actual wire JSON document"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="Converter config file"),
):
    """Exit 0 when the wire document matches the definition, 1 on drift."""
    config = _load_converter_config(config_path)
    try:
        desired = compile_job(load_job_yaml(job_yaml))
        actual = from_wire_document(_read_text(wire_json), config)
    except CompileError as e:
        typer.echo(f"Compile error: {e}", err=True)
        raise typer.Exit(1)
    except ConversionError as e:
        typer.echo(f"Conversion error: {e}", err=True)
        raise typer.Exit(1)

    _report(actual.diagnostics)
    changed = diff_jobs(desired, actual.value)
    if not changed:
        typer.echo("No drift")
        return
    typer.echo("Drift detected:")
    for name in changed:
        typer.echo(f"  {name}")
    raise typer.Exit(1)


@app.command()
def version():
    """Show version information."""
    typer.echo(f"jobwire version {__version__}")


from jobwire.commands import config as config_command

app.add_typer(config_command.app, name="config")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
