"""
sigmodel Command Line Interface.

This module provides the CLI entry point for extracting parser models and
generating validators from declared function signatures.
"""

import functools
import importlib
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from sigmodel.compiler import ValidatorCompiler
from sigmodel.config import ConfigurationError, SigmodelConfig, load_config, load_config_from_env
from sigmodel.errors import SigmodelError
from sigmodel.extraction import generate_function_models, generate_parser_model
from sigmodel.oracle import IRTypeOracle, PythonTypeOracle, SourceUnit, TypeResolutionOracle
from sigmodel.pipeline import ExtractionPass
from sigmodel.version import __version__

console = Console()

IR_SUFFIXES = (".json", ".yaml", ".yml")


def _configure_logging(verbose: bool, cfg: SigmodelConfig) -> None:
    """Configure logging from the verbosity flag and the config."""
    if verbose:
        log_level = logging.DEBUG if cfg.debug else logging.INFO
    else:
        log_level = getattr(logging, cfg.logging.level.value)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if cfg.logging.file:
        handlers.append(logging.FileHandler(cfg.logging.file))
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=handlers,
    )
    # Set sigmodel loggers to appropriate level
    logging.getLogger("sigmodel").setLevel(log_level)


def _load_source(source: str, function: str) -> tuple[TypeResolutionOracle, Any]:
    """Pick the oracle for SOURCE and find FUNCTION in it.

    SOURCE is a type IR file or an importable Python module path.
    """
    path = Path(source)
    if path.suffix in IR_SUFFIXES:
        unit = SourceUnit.from_file(path)
        return IRTypeOracle(unit), function

    module = importlib.import_module(source)
    try:
        declaration = functools.reduce(getattr, function.split("."), module)
    except AttributeError:
        raise click.BadParameter(f"{source} has no attribute {function}", param_hint="FUNCTION")
    return PythonTypeOracle(), declaration


def _fail(error: Exception, verbose: bool) -> None:
    console.print(f"[red]Error:[/red] {error}")
    if verbose:
        console.print_exception()
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="sigmodel")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Path to configuration file",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config: str | None) -> None:
    """sigmodel: parser models and validators from type declarations.

    Reduces the declared parameter and return types of RPC functions to
    serializable parser models and generates validators for them.
    """
    ctx.ensure_object(dict)
    try:
        cfg = load_config(config) if config else load_config_from_env()
    except (ConfigurationError, FileNotFoundError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)

    _configure_logging(verbose, cfg)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = cfg


@main.command()
@click.argument("source")
@click.argument("function")
@click.option(
    "--function-models",
    is_flag=True,
    help="Extract parameters and return type instead of the return type only",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default=None,
    help="Write the model document to this file",
)
@click.pass_context
def extract(ctx: click.Context, source: str, function: str, function_models: bool, output: str | None) -> None:
    """Extract the parser model document of a function.

    SOURCE is a type IR file (.json/.yaml) or a Python module path.
    FUNCTION is the function name within SOURCE.
    """
    cfg: SigmodelConfig = ctx.obj["config"]
    verbose = ctx.obj["verbose"]

    try:
        oracle, declaration = _load_source(source, function)
        if function_models:
            document = generate_function_models(declaration, oracle, cfg.extraction).to_json()
        else:
            document = generate_parser_model(declaration, oracle, cfg.extraction).to_json()
    except (SigmodelError, FileNotFoundError, ValueError, ImportError) as e:
        _fail(e, verbose)
        return

    if output:
        Path(output).write_text(document + "\n", encoding="utf-8")
        console.print(f"[green]Wrote[/green] {output}")
    else:
        click.echo(document)


@main.command(name="compile")
@click.argument("source")
@click.argument("function")
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default=None,
    help="Write the validator module to this file",
)
@click.pass_context
def compile_command(ctx: click.Context, source: str, function: str, output: str | None) -> None:
    """Generate the validator module of a function.

    The module has one entry validator for the parameters and one for the
    return value.
    """
    cfg: SigmodelConfig = ctx.obj["config"]
    verbose = ctx.obj["verbose"]

    try:
        oracle, declaration = _load_source(source, function)
        models = generate_function_models(declaration, oracle, cfg.extraction)
        source_text = ValidatorCompiler(models.deps, cfg.compiler).compile_module(
            entries={
                cfg.compiler.parameters_entry: models.parameters,
                cfg.compiler.returns_entry: models.returns,
            }
        )
    except (SigmodelError, FileNotFoundError, ValueError, ImportError) as e:
        _fail(e, verbose)
        return

    if output:
        Path(output).write_text(source_text, encoding="utf-8")
        console.print(f"[green]Wrote[/green] {output}")
    else:
        click.echo(source_text, nl=False)


@main.command()
@click.argument("source")
@click.argument("function")
@click.argument("value_file", type=click.File("r"))
@click.option(
    "--returns",
    "check_returns",
    is_flag=True,
    help="Validate against the return type instead of the parameters",
)
@click.pass_context
def check(ctx: click.Context, source: str, function: str, value_file, check_returns: bool) -> None:
    """Validate a JSON value against a function signature.

    VALUE_FILE holds the call arguments as a JSON object keyed by
    parameter name (or the return value with --returns); use - for stdin.
    """
    cfg: SigmodelConfig = ctx.obj["config"]
    verbose = ctx.obj["verbose"]

    try:
        value = json.load(value_file)
    except json.JSONDecodeError as e:
        _fail(ValueError(f"Invalid JSON in {value_file.name}: {e}"), verbose)
        return

    try:
        oracle, declaration = _load_source(source, function)
        artifacts = ExtractionPass(oracle, cfg).run(declaration)
    except (SigmodelError, FileNotFoundError, ValueError, ImportError) as e:
        _fail(e, verbose)
        return

    result = artifacts.validate_returns(value) if check_returns else artifacts.validate_parameters(value)
    target = "return value" if check_returns else "parameters"

    if result.is_ok:
        console.print(f"[green]OK[/green] {artifacts.name} {target}")
        return

    table = Table(title=f"{artifacts.name} {target}: {len(result.violations)} violations")
    table.add_column("Path", style="cyan")
    table.add_column("Expected", style="yellow")
    for violation in result.violations:
        table.add_row(violation.path, violation.expected)
    console.print(table)
    sys.exit(1)


@main.command(name="show-config")
@click.option("--source", "show_source", is_flag=True, help="Show as YAML source")
@click.pass_context
def show_config(ctx: click.Context, show_source: bool) -> None:
    """Display current configuration."""
    import yaml

    cfg: SigmodelConfig = ctx.obj["config"]

    if show_source:
        text = yaml.safe_dump(cfg.to_yaml_dict(), default_flow_style=False, sort_keys=False)
        console.print(Syntax(text, "yaml"))
        return

    console.print(
        Panel(
            f"[bold blue]sigmodel v{__version__}[/bold blue]",
            title="Configuration",
        )
    )
    for section_name, section in cfg.to_yaml_dict().items():
        if not isinstance(section, dict):
            console.print(f"[bold]{section_name}[/bold]: {section}")
            continue
        table = Table(title=section_name, show_header=False, box=None)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")
        for key, value in section.items():
            table.add_row(key, str(value))
        console.print(table)


if __name__ == "__main__":
    main()
