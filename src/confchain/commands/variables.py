"""Variable evaluation commands.

- `confchain eval PATH`: evaluate locals and globals of a file and its include chain
- `confchain globals PATH`: evaluate the globals block of one file on its own
- `confchain graph PATH`: show the dependency graph of an include chain

Example:
    $ confchain eval live/prod/app/terragrunt.hcl
    $ confchain eval live/prod/app --format json
    $ confchain globals live/terragrunt.hcl
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.table import Table

from confchain.chain import resolve_chain
from confchain.cli_utils import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    _error,
    _resolve_config_path,
    console,
)
from confchain.core.config import get_config
from confchain.core.exceptions import ConfchainError, ConfigError, VariableEvaluationError
from confchain.syntax import parse_file
from confchain.variables import build_graph, evaluate_file, evaluate_globals_block
from confchain.variables.types import plain_value

logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    """Output format of evaluation results."""

    TEXT = "text"
    JSON = "json"
    YAML = "yaml"


def _fail(error: ConfchainError) -> typer.Exit:
    """Print an evaluation error and return the matching exit."""
    _error(str(error))
    if isinstance(error, VariableEvaluationError) and len(error.diagnostics) > 1:
        console.print(f"[dim]{len(error.diagnostics)} diagnostics[/dim]")
    return typer.Exit(code=EXIT_CONFIG_ERROR if isinstance(error, ConfigError) else EXIT_ERROR)


def _render_value(value: Any) -> str:
    return json.dumps(plain_value(value), sort_keys=True)


def _print_structured(data: Any, output: OutputFormat) -> None:
    # Plain print keeps structured output free of Rich markup and wrapping
    if output is OutputFormat.JSON:
        print(json.dumps(data, indent=2, sort_keys=True))
    else:
        print(yaml.safe_dump(data, sort_keys=True, default_flow_style=False), end="")


def _values_table(title: str, rows: list[tuple[str, str, Any]]) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Namespace", style="cyan")
    table.add_column("Name")
    table.add_column("Value")
    for namespace, name, value in rows:
        table.add_row(namespace, name, _render_value(value))
    return table


def eval_command(
    path: Path = typer.Argument(..., help="Configuration file, or a directory holding the default file"),
    output: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        "-f",
        help="Output format: text, json or yaml",
    ),
) -> None:
    """Evaluate locals and globals of a file and every file it includes.

    Exit codes:
        0 = success
        1 = parse, include or evaluation error
        2 = configuration error

    """
    config_path = _resolve_config_path(path)
    try:
        result = evaluate_file(config_path, get_config())
    except ConfchainError as e:
        raise _fail(e) from None

    if output is not OutputFormat.TEXT:
        data = {
            "files": [
                {
                    "file": record.filename,
                    **record.as_namespace(),
                    "include": plain_value(record.include_values),
                    "blocks": [block.type for block in record.remainder],
                }
                for record in result.files
            ]
        }
        _print_structured(data, output)
        return

    for record in result.files:
        rows = [("local", name, value) for name, value in sorted(record.local_values.items())]
        console.print(_values_table(record.filename, rows))
    global_rows = [("global", name, value) for name, value in sorted(result.global_values.items())]
    console.print(_values_table("globals", global_rows))


def globals_command(
    path: Path = typer.Argument(..., help="Configuration file, or a directory holding the default file"),
    output: OutputFormat = typer.Option(
        OutputFormat.TEXT,
        "--format",
        "-f",
        help="Output format: text, json or yaml",
    ),
) -> None:
    """Evaluate the globals block of one file on its own, ignoring includes."""
    config_path = _resolve_config_path(path)
    try:
        values = evaluate_globals_block(parse_file(config_path), max_sweeps=get_config().max_sweeps)
    except ConfchainError as e:
        raise _fail(e) from None

    if output is not OutputFormat.TEXT:
        _print_structured({"globals": plain_value(values)}, output)
        return
    rows = [("global", name, value) for name, value in sorted(values.items())]
    console.print(_values_table(str(config_path), rows))


def graph_command(
    path: Path = typer.Argument(..., help="Configuration file, or a directory holding the default file"),
) -> None:
    """Show which bindings each binding of an include chain depends on."""
    config_path = _resolve_config_path(path)
    config = get_config()
    try:
        chain = resolve_chain(config_path, max_depth=config.max_include_depth)
        builder = build_graph(chain, config)
    except ConfchainError as e:
        raise _fail(e) from None

    graph = builder.graph
    table = Table(title=f"Dependency graph ({len(chain)} file(s))", show_header=True, header_style="bold")
    table.add_column("Binding", style="cyan")
    table.add_column("File")
    table.add_column("Depends on")
    for vertex_id, vertex in graph.binding_vertices():
        dependencies = [graph.label(source) for source in graph.predecessors(vertex_id) if source != graph.root_id]
        table.add_row(
            vertex.binding.label,
            vertex.binding.filename,
            ", ".join(dependencies) if dependencies else "-",
        )
    console.print(table)
    logger.debug("Graph has %d vertices and %d edges", len(graph), len(graph.edges()))


def register(app: typer.Typer) -> None:
    """Register the variable commands on the main app."""
    app.command(name="eval")(eval_command)
    app.command(name="globals")(globals_command)
    app.command(name="graph")(graph_command)
