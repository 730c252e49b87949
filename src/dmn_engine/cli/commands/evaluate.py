"""Evaluate command for dmn-engine CLI.

Evaluates one decision of a model and prints the result set as JSON.
"""

import json
import sys
from pathlib import Path
from typing import Any

import click

from dmn_engine.config import EngineConfig
from dmn_engine.engine import DmnEngine
from dmn_engine.exceptions import DmnEngineError


def parse_variable(raw: str) -> tuple[str, Any]:
    """Parse a NAME=VALUE option.

    The value is decoded as JSON when possible, otherwise kept as a string.

    Raises:
        click.BadParameter: If the option has no "=" or an empty name.
    """
    name, sep, value = raw.partition("=")
    name = name.strip()
    if not sep or not name:
        raise click.BadParameter(f"expected NAME=VALUE, got '{raw}'", param_hint="--var")
    try:
        return name, json.loads(value)
    except json.JSONDecodeError:
        return name, value


def load_context_file(path: Path) -> dict[str, Any]:
    """Load an input context from a JSON object file.

    Raises:
        click.BadParameter: If the file is not valid JSON or not an object.
    """
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"invalid JSON in {path}: {e}", param_hint="--context") from e
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must contain a JSON object", param_hint="--context")
    return data


@click.command()
@click.argument("model", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--decision", "-d", "decision_id", help="Decision id (default: the model's only decision)")
@click.option("--var", "variables", multiple=True, metavar="NAME=VALUE", help="Input variable (repeatable)")
@click.option(
    "--context",
    "-c",
    "context_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file with input variables (--var overrides)",
)
@click.pass_obj
def evaluate(
    engine_config: EngineConfig,
    model: Path,
    decision_id: str | None,
    variables: tuple[str, ...],
    context_file: Path | None,
) -> None:
    """Evaluate a decision of MODEL and print the result as JSON.

    Exit codes:
        0: Decision evaluated (the result may be empty)
        1: Model, decision or evaluation error
    """
    context: dict[str, Any] = load_context_file(context_file) if context_file else {}
    for raw in variables:
        name, value = parse_variable(raw)
        context[name] = value

    engine = DmnEngine(engine_config)
    try:
        decision = engine.parse_decision(model, decision_id)
        result = engine.evaluate(decision, context)
    except DmnEngineError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(result.to_list(), indent=2, default=str))
