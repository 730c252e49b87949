"""Validate command for dmn-engine CLI.

Compiles every decision of a model and reports the ones that fail.
"""

import sys
from pathlib import Path

import click

from dmn_engine.compiler import DecisionCompiler
from dmn_engine.config import EngineConfig
from dmn_engine.exceptions import DmnParseError, ModelParseError
from dmn_engine.model import parse_model


@click.command()
@click.argument("model", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def validate(engine_config: EngineConfig, model: Path) -> None:
    """Validate the decisions of MODEL.

    Checks that the model:
    - Is well-formed DMN XML with unique decision ids
    - Declares at least one decision
    - Uses supported decision logic (decision tables)
    - Has well-formed tables (hit policy, rule arity, cell syntax)

    Exit codes:
        0: All decisions compile
        1: Model invalid or at least one decision failed
    """
    try:
        handle = parse_model(model)
    except ModelParseError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    if not handle.decisions:
        click.echo(f"✗ Unable to find decision in model '{handle.source_label}'.", err=True)
        sys.exit(1)

    compiler = DecisionCompiler(
        default_hit_policy=engine_config.default_hit_policy,
        strict_types=engine_config.strict_types,
    )
    failures = 0
    for definition in handle:
        try:
            table = compiler.compile(definition)
        except DmnParseError as e:
            failures += 1
            click.echo(f"✗ {definition.id}: {e}", err=True)
            continue
        rule_count = len(table.rules)
        click.echo(
            f"✓ {definition.id}: {table.hit_policy.value}, "
            f"{rule_count} rule{'s' if rule_count != 1 else ''}"
        )

    if failures:
        click.echo(f"{failures} of {len(handle.decisions)} decision(s) invalid", err=True)
        sys.exit(1)
