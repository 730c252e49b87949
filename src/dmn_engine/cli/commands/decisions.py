"""Decisions command for dmn-engine CLI.

Lists the decisions declared by a model.
"""

import sys
from pathlib import Path

import click

from dmn_engine.exceptions import ModelParseError
from dmn_engine.model import parse_model


@click.command()
@click.argument("model", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def decisions(model: Path) -> None:
    """List the decisions declared by MODEL.

    Prints one line per decision: id, logic variant and name.
    """
    try:
        handle = parse_model(model)
    except ModelParseError as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    if not handle.decisions:
        click.echo(f"No decisions declared in {handle.source_label}")
        return

    for definition in handle:
        name = f"  {definition.name}" if definition.name else ""
        click.echo(f"{definition.id}  [{definition.logic_variant.value}]{name}")
