"""Main CLI entry point for dmn-engine.

Defines the CLI group and registers all subcommands.

Commands:
    evaluate   - Evaluate a decision against an input context
    decisions  - List the decisions declared by a model
    validate   - Compile every decision of a model and report problems
    config     - Configuration commands
        show - Display the effective configuration
        path - Show the default config file path

Usage:
    dmn-engine -h, --help                       Show help message
    dmn-engine -v, --version                    Show version
    dmn-engine evaluate MODEL --var x=1         Evaluate the only decision
    dmn-engine evaluate MODEL -d ID -c in.json  Evaluate decision ID
    dmn-engine decisions MODEL                  List decisions
    dmn-engine validate MODEL                   Validate decisions
    dmn-engine config show                      Display configuration

Subcommand help:
    dmn-engine COMMAND -h                       Show help for a specific command
"""

import sys
from pathlib import Path

import click

from dmn_engine import __version__
from dmn_engine.config import EngineConfig, get_config_path
from dmn_engine.exceptions import InvalidConfigurationError
from dmn_engine.utils.logging import configure_logging

from .commands.config import config
from .commands.decisions import decisions
from .commands.evaluate import evaluate
from .commands.validate import validate


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Quick Start:
  dmn-engine decisions dish.dmn                 See what a model declares
  dmn-engine evaluate dish.dmn \\
    --decision dish \\
    --var season='"Winter"' --var guests=4      Evaluate with inputs

Variables (--var NAME=VALUE):
  Values are read as JSON when possible (4, true, "text", [1, 2]),
  otherwise as plain strings.
"""
        )


def load_engine_config(config_path: Path | None) -> EngineConfig:
    """Load the engine config, falling back to defaults when no file exists.

    An explicitly given path must exist; the default location is optional.
    """
    if config_path is not None:
        return EngineConfig.load_from_file(config_path)
    default_path = get_config_path()
    if default_path.exists():
        return EngineConfig.load_from_file(default_path)
    return EngineConfig()


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to engine config file (default: OS config location)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING"], case_sensitive=False),
    help="Override the configured log level",
)
@click.pass_context
def cli(ctx: click.Context, version: bool, config_path: Path | None, log_level: str | None) -> None:
    """dmn-engine: evaluate DMN decision tables."""
    if version:
        click.echo(f"dmn-engine {__version__}")
        sys.exit(0)

    try:
        engine_config = load_engine_config(config_path)
    except (FileNotFoundError, InvalidConfigurationError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    configure_logging(log_level or engine_config.log_level)
    ctx.obj = engine_config

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(evaluate)
cli.add_command(decisions)
cli.add_command(validate)
cli.add_command(config)


def main() -> None:
    """CLI entry point."""
    cli()
