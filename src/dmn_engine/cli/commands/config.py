"""Config command group for dmn-engine CLI.

Provides configuration inspection subcommands.
"""

import json

import click

from dmn_engine.config import EngineConfig, get_config_path


@click.group()
def config() -> None:
    """Configuration commands."""
    pass


@config.command("show")
@click.pass_obj
def config_show(engine_config: EngineConfig) -> None:
    """Display the effective configuration as JSON.

    Shows defaults for any setting not present in the config file.
    """
    click.echo(json.dumps(engine_config.model_dump(), indent=2))


@config.command("path")
def config_path_cmd() -> None:
    """Show config file path.

    Displays the OS-appropriate config file location.
    """
    path = get_config_path()
    click.echo(str(path))

    if not path.exists():
        click.echo("(file does not exist - defaults are used)", err=True)
