"""Main CLI entry point using Typer.

This module defines the root CLI application. The ruleset commands
(start, stop, reload, flush) live at the top level; other command
groups are registered from submodules.
"""

from typing import Annotated

import typer
from rich.console import Console

from fwgen import __version__
from fwgen.commands import ConfigOption, NoColorOption, handle_error
from fwgen.commands.defaults import app as defaults_app
from fwgen.commands.ruleset import (
    ruleset_flush,
    ruleset_reload,
    ruleset_start,
    ruleset_stop,
)
from fwgen.core import FWGenError, create_context
from fwgen.core.config import init_config


# Create the main Typer app
app = typer.Typer(
    name="fwgen",
    help="Default firewall ruleset compiler.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)

config_app = typer.Typer(
    name="config",
    help="Configuration management.",
    no_args_is_help=True,
)

# Register ruleset commands at the top level
app.command("start")(ruleset_start)
app.command("stop")(ruleset_stop)
app.command("reload")(ruleset_reload)
app.command("flush")(ruleset_flush)

# Register command groups
app.add_typer(defaults_app, name="defaults")
app.add_typer(config_app, name="config")


ForceOption = Annotated[
    bool,
    typer.Option(
        "--force",
        "-f",
        help="Overwrite an existing configuration file.",
        is_flag=True,
    ),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console = Console()
        console.print(f"fwgen version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """fwgen - Default firewall ruleset compiler.

    Generates the base chains, delegate chains, conntrack, SYN flood and
    reject handling of a stateful firewall as iptables-restore input,
    and tears it down again in two safe passes.

    [bold]Examples:[/bold]
        fwgen start | iptables-restore --noflush
        fwgen stop | iptables-restore --noflush
        fwgen defaults show
    """
    pass


# ============================================================================
# Config commands
# ============================================================================

@config_app.command("init")
def config_init(
    config: ConfigOption = None,
    force: ForceOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Initialize a new configuration file.

    Creates a configuration file with a commented defaults section.
    """
    ctx = create_context(no_color=no_color, config=config)

    try:
        init_config(ctx.config_path, force=force)
        ctx.console.success(f"Configuration written to {ctx.config_path}")

    except FWGenError as e:
        handle_error(e)


@config_app.command("path")
def config_path(
    config: ConfigOption = None,
) -> None:
    """Print the configuration and statefile locations in use."""
    ctx = create_context(config=config)
    typer.echo(f"config: {ctx.config_path}")
    typer.echo(f"state: {ctx.state_file}")


if __name__ == "__main__":
    app()
