"""Command groups for the fwgen CLI."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from fwgen.core import FWGenError, console
from fwgen.core.exceptions import ValidationError
from fwgen.services.catalog import Family


# Type aliases for common options
DryRunOption = Annotated[
    bool,
    typer.Option(
        "--dry-run",
        help="Print the command stream but leave the statefile untouched.",
        is_flag=True,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase output verbosity. Can be repeated (-v, -vv).",
    ),
]

QuietOption = Annotated[
    bool,
    typer.Option(
        "--quiet",
        "-q",
        help="Suppress non-essential output. Warnings and errors are still shown.",
        is_flag=True,
    ),
]

NoColorOption = Annotated[
    bool,
    typer.Option(
        "--no-color",
        help="Disable colored output.",
        is_flag=True,
    ),
]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Path to firewall configuration file. Default: $FWGEN_CONFIG_PATH or /etc/fwgen/firewall.yaml",
        dir_okay=False,
    ),
]

StateFileOption = Annotated[
    Optional[Path],
    typer.Option(
        "--state-file",
        "-s",
        help="Path to statefile. Default: $FWGEN_STATE_FILE or /var/run/fwgen.state",
        dir_okay=False,
    ),
]

FamilyOption = Annotated[
    str,
    typer.Option(
        "--family",
        "-F",
        help="Address family to generate for (ipv4, ipv6, all).",
    ),
]


def parse_family(value: str) -> list[Family]:
    """Parse and validate an address family name.

    ``all`` selects both families, IPv4 first.

    Raises:
        ValidationError: If the family is unknown
    """
    aliases = {
        "4": [Family.V4],
        "ipv4": [Family.V4],
        "6": [Family.V6],
        "ipv6": [Family.V6],
        "all": [Family.V4, Family.V6],
    }
    try:
        return aliases[value.strip().lower()]
    except KeyError:
        raise ValidationError(
            f"Invalid address family: {value}",
            hint="Valid families: ipv4, ipv6, all",
        )


def emit(lines: list[str]) -> None:
    """Write generated command lines to stdout, unformatted."""
    for line in lines:
        typer.echo(line)


def handle_error(error: FWGenError) -> None:
    """Handle an FWGenError by printing formatted error and exiting."""
    console.error(error.message)

    if error.details:
        for detail in error.details:
            console.print(f"  [dim]{detail}[/dim]")

    if error.hint:
        console.hint(error.hint)

    raise typer.Exit(error.exit_code)
