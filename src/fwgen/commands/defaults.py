"""Defaults inspection commands."""

import typer

from fwgen.commands import (
    ConfigOption,
    NoColorOption,
    VerboseOption,
    emit,
    handle_error,
)
from fwgen.core import FWGenError, create_context
from fwgen.services.defaults import load_defaults
from fwgen.services.sysctl import render_sysctl


app = typer.Typer(
    name="defaults",
    help="Inspect the validated firewall defaults.",
    no_args_is_help=True,
)


@app.command("show")
def defaults_show(
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Show the defaults after validation.

    Warnings about the configuration are printed first.
    """
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    try:
        defaults = load_defaults(ctx.sections, ctx.console.section_warning)
        rate = defaults.syn_flood_rate

        ctx.console.summary("Firewall defaults", {
            "Input policy": defaults.policy_input.name,
            "Output policy": defaults.policy_output.name,
            "Forward policy": defaults.policy_forward.name,
            "Drop invalid": defaults.drop_invalid,
            "SYN flood protection": defaults.syn_flood,
            "SYN flood limit": f"{rate.rate}/{rate.unit}, burst {rate.burst}",
            "TCP syncookies": defaults.tcp_syncookies,
            "TCP ECN": defaults.tcp_ecn,
            "TCP westwood": defaults.tcp_westwood,
            "TCP window scaling": defaults.tcp_window_scaling,
            "Accept redirects": defaults.accept_redirects,
            "Accept source route": defaults.accept_source_route,
            "Custom chains": defaults.custom_chains,
            "IPv6 disabled": defaults.disable_ipv6,
            "Flags": ", ".join(defaults.flags.to_names()),
        })

    except FWGenError as e:
        handle_error(e)


@app.command("sysctl")
def defaults_sysctl(
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Print sysctl commands for the kernel TCP/IP tunables.

    [bold]Examples:[/bold]

        fwgen defaults sysctl | sh
    """
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    try:
        defaults = load_defaults(ctx.sections, ctx.console.section_warning)
        emit(render_sysctl(defaults))

    except FWGenError as e:
        handle_error(e)
