"""Ruleset commands: apply, tear down and reset the default ruleset.

Every command prints a batch loader stream to stdout, e.g.::

    fwgen start --family ipv4 | iptables-restore --noflush

With ``--family all`` the IPv4 and IPv6 streams follow each other, each
behind a ``# <loader>`` comment line. Output is only printed once the
statefile has been updated.

The commands are registered at the top level of the CLI.
"""

from typing import Callable

from fwgen.commands import (
    ConfigOption,
    DryRunOption,
    FamilyOption,
    NoColorOption,
    QuietOption,
    StateFileOption,
    VerboseOption,
    emit,
    handle_error,
    parse_family,
)
from fwgen.core import FWGenError, StateError, create_context
from fwgen.services.catalog import Family
from fwgen.services.defaults import load_defaults
from fwgen.services.ruleset import (
    FAMILY_TABLES,
    LOADER_COMMANDS,
    enabled_families,
    render_apply,
    render_flush_all,
    render_teardown,
)
from fwgen.services.statefile import EntryType, StatefileManager


def _render(families: list[Family], render: Callable[[Family], list[str]]) -> list[str]:
    """Concatenate per-family streams.

    With more than one family each stream is preceded by a comment naming
    its loader; both loaders skip comment lines.
    """
    lines: list[str] = []
    for fam in families:
        if len(families) > 1:
            lines.append(f"# {LOADER_COMMANDS[fam]}")
        lines.extend(render(fam))
    return lines


def _names(families: list[Family]) -> str:
    return ", ".join(fam.value for fam in families)


def ruleset_start(
    family: FamilyOption = "ipv4",
    config: ConfigOption = None,
    state_file: StateFileOption = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Print the default ruleset and record it in the statefile.

    Nothing is printed unless the statefile could be updated.

    [bold]Examples:[/bold]

        fwgen start | iptables-restore --noflush
        fwgen start -F ipv6 | ip6tables-restore --noflush
    """
    ctx = create_context(
        dry_run=dry_run,
        verbose=verbose,
        quiet=quiet,
        no_color=no_color,
        config=config,
        state_file=state_file,
    )

    try:
        families = parse_family(family)
        state = StatefileManager(ctx)

        applied = [fam for fam in families if fam in state.applied_families()]
        if applied:
            raise StateError(
                f"Default ruleset already applied for {_names(applied)}",
                path=str(ctx.state_file),
                hint="Run 'fwgen stop' first, or use 'fwgen reload'",
            )

        defaults = load_defaults(ctx.sections, ctx.console.section_warning)
        enabled = enabled_families(defaults)

        for fam in families:
            if fam not in enabled:
                ctx.console.info(f"{fam.value} is disabled in the defaults, nothing to do")

        families = [fam for fam in families if fam in enabled]
        if not families:
            return

        for fam in families:
            ctx.console.step(f"Generating {fam.value} ruleset for {LOADER_COMMANDS[fam]}")
        lines = _render(families, lambda fam: render_apply(fam, defaults))

        state.record_defaults(defaults.flags, families)
        state.save()
        ctx.console.verbose(
            f"Recorded flags {', '.join(defaults.flags.to_names())} for {_names(families)}"
        )

        emit(lines)

    except FWGenError as e:
        handle_error(e)


def ruleset_stop(
    family: FamilyOption = "ipv4",
    state_file: StateFileOption = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Print the two-pass teardown of the recorded default ruleset.

    Only chains recorded in the statefile are touched; the current
    configuration is not consulted.
    """
    ctx = create_context(
        dry_run=dry_run,
        verbose=verbose,
        quiet=quiet,
        no_color=no_color,
        state_file=state_file,
    )

    try:
        families = parse_family(family)
        state = StatefileManager(ctx)
        entries = state.entries()

        for fam in families:
            if fam not in state.applied_families():
                ctx.console.warn(f"No default ruleset recorded for {fam.value}")

        if ctx.is_verbose:
            ctx.console.table(
                "Recorded defaults",
                ["Family", "Flags"],
                [
                    [fam.value, ", ".join(flags.to_names())]
                    for entry in entries
                    if entry.type == EntryType.DEFAULTS
                    for fam, flags in entry.flags.items()
                    if fam in families
                ],
            )

        for fam in families:
            ctx.console.step(f"Generating {fam.value} teardown for {LOADER_COMMANDS[fam]}")
        lines = _render(families, lambda fam: render_teardown(fam, entries))

        removed = state.retire_defaults(families)
        state.save()
        ctx.console.verbose(f"Retired {removed} statefile entries")

        emit(lines)

    except FWGenError as e:
        handle_error(e)


def ruleset_reload(
    family: FamilyOption = "ipv4",
    config: ConfigOption = None,
    state_file: StateFileOption = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Print the teardown of the recorded ruleset followed by a fresh one."""
    ctx = create_context(
        dry_run=dry_run,
        verbose=verbose,
        quiet=quiet,
        no_color=no_color,
        config=config,
        state_file=state_file,
    )

    try:
        families = parse_family(family)
        state = StatefileManager(ctx)
        entries = state.entries()
        defaults = load_defaults(ctx.sections, ctx.console.section_warning)
        enabled = [fam for fam in families if fam in enabled_families(defaults)]

        def render(fam: Family) -> list[str]:
            lines = render_teardown(fam, entries)
            if fam in enabled:
                lines.extend(render_apply(fam, defaults))
            return lines

        lines = _render(families, render)

        state.retire_defaults(families)
        if enabled:
            state.record_defaults(defaults.flags, enabled)
        state.save()

        emit(lines)

    except FWGenError as e:
        handle_error(e)


def ruleset_flush(
    family: FamilyOption = "ipv4",
    state_file: StateFileOption = None,
    dry_run: DryRunOption = False,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Print an unconditional reset of every table.

    Removes all rules and user chains, including ones not created by
    fwgen, and forgets the recorded default ruleset.
    """
    ctx = create_context(
        dry_run=dry_run,
        verbose=verbose,
        quiet=quiet,
        no_color=no_color,
        state_file=state_file,
    )

    try:
        families = parse_family(family)
        lines = _render(
            families,
            lambda fam: [
                line
                for table in FAMILY_TABLES[fam]
                for line in render_flush_all(table)
            ],
        )

        state = StatefileManager(ctx)
        try:
            state.retire_defaults(families)
        except StateError as e:
            ctx.console.warn(f"{e.message}; starting a new statefile")
            state.reset()
        state.save()

        emit(lines)

    except FWGenError as e:
        handle_error(e)
