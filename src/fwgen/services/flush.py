"""Teardown of the default ruleset.

Removal runs in two passes per (table, family) so that the state never
references a chain that no longer exists, even if the streams are
applied separately:

- pass 1 neutralizes base chain policies, deletes the top-level jumps
  and empties every default chain
- pass 2 removes the (now unreferenced, empty) chains

Which chains get touched is decided by the flags recorded in the
statefile when the ruleset was created, not by the current
configuration.
"""

from typing import Iterable

from fwgen.services.catalog import DEFAULT_CHAINS, TOPLEVEL_RULES, Family, Table, select
from fwgen.services.statefile import EntryType, StatefileEntry


FLUSH_PASSES = (1, 2)


def reset_policy(table: Table) -> list[str]:
    """Set the built-in filter chains back to ACCEPT."""
    if table != Table.FILTER:
        return []

    return [
        ":INPUT ACCEPT [0:0]",
        ":OUTPUT ACCEPT [0:0]",
        ":FORWARD ACCEPT [0:0]",
    ]


def flush_rules(
    table: Table,
    family: Family,
    pass_no: int,
    entries: Iterable[StatefileEntry],
) -> list[str]:
    """Teardown lines for one pass over the recorded defaults.

    Args:
        table: Table to tear down
        family: Address family
        pass_no: 1 (unlink and empty) or 2 (remove)
        entries: Statefile entries; only defaults entries are used

    Raises:
        ValueError: If pass_no is not 1 or 2
    """
    if pass_no not in FLUSH_PASSES:
        raise ValueError(f"Invalid flush pass: {pass_no}")

    lines = reset_policy(table) if pass_no == 1 else []

    for entry in entries:
        if entry.type != EntryType.DEFAULTS:
            continue

        flags = entry.flags_for(family)
        if flags is None:
            continue

        if pass_no == 1:
            lines.extend(f"-D {e.text}" for e in select(TOPLEVEL_RULES, family, table, flags))
            lines.extend(f"-F {e.text}" for e in select(DEFAULT_CHAINS, family, table, flags))
        else:
            lines.extend(f"-X {e.text}" for e in select(DEFAULT_CHAINS, family, table, flags))

    return lines


def flush_all(table: Table) -> list[str]:
    """Unconditionally empty and remove everything in a table."""
    return reset_policy(table) + ["-F", "-X"]
