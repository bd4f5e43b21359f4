"""Table-framed documents for the batch rule loader.

Wraps the emitter and flush output of one table in the ``*<table>`` /
``COMMIT`` framing expected by ``iptables-restore`` and
``ip6tables-restore``.
"""

from typing import Iterable

from fwgen.services import emitter, flush
from fwgen.services.catalog import Family, Flag, Table
from fwgen.services.defaults import Defaults
from fwgen.services.statefile import StatefileEntry


# NAT is an IPv4-only table
FAMILY_TABLES: dict[Family, tuple[Table, ...]] = {
    Family.V4: (Table.FILTER, Table.NAT, Table.MANGLE, Table.RAW),
    Family.V6: (Table.FILTER, Table.MANGLE, Table.RAW),
}

LOADER_COMMANDS: dict[Family, str] = {
    Family.V4: "iptables-restore",
    Family.V6: "ip6tables-restore",
}


def _frame(table: Table, lines: list[str]) -> list[str]:
    return [f"*{table.value}", *lines, "COMMIT"]


def enabled_families(defaults: Defaults) -> list[Family]:
    """Families a ruleset is generated for."""
    families = [Family.V4]
    if Flag.V6 in defaults.flags:
        families.append(Family.V6)
    return families


def render_ruleset(table: Table, family: Family, defaults: Defaults) -> list[str]:
    """Complete default ruleset for one table."""
    return _frame(table, [
        *emitter.declare_base_chains(table, defaults),
        *emitter.declare_chains(table, family, defaults),
        *emitter.head_rules(table, family, defaults),
        *emitter.tail_rules(table, family, defaults),
    ])


def render_flush(
    table: Table,
    family: Family,
    pass_no: int,
    entries: Iterable[StatefileEntry],
) -> list[str]:
    """One teardown pass for one table."""
    return _frame(table, flush.flush_rules(table, family, pass_no, entries))


def render_flush_all(table: Table) -> list[str]:
    """Unconditional reset of one table."""
    return _frame(table, flush.flush_all(table))


def render_apply(family: Family, defaults: Defaults) -> list[str]:
    """Default rulesets for every table of a family."""
    lines: list[str] = []
    for table in FAMILY_TABLES[family]:
        lines.extend(render_ruleset(table, family, defaults))
    return lines


def render_teardown(family: Family, entries: list[StatefileEntry]) -> list[str]:
    """Both teardown passes for every table of a family.

    All tables are unlinked and emptied before any chain is removed.
    """
    lines: list[str] = []
    for pass_no in flush.FLUSH_PASSES:
        for table in FAMILY_TABLES[family]:
            lines.extend(render_flush(table, family, pass_no, entries))
    return lines
