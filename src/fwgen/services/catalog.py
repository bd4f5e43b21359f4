"""Default chain catalog and the shared applicability predicate.

Two ordered, immutable catalogs describe everything the defaults layer
creates:

- ``DEFAULT_CHAINS``: user chains, in dependency order (delegate chains
  before the custom chains they jump to, the shared ``reject`` chain
  before anything that may target it)
- ``TOPLEVEL_RULES``: rules on built-in base chains that hand traffic
  to the delegate chains

Every generation and teardown step walks one of these catalogs through
:func:`applies`; they only differ in the flag set they pass and the
command template they print.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Optional


class Family(str, Enum):
    """Address family."""
    ANY = "any"
    V4 = "ipv4"
    V6 = "ipv6"


class Table(str, Enum):
    """Packet filter table."""
    FILTER = "filter"
    NAT = "nat"
    MANGLE = "mangle"
    RAW = "raw"


class Flag(str, Enum):
    """Family and feature markers carried in a flag set."""
    V4 = "ipv4"
    V6 = "ipv6"
    CUSTOM_CHAINS = "custom_chains"
    SYN_FLOOD = "syn_flood"


FAMILY_FLAGS: dict[Family, Flag] = {
    Family.V4: Flag.V4,
    Family.V6: Flag.V6,
}


@dataclass(frozen=True)
class FlagSet:
    """Fixed-membership set of family and feature markers."""
    members: frozenset[Flag] = field(default_factory=frozenset)

    @classmethod
    def of(cls, *flags: Flag) -> "FlagSet":
        return cls(frozenset(flags))

    @classmethod
    def from_names(cls, names: Iterable[str]) -> "FlagSet":
        """Build from flag names, e.g. as recorded in a statefile.

        Raises:
            ValueError: If a name is not a known flag
        """
        return cls(frozenset(Flag(name) for name in names))

    def to_names(self) -> list[str]:
        """Flag names in declaration order."""
        return [flag.value for flag in Flag if flag in self.members]

    def has_family(self, family: Family) -> bool:
        if family == Family.ANY:
            return True
        return FAMILY_FLAGS[family] in self.members

    def has_feature(self, flag: Optional[Flag]) -> bool:
        if flag is None:
            return True
        return flag in self.members

    def __contains__(self, flag: object) -> bool:
        return flag in self.members

    def __iter__(self) -> Iterator[Flag]:
        return iter(flag for flag in Flag if flag in self.members)

    def __bool__(self) -> bool:
        return bool(self.members)


EMPTY_FLAGS = FlagSet()


@dataclass(frozen=True)
class ChainEntry:
    """A catalog record.

    Attributes:
        family: Family the entry belongs to (ANY matches both)
        table: Table the entry lives in
        flag: Feature that must be active, or None
        text: Chain name, or rule text for top-level rules
    """
    family: Family
    table: Table
    flag: Optional[Flag]
    text: str


def _entry(family: Family, table: Table, flag: Optional[Flag], text: str) -> ChainEntry:
    return ChainEntry(family=family, table=table, flag=flag, text=text)


DEFAULT_CHAINS: tuple[ChainEntry, ...] = (
    _entry(Family.ANY, Table.FILTER, None, "delegate_input"),
    _entry(Family.ANY, Table.FILTER, None, "delegate_output"),
    _entry(Family.ANY, Table.FILTER, None, "delegate_forward"),
    _entry(Family.ANY, Table.FILTER, Flag.CUSTOM_CHAINS, "input_rule"),
    _entry(Family.ANY, Table.FILTER, Flag.CUSTOM_CHAINS, "output_rule"),
    _entry(Family.ANY, Table.FILTER, Flag.CUSTOM_CHAINS, "forwarding_rule"),
    _entry(Family.ANY, Table.FILTER, None, "reject"),
    _entry(Family.ANY, Table.FILTER, Flag.SYN_FLOOD, "syn_flood"),

    _entry(Family.V4, Table.NAT, None, "delegate_prerouting"),
    _entry(Family.V4, Table.NAT, None, "delegate_postrouting"),
    _entry(Family.V4, Table.NAT, Flag.CUSTOM_CHAINS, "prerouting_rule"),
    _entry(Family.V4, Table.NAT, Flag.CUSTOM_CHAINS, "postrouting_rule"),

    _entry(Family.ANY, Table.MANGLE, None, "mssfix"),
    _entry(Family.ANY, Table.RAW, None, "notrack"),
)

TOPLEVEL_RULES: tuple[ChainEntry, ...] = (
    _entry(Family.ANY, Table.FILTER, None, "INPUT -j delegate_input"),
    _entry(Family.ANY, Table.FILTER, None, "OUTPUT -j delegate_output"),
    _entry(Family.ANY, Table.FILTER, None, "FORWARD -j delegate_forward"),

    _entry(Family.V4, Table.NAT, None, "PREROUTING -j delegate_prerouting"),
    _entry(Family.V4, Table.NAT, None, "POSTROUTING -j delegate_postrouting"),

    _entry(Family.ANY, Table.MANGLE, None, "FORWARD -j mssfix"),
    _entry(Family.ANY, Table.RAW, None, "PREROUTING -j notrack"),
)


def applies(entry: ChainEntry, family: Family, table: Table, active_flags: FlagSet) -> bool:
    """Check whether a catalog entry belongs to a (table, family) request.

    The requested family must equal the entry's family unless the entry
    is declared for ANY; there is no coercion on the request side.
    """
    if entry.table != table:
        return False

    if entry.family != Family.ANY and entry.family != family:
        return False

    return active_flags.has_feature(entry.flag)


def select(
    catalog: Iterable[ChainEntry],
    family: Family,
    table: Table,
    active_flags: FlagSet,
) -> list[ChainEntry]:
    """Catalog entries matching the request, in catalog order."""
    return [e for e in catalog if applies(e, family, table, active_flags)]
