"""Statefile ledger.

Records what the defaults layer created so that a later teardown can
remove exactly that, even if the configuration has changed since. The
file is YAML::

    version: 1
    last_modified: '2026-10-19T12:00:00'
    entries:
      - type: defaults
        flags:
          ipv4: [ipv4, ipv6, custom_chains]
          ipv6: [ipv4, ipv6, custom_chains]

An entry is appended when a ruleset is applied and retired once both
flush passes have been printed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml

from fwgen.core.context import ExecutionContext
from fwgen.core.exceptions import StateError
from fwgen.services.catalog import Family, FlagSet


STATEFILE_VERSION = 1


class EntryType(str, Enum):
    """Kind of state an entry describes."""
    DEFAULTS = "defaults"
    ZONE = "zone"
    IPSET = "ipset"


@dataclass
class StatefileEntry:
    """One ledger entry: a kind and the flags recorded per family."""
    type: EntryType = EntryType.DEFAULTS
    flags: dict[Family, FlagSet] = field(default_factory=dict)

    def flags_for(self, family: Family) -> Optional[FlagSet]:
        """Recorded flags for a family, or None if it was never applied."""
        return self.flags.get(family)

    def to_dict(self) -> dict:
        """Convert to dictionary for YAML serialization."""
        return {
            "type": self.type.value,
            "flags": {
                family.value: flags.to_names()
                for family, flags in self.flags.items()
            },
        }

    @classmethod
    def from_dict(cls, d: dict) -> "StatefileEntry":
        """Create from dictionary (YAML deserialization).

        Raises:
            ValueError: On unknown entry types, families or flags
        """
        flags = {}
        for name, names in (d.get("flags") or {}).items():
            family = Family(name)
            if family == Family.ANY:
                raise ValueError(f"flags recorded for unspecific family '{name}'")
            flags[family] = FlagSet.from_names(names or [])

        return cls(
            type=EntryType(d.get("type", EntryType.DEFAULTS.value)),
            flags=flags,
        )


@dataclass
class Statefile:
    """In-memory ledger contents."""
    version: int = STATEFILE_VERSION
    last_modified: Optional[str] = None
    entries: list[StatefileEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for YAML serialization."""
        return {
            "version": self.version,
            "last_modified": self.last_modified,
            "entries": [e.to_dict() for e in self.entries],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Statefile":
        """Create from dictionary (YAML deserialization)."""
        return cls(
            version=d.get("version", STATEFILE_VERSION),
            last_modified=d.get("last_modified"),
            entries=[StatefileEntry.from_dict(e) for e in d.get("entries") or []],
        )


class StatefileManager:
    """Loads, updates and saves the statefile while respecting dry-run mode."""

    def __init__(self, ctx: ExecutionContext) -> None:
        """Initialize statefile manager.

        Args:
            ctx: Execution context
        """
        self.ctx = ctx
        self._state: Optional[Statefile] = None

    @property
    def path(self) -> Path:
        return self.ctx.state_file

    @property
    def state(self) -> Statefile:
        """Get current state, loading if necessary."""
        if self._state is None:
            self._state = self.load()
        return self._state

    def load(self) -> Statefile:
        """Load state from file.

        Returns:
            Statefile contents, or an empty ledger if the file doesn't exist

        Raises:
            StateError: If the file cannot be parsed
        """
        if not self.path.exists():
            return Statefile()

        try:
            with open(self.path) as f:
                data = yaml.safe_load(f) or {}
            return Statefile.from_dict(data)
        except (yaml.YAMLError, ValueError, AttributeError) as e:
            raise StateError(
                f"Cannot parse statefile: {e}",
                path=str(self.path),
                hint="Use 'fwgen flush' to reset the firewall unconditionally",
            ) from e
        except OSError as e:
            raise StateError(f"Cannot read statefile: {e}", path=str(self.path)) from e

    def save(self) -> None:
        """Save current state to file."""
        if self._state is None:
            return

        self._state.last_modified = datetime.now().isoformat()

        if self.ctx.dry_run:
            self.ctx.console.dry_run_msg(f"save state to {self.path}")
            return

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                yaml.dump(
                    self._state.to_dict(),
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                )
        except OSError as e:
            raise StateError(f"Cannot write statefile: {e}", path=str(self.path)) from e

        self.ctx.console.debug(f"State saved to {self.path}")

    def reset(self) -> None:
        """Replace the current state with an empty ledger."""
        self._state = Statefile()

    def entries(self) -> list[StatefileEntry]:
        """All ledger entries, in order."""
        return list(self.state.entries)

    def applied_families(self) -> list[Family]:
        """Families that currently have a defaults record."""
        recorded = {
            family
            for entry in self.state.entries
            if entry.type == EntryType.DEFAULTS
            for family in entry.flags
        }
        return [f for f in (Family.V4, Family.V6) if f in recorded]

    def record_defaults(self, flags: FlagSet, families: list[Family]) -> StatefileEntry:
        """Append a defaults entry recording the flags for each family.

        Any earlier record for the same families is replaced.

        Args:
            flags: Flag set the ruleset was generated with
            families: Families the ruleset was applied to

        Returns:
            The new entry
        """
        self.retire_defaults(families)

        entry = StatefileEntry(
            type=EntryType.DEFAULTS,
            flags={family: flags for family in families},
        )
        self.state.entries.append(entry)
        return entry

    def retire_defaults(self, families: list[Family]) -> int:
        """Forget the given families from all defaults entries.

        Entries left without any family record are dropped.

        Returns:
            Number of entries removed
        """
        kept = []
        for entry in self.state.entries:
            if entry.type == EntryType.DEFAULTS:
                for family in families:
                    entry.flags.pop(family, None)
                if not entry.flags:
                    continue
            kept.append(entry)

        removed = len(self.state.entries) - len(kept)
        self.state.entries = kept
        return removed
