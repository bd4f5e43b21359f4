"""Ruleset compiler services: catalog, defaults, emitter, flush and ledger."""

from fwgen.services.catalog import Family, Flag, FlagSet, Table, applies
from fwgen.services.defaults import Defaults, Target, load_defaults
from fwgen.services.statefile import StatefileEntry, StatefileManager

__all__ = [
    "Family",
    "Flag",
    "FlagSet",
    "Table",
    "applies",
    "Defaults",
    "Target",
    "load_defaults",
    "StatefileEntry",
    "StatefileManager",
]
