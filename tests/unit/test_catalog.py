"""Unit tests for the chain catalog and applicability predicate."""

import pytest

from fwgen.services.catalog import (
    DEFAULT_CHAINS,
    EMPTY_FLAGS,
    TOPLEVEL_RULES,
    ChainEntry,
    Family,
    Flag,
    FlagSet,
    Table,
    applies,
    select,
)


class TestFlagSet:
    """Tests for FlagSet."""

    def test_has_family(self):
        """Should report families that are members."""
        flags = FlagSet.of(Flag.V4)
        assert flags.has_family(Family.V4) is True
        assert flags.has_family(Family.V6) is False

    def test_any_family_always_present(self):
        """ANY should match even an empty set."""
        assert EMPTY_FLAGS.has_family(Family.ANY) is True

    def test_has_feature_none_always_passes(self):
        """No required feature should always pass."""
        assert EMPTY_FLAGS.has_feature(None) is True
        assert EMPTY_FLAGS.has_feature(Flag.SYN_FLOOD) is False

    def test_names_round_trip_in_declaration_order(self):
        """Names should come out in enum order regardless of input order."""
        flags = FlagSet.from_names(["syn_flood", "ipv4", "custom_chains"])
        assert flags.to_names() == ["ipv4", "custom_chains", "syn_flood"]
        assert FlagSet.from_names(flags.to_names()) == flags

    def test_from_names_rejects_unknown(self):
        """Unknown flag names should raise ValueError."""
        with pytest.raises(ValueError):
            FlagSet.from_names(["ipv5"])


class TestApplies:
    """Tests for the applies predicate."""

    def test_table_mismatch(self):
        """Entries from another table never apply."""
        entry = ChainEntry(Family.ANY, Table.NAT, None, "x")
        assert applies(entry, Family.V4, Table.FILTER, EMPTY_FLAGS) is False

    def test_any_family_matches_both(self):
        """ANY entries apply to IPv4 and IPv6."""
        entry = ChainEntry(Family.ANY, Table.FILTER, None, "x")
        assert applies(entry, Family.V4, Table.FILTER, EMPTY_FLAGS) is True
        assert applies(entry, Family.V6, Table.FILTER, EMPTY_FLAGS) is True

    def test_specific_family_is_exclusive(self):
        """V4 entries never apply to V6 and vice versa."""
        v4 = ChainEntry(Family.V4, Table.NAT, None, "x")
        v6 = ChainEntry(Family.V6, Table.NAT, None, "y")
        assert applies(v4, Family.V6, Table.NAT, EMPTY_FLAGS) is False
        assert applies(v6, Family.V4, Table.NAT, EMPTY_FLAGS) is False
        assert applies(v4, Family.V4, Table.NAT, EMPTY_FLAGS) is True

    def test_request_family_not_coerced(self):
        """Requesting ANY should not match a family-specific entry."""
        entry = ChainEntry(Family.V4, Table.NAT, None, "x")
        assert applies(entry, Family.ANY, Table.NAT, EMPTY_FLAGS) is False

    def test_required_flag(self):
        """Entries with a required flag need it in the active set."""
        entry = ChainEntry(Family.ANY, Table.FILTER, Flag.SYN_FLOOD, "syn_flood")
        assert applies(entry, Family.V4, Table.FILTER, EMPTY_FLAGS) is False
        assert applies(entry, Family.V4, Table.FILTER, FlagSet.of(Flag.SYN_FLOOD)) is True


class TestCatalog:
    """Tests for the static catalogs."""

    def test_toplevel_rules_need_no_flag(self):
        """Top-level rules must match with an empty flag set."""
        assert all(entry.flag is None for entry in TOPLEVEL_RULES)

    def test_every_toplevel_target_is_declared(self):
        """Each top-level jump target must be a catalog chain of the same table."""
        for rule in TOPLEVEL_RULES:
            target = rule.text.split(" -j ")[1]
            assert any(
                c.text == target and c.table == rule.table and c.family == rule.family
                for c in DEFAULT_CHAINS
            )

    def test_select_keeps_catalog_order(self):
        """select should return entries in catalog order."""
        flags = FlagSet.of(Flag.V4, Flag.CUSTOM_CHAINS, Flag.SYN_FLOOD)
        names = [e.text for e in select(DEFAULT_CHAINS, Family.V4, Table.FILTER, flags)]
        assert names == [
            "delegate_input",
            "delegate_output",
            "delegate_forward",
            "input_rule",
            "output_rule",
            "forwarding_rule",
            "reject",
            "syn_flood",
        ]

    def test_nat_chains_are_ipv4_only(self):
        """No NAT chain should be selected for IPv6."""
        flags = FlagSet.of(Flag.V4, Flag.V6, Flag.CUSTOM_CHAINS)
        assert select(DEFAULT_CHAINS, Family.V6, Table.NAT, flags) == []
        assert len(select(DEFAULT_CHAINS, Family.V4, Table.NAT, flags)) == 4
