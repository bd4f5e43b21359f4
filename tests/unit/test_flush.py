"""Unit tests for the two-pass teardown."""

import pytest

from fwgen.services.catalog import DEFAULT_CHAINS, Family, Flag, FlagSet, Table, applies
from fwgen.services.flush import flush_all, flush_rules, reset_policy
from fwgen.services.statefile import EntryType, StatefileEntry


RESETS = [
    ":INPUT ACCEPT [0:0]",
    ":OUTPUT ACCEPT [0:0]",
    ":FORWARD ACCEPT [0:0]",
]


def _entry(*flags, families=(Family.V4,), type=EntryType.DEFAULTS):
    return StatefileEntry(
        type=type,
        flags={family: FlagSet.of(*flags) for family in families},
    )


class TestFlushEmptyState:
    """Tests with an empty statefile."""

    @pytest.mark.parametrize("table", list(Table))
    @pytest.mark.parametrize("family", [Family.V4, Family.V6])
    def test_no_entry_lines(self, table, family):
        """Only filter pass 1 emits anything: the policy resets."""
        expected = RESETS if table == Table.FILTER else []
        assert flush_rules(table, family, 1, []) == expected
        assert flush_rules(table, family, 2, []) == []


class TestFlushPasses:
    """Tests for pass 1 and pass 2."""

    def test_pass1_filter(self):
        """Pass 1 resets policies, deletes jumps and empties chains."""
        entries = [_entry(Flag.V4, Flag.V6, Flag.CUSTOM_CHAINS)]
        assert flush_rules(Table.FILTER, Family.V4, 1, entries) == RESETS + [
            "-D INPUT -j delegate_input",
            "-D OUTPUT -j delegate_output",
            "-D FORWARD -j delegate_forward",
            "-F delegate_input",
            "-F delegate_output",
            "-F delegate_forward",
            "-F input_rule",
            "-F output_rule",
            "-F forwarding_rule",
            "-F reject",
        ]

    def test_pass2_filter(self):
        """Pass 2 only removes chains."""
        entries = [_entry(Flag.V4, Flag.SYN_FLOOD)]
        assert flush_rules(Table.FILTER, Family.V4, 2, entries) == [
            "-X delegate_input",
            "-X delegate_output",
            "-X delegate_forward",
            "-X reject",
            "-X syn_flood",
        ]

    def test_pass1_nat(self):
        """NAT has no policy reset."""
        entries = [_entry(Flag.V4)]
        assert flush_rules(Table.NAT, Family.V4, 1, entries) == [
            "-D PREROUTING -j delegate_prerouting",
            "-D POSTROUTING -j delegate_postrouting",
            "-F delegate_prerouting",
            "-F delegate_postrouting",
        ]

    def test_policy_reset_once_per_call(self):
        """Policy resets do not repeat per entry."""
        entries = [_entry(Flag.V4), _entry(Flag.V4)]
        lines = flush_rules(Table.FILTER, Family.V4, 1, entries)
        assert lines.count(":INPUT ACCEPT [0:0]") == 1
        assert lines.count("-F reject") == 2

    def test_other_entry_types_ignored(self):
        """Only defaults entries are consumed."""
        entries = [_entry(Flag.V4, type=EntryType.ZONE)]
        assert flush_rules(Table.FILTER, Family.V4, 2, entries) == []

    def test_family_without_record(self):
        """An entry recorded only for IPv4 contributes nothing to IPv6."""
        entries = [_entry(Flag.V4, families=(Family.V4,))]
        assert flush_rules(Table.FILTER, Family.V6, 1, entries) == RESETS
        assert flush_rules(Table.FILTER, Family.V6, 2, entries) == []

    def test_invalid_pass(self):
        """Only passes 1 and 2 exist."""
        with pytest.raises(ValueError):
            flush_rules(Table.FILTER, Family.V4, 3, [])

    @pytest.mark.parametrize("table", list(Table))
    @pytest.mark.parametrize("family", [Family.V4, Family.V6])
    def test_only_recorded_chains_touched(self, table, family):
        """Every flushed or removed chain was declared under the recorded flags."""
        recorded = FlagSet.of(Flag.V4, Flag.V6, Flag.SYN_FLOOD)
        entries = [_entry(*recorded, families=(Family.V4, Family.V6))]
        declared = {
            e.text for e in DEFAULT_CHAINS if applies(e, family, table, recorded)
        }

        for pass_no, prefix in ((1, "-F "), (2, "-X ")):
            chains = [
                line[len(prefix):]
                for line in flush_rules(table, family, pass_no, entries)
                if line.startswith(prefix)
            ]
            assert set(chains) <= declared
            assert "input_rule" not in chains


class TestFlushAll:
    """Tests for the unconditional reset."""

    def test_filter(self):
        """Filter resets policies, then flushes and deletes everything."""
        assert flush_all(Table.FILTER) == RESETS + ["-F", "-X"]

    def test_other_tables(self):
        """Other tables only flush and delete."""
        assert flush_all(Table.MANGLE) == ["-F", "-X"]

    def test_reset_policy_filter_only(self):
        """Policy reset is a filter table concept."""
        assert reset_policy(Table.RAW) == []
