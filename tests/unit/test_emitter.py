"""Unit tests for default ruleset generation."""

import pytest
from unittest.mock import Mock

from fwgen.core.config import ConfigSection
from fwgen.services.catalog import DEFAULT_CHAINS, Family, Table, applies
from fwgen.services.defaults import Defaults, SynFloodRate, Target, load_defaults
from fwgen.services.emitter import (
    declare_base_chains,
    declare_chains,
    declare_toplevel_jumps,
    head_rules,
    tail_rules,
)


POLICIES = dict(
    policy_input=Target.ACCEPT,
    policy_output=Target.ACCEPT,
    policy_forward=Target.DROP,
)


@pytest.fixture
def baseline():
    """Defaults loaded without any configuration section."""
    return load_defaults([], Mock())


class TestDeclareChains:
    """Tests for chain declarations."""

    def test_baseline_filter_v4(self, baseline):
        """Baseline declares delegate, custom and reject chains but no syn_flood."""
        assert declare_chains(Table.FILTER, Family.V4, baseline) == [
            ":delegate_input - [0:0]",
            ":delegate_output - [0:0]",
            ":delegate_forward - [0:0]",
            ":input_rule - [0:0]",
            ":output_rule - [0:0]",
            ":forwarding_rule - [0:0]",
            ":reject - [0:0]",
        ]

    @pytest.mark.parametrize("table", list(Table))
    @pytest.mark.parametrize("family", [Family.V4, Family.V6])
    def test_exactly_applicable_entries(self, table, family):
        """Declared chains are exactly the applicable catalog entries, in order."""
        defaults = Defaults.create(syn_flood=True, **POLICIES)
        expected = [
            f":{e.text} - [0:0]"
            for e in DEFAULT_CHAINS
            if applies(e, family, table, defaults.flags)
        ]
        assert declare_chains(table, family, defaults) == expected

    def test_nat_v6_empty(self, baseline):
        """NAT chains are IPv4 only."""
        assert declare_chains(Table.NAT, Family.V6, baseline) == []
        assert ":delegate_prerouting - [0:0]" in declare_chains(Table.NAT, Family.V4, baseline)

    def test_without_custom_chains(self):
        """Custom chains are not declared when disabled."""
        defaults = Defaults.create(custom_chains=False, **POLICIES)
        lines = declare_chains(Table.FILTER, Family.V6, defaults)
        assert ":input_rule - [0:0]" not in lines
        assert ":delegate_input - [0:0]" in lines


class TestDeclareBaseChains:
    """Tests for built-in chain policies."""

    def test_filter_policies(self):
        """REJECT is declared as DROP on the base chain."""
        defaults = Defaults.create(
            policy_input=Target.ACCEPT,
            policy_output=Target.DROP,
            policy_forward=Target.REJECT,
        )
        assert declare_base_chains(Table.FILTER, defaults) == [
            ":INPUT ACCEPT [0:0]",
            ":FORWARD DROP [0:0]",
            ":OUTPUT DROP [0:0]",
        ]

    def test_other_tables(self, baseline):
        """Only the filter table has policies to declare."""
        assert declare_base_chains(Table.NAT, baseline) == []


class TestHeadRules:
    """Tests for head rules."""

    def test_toplevel_jumps(self):
        """Top-level jumps follow the catalog."""
        assert declare_toplevel_jumps(Table.NAT, Family.V4) == [
            "-A PREROUTING -j delegate_prerouting",
            "-A POSTROUTING -j delegate_postrouting",
        ]
        assert declare_toplevel_jumps(Table.NAT, Family.V6) == []

    def test_filter_baseline(self, baseline):
        """Baseline filter head rules."""
        assert head_rules(Table.FILTER, Family.V4, baseline) == [
            "-A INPUT -j delegate_input",
            "-A OUTPUT -j delegate_output",
            "-A FORWARD -j delegate_forward",
            "-A delegate_input -i lo -j ACCEPT",
            "-A delegate_output -o lo -j ACCEPT",
            "-A delegate_input -j input_rule",
            "-A delegate_output -j output_rule",
            "-A delegate_forward -j forwarding_rule",
            "-A delegate_input -m conntrack --ctstate RELATED,ESTABLISHED -j ACCEPT",
            "-A delegate_output -m conntrack --ctstate RELATED,ESTABLISHED -j ACCEPT",
            "-A delegate_forward -m conntrack --ctstate RELATED,ESTABLISHED -j ACCEPT",
            "-A reject -p tcp -j REJECT --reject-with tcp-reset",
            "-A reject -j REJECT --reject-with port-unreach",
        ]

    def test_syn_flood_without_custom_chains(self):
        """SYN flood chain with the configured limit, no custom chain hooks."""
        section = ConfigSection(type="defaults", options={
            "input": "ACCEPT", "output": "ACCEPT", "forward": "REJECT",
            "custom_chains": False,
            "syn_flood": True,
            "synflood_rate": 10,
            "synflood_burst": 20,
        })
        defaults = load_defaults([section], Mock())
        lines = head_rules(Table.FILTER, Family.V4, defaults)

        assert not any(line.endswith("_rule") for line in lines)
        assert (
            "-A syn_flood -p tcp --syn -m limit --limit 10/second --limit-burst 20 -j RETURN"
            in lines
        )
        assert "-A syn_flood -j DROP" in lines
        assert "-A delegate_input -p tcp --syn -j syn_flood" in lines

        ret = lines.index(
            "-A syn_flood -p tcp --syn -m limit --limit 10/second --limit-burst 20 -j RETURN"
        )
        assert lines[ret + 1] == "-A syn_flood -j DROP"

    def test_drop_invalid(self):
        """INVALID drop follows each RELATED,ESTABLISHED accept."""
        defaults = Defaults.create(drop_invalid=True, **POLICIES)
        lines = head_rules(Table.FILTER, Family.V6, defaults)

        for chain in ("input", "output", "forward"):
            accept = lines.index(
                f"-A delegate_{chain} -m conntrack --ctstate RELATED,ESTABLISHED -j ACCEPT"
            )
            assert lines[accept + 1] == f"-A delegate_{chain} -m conntrack --ctstate INVALID -j DROP"

    def test_reject_chain_always_last(self, baseline):
        """The reject chain rules close the filter head rules."""
        defaults = Defaults.create(syn_flood=True, drop_invalid=True, **POLICIES)
        for d in (baseline, defaults):
            assert head_rules(Table.FILTER, Family.V4, d)[-2:] == [
                "-A reject -p tcp -j REJECT --reject-with tcp-reset",
                "-A reject -j REJECT --reject-with port-unreach",
            ]

    def test_nat_hooks(self, baseline):
        """NAT head rules hook the custom chains when enabled."""
        assert head_rules(Table.NAT, Family.V4, baseline) == [
            "-A PREROUTING -j delegate_prerouting",
            "-A POSTROUTING -j delegate_postrouting",
            "-A delegate_prerouting -j prerouting_rule",
            "-A delegate_postrouting -j postrouting_rule",
        ]
        no_custom = Defaults.create(custom_chains=False, **POLICIES)
        assert head_rules(Table.NAT, Family.V4, no_custom) == [
            "-A PREROUTING -j delegate_prerouting",
            "-A POSTROUTING -j delegate_postrouting",
        ]

    def test_mangle_and_raw(self, baseline):
        """Mangle and raw only get their top-level jumps."""
        assert head_rules(Table.MANGLE, Family.V6, baseline) == ["-A FORWARD -j mssfix"]
        assert head_rules(Table.RAW, Family.V4, baseline) == ["-A PREROUTING -j notrack"]

    def test_deterministic(self, baseline):
        """Repeated calls produce identical output."""
        first = head_rules(Table.FILTER, Family.V4, baseline)
        assert head_rules(Table.FILTER, Family.V4, baseline) == first


class TestTailRules:
    """Tests for tail rules."""

    def test_reject_policies(self):
        """REJECT policies jump to the reject chain."""
        defaults = Defaults.create(
            policy_input=Target.REJECT,
            policy_output=Target.ACCEPT,
            policy_forward=Target.REJECT,
        )
        assert tail_rules(Table.FILTER, Family.V4, defaults) == [
            "-A delegate_input -j reject",
            "-A delegate_forward -j reject",
        ]

    def test_no_reject(self, baseline):
        """No tail rules without REJECT policies."""
        assert tail_rules(Table.FILTER, Family.V4, baseline) == []

    def test_filter_only(self):
        """Other tables never get tail rules."""
        defaults = Defaults.create(policy_input=Target.REJECT)
        assert tail_rules(Table.NAT, Family.V4, defaults) == []
