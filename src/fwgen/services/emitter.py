"""Default ruleset generation.

Each function is a pure function of its arguments and returns the
command lines for one (table, family) pair in the batch loader grammar.
The phases must be emitted in this order for a table:

1. :func:`declare_base_chains` (filter only)
2. :func:`declare_chains`
3. :func:`head_rules`
4. other subsystems' rules
5. :func:`tail_rules`
"""

from fwgen.services.catalog import (
    DEFAULT_CHAINS,
    EMPTY_FLAGS,
    TOPLEVEL_RULES,
    Family,
    Table,
    select,
)
from fwgen.services.defaults import Defaults, Target


# Delegate chain directions and the custom chain each one hooks
DELEGATE_HOOKS: tuple[tuple[str, str], ...] = (
    ("input", "input_rule"),
    ("output", "output_rule"),
    ("forward", "forwarding_rule"),
)

NAT_HOOKS: tuple[tuple[str, str], ...] = (
    ("prerouting", "prerouting_rule"),
    ("postrouting", "postrouting_rule"),
)

# Base chains can only carry ACCEPT or DROP; REJECT is emulated by a tail rule
BASE_POLICY: dict[Target, str] = {
    Target.ACCEPT: "ACCEPT",
    Target.REJECT: "DROP",
    Target.DROP: "DROP",
}


def _base_policy(policy: Target) -> str:
    # Unvalidated policies fall back the same way the loader does
    return BASE_POLICY.get(policy, "DROP")


def declare_base_chains(table: Table, defaults: Defaults) -> list[str]:
    """Built-in base chain policies for the filter table."""
    if table != Table.FILTER:
        return []

    return [
        f":INPUT {_base_policy(defaults.policy_input)} [0:0]",
        f":FORWARD {_base_policy(defaults.policy_forward)} [0:0]",
        f":OUTPUT {_base_policy(defaults.policy_output)} [0:0]",
    ]


def declare_chains(table: Table, family: Family, defaults: Defaults) -> list[str]:
    """Chain creation lines for every applicable catalog chain."""
    return [
        f":{entry.text} - [0:0]"
        for entry in select(DEFAULT_CHAINS, family, table, defaults.flags)
    ]


def declare_toplevel_jumps(table: Table, family: Family) -> list[str]:
    """Rules hooking the built-in base chains into the delegate chains."""
    return [
        f"-A {entry.text}"
        for entry in select(TOPLEVEL_RULES, family, table, EMPTY_FLAGS)
    ]


def _filter_head_rules(defaults: Defaults) -> list[str]:
    lines = [
        "-A delegate_input -i lo -j ACCEPT",
        "-A delegate_output -o lo -j ACCEPT",
    ]

    if defaults.custom_chains:
        lines.extend(f"-A delegate_{chain} -j {hook}" for chain, hook in DELEGATE_HOOKS)

    for chain, _ in DELEGATE_HOOKS:
        lines.append(f"-A delegate_{chain} -m conntrack --ctstate RELATED,ESTABLISHED -j ACCEPT")
        if defaults.drop_invalid:
            lines.append(f"-A delegate_{chain} -m conntrack --ctstate INVALID -j DROP")

    if defaults.syn_flood:
        lines.append(
            f"-A syn_flood -p tcp --syn{defaults.syn_flood_rate.to_iptables_args()} -j RETURN"
        )
        lines.append("-A syn_flood -j DROP")
        lines.append("-A delegate_input -p tcp --syn -j syn_flood")

    lines.append("-A reject -p tcp -j REJECT --reject-with tcp-reset")
    lines.append("-A reject -j REJECT --reject-with port-unreach")

    return lines


def head_rules(table: Table, family: Family, defaults: Defaults) -> list[str]:
    """Rules that must precede any user-defined rules in the table."""
    lines = declare_toplevel_jumps(table, family)

    if table == Table.FILTER:
        lines.extend(_filter_head_rules(defaults))
    elif table == Table.NAT and defaults.custom_chains:
        lines.extend(f"-A delegate_{chain} -j {hook}" for chain, hook in NAT_HOOKS)

    return lines


def tail_rules(table: Table, family: Family, defaults: Defaults) -> list[str]:
    """Rules that must follow all user-defined rules in the table.

    A REJECT policy becomes a final jump to the shared reject chain.
    """
    if table != Table.FILTER:
        return []

    policies = (
        ("input", defaults.policy_input),
        ("output", defaults.policy_output),
        ("forward", defaults.policy_forward),
    )

    return [
        f"-A delegate_{chain} -j reject"
        for chain, policy in policies
        if policy == Target.REJECT
    ]
