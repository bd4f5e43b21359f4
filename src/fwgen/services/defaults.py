"""Firewall defaults: typed record, option parsing and loading.

The ``defaults`` section configures the base policies, conntrack and
SYN flood handling, kernel TCP/IP toggles and whether user chains get
hooked in. Loading never fails: malformed options, duplicate sections
and unusable policies are reported to a diagnostics sink and replaced
by safe values.
"""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from fwgen.core.config import ConfigSection
from fwgen.core.exceptions import ValidationError
from fwgen.core.output import console
from fwgen.core.validation import validate_bool, validate_limit, validate_uint
from fwgen.services.catalog import Flag, FlagSet


DEFAULTS_SECTION = "defaults"

# Context used for policy warnings when no defaults section exists
IMPLICIT_LOCATION = "defaults"

DiagnosticSink = Callable[[str, str], None]


class Target(IntEnum):
    """Rule and policy targets, in the order used for policy validation."""
    UNSPEC = 0
    ACCEPT = 1
    REJECT = 2
    DROP = 3
    NOTRACK = 4
    SNAT = 5
    DNAT = 6

    @classmethod
    def parse(cls, value: Any) -> "Target":
        """Parse a target name case-insensitively.

        Raises:
            ValidationError: If the name is unknown
        """
        if isinstance(value, Target):
            return value

        name = str(value).strip().upper()
        if name in cls.__members__ and name != "UNSPEC":
            return cls[name]

        valid = ", ".join(t.name for t in cls if t != cls.UNSPEC)
        raise ValidationError(
            f"Invalid target: {value}",
            hint=f"Valid targets: {valid}",
        )


@dataclass(frozen=True)
class SynFloodRate:
    """Rate limit for new TCP connections."""
    rate: int = 25
    burst: int = 50
    unit: str = "second"

    def to_iptables_args(self) -> str:
        """Render the limit match, or an empty string when rate is 0."""
        if not self.rate:
            return ""

        args = f" -m limit --limit {self.rate}/{self.unit}"
        if self.burst > 0:
            args += f" --limit-burst {self.burst}"
        return args


@dataclass(frozen=True)
class Defaults:
    """Validated firewall defaults for one invocation.

    Build instances with :meth:`create` so that ``flags`` stays in step
    with the boolean toggles.
    """
    policy_input: Target = Target.UNSPEC
    policy_output: Target = Target.UNSPEC
    policy_forward: Target = Target.UNSPEC

    drop_invalid: bool = False

    syn_flood: bool = False
    syn_flood_rate: SynFloodRate = field(default_factory=SynFloodRate)

    tcp_syncookies: bool = True
    tcp_ecn: bool = False
    tcp_westwood: bool = False
    tcp_window_scaling: bool = True

    accept_redirects: bool = False
    accept_source_route: bool = False

    custom_chains: bool = True
    disable_ipv6: bool = False

    flags: FlagSet = field(default_factory=lambda: FlagSet.of(Flag.V4, Flag.V6, Flag.CUSTOM_CHAINS))

    @classmethod
    def create(cls, **overrides: Any) -> "Defaults":
        """Baseline defaults with overrides applied and flags derived."""
        defaults = replace(cls(), **overrides)
        return replace(defaults, flags=derive_flags(defaults))


def derive_flags(defaults: Defaults) -> FlagSet:
    """Compute the flag set from the boolean toggles."""
    flags = [Flag.V4]

    if not defaults.disable_ipv6:
        flags.append(Flag.V6)

    if defaults.custom_chains:
        flags.append(Flag.CUSTOM_CHAINS)

    if defaults.syn_flood:
        flags.append(Flag.SYN_FLOOD)

    return FlagSet.of(*flags)


def _pydantic(validator: Callable[[Any], Any], value: Any) -> Any:
    # pydantic only collects ValueError from validators
    try:
        return validator(value)
    except ValidationError as e:
        raise ValueError(e.message) from e


class DefaultsOptions(BaseModel):
    """Option parser for a ``defaults`` section.

    All fields are optional; an absent option leaves the baseline value.
    """

    model_config = ConfigDict(extra="forbid")

    input: Optional[Target] = None
    forward: Optional[Target] = None
    output: Optional[Target] = None

    drop_invalid: Optional[bool] = None

    syn_flood: Optional[bool] = None
    synflood_protect: Optional[bool] = None
    synflood_rate: Optional[tuple[int, str]] = None
    synflood_burst: Optional[int] = None

    tcp_syncookies: Optional[bool] = None
    tcp_ecn: Optional[bool] = None
    tcp_westwood: Optional[bool] = None
    tcp_window_scaling: Optional[bool] = None

    accept_redirects: Optional[bool] = None
    accept_source_route: Optional[bool] = None

    custom_chains: Optional[bool] = None
    disable_ipv6: Optional[bool] = None

    @field_validator("input", "forward", "output", mode="before")
    @classmethod
    def validate_target(cls, v: Any) -> Optional[Target]:
        return None if v is None else _pydantic(Target.parse, v)

    @field_validator(
        "drop_invalid", "syn_flood", "synflood_protect",
        "tcp_syncookies", "tcp_ecn", "tcp_westwood", "tcp_window_scaling",
        "accept_redirects", "accept_source_route",
        "custom_chains", "disable_ipv6",
        mode="before",
    )
    @classmethod
    def validate_flag(cls, v: Any) -> Optional[bool]:
        return None if v is None else _pydantic(validate_bool, v)

    @field_validator("synflood_rate", mode="before")
    @classmethod
    def validate_rate(cls, v: Any) -> Optional[tuple[int, str]]:
        return None if v is None else _pydantic(validate_limit, v)

    @field_validator("synflood_burst", mode="before")
    @classmethod
    def validate_burst(cls, v: Any) -> Optional[int]:
        return None if v is None else _pydantic(validate_uint, v)


OPTION_NAMES = frozenset(DefaultsOptions.model_fields)

# Options that map one-to-one onto a Defaults field
_DIRECT_OPTIONS = (
    "drop_invalid",
    "tcp_syncookies", "tcp_ecn", "tcp_westwood", "tcp_window_scaling",
    "accept_redirects", "accept_source_route",
    "custom_chains", "disable_ipv6",
)


def parse_options(section: ConfigSection, sink: DiagnosticSink) -> dict[str, Any]:
    """Parse a section's options into Defaults field overrides.

    Unknown options and invalid values are reported and skipped.
    """
    raw: dict[str, Any] = {}
    for key, value in section.options.items():
        if key not in OPTION_NAMES:
            sink(section.location, f"has unknown option '{key}'")
            continue
        raw[key] = value

    try:
        options = DefaultsOptions.model_validate(raw)
    except PydanticValidationError as e:
        invalid = {str(err["loc"][0]) for err in e.errors() if err["loc"]}
        for key in raw:
            if key in invalid:
                sink(section.location, f"option '{key}' has invalid value '{raw[key]}'")
        options = DefaultsOptions.model_validate(
            {k: v for k, v in raw.items() if k not in invalid}
        )

    overrides: dict[str, Any] = {}

    for name, policy in (("input", options.input),
                         ("output", options.output),
                         ("forward", options.forward)):
        if policy is not None:
            overrides[f"policy_{name}"] = policy

    for name in _DIRECT_OPTIONS:
        value = getattr(options, name)
        if value is not None:
            overrides[name] = value

    # Aliases: the one written last in the section wins
    for key in raw:
        if key in ("syn_flood", "synflood_protect") and getattr(options, key) is not None:
            overrides["syn_flood"] = getattr(options, key)

    rate = SynFloodRate()
    if options.synflood_rate is not None:
        rate = replace(rate, rate=options.synflood_rate[0], unit=options.synflood_rate[1])
    if options.synflood_burst is not None:
        rate = replace(rate, burst=options.synflood_burst)
    overrides["syn_flood_rate"] = rate

    return overrides


def check_policy(policy: Target, name: str, location: str, sink: DiagnosticSink) -> Target:
    """Validate a base chain policy, falling back to DROP.

    Anything ranked above DROP cannot be a chain policy.
    """
    if policy == Target.UNSPEC:
        sink(location, f"has no {name} policy specified, defaulting to DROP")
        return Target.DROP

    if policy > Target.DROP:
        sink(location, f"has invalid {name} policy, defaulting to DROP")
        return Target.DROP

    return policy


def load_defaults(
    sections: list[ConfigSection],
    sink: Optional[DiagnosticSink] = None,
) -> Defaults:
    """Load the firewall defaults from configuration sections.

    Only the first ``defaults`` section is used; later ones are reported
    and ignored. Policies are validated whether or not a section exists.

    Args:
        sections: All configuration sections, in file order
        sink: Receives (location, message) warnings

    Returns:
        Fully validated defaults
    """
    if sink is None:
        sink = console.section_warning

    overrides: dict[str, Any] = {}
    location = IMPLICIT_LOCATION
    seen = False

    for section in sections:
        if section.type != DEFAULTS_SECTION:
            continue

        if seen:
            sink(section.location, "ignoring duplicate section")
            continue

        seen = True
        location = section.location
        overrides = parse_options(section, sink)

    defaults = replace(Defaults(), **overrides)

    return Defaults.create(
        **{
            **overrides,
            "policy_input": check_policy(defaults.policy_input, "input", location, sink),
            "policy_output": check_policy(defaults.policy_output, "output", location, sink),
            "policy_forward": check_policy(defaults.policy_forward, "forward", location, sink),
        }
    )
