"""Configuration file handling.

Provides:
- Runtime settings (file locations) with environment overrides
- YAML loading of the firewall configuration into typed sections
- Example configuration initialization

The configuration document is either a list of sections or a mapping
with a ``sections`` list. Every section is a mapping with a ``type``,
an optional ``name`` and any number of option keys::

    sections:
      - type: defaults
        input: ACCEPT
        output: ACCEPT
        forward: REJECT
        syn_flood: true
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fwgen.core.exceptions import ConfigurationError
from fwgen.core.output import console


# Default paths
DEFAULT_CONFIG_PATH = Path("/etc/fwgen/firewall.yaml")
DEFAULT_STATE_FILE = Path("/var/run/fwgen.state")

# Keys that describe a section rather than configure it
SECTION_META_KEYS = frozenset({"type", "name"})


class RuntimeSettings(BaseSettings):
    """File locations, overridable through ``FWGEN_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="FWGEN_", extra="ignore")

    config_path: Path = Field(default=DEFAULT_CONFIG_PATH)
    state_file: Path = Field(default=DEFAULT_STATE_FILE)


@dataclass(frozen=True)
class ConfigSection:
    """One section of the firewall configuration.

    Attributes:
        type: Section kind (``defaults``, ``zone``, ...)
        index: Position among sections of the same kind
        name: Optional explicit section name
        options: Option values in file order
    """
    type: str
    index: int = 0
    name: Optional[str] = None
    options: dict[str, Any] = field(default_factory=dict)

    @property
    def location(self) -> str:
        """Location string used in diagnostics."""
        if self.name:
            return self.name
        return f"@{self.type}[{self.index}]"


def parse_sections(
    data: Any,
    sink: Optional[Callable[[str, str], None]] = None,
) -> list[ConfigSection]:
    """Turn a loaded YAML document into typed sections.

    Entries that are not a mapping with a ``type`` are reported and skipped.

    Args:
        data: Parsed YAML (list, mapping with ``sections``, or None)
        sink: Receives (location, message) warnings for skipped entries

    Returns:
        Sections in document order

    Raises:
        ConfigurationError: If the document shape is wrong
    """
    if data is None:
        return []

    if sink is None:
        sink = console.section_warning

    if isinstance(data, dict):
        data = data.get("sections") or []

    if not isinstance(data, list):
        raise ConfigurationError(
            "Configuration must be a list of sections",
            hint="Use a top-level 'sections:' list of mappings with a 'type' key",
        )

    counters: dict[str, int] = {}
    sections = []
    for pos, raw in enumerate(data):
        if not isinstance(raw, dict) or "type" not in raw:
            sink(f"#{pos}", "has no type, skipping")
            continue

        section_type = str(raw["type"])
        index = counters.get(section_type, 0)
        counters[section_type] = index + 1

        name = raw.get("name")
        sections.append(ConfigSection(
            type=section_type,
            index=index,
            name=str(name) if name is not None else None,
            options={k: v for k, v in raw.items() if k not in SECTION_META_KEYS},
        ))

    return sections


def read_sections(path: Path) -> list[ConfigSection]:
    """Load configuration sections from a YAML file.

    A missing file yields no sections, so the built-in baseline applies.

    Raises:
        ConfigurationError: If the file is unreadable or invalid
    """
    if not path.exists():
        return []

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file: {path}",
            details=[str(e)],
        ) from e
    except PermissionError:
        raise ConfigurationError(
            f"Cannot read configuration file: {path}",
            hint="Check file permissions or run with sudo",
        )

    return parse_sections(data)


def get_example_config() -> str:
    """Generate example configuration file content."""
    return """# fwgen firewall configuration
# Exactly one 'defaults' section is honoured; later ones are ignored.

sections:
  - type: defaults
    # Base chain policies: ACCEPT, REJECT or DROP
    input: ACCEPT
    output: ACCEPT
    forward: REJECT

    # Drop packets in conntrack state INVALID
    drop_invalid: false

    # SYN flood protection
    syn_flood: false
    synflood_rate: 25/second
    synflood_burst: 50

    # Kernel TCP/IP tunables (see 'fwgen defaults sysctl')
    tcp_syncookies: true
    tcp_ecn: false
    tcp_westwood: false
    tcp_window_scaling: true
    accept_redirects: false
    accept_source_route: false

    # Hook user chains (input_rule, output_rule, ...) into the ruleset
    custom_chains: true
    disable_ipv6: false
"""


def init_config(path: Path, force: bool = False) -> None:
    """Initialize a new configuration file.

    Args:
        path: Path to create config file
        force: Overwrite if exists

    Raises:
        ConfigurationError: If file exists and force is False
    """
    if path.exists() and not force:
        raise ConfigurationError(
            f"Configuration file already exists: {path}",
            hint="Use --force to overwrite",
        )

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(get_example_config())
    os.chmod(path, 0o644)
