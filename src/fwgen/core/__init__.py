"""Core framework components for fwgen."""

from fwgen.core.exceptions import (
    FWGenError,
    ConfigurationError,
    ValidationError,
    StateError,
)

from fwgen.core.context import ExecutionContext, create_context
from fwgen.core.output import console, Console, Verbosity
from fwgen.core.config import ConfigSection, RuntimeSettings, read_sections

__all__ = [
    # Exceptions
    "FWGenError",
    "ConfigurationError",
    "ValidationError",
    "StateError",
    # Context
    "ExecutionContext",
    "create_context",
    # Output
    "console",
    "Console",
    "Verbosity",
    # Config
    "ConfigSection",
    "RuntimeSettings",
    "read_sections",
]
