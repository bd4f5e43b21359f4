"""Execution context for commands.

The ExecutionContext holds the runtime flags and file locations that
affect how a command runs. It is created once per invocation and passed
to the statefile manager and the output layer.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from fwgen.core.config import ConfigSection, RuntimeSettings, read_sections
from fwgen.core.output import Console, console, Verbosity


@dataclass
class ExecutionContext:
    """Execution context passed to all commands.

    Attributes:
        dry_run: If True, print the stream but leave the statefile alone
        verbosity: Output verbosity level (0-3)
        no_color: If True, disable colored output
        config_path: Path to the firewall configuration file
        state_file: Path to the statefile ledger
    """

    # Runtime flags
    dry_run: bool = False
    verbosity: int = 1
    no_color: bool = False

    # File locations
    config_path: Path = field(default_factory=lambda: RuntimeSettings().config_path)
    state_file: Path = field(default_factory=lambda: RuntimeSettings().state_file)

    # Internal state (initialized lazily)
    _sections: Optional[list[ConfigSection]] = field(default=None, repr=False)
    _console: Console = field(default_factory=lambda: console, repr=False)

    def __post_init__(self) -> None:
        """Configure console after initialization."""
        self._console.configure(
            verbosity=self.verbosity,
            dry_run=self.dry_run,
            no_color=self.no_color,
        )

    @property
    def sections(self) -> list[ConfigSection]:
        """Get configuration sections (lazy loaded)."""
        if self._sections is None:
            self._sections = read_sections(self.config_path)
        return self._sections

    @property
    def console(self) -> Console:
        """Get console for output."""
        return self._console

    @property
    def is_verbose(self) -> bool:
        """Check if verbose output is enabled."""
        return self.verbosity >= Verbosity.VERBOSE


def create_context(
    dry_run: bool = False,
    verbose: int = 0,
    quiet: bool = False,
    no_color: bool = False,
    config: Optional[Path] = None,
    state_file: Optional[Path] = None,
) -> ExecutionContext:
    """Create an execution context from CLI options.

    Args:
        dry_run: Print output without touching the statefile
        verbose: Increase verbosity (can be repeated)
        quiet: Suppress non-essential output
        no_color: Disable colored output
        config: Path to configuration file
        state_file: Path to statefile

    Returns:
        Configured execution context
    """
    if quiet:
        verbosity = Verbosity.QUIET
    else:
        verbosity = min(Verbosity.NORMAL + verbose, Verbosity.DEBUG)

    settings = RuntimeSettings()

    return ExecutionContext(
        dry_run=dry_run,
        verbosity=verbosity,
        no_color=no_color,
        config_path=config or settings.config_path,
        state_file=state_file or settings.state_file,
    )
