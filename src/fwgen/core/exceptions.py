"""Custom exceptions for the fwgen ruleset compiler.

All exceptions provide:
- Clear error messages
- Optional hints for resolution
- Optional details for debugging
- Exit codes for proper shell integration

The compiler itself never raises for configuration content; option-level
problems are reported as warnings. These exceptions cover the file
handling around it.
"""

from typing import Optional


class FWGenError(Exception):
    """Base exception for all fwgen errors.

    Attributes:
        message: Human-readable error description
        hint: Suggested action to resolve the error
        details: Additional context for debugging
        exit_code: Shell exit code (1-127)
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        *,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or []

    def __str__(self) -> str:
        return self.message


class ConfigurationError(FWGenError):
    """Configuration file errors.

    Raised when:
    - Config file not found or unreadable
    - Invalid YAML syntax
    - Document is not a list of sections
    """
    exit_code = 2


class ValidationError(FWGenError):
    """Option value validation errors.

    Raised when:
    - A policy name is not a known target
    - A rate limit is malformed
    - A boolean option has an unrecognized spelling

    The defaults loader converts these into warnings.
    """
    exit_code = 3


class StateError(FWGenError):
    """Statefile errors.

    Raised when:
    - Statefile contains invalid YAML
    - Statefile cannot be written
    """
    exit_code = 4

    def __init__(
        self,
        message: str,
        *,
        path: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[list[str]] = None,
    ) -> None:
        if path and not details:
            details = [f"Statefile: {path}"]
        super().__init__(message, hint=hint, details=details)
        self.path = path
