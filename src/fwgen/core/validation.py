"""Option value validation utilities.

Provides validation for the scalar option types found in firewall
configuration sections:
- Booleans in their usual configuration spellings
- Rate limits (``25``, ``25/second``, ``10/min``)
- Non-negative integers

All validators return the validated value or raise ValidationError.
"""

import re
from typing import Any

from fwgen.core.exceptions import ValidationError


TRUE_WORDS: frozenset[str] = frozenset({"1", "yes", "on", "true", "enabled"})
FALSE_WORDS: frozenset[str] = frozenset({"0", "no", "off", "false", "disabled"})

# Rate limit units, in the order the limit match understands them
LIMIT_UNITS: tuple[str, ...] = ("second", "minute", "hour", "day")

LIMIT_PATTERN = re.compile(r"^\s*(\d+)\s*(?:/\s*([a-zA-Z]+))?\s*$")


def validate_bool(value: Any) -> bool:
    """Validate a boolean option.

    Args:
        value: A bool, 0/1 integer or one of the usual words

    Returns:
        The boolean value

    Raises:
        ValidationError: If the spelling is not recognized
    """
    if isinstance(value, bool):
        return value

    if isinstance(value, int) and value in (0, 1):
        return bool(value)

    word = str(value).strip().lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False

    raise ValidationError(
        f"Invalid boolean value: {value}",
        hint="Use one of: " + ", ".join(sorted(TRUE_WORDS | FALSE_WORDS)),
    )


def validate_limit_unit(unit: str) -> str:
    """Expand a (possibly abbreviated) rate unit to its full name."""
    unit = unit.lower()
    for name in LIMIT_UNITS:
        if name.startswith(unit):
            return name

    raise ValidationError(
        f"Invalid rate unit: {unit}",
        hint="Use one of: " + ", ".join(LIMIT_UNITS),
    )


def validate_limit(value: Any) -> tuple[int, str]:
    """Validate a rate limit option.

    A bare number means per second.

    Returns:
        Tuple of (rate, unit)

    Raises:
        ValidationError: If the value is malformed
    """
    match = LIMIT_PATTERN.match(str(value))
    if not match:
        raise ValidationError(
            f"Invalid rate limit: {value}",
            hint="Use a form like 25/second or 10/minute",
        )

    rate = int(match.group(1))
    unit = validate_limit_unit(match.group(2)) if match.group(2) else LIMIT_UNITS[0]
    return rate, unit


def validate_uint(value: Any) -> int:
    """Validate a non-negative integer option."""
    if isinstance(value, bool):
        raise ValidationError(f"Invalid integer value: {value}")

    try:
        number = int(str(value).strip())
    except ValueError as e:
        raise ValidationError(f"Invalid integer value: {value}") from e

    if number < 0:
        raise ValidationError(
            f"Invalid integer value: {value}",
            hint="Value must not be negative",
        )

    return number
