"""Field parsing for loose JSON payloads and stored job records.

Every failure is an InvalidInput naming the offending field, so the API can
point the editor at the right control.
"""

import math
from typing import Any, Optional

from .errors import InvalidInput

_TRUE_STRINGS = {"1", "true", "yes", "on"}


def _bounded(value, min_value, max_value):
    # Out-of-range values are clamped, not rejected
    if min_value is not None and value < min_value:
        return min_value
    if max_value is not None and value > max_value:
        return max_value
    return value


def _to_float(value: Any, field: str, kind: str) -> float:
    if isinstance(value, bool):
        raise InvalidInput(f"{field} must be {kind}", field)
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"{field} must be {kind}", field) from exc
    if not math.isfinite(parsed):
        raise InvalidInput(f"{field} must be finite", field)
    return parsed


def safe_int(value: Any, field: str, min_value: Optional[int] = None, max_value: Optional[int] = None, default: Optional[int] = None) -> int:
    """Integer field; floats are rounded, bounds clamp.

    Raises:
        InvalidInput: Missing without a default, or not a number
    """
    if value is None:
        if default is None:
            raise InvalidInput(f"{field} is required", field)
        return default
    return _bounded(int(round(_to_float(value, field, "an integer"))), min_value, max_value)


def safe_float(value: Any, field: str, min_value: Optional[float] = None, max_value: Optional[float] = None, default: Optional[float] = None) -> float:
    """Float field; NaN and infinities are rejected, bounds clamp.

    Args:
        value: Raw value (number or numeric string)
        field: Field name for error messages
        min_value: Lower clamp
        max_value: Upper clamp
        default: Used when value is None (required if omitted)

    Raises:
        InvalidInput: Missing without a default, not a number or not finite
    """
    if value is None:
        if default is None:
            raise InvalidInput(f"{field} is required", field)
        return default
    return _bounded(_to_float(value, field, "a number"), min_value, max_value)


def parse_bool(value: Any, default: bool = False) -> bool:
    """Bool from JSON, query strings or headers ("1", "true", "yes", "on")."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def pick(data: dict, *keys: str) -> Any:
    """Return the first present key (camelCase from the UI, snake_case from jobs)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None
