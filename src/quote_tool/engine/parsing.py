"""
Tolerant value parsing for incrementally-filled quote forms.

Numeric fields that are absent or garbage become 0 instead of raising.
"""
import math
from typing import Any, Optional


def parse_number(value: Any, default: float = 0.0) -> float:
    """Parse a float, returning default for None, blanks, garbage, NaN and infinities."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip().replace(',', '.')
        if value == '':
            return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def parse_int(value: Any, default: int = 0) -> int:
    """Parse an integer, truncating floats ("3.7" -> 3)."""
    number = parse_number(value, default=float(default))
    return int(number)


def parse_optional_str(value: Any) -> Optional[str]:
    """Parse optional string (empty = None)."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_enum_key(value: Any) -> Optional[str]:
    """Normalize an enum label for table lookup ("No Elevator" -> "no-elevator")."""
    if value is None:
        return None
    if hasattr(value, 'value'):
        value = value.value
    text = str(value).strip().lower()
    if not text:
        return None
    return text.replace('_', '-').replace(' ', '-')
