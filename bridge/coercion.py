"""
Loose value coercion for PrintLogic payloads.

PrintLogic sends numbers as strings ("20", "12.50", "20%") and flags as
anything from real booleans to "YES". These helpers are the only place
that guesses at types.
"""
import math
import re
from typing import Any, Optional

# Leading decimal number, the way a lenient number parser reads "20%" or "12.5 GBP"
_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?)")

_TRUE_WORDS = {"true", "1", "yes"}


def to_bool(value: Any) -> bool:
    """True for a literal True or the text true/1/yes (any case); False otherwise."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_WORDS


def parse_number(value: Any) -> Optional[float]:
    """
    Parse the leading number from *value*.

    Returns None for None, empty text, or text that does not start with a number.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return None if math.isnan(number) else number
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return None
    return float(match.group(1))


def first_non_empty(*values: Any) -> Optional[Any]:
    """Return the first value that is not None and not blank text."""
    for value in values:
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def format_quantity(qty: float) -> str:
    """Render 2.0 as "2" and 1.5 as "1.5" for line descriptions."""
    if qty.is_integer():
        return str(int(qty))
    return repr(qty)
