"""
Ingredient amount parsing and serving-size scaling.

Amounts are free text typed by the user or returned by the AI. Accepted forms:
    "200"      integer
    "2.5"      decimal ("2,5" is accepted as well)
    "1/2"      simple fraction
    "1 1/2"    mixed number
Anything else (negative numbers, "1//2", "1/2/3", "etwa 200", non-ASCII
digits) is rejected. Each digit run is capped at MAX_DIGITS.
"""
import math
import re
from fractions import Fraction

MAX_DIGITS = 15

_N = rf'([0-9]{{1,{MAX_DIGITS}}})'
_INTEGER_RE = re.compile(rf'^{_N}$')
_DECIMAL_RE = re.compile(rf'^{_N}[.,]{_N}$')
_FRACTION_RE = re.compile(rf'^{_N}/{_N}$')
_MIXED_RE = re.compile(rf'^{_N} {_N}/{_N}$')


def parse_amount(text: str | None) -> Fraction | None:
    """
    Parses an amount string into an exact Fraction.
    Returns None for empty or unparseable input; never raises.
    """
    if text is None:
        return None
    s = str(text).strip()
    if not s:
        return None

    m = _INTEGER_RE.match(s)
    if m:
        return Fraction(int(m.group(1)))

    m = _DECIMAL_RE.match(s)
    if m:
        return Fraction(f"{m.group(1)}.{m.group(2)}")

    m = _FRACTION_RE.match(s)
    if m:
        denominator = int(m.group(2))
        if denominator == 0:
            return None
        return Fraction(int(m.group(1)), denominator)

    m = _MIXED_RE.match(s)
    if m:
        denominator = int(m.group(3))
        if denominator == 0:
            return None
        return int(m.group(1)) + Fraction(int(m.group(2)), denominator)

    return None


def is_valid_amount(text: str | None) -> bool:
    """True for an empty amount ("no amount") or any parseable amount."""
    if text is None or not str(text).strip():
        return True
    return parse_amount(text) is not None


def format_number(value) -> str:
    """
    Renders a number for display: whole numbers without a decimal point,
    everything else rounded half-up to at most two decimals, trailing zeros
    stripped.
        Fraction(5, 2) -> "2.5"    200.0 -> "200"    Fraction(1, 8) -> "0.13"

    Floats are taken at their shortest decimal repr, so 2.675 -> "2.68".
    Non-finite floats come back as str(value) and fail is_valid_amount.
    """
    if isinstance(value, float):
        if not math.isfinite(value):
            return str(value)
        value = Fraction(repr(value))
    else:
        value = Fraction(value)

    hundredths = math.floor(abs(value) * 100 + Fraction(1, 2))
    if hundredths == 0:
        return "0"
    sign = "-" if value < 0 else ""
    whole, cents = divmod(hundredths, 100)
    if cents == 0:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{cents:02d}".rstrip('0')


def scale_amount(text: str | None, new_servings, old_servings):
    """
    Rescales an amount from old_servings to new_servings.

    Unparseable text is echoed back unchanged, as is any amount when
    old_servings is 0. Fractions are not preserved: "1/2" doubled is "1",
    "1 1/2" halved is "0.75".
    """
    if not old_servings:
        return text
    value = parse_amount(text)
    if value is None:
        return text
    try:
        scaled = value * Fraction(new_servings) / Fraction(old_servings)
        return format_number(scaled)
    except (ValueError, OverflowError):
        # Result too large to render as a decimal string
        return text
