"""Number token rendering for the JSON writer."""

from __future__ import annotations

import math
import struct
from enum import Enum
from typing import Final


class FloatFormat(Enum):
    """
    Selects how a finite floating-point value is rendered.

    AUTO produces the shortest text that reads back to the same value;
    the other modes honour a caller-supplied digit count.
    """

    AUTO = "auto"
    NDIGITS = "ndigits"  # significant digits, %g style
    POINT_DIGITS = "point_digits"  # digits after the decimal point
    POINT_DIGITS_STRIP_ZEROES = "point_digits_strip_zeroes"


# Significant digits needed to round-trip any IEEE 754 single
_FLOAT32_MAX_DIGITS: Final = 9


def format_int(value: int) -> str:
    """Renders an integer as canonical decimal text."""
    return str(int(value))


def to_float32(value: float) -> float:
    """Rounds a double to the nearest single precision value."""
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def nonfinite_text(value: float) -> str:
    """Textual rendering of NaN and the infinities: nan, inf, -inf."""
    return repr(float(value))


def _shortest_float32(value: float) -> str:
    for digits in range(1, _FLOAT32_MAX_DIGITS + 1):
        text = format(value, f".{digits}g")
        if to_float32(float(text)) == value:
            return text
    return format(value, f".{_FLOAT32_MAX_DIGITS}g")


def format_float(
    value: float,
    mode: FloatFormat = FloatFormat.NDIGITS,
    ndigits: int = 10,
    *,
    single: bool = False,
) -> str:
    """
    Renders a finite float as a JSON number token.

    Args:
        value: The value to render; must be finite
        mode: Rendering mode
        ndigits: Digit count for every mode except AUTO
        single: Treat the value as single precision

    Returns:
        Number token text
    """
    if not math.isfinite(value):
        raise ValueError(f"cannot format non-finite value {value!r}")
    if ndigits < 0:
        raise ValueError("ndigits must be non-negative")

    if single:
        value = to_float32(value)

    if mode is FloatFormat.AUTO:
        return _shortest_float32(value) if single else repr(float(value))
    elif mode is FloatFormat.NDIGITS:
        return format(value, f".{max(ndigits, 1)}g")
    elif mode is FloatFormat.POINT_DIGITS:
        return format(value, f".{ndigits}f")
    else:
        text = format(value, f".{ndigits}f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text
