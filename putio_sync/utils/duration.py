"""
Conversion between timedelta values and the Go-style duration text used by the
sync agent's configuration ("2m0s", "1h30m", "1.5s", "250ms").
"""

import re
from datetime import timedelta
from decimal import Decimal, InvalidOperation

_UNIT_NS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

# Largest magnitude a Go time.Duration (int64 nanoseconds) can hold
_MAX_NS = 2**63 - 1

_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> timedelta:
    """
    Parses a duration string such as "300ms", "-1.5h" or "2h45m".

    Raises:
        ValueError: If the string is not a valid duration.
    """
    original = text
    text = text.strip()
    sign = 1
    if text[:1] in ("-", "+"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f"invalid duration {original!r}")

    total_ns = Decimal(0)
    pos = 0
    while pos < len(text):
        match = _COMPONENT.match(text, pos)
        if not match:
            raise ValueError(f"invalid duration {original!r}")
        number, unit = match.groups()
        try:
            total_ns += Decimal(number) * _UNIT_NS[unit]
        except InvalidOperation as e:
            raise ValueError(f"invalid duration {original!r}") from e
        pos = match.end()

    limit = _MAX_NS + 1 if sign < 0 else _MAX_NS
    if total_ns > limit:
        raise ValueError(f"invalid duration {original!r}: out of range")

    # timedelta resolution is one microsecond
    micros = int((total_ns / 1000).to_integral_value())
    return timedelta(microseconds=sign * micros)


def _format_fraction(value: int, precision: int) -> tuple[str, int]:
    """Splits off `precision` decimal digits of value, dropping trailing zeros."""
    digits = ""
    printed = False
    for _ in range(precision):
        digit = value % 10
        printed = printed or digit != 0
        if printed:
            digits = str(digit) + digits
        value //= 10
    return ("." + digits if digits else ""), value


def format_duration(delta: timedelta) -> str:
    """Formats a timedelta the way Go's time.Duration.String() does."""
    ns = (delta // timedelta(microseconds=1)) * 1000
    if ns == 0:
        return "0s"

    negative = ns < 0
    u = abs(ns)

    if u < 1_000_000_000:
        if u < 1_000:
            text = f"{u}ns"
        elif u < 1_000_000:
            frac, whole = _format_fraction(u, 3)
            text = f"{whole}{frac}µs"
        else:
            frac, whole = _format_fraction(u, 6)
            text = f"{whole}{frac}ms"
    else:
        frac, seconds = _format_fraction(u, 9)
        text = f"{seconds % 60}{frac}s"
        minutes = seconds // 60
        if minutes > 0:
            text = f"{minutes % 60}m{text}"
            hours = minutes // 60
            if hours > 0:
                text = f"{hours}h{text}"

    return "-" + text if negative else text
