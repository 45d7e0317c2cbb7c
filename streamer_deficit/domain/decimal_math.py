"""Exact fixed-point helpers for rendering integer token amounts."""
from __future__ import annotations

from datetime import datetime, timezone

SECONDS_PER_DAY = 86_400


def ratio_to_decimal_string(numerator: int, denominator: int, precision: int = 6) -> str:
    """Render ``numerator / denominator`` truncated to ``precision`` digits.

    A zero denominator yields ``"0"``. Trailing fractional zeros are dropped,
    and so is the decimal point when nothing is left after it.
    """
    if denominator == 0:
        return "0"
    sign = "-" if (numerator < 0) != (denominator < 0) else ""
    abs_num = abs(numerator)
    abs_den = abs(denominator)

    integer_part, remainder = divmod(abs_num, abs_den)
    fractional = remainder * 10**precision // abs_den
    fractional_text = str(fractional).rjust(precision, "0").rstrip("0") if precision > 0 else ""
    if not fractional_text:
        if integer_part == 0:
            return "0"
        return f"{sign}{integer_part}"
    return f"{sign}{integer_part}.{fractional_text}"


def format_units(value: int, decimals: int) -> str:
    """Format a raw token amount, keeping at least one fractional digit."""
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0") if decimals > 0 else ""
    return f"{sign}{whole}.{fraction_text or '0'}"


def format_unix_ts(ts: int) -> tuple[str, str]:
    if ts == 0:
        return "0", "not initialized"
    moment = datetime.fromtimestamp(ts, tz=timezone.utc)
    return str(ts), moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def seconds_to_days(seconds: int) -> str:
    return ratio_to_decimal_string(seconds, SECONDS_PER_DAY, 4)
