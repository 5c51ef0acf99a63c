"""
Helper utilities
"""
from datetime import datetime, timezone
from typing import Any, Optional
import json
import math

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def utc_now() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def to_iso_timestamp(dt: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with milliseconds, e.g. 2024-05-01T09:30:00.000Z"""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def days_since(moment: Optional[datetime], now: datetime) -> int:
    """Whole days elapsed between moment and now (floored); a missing moment counts from the epoch"""
    if moment is None:
        moment = EPOCH
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return math.floor((now - moment).total_seconds() / 86400)


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safely divide two numbers"""
    try:
        return numerator / denominator if denominator != 0 else default
    except (TypeError, ZeroDivisionError):
        return default


def calculate_percentage_change(current: float, previous: float) -> float:
    """
    Percentage change between two periods.

    A previous value of zero reports 100% growth when there is any current
    value, and 0% when both periods are empty.
    """
    if previous > 0:
        return ((current - previous) / previous) * 100
    return 100.0 if current > 0 else 0.0


def format_currency(amount: float, symbol: str = "£") -> str:
    """Format amount as currency, two decimals"""
    return f"{symbol}{amount:.2f}"


def _normalize_numbers(value: Any) -> Any:
    """Write integral floats as ints so 1200.0 serializes as 1200"""
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return value
    if isinstance(value, dict):
        return {k: _normalize_numbers(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize_numbers(v) for v in value]
    return value


def canonical_json(data: Any) -> str:
    """
    Compact JSON text used for fingerprinting.

    Keys keep their insertion order (no sorting), so the digest is sensitive
    to field order.
    """
    return json.dumps(
        _normalize_numbers(data),
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def to_base36(value: int) -> str:
    """Encode a signed integer in lowercase base 36"""
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return sign + "".join(reversed(digits))


def string_hash(text: str) -> int:
    """
    31-multiplier rolling hash over UTF-16 code units, wrapped to a signed
    32-bit integer after every step.
    """
    h = 0
    encoded = text.encode("utf-16-le")
    for i in range(0, len(encoded), 2):
        unit = encoded[i] | (encoded[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
        if h >= 0x80000000:
            h -= 0x100000000
    return h


def fingerprint_data(data: Any) -> str:
    """Short change-detection digest of data (base-36 of string_hash)"""
    return to_base36(string_hash(canonical_json(data)))
