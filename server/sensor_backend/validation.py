# Input coercion for sensor values coming from HTTP bodies and MQTT payloads.

import math
import re
from datetime import datetime
from typing import Any, Optional, Union

LEADING_INT = re.compile(r"\s*([+-]?)(\d+)")


# Numbers and numeric strings -> float; None, "", bools, NaN, infinities and overflow -> None
def to_finite_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_reading(suhu: Any, humidity: Any, lux: Any) -> Optional[tuple]:
    values = (to_finite_number(suhu), to_finite_number(humidity), to_finite_number(lux))
    if any(v is None for v in values):
        return None
    return values


# Leading integer of a query string value: "12abc" -> 12, "5.7" -> 5, "" -> default.
# Raises ValueError when there is no leading integer at all.
def parse_leading_int(raw: Optional[str], default: int, cap: int) -> int:
    if raw is None or raw == "":
        return default
    match = LEADING_INT.match(raw)
    if match is None:
        raise ValueError(f"not an integer: {raw!r}")
    sign, digits = match.groups()
    digits = digits.lstrip("0") or "0"
    # anything this long is past the cap anyway
    value = cap + 1 if len(digits) > len(str(cap)) + 1 else int(digits)
    return -value if sign == "-" else value


def now_local() -> datetime:
    return datetime.now().replace(microsecond=0)


# Optional timestamp -> naive local datetime, whole seconds.
# Strings are ISO 8601 or "YYYY-MM-DD HH:MM:SS"; numbers are epoch milliseconds.
def normalize_timestamp(raw: Union[str, int, float, None]) -> datetime:
    if isinstance(raw, bool):
        raise ValueError("timestamp cannot be a boolean")
    if isinstance(raw, (int, float)):
        try:
            return datetime.fromtimestamp(raw / 1000).replace(microsecond=0)
        except (OverflowError, OSError) as e:
            raise ValueError(f"timestamp out of range: {raw}") from e
    if raw is None or not raw.strip():
        return now_local()

    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed.replace(microsecond=0)
