# /moviegraph/timestamps.py

import re
from datetime import datetime, timezone

from moviegraph.errors import CoercionError

# date, 'T', time, optional fraction, offset
_INSTANT_PATTERN = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_instant(value: datetime) -> str:
    """
    Renders an instant as an ISO-8601 UTC string with a 'Z' suffix, e.g.
    '2024-05-01T12:00:00Z' or '2024-05-01T12:00:00.250000Z'. Naive datetimes
    are taken to be UTC already.
    """
    if not isinstance(value, datetime):
        raise CoercionError(f"unsupported value {value!r}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_instant(text: str) -> datetime:
    """
    Parses an ISO-8601 instant. An offset is required; the result is an aware
    datetime in UTC. Fractions finer than a microsecond are truncated.
    """
    if not isinstance(text, str):
        raise CoercionError(f"unsupported value {text!r}")
    match = _INSTANT_PATTERN.match(text.strip())
    if not match:
        raise CoercionError(f"unsupported value {text!r}")

    fraction = (match.group("fraction") or "")[:6].ljust(6, "0")
    offset = match.group("offset")
    if offset in ("Z", "z"):
        offset = "+00:00"

    try:
        parsed = datetime.fromisoformat(f"{match.group('base')}.{fraction}{offset}")
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError) as e:
        raise CoercionError(f"unsupported value {text!r}: {e}") from e
