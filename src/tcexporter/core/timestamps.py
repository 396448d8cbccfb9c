"""TeamCity timestamp codec.

TeamCity renders dates in a compact local-offset form such as
``20240131T142501+0100``. These helpers convert between that form and
timezone-aware datetimes, and map datetimes onto gauge values.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone

from tcexporter.core.errors import TimestampError

TEAMCITY_TIME_FORMAT = "%Y%m%dT%H%M%S%z"
_TEAMCITY_TIME_RE = re.compile(r"\d{8}T\d{6}[+-]\d{4}")

ZERO_INSTANT = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(text: str) -> datetime:
    """
    Parse a TeamCity timestamp into a timezone-aware datetime.

    Surrounding quotes are tolerated. The offset is kept as given; no
    conversion to UTC is applied.

    Raises:
        TimestampError: If the text does not match the TeamCity format.
    """
    raw = (text or "").strip().strip('"')
    if not _TEAMCITY_TIME_RE.fullmatch(raw):
        raise TimestampError(f"Invalid TeamCity timestamp: {text!r}")
    try:
        return datetime.strptime(raw, TEAMCITY_TIME_FORMAT)
    except ValueError as exc:
        raise TimestampError(f"Invalid TeamCity timestamp: {text!r}") from exc


def format_timestamp(value: datetime) -> str:
    """Render a timezone-aware datetime in the TeamCity format."""
    if value.tzinfo is None:
        raise TimestampError("TeamCity timestamps require a timezone offset.")
    return value.strftime(TEAMCITY_TIME_FORMAT)


def to_gauge(value: datetime | None) -> float:
    """Return Unix seconds for a datetime, or 0 for a missing one."""
    if value is None:
        value = ZERO_INSTANT
    return float(int(value.timestamp()))
