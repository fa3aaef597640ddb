"""
Time conversions between wall-clock time and the wave server's J2kSec.

J2kSec is the number of seconds since 2000-01-01 12:00:00 UTC, ignoring leap
seconds. It is the only time representation used on the wire.
"""

import re
from datetime import datetime, timezone
from typing import Union

# Unix time of the J2kSec epoch (2000-01-01T12:00:00Z)
J2K_EPOCH_UNIX = 946728000.0

J2K_EPOCH = datetime(2000, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

_COMPACT_PATTERN = re.compile(r'^\d{12}(\d{2})?$')


def j2k_from_epoch(epoch_seconds: float) -> float:
    """Convert Unix epoch seconds to J2kSec."""
    return epoch_seconds - J2K_EPOCH_UNIX


def epoch_from_j2k(j2k: float) -> float:
    """Convert J2kSec to Unix epoch seconds."""
    return j2k + J2K_EPOCH_UNIX


def j2k_from_datetime(dt: datetime) -> float:
    """
    Convert a datetime to J2kSec.

    Naive datetimes are taken to be UTC, as the server's times are.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - J2K_EPOCH).total_seconds()


def datetime_from_j2k(j2k: float) -> datetime:
    """Convert J2kSec to an aware UTC datetime."""
    return datetime.fromtimestamp(epoch_from_j2k(j2k), tz=timezone.utc)


def j2k_to_string(j2k: float) -> str:
    """Render J2kSec as 'YYYY-MM-DD HH:MM:SS.fff' UTC."""
    return datetime_from_j2k(j2k).strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]


def parse_time(text: str) -> datetime:
    """
    Parse a user supplied time.

    Accepts compact 'YYYYMMDDHHMM' / 'YYYYMMDDHHMMSS' or any ISO-8601 string
    understood by datetime.fromisoformat. Result is UTC.

    Raises:
        ValueError: If the string is in neither format
    """
    text = text.strip()
    if _COMPACT_PATTERN.match(text):
        fmt = '%Y%m%d%H%M%S' if len(text) == 14 else '%Y%m%d%H%M'
        dt = datetime.strptime(text, fmt)
    else:
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_j2k(value: Union[datetime, float, int]) -> float:
    """Coerce a datetime (or a number already in J2kSec) to J2kSec."""
    if isinstance(value, datetime):
        return j2k_from_datetime(value)
    return float(value)
