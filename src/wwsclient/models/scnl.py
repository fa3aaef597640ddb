"""
Channel identity models.

Classes:
    Scnl: Station-Component-Network-Location identifier
    TimeSpan: Ordered (start, end) pair of instants
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from wwsclient.utils.time_utils import (
    epoch_from_j2k,
    j2k_from_epoch,
)

# Location code used when a channel has none
NO_LOCATION = "--"

_SPLIT_PATTERN = re.compile(r'[$_ ]')


@dataclass(frozen=True)
class Scnl:
    """
    Immutable SCNL channel identifier.

    Attributes:
        station: Station code (e.g. "RCM")
        channel: Component/channel code (e.g. "EHZ")
        network: Network code (e.g. "AV")
        location: Location code, "--" when absent

    Example:
        >>> scnl = Scnl("RCM", "EHZ", "AV")
        >>> scnl.to_string(" ")
        'RCM EHZ AV --'
        >>> scnl.to_string("$")
        'RCM$EHZ$AV$--'
    """

    station: str
    channel: str
    network: str
    location: str = NO_LOCATION

    def __post_init__(self):
        for name in ('station', 'channel', 'network'):
            value = getattr(self, name)
            if not value or any(ch.isspace() for ch in value):
                raise ValueError(f"Invalid {name} code: {value!r}")
        if not self.location:
            object.__setattr__(self, 'location', NO_LOCATION)
        elif any(ch.isspace() for ch in self.location):
            raise ValueError(f"Invalid location code: {self.location!r}")

    def to_string(self, separator: str = "$") -> str:
        """Render as the four codes joined by separator."""
        return separator.join((self.station, self.channel, self.network, self.location))

    def __str__(self) -> str:
        return self.to_string("$")

    @classmethod
    def parse(cls, text: str, separator: Optional[str] = None) -> "Scnl":
        """
        Parse 'STA$CHN$NET[$LOC]'.

        Args:
            text: Channel string
            separator: Separator to split on; '$', '_' and ' ' when None

        Raises:
            ValueError: If the string does not hold three or four codes
        """
        text = text.strip()
        parts = text.split(separator) if separator else _SPLIT_PATTERN.split(text)
        if len(parts) not in (3, 4):
            raise ValueError(f"Cannot parse SCNL from {text!r}")
        return cls(*parts)


@dataclass(frozen=True)
class TimeSpan:
    """
    Ordered pair of instants, stored as Unix epoch milliseconds.

    Attributes:
        start_time: Start, epoch milliseconds
        end_time: End, epoch milliseconds
    """

    start_time: int
    end_time: int

    def __post_init__(self):
        if self.end_time < self.start_time:
            raise ValueError(
                f"End time {self.end_time} is before start time {self.start_time}"
            )

    @classmethod
    def from_datetimes(cls, start: datetime, end: datetime) -> "TimeSpan":
        """Build a span from two datetimes (naive means UTC)."""
        def _ms(dt: datetime) -> int:
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return int(round(dt.timestamp() * 1000))
        return cls(_ms(start), _ms(end))

    @classmethod
    def from_j2k(cls, start: float, end: float) -> "TimeSpan":
        """Build a span from two J2kSec values."""
        return cls(int(round(epoch_from_j2k(start) * 1000)),
                   int(round(epoch_from_j2k(end) * 1000)))

    @property
    def start_j2k(self) -> float:
        return j2k_from_epoch(self.start_time / 1000.0)

    @property
    def end_j2k(self) -> float:
        return j2k_from_epoch(self.end_time / 1000.0)

    @property
    def span_seconds(self) -> float:
        return (self.end_time - self.start_time) / 1000.0

    def start_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.start_time / 1000.0, tz=timezone.utc)

    def end_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.end_time / 1000.0, tz=timezone.utc)

    def __str__(self) -> str:
        fmt = '%Y%m%d%H%M%S'
        return f"{self.start_datetime().strftime(fmt)}-{self.end_datetime().strftime(fmt)}"


__all__ = ['Scnl', 'TimeSpan', 'NO_LOCATION']
