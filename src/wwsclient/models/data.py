"""
Result types returned by the client.

Each type has an empty default value. The client returns that default when a
request fails or the server has no data, so callers test ``is_empty`` rather
than catching exceptions.

Classes:
    Wave: Raw waveform samples
    HelicorderData: Per-interval min/max pairs
    RSAMData: RSAM envelope values
"""

from dataclasses import dataclass, field
from typing import List

import numpy as np

from wwsclient.utils.time_utils import j2k_to_string

# Sample value used by the server for gaps in a waveform
NO_DATA = -(2 ** 31)


def _empty_samples() -> np.ndarray:
    return np.zeros(0, dtype=np.int32)


@dataclass
class Wave:
    """
    Raw waveform.

    Attributes:
        start_time: Time of the first sample, J2kSec
        sample_rate: Samples per second
        buffer: Samples as int32; NO_DATA marks gaps
    """

    start_time: float = float('nan')
    sample_rate: float = float('nan')
    buffer: np.ndarray = field(default_factory=_empty_samples)

    @property
    def is_empty(self) -> bool:
        return self.buffer.size == 0

    @property
    def num_samples(self) -> int:
        return int(self.buffer.size)

    @property
    def end_time(self) -> float:
        """Time just after the last sample, J2kSec."""
        if self.is_empty:
            return self.start_time
        return self.start_time + self.num_samples / self.sample_rate

    def times(self) -> np.ndarray:
        """J2kSec timestamp of every sample."""
        return self.start_time + np.arange(self.num_samples) / self.sample_rate

    def gap_mask(self) -> np.ndarray:
        """Boolean mask of gap samples."""
        return self.buffer == NO_DATA

    def to_text(self) -> str:
        """One sample per line."""
        return "\n".join(str(int(v)) for v in self.buffer)

    def __str__(self) -> str:
        if self.is_empty:
            return "Wave(empty)"
        return (f"Wave({self.num_samples} samples @ {self.sample_rate:g} Hz, "
                f"{j2k_to_string(self.start_time)} - {j2k_to_string(self.end_time)})")


@dataclass
class HelicorderData:
    """
    Helicorder rows.

    Attributes:
        data: N x 3 float64 array of (J2kSec, min, max)
    """

    data: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=np.float64))

    @property
    def is_empty(self) -> bool:
        return self.data.shape[0] == 0

    @property
    def rows(self) -> int:
        return int(self.data.shape[0])

    @property
    def start_time(self) -> float:
        return float(self.data[0, 0]) if self.rows else float('nan')

    @property
    def end_time(self) -> float:
        return float(self.data[-1, 0]) if self.rows else float('nan')

    def to_csv(self) -> str:
        lines: List[str] = ["time,min,max"]
        for t, lo, hi in self.data:
            lines.append(f"{j2k_to_string(t)},{lo:g},{hi:g}")
        return "\n".join(lines)


@dataclass
class RSAMData:
    """
    RSAM envelope.

    Attributes:
        data: N x 2 float64 array of (J2kSec, value)
        period: Averaging period in seconds, 0 when unknown
    """

    data: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=np.float64))
    period: int = 0

    @property
    def is_empty(self) -> bool:
        return self.data.shape[0] == 0

    @property
    def rows(self) -> int:
        return int(self.data.shape[0])

    def values(self) -> np.ndarray:
        return self.data[:, 1]

    def to_csv(self) -> str:
        lines: List[str] = ["time,rsam"]
        for t, value in self.data:
            lines.append(f"{j2k_to_string(t)},{value:g}")
        return "\n".join(lines)
