"""
Channel inventory entry as reported by GETCHANNELS.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .scnl import Scnl


@dataclass
class Channel:
    """
    One channel known to the wave server.

    Attributes:
        sid: Server side channel id
        scnl: Channel identity
        min_time: Earliest data, J2kSec
        max_time: Latest data, J2kSec
        longitude: Station longitude, NaN when unknown
        latitude: Station latitude, NaN when unknown
        alias: Display alias (METADATA only)
        unit: Data unit (METADATA only)
        linear_a: Linear scale factor (METADATA only)
        linear_b: Linear offset (METADATA only)
        groups: Channel groups (METADATA only)
        metadata: Free-form key/value pairs (METADATA only)
    """

    sid: int
    scnl: Scnl
    min_time: float = float('nan')
    max_time: float = float('nan')
    longitude: float = float('nan')
    latitude: float = float('nan')
    alias: Optional[str] = None
    unit: Optional[str] = None
    linear_a: float = float('nan')
    linear_b: float = float('nan')
    groups: List[str] = field(default_factory=list)
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_metadata_string(self) -> str:
        """Render in the colon-separated layout the server uses."""
        parts = [
            str(self.sid),
            self.scnl.to_string("$"),
            f"{self.min_time:f}",
            f"{self.max_time:f}",
            f"{self.longitude:f}",
            f"{self.latitude:f}",
        ]
        if self.alias is not None or self.unit is not None or self.groups or self.metadata:
            parts.extend([
                self.alias or "",
                self.unit or "",
                f"{self.linear_a:f}",
                f"{self.linear_b:f}",
                "$".join(self.groups),
            ])
            parts.extend(f"{k}={v}" for k, v in self.metadata.items())
        return ":".join(parts)

    def __str__(self) -> str:
        return self.scnl.to_string("$")
