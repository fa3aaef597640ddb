"""
Decoder for the GETCHANNELS response.

RESPONSE STRUCTURE:
===================
    GC <count>\\n
    <count> lines:
        sid:STA$CHN$NET$LOC:min_j2k:max_j2k:lon:lat
    or, with METADATA:
        sid:STA$CHN$NET$LOC:min_j2k:max_j2k:lon:lat:alias:unit:linearA:linearB:groups[:key=value...]
"""

import logging
import math
from typing import List

from wwsclient.core.errors import DecodeError
from wwsclient.models.channel import Channel
from wwsclient.models.scnl import Scnl

from .base import DecodeStatus, LineBuffer, ResponseDecoder

logger = logging.getLogger(__name__)


def _float(text: str) -> float:
    if not text:
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def parse_channel(line: str) -> Channel:
    """
    Parse one channel line.

    Raises:
        DecodeError: If the sid or channel code is missing or malformed
    """
    fields = line.split(":")
    if len(fields) < 2:
        raise DecodeError(f"Malformed channel line: {line!r}")
    try:
        sid = int(fields[0])
        scnl = Scnl.parse(fields[1], separator="$")
    except ValueError as e:
        raise DecodeError(f"Malformed channel line: {line!r}", cause=e) from e

    numbers = [_float(f) for f in fields[2:6]]
    numbers += [math.nan] * (4 - len(numbers))
    channel = Channel(sid, scnl, *numbers)

    if len(fields) > 6:
        meta = fields[6:] + [""] * max(0, 11 - len(fields))
        channel.alias = meta[0] or None
        channel.unit = meta[1] or None
        channel.linear_a = _float(meta[2])
        channel.linear_b = _float(meta[3])
        channel.groups = [g for g in meta[4].split("$") if g]
        for item in meta[5:]:
            key, sep, value = item.partition("=")
            if sep and key:
                channel.metadata[key] = value
    return channel


class ChannelsDecoder(ResponseDecoder[List[Channel]]):
    """Decodes the channel inventory; an empty list when unavailable."""

    def __init__(self):
        self._lines = LineBuffer()
        self._expected = None
        self._channels: List[Channel] = []
        super().__init__(compressed=False)

    def default_result(self) -> List[Channel]:
        return []

    def _consume(self, data: bytes) -> DecodeStatus:
        self._lines.feed(data)

        if self._expected is None:
            header = self._lines.next_line()
            if header is None:
                return DecodeStatus.MORE
            tokens = header.split()
            if len(tokens) != 2 or tokens[0] != "GC":
                raise DecodeError(f"Unexpected GETCHANNELS header: {header!r}")
            try:
                self._expected = int(tokens[1])
            except ValueError as e:
                raise DecodeError(f"Invalid channel count: {tokens[1]!r}", cause=e) from e

        while len(self._channels) < self._expected:
            line = self._lines.next_line()
            if line is None:
                return DecodeStatus.MORE
            if not line.strip():
                continue
            self._channels.append(parse_channel(line))

        logger.debug(f"Decoded {len(self._channels)} channels")
        return self._finish(self._channels)
