"""
Decoders for the binary SCNL responses (GETWAVERAW, GETSCNLHELIRAW,
GETSCNLRSAMRAW).

RESPONSE STRUCTURE:
===================
    <header tokens...> <byte_count>\\n      ASCII header line
    <byte_count bytes>                     body, zlib compressed if requested

A byte count of zero (or negative) means the server has no data for the
request; the decoder completes successfully with the empty result.

BODY LAYOUTS (big-endian, after decompression):
===============================================
    Wave:        float64 start_j2k, float64 sample_rate, int32 n, int32 x n
    Helicorder:  int32 rows, rows x (float64 j2k, float64 min, float64 max)
    RSAM:        int32 rows, rows x (float64 j2k, float64 value)
"""

import struct
from abc import abstractmethod
from typing import Optional, TypeVar

import numpy as np

from wwsclient.core.errors import DecodeError
from wwsclient.models.data import HelicorderData, RSAMData, Wave

from .base import DecodeStatus, LineBuffer, ResponseDecoder

T = TypeVar('T')

WAVE_HEADER = struct.Struct(">ddi")
ROW_COUNT = struct.Struct(">i")


class BinaryBodyDecoder(ResponseDecoder[T]):
    """
    Reads the header line, then exactly byte_count body bytes, then hands the
    (decompressed) body to _decode_body().
    """

    def __init__(self, compressed: bool = False):
        self._buffer = LineBuffer()
        self._body_length: Optional[int] = None
        super().__init__(compressed=compressed)

    @abstractmethod
    def _decode_body(self, body: bytes) -> T:
        """Turn the decompressed body into the result."""

    def _consume(self, data: bytes) -> DecodeStatus:
        self._buffer.feed(data)

        if self._body_length is None:
            header = self._buffer.next_line()
            if header is None:
                return DecodeStatus.MORE
            self._body_length = self._parse_header(header)
            if self._body_length <= 0:
                return self._finish(self.default_result())

        body = self._buffer.take(self._body_length)
        if body is None:
            return DecodeStatus.MORE
        return self._finish(self._decode_body(self.decompress(body)))

    @staticmethod
    def _parse_header(header: str) -> int:
        tokens = header.split()
        if not tokens:
            raise DecodeError("Empty response header")
        try:
            return int(tokens[-1])
        except ValueError as e:
            raise DecodeError(f"Invalid response header: {header!r}", cause=e) from e

    @staticmethod
    def _rows(body: bytes, columns: int) -> np.ndarray:
        if len(body) < ROW_COUNT.size:
            raise DecodeError(f"Body too short for row count: {len(body)} bytes")
        (rows,) = ROW_COUNT.unpack_from(body)
        expected = ROW_COUNT.size + rows * columns * 8
        if rows < 0 or len(body) < expected:
            raise DecodeError(f"Body holds {len(body)} bytes, {rows} rows need {expected}")
        values = np.frombuffer(body, dtype='>f8', count=rows * columns, offset=ROW_COUNT.size)
        return values.astype(np.float64).reshape(rows, columns)


class WaveDecoder(BinaryBodyDecoder[Wave]):
    """Decodes GETWAVERAW responses into a Wave."""

    def default_result(self) -> Wave:
        return Wave()

    def _decode_body(self, body: bytes) -> Wave:
        if len(body) < WAVE_HEADER.size:
            raise DecodeError(f"Wave body too short: {len(body)} bytes")
        start, rate, count = WAVE_HEADER.unpack_from(body)
        expected = WAVE_HEADER.size + 4 * count
        if count < 0 or len(body) < expected:
            raise DecodeError(f"Wave body holds {len(body)} bytes, {count} samples need {expected}")
        if count and not rate > 0:
            raise DecodeError(f"Invalid sample rate: {rate}")
        samples = np.frombuffer(body, dtype='>i4', count=count, offset=WAVE_HEADER.size)
        return Wave(start_time=start, sample_rate=rate, buffer=samples.astype(np.int32))


class HelicorderDecoder(BinaryBodyDecoder[HelicorderData]):
    """Decodes GETSCNLHELIRAW responses into HelicorderData."""

    def default_result(self) -> HelicorderData:
        return HelicorderData()

    def _decode_body(self, body: bytes) -> HelicorderData:
        return HelicorderData(self._rows(body, 3))


class RSAMDecoder(BinaryBodyDecoder[RSAMData]):
    """Decodes GETSCNLRSAMRAW responses into RSAMData."""

    def __init__(self, period: int = 0, compressed: bool = False):
        self.period = period
        super().__init__(compressed=compressed)

    def default_result(self) -> RSAMData:
        return RSAMData(period=self.period)

    def _decode_body(self, body: bytes) -> RSAMData:
        return RSAMData(self._rows(body, 2), period=self.period)
