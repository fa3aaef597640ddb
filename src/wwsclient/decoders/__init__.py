"""
Response decoders, one per wave server operation.

The request dispatcher only depends on the ResponseDecoder contract; the
concrete classes here hold the wire layouts.
"""

from .base import DecodeStatus, ResponseDecoder, LineBuffer
from .version import VersionDecoder
from .waveform import WaveDecoder, HelicorderDecoder, RSAMDecoder
from .channels import ChannelsDecoder, parse_channel
from .stdout import StdoutDecoder

__all__ = [
    'DecodeStatus',
    'ResponseDecoder',
    'LineBuffer',
    'VersionDecoder',
    'WaveDecoder',
    'HelicorderDecoder',
    'RSAMDecoder',
    'ChannelsDecoder',
    'parse_channel',
    'StdoutDecoder',
]
