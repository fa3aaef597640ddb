"""
Winston wave server client.

WWSClient is the public surface of the package: one method per server
operation, each building a command, pairing it with the matching decoder and
running it through the request dispatcher.

Network failures never raise. A request that cannot be completed returns the
operation's empty result (``Wave()`` with no samples, ``[]``, ``0``) so
callers check ``is_empty`` or the length instead of catching exceptions. The
events emitter records why a request failed.

Usage Example:
    >>> with WWSClient("pubavo1.wr.usgs.gov") as client:
    ...     version = client.get_protocol_version()
    ...     span = TimeSpan.from_datetimes(start, end)
    ...     wave = client.get_wave(Scnl("RCM", "EHZ", "AV"), span)
    ...     if not wave.is_empty:
    ...         print(wave)
"""

import logging
import warnings
from datetime import datetime
from typing import List, Optional, TextIO, Union

from wwsclient.config import DEFAULT_PORT, ClientConfig
from wwsclient.core.command_encoder import CommandEncoder
from wwsclient.core.dispatcher import RequestDispatcher
from wwsclient.core.events import EventEmitter
from wwsclient.core.tcp_connection import (
    DEFAULT_CLOSE_GRACE,
    DEFAULT_IDLE_TIMEOUT,
    TCPConnection,
)
from wwsclient.decoders import (
    ChannelsDecoder,
    HelicorderDecoder,
    RSAMDecoder,
    StdoutDecoder,
    VersionDecoder,
    WaveDecoder,
)
from wwsclient.models.channel import Channel
from wwsclient.models.connection import ConnectionStatus
from wwsclient.models.data import HelicorderData, RSAMData, Wave
from wwsclient.models.scnl import NO_LOCATION, Scnl, TimeSpan
from wwsclient.utils.time_utils import to_j2k

TimeLike = Union[datetime, float, int]


class WWSClient:
    """
    Client for a Winston wave server.

    Each request opens a connection, waits for the complete response and
    closes the connection again. A client carries one request at a time;
    use one client per thread.

    Attributes:
        server: Server host name or address
        port: Server port
        events: Structured event record for this client
    """

    def __init__(
        self,
        server: str,
        port: int = DEFAULT_PORT,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        connect_timeout: Optional[float] = None,
        close_grace: float = DEFAULT_CLOSE_GRACE,
        events: Optional[EventEmitter] = None
    ):
        """
        Args:
            server: Server host name or address
            port: Server port (default: 16022)
            idle_timeout: Seconds without traffic before a request is abandoned
            connect_timeout: Seconds allowed for connect (default: idle_timeout)
            close_grace: Seconds close waits for the reader thread
            events: Event emitter to record into (default: a new one)

        Raises:
            ValueError: If server, port or timeouts are invalid
        """
        self.logger = logging.getLogger(__name__)
        self.server = server
        self.port = port
        self.events = events or EventEmitter()
        self._encoder = CommandEncoder()
        self._connection = TCPConnection(
            server,
            port,
            idle_timeout=idle_timeout,
            connect_timeout=connect_timeout,
            close_grace=close_grace,
            events=self.events
        )
        self._dispatcher = RequestDispatcher(self._connection, self.events)

    @classmethod
    def from_config(cls, config: ClientConfig, events: Optional[EventEmitter] = None) -> "WWSClient":
        """Create a client from a validated ClientConfig."""
        config.require_valid()
        return cls(
            config.server,
            config.port,
            idle_timeout=config.idle_timeout,
            connect_timeout=config.connect_timeout,
            close_grace=config.close_grace,
            events=events
        )

    # ========== Operations ==========

    def get_protocol_version(self) -> int:
        """
        Ask the server for its protocol version.

        Returns:
            Protocol version, or 0 if the server could not be reached
        """
        decoder = VersionDecoder()
        self._dispatcher.dispatch(self._encoder.encode_version(), decoder)
        return decoder.result

    def get_wave(self, scnl: Scnl, time_span: TimeSpan, compress: bool = True) -> Wave:
        """
        Fetch raw waveform samples.

        Args:
            scnl: Channel to fetch
            time_span: Requested span
            compress: Ask the server to compress the response

        Returns:
            The wave; empty if the server has no data or could not be reached
        """
        decoder = WaveDecoder(compressed=compress)
        self._dispatcher.dispatch(self._encoder.encode_wave(scnl, time_span, compress), decoder)
        return decoder.result

    def get_wave_j2k(
        self,
        station: str,
        channel: str,
        network: str,
        location: Optional[str],
        start: TimeLike,
        end: TimeLike,
        compress: bool = True
    ) -> Wave:
        """
        Fetch raw waveform samples by channel code parts and J2kSec times.

        Datetimes are accepted for start and end and converted to J2kSec.
        """
        scnl = Scnl(station, channel, network, location or NO_LOCATION)
        return self.get_wave(scnl, TimeSpan.from_j2k(to_j2k(start), to_j2k(end)), compress)

    def get_raw_data(
        self,
        station: str,
        comp: str,
        network: str,
        start: TimeLike,
        end: TimeLike,
        location: str = NO_LOCATION
    ) -> Wave:
        """
        Fetch raw waveform samples with compression always on.

        .. deprecated::
            Use get_wave() or get_wave_j2k().
        """
        warnings.warn(
            "get_raw_data() is deprecated; use get_wave() or get_wave_j2k()",
            DeprecationWarning,
            stacklevel=2
        )
        return self.get_wave_j2k(station, comp, network, location, start, end, compress=True)

    def get_helicorder(self, scnl: Scnl, time_span: TimeSpan, compress: bool = True) -> HelicorderData:
        """Fetch helicorder min/max rows; empty when unavailable."""
        decoder = HelicorderDecoder(compressed=compress)
        self._dispatcher.dispatch(
            self._encoder.encode_helicorder(scnl, time_span, compress), decoder
        )
        return decoder.result

    def get_helicorder_j2k(
        self,
        station: str,
        channel: str,
        network: str,
        location: Optional[str],
        start: TimeLike,
        end: TimeLike,
        compress: bool = True
    ) -> HelicorderData:
        scnl = Scnl(station, channel, network, location or NO_LOCATION)
        return self.get_helicorder(scnl, TimeSpan.from_j2k(to_j2k(start), to_j2k(end)), compress)

    def get_rsam_data(
        self,
        scnl: Scnl,
        time_span: TimeSpan,
        period: int,
        compress: bool = True
    ) -> RSAMData:
        """
        Fetch RSAM values.

        Args:
            scnl: Channel to fetch
            time_span: Requested span
            period: RSAM averaging period in seconds
            compress: Ask the server to compress the response

        Returns:
            RSAM rows; empty when unavailable

        Raises:
            WWSError: If period is not a positive integer
        """
        command = self._encoder.encode_rsam(scnl, time_span, period, compress)
        decoder = RSAMDecoder(period=period, compressed=compress)
        self._dispatcher.dispatch(command, decoder)
        return decoder.result

    def get_channels(self, metadata: bool = False) -> List[Channel]:
        """
        List the channels the server holds.

        Args:
            metadata: Include alias, unit, calibration and group metadata

        Returns:
            Channels; empty when the server could not be reached
        """
        decoder = ChannelsDecoder()
        self._dispatcher.dispatch(self._encoder.encode_channels(metadata), decoder)
        return decoder.result

    def send_command(self, command: str, stream: Optional[TextIO] = None) -> int:
        """
        Send a free-form command and copy the response to a stream.

        The response has no known framing, so the call returns when the
        server closes the connection or stays silent for the idle timeout.

        Args:
            command: Single command line, terminator optional
            stream: Destination (default: stdout)

        Returns:
            Number of response bytes written
        """
        decoder = StdoutDecoder(stream)
        self._dispatcher.dispatch(self._encoder.encode_raw(command), decoder)
        return decoder.result

    # ========== Lifecycle ==========

    @property
    def connection(self) -> TCPConnection:
        return self._connection

    def get_status(self) -> ConnectionStatus:
        return self._connection.get_status()

    def close(self) -> None:
        """Close the connection if one is still open."""
        self._connection.close()

    def __enter__(self) -> "WWSClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"WWSClient({self.server!r}, {self.port})"
