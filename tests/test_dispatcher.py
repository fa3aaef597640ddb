"""
Unit tests for the request dispatcher.

Each test runs one request against the mock wave server (or no server) and
checks the decoder outcome, the connection state afterwards and the events
recorded.
"""

import threading
import time
import unittest
from unittest.mock import patch

from mock_wws_server import (
    MockWWSServer,
    binary_response,
    unused_port,
    version_response,
    wave_body,
)
from wwsclient.core.dispatcher import RequestDispatcher
from wwsclient.core.errors import (
    ConnectionLostError,
    IdleTimeoutError,
    ProtocolViolationError,
    WWSError,
)
from wwsclient.core.events import EventEmitter
from wwsclient.core.tcp_connection import TCPConnection
from wwsclient.decoders import VersionDecoder, WaveDecoder
from wwsclient.models.connection import ConnectionState


class DispatcherTestCase(unittest.TestCase):
    """Starts a mock server in the given mode and a dispatcher against it."""

    mode = 'normal'
    idle_timeout = 5.0

    def setUp(self):
        self.server = MockWWSServer(mode=self.mode, responses={
            'VERSION': version_response(4),
            'GETWAVERAW': binary_response(wave_body(0.0, 100.0, list(range(1000)))),
        }).start()
        self.events = EventEmitter()
        self.connection = TCPConnection("127.0.0.1", self.server.port,
                                        idle_timeout=self.idle_timeout, events=self.events)
        self.dispatcher = RequestDispatcher(self.connection)

    def tearDown(self):
        self.connection.close()
        self.server.stop()


class TestDispatchNormal(DispatcherTestCase):

    def test_version_round_trip(self):
        decoder = VersionDecoder()
        self.dispatcher.dispatch("VERSION\n", decoder)
        self.assertEqual(decoder.result, 4)
        self.assertEqual(self.server.commands, ["VERSION"])

    def test_connection_closed_after_request(self):
        self.dispatcher.dispatch("VERSION\n", VersionDecoder())
        self.assertEqual(self.connection.state, ConnectionState.CLOSED)
        self.assertFalse(self.connection.slot.is_occupied)
        self.assertTrue(self.server.closed_by_client.wait(2.0))

    def test_sequential_requests_reconnect(self):
        first, second = VersionDecoder(), WaveDecoder()
        self.dispatcher.dispatch("VERSION\n", first)
        self.assertEqual(self.connection.state, ConnectionState.CLOSED)
        self.dispatcher.dispatch("GETWAVERAW: GS RCM EHZ AV -- 0.000000 10.000000 0\n", second)
        self.assertEqual(self.connection.state, ConnectionState.CLOSED)

        self.assertEqual(first.result, 4)
        self.assertEqual(second.result.num_samples, 1000)
        self.assertEqual(self.events.count('connected'), 2)
        self.assertEqual(self.events.count('connection_closed'), 2)
        self.assertTrue(self.server.wait_for_connections(2))

    def test_events_recorded(self):
        self.dispatcher.dispatch("VERSION\n", VersionDecoder())
        self.assertEqual(self.events.count('request_sent'), 1)
        self.assertEqual(self.events.count('request_completed'), 1)
        self.assertEqual(self.events.count('request_failed'), 0)

    def test_second_bind_is_protocol_violation(self):
        self.connection.slot.bind(VersionDecoder())
        with self.assertRaises(ProtocolViolationError):
            self.dispatcher.dispatch("VERSION\n", VersionDecoder())
        # Teardown still ran
        self.assertEqual(self.connection.state, ConnectionState.CLOSED)

    def test_non_ascii_command_rejected(self):
        with self.assertRaises(WWSError):
            self.dispatcher.dispatch("VERSIÖN\n", VersionDecoder())

    def test_keyboard_interrupt_propagates_after_teardown(self):
        decoder = VersionDecoder()
        with patch.object(decoder, 'wait', side_effect=KeyboardInterrupt):
            with self.assertRaises(KeyboardInterrupt):
                self.dispatcher.dispatch("VERSION\n", decoder)
        self.assertEqual(self.connection.state, ConnectionState.CLOSED)
        self.assertFalse(self.connection.slot.is_occupied)


class TestDetachedReader(DispatcherTestCase):
    """A reader left behind by close() must not complete the next request."""

    def test_detached_reader_exit_ignored(self):
        self.assertTrue(self.connection.ensure_connected())
        old_reader = self.connection._reader
        self.connection.close(grace=0.0)

        self.assertTrue(self.connection.ensure_connected())
        decoder = VersionDecoder()
        self.connection.slot.bind(decoder)
        self.connection._on_reader_exit(old_reader, ConnectionLostError("Connection closed by client"))

        self.assertFalse(decoder.is_complete)
        self.assertIs(self.connection.slot.decoder, decoder)
        self.assertTrue(self.connection.is_connected())
        self.connection.slot.release(decoder)

    def test_close_fails_pending_request(self):
        self.assertTrue(self.connection.ensure_connected())
        decoder = VersionDecoder()
        self.connection.slot.bind(decoder)
        self.connection.close()
        self.assertTrue(decoder.is_complete)
        self.assertIsInstance(decoder.error, ConnectionLostError)
        self.assertFalse(self.connection.slot.is_occupied)

    def test_back_to_back_requests_without_grace(self):
        self.connection.close_grace = 0.0
        decoders = [VersionDecoder() for _ in range(20)]
        for decoder in decoders:
            self.dispatcher.dispatch("VERSION\n", decoder)
        self.assertEqual([d.result for d in decoders], [4] * 20)
        self.assertEqual(self.events.count('request_failed'), 0)


class TestDispatchUnreachable(unittest.TestCase):

    def test_unreachable_returns_default_quickly(self):
        events = EventEmitter()
        connection = TCPConnection("127.0.0.1", unused_port(), idle_timeout=1.0, events=events)
        decoder = VersionDecoder()
        start = time.monotonic()
        RequestDispatcher(connection).dispatch("VERSION\n", decoder)
        self.assertLess(time.monotonic() - start, 1.5)
        self.assertEqual(decoder.result, 0)
        self.assertFalse(decoder.is_complete)
        self.assertEqual(events.recent(1)[0].fields['reason'], 'connect')
        self.assertFalse(connection.slot.is_occupied)


class TestDispatchSilentServer(DispatcherTestCase):

    mode = 'silent'
    idle_timeout = 0.5

    def test_idle_timeout_unblocks_call(self):
        decoder = VersionDecoder()
        start = time.monotonic()
        self.dispatcher.dispatch("VERSION\n", decoder)
        elapsed = time.monotonic() - start
        self.assertGreaterEqual(elapsed, 0.5)
        self.assertLess(elapsed, 3.0)
        self.assertEqual(decoder.result, 0)
        self.assertIsInstance(decoder.error, IdleTimeoutError)
        self.assertEqual(self.connection.state, ConnectionState.CLOSED)


class TestDispatchPartialResponse(DispatcherTestCase):

    mode = 'partial'
    idle_timeout = 0.5

    def test_partial_wave_discarded(self):
        decoder = WaveDecoder()
        self.dispatcher.dispatch("GETWAVERAW: GS RCM EHZ AV -- 0.000000 10.000000 0\n", decoder)
        self.assertTrue(decoder.result.is_empty)
        self.assertIsInstance(decoder.error, IdleTimeoutError)
        self.assertGreater(decoder.bytes_received, 0)


class TestDispatchEarlyClose(DispatcherTestCase):

    mode = 'close_early'

    def test_peer_close_returns_default(self):
        decoder = VersionDecoder()
        start = time.monotonic()
        self.dispatcher.dispatch("VERSION\n", decoder)
        self.assertLess(time.monotonic() - start, 3.0)
        self.assertEqual(decoder.result, 0)
        self.assertFalse(decoder.succeeded)
        self.assertEqual(self.events.count('request_failed'), 1)


class TestDispatchBackstop(unittest.TestCase):
    """The dispatcher must not wait forever if the reader never signals."""

    def test_dead_reader_fails_decoder(self):
        connection = TCPConnection("127.0.0.1", 16022, idle_timeout=5.0)
        decoder = VersionDecoder()
        alive = [True]

        def stop_soon():
            time.sleep(0.2)
            alive[0] = False

        threading.Thread(target=stop_soon, daemon=True).start()
        with patch.object(connection, 'is_alive', side_effect=lambda: alive[0]), \
                patch.object(connection, 'seconds_idle', return_value=0.0):
            RequestDispatcher(connection)._await_completion(decoder)

        self.assertTrue(decoder.is_complete)
        self.assertIsInstance(decoder.error, ConnectionLostError)

    def test_idle_backstop_fails_decoder(self):
        connection = TCPConnection("127.0.0.1", 16022, idle_timeout=0.2)
        decoder = VersionDecoder()
        with patch.object(connection, 'is_alive', return_value=True), \
                patch.object(connection, 'seconds_idle', return_value=10.0):
            RequestDispatcher(connection)._await_completion(decoder)
        self.assertIsInstance(decoder.error, IdleTimeoutError)


if __name__ == '__main__':
    unittest.main()
