"""
Unit tests for the wave server command encoder.

Verifies the exact command lines sent for each operation: keyword, channel
code order, fixed-point J2kSec times, compression flag and terminator.
"""

import locale
import unittest

from wwsclient.core.command_encoder import CommandEncoder, to_wire
from wwsclient.core.errors import ErrorCodes, WWSError
from wwsclient.models.scnl import Scnl, TimeSpan


class TestCommandEncoder(unittest.TestCase):
    """Test command line construction."""

    def setUp(self):
        """Set up test fixtures."""
        self.encoder = CommandEncoder()
        self.scnl = Scnl("RCM", "EHZ", "AV")
        self.span = TimeSpan.from_j2k(100.0, 160.5)

    def test_version(self):
        self.assertEqual(self.encoder.encode_version(), "VERSION\n")

    def test_wave_compressed(self):
        self.assertEqual(
            self.encoder.encode_wave(self.scnl, self.span, True),
            "GETWAVERAW: GS RCM EHZ AV -- 100.000000 160.500000 1\n"
        )

    def test_wave_uncompressed_flag(self):
        command = self.encoder.encode_wave(self.scnl, self.span, False)
        self.assertTrue(command.endswith(" 0\n"))

    def test_helicorder(self):
        self.assertEqual(
            self.encoder.encode_helicorder(Scnl("RCM", "EHZ", "AV", "01"), self.span, False),
            "GETSCNLHELIRAW: GS RCM EHZ AV 01 100.000000 160.500000 0\n"
        )

    def test_rsam_period_precedes_flag(self):
        self.assertEqual(
            self.encoder.encode_rsam(self.scnl, self.span, 60, True),
            "GETSCNLRSAMRAW: GS RCM EHZ AV -- 100.000000 160.500000 60 1\n"
        )

    def test_rsam_rejects_bad_period(self):
        for period in (0, -10, 1.5, True):
            with self.assertRaises(WWSError) as ctx:
                self.encoder.encode_rsam(self.scnl, self.span, period, True)
            self.assertEqual(ctx.exception.error_code, ErrorCodes.INVALID_COMMAND)

    def test_channels(self):
        self.assertEqual(self.encoder.encode_channels(), "GETCHANNELS: GC\n")
        self.assertEqual(self.encoder.encode_channels(True), "GETCHANNELS: GC METADATA\n")

    def test_every_command_ends_with_single_line_feed(self):
        commands = [
            self.encoder.encode_version(),
            self.encoder.encode_wave(self.scnl, self.span, True),
            self.encoder.encode_helicorder(self.scnl, self.span, True),
            self.encoder.encode_rsam(self.scnl, self.span, 10, False),
            self.encoder.encode_channels(True),
            self.encoder.encode_raw("STATUS"),
        ]
        for command in commands:
            self.assertTrue(command.endswith("\n"), command)
            self.assertFalse(command.endswith("\n\n"), command)
            self.assertNotIn("\r", command)

    def test_negative_times_before_epoch(self):
        span = TimeSpan.from_j2k(-3600.0, -1800.25)
        command = self.encoder.encode_wave(self.scnl, span, True)
        self.assertIn(" -3600.000000 -1800.250000 ", command)

    def test_time_format_ignores_locale(self):
        """A comma-decimal locale must not change the wire format."""
        previous = locale.setlocale(locale.LC_NUMERIC)
        try:
            try:
                locale.setlocale(locale.LC_NUMERIC, "de_DE.UTF-8")
            except locale.Error:
                self.skipTest("de_DE locale not installed")
            self.assertEqual(CommandEncoder.format_time(1.5), "1.500000")
        finally:
            locale.setlocale(locale.LC_NUMERIC, previous)


class TestRawCommands(unittest.TestCase):
    """Test free-form command normalisation."""

    def setUp(self):
        self.encoder = CommandEncoder()

    def test_adds_terminator(self):
        self.assertEqual(self.encoder.encode_raw("VERSION"), "VERSION\n")

    def test_keeps_single_terminator(self):
        self.assertEqual(self.encoder.encode_raw("VERSION\r\n"), "VERSION\n")

    def test_rejects_empty_and_multiline(self):
        for command in ("", "   ", "VERSION\nMENU"):
            with self.assertRaises(WWSError):
                self.encoder.encode_raw(command)

    def test_to_wire(self):
        self.assertEqual(to_wire("VERSION\n"), b"VERSION\n")

    def test_to_wire_rejects_non_ascii(self):
        with self.assertRaises(WWSError) as ctx:
            to_wire("GETWAVERAW: GS RÇM EHZ AV --\n")
        self.assertEqual(ctx.exception.error_code, ErrorCodes.INVALID_COMMAND)


if __name__ == '__main__':
    unittest.main()
