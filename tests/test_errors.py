"""
Tests for the client error hierarchy.

Verifies codes, categories, context capture and formatting.
"""

import unittest

from wwsclient.core.errors import (
    ConfigurationError,
    ConnectCancelledError,
    ConnectError,
    ConnectRefusedError,
    ConnectTimeoutError,
    ConnectionLostError,
    DecodeError,
    ErrorCodes,
    IdleTimeoutError,
    ProtocolViolationError,
    WriteFailureError,
    WWSError,
    wrap_external_error,
)


class TestWWSError(unittest.TestCase):
    """Test the base WWSError class."""

    def test_basic_error_creation(self):
        error = WWSError("Something failed")
        self.assertEqual(error.message, "Something failed")
        self.assertEqual(error.error_code, ErrorCodes.UNKNOWN_ERROR)
        self.assertEqual(error.context['category'], 'SYSTEM')
        self.assertEqual(str(error), "Something failed")

    def test_error_with_cause(self):
        cause = OSError("Connection reset by peer")
        error = WWSError("Read failed", cause=cause)
        self.assertIs(error.cause, cause)
        self.assertEqual(error.context['original_type'], 'OSError')
        self.assertIsNotNone(error.stack_trace)

    def test_to_dict(self):
        data = WWSError("x", error_code=1234, context={'host': 'h'}).to_dict()
        self.assertEqual(data['error_type'], 'WWSError')
        self.assertEqual(data['code'], 1234)
        self.assertEqual(data['context']['host'], 'h')
        self.assertIsNone(data['cause'])

    def test_format_user_message(self):
        error = WWSError("Bad", suggestions=["Check the server", "Retry"])
        self.assertEqual(error.format_user_message(),
                         "Bad\n\nSuggestions:\n  1. Check the server\n  2. Retry")

    def test_format_log_message(self):
        message = DecodeError("Truncated", cause=ValueError("short")).format_log_message()
        self.assertTrue(message.startswith("[4001] DecodeError: Truncated"))
        self.assertIn("Caused by: ValueError('short')", message)


class TestErrorSubclasses(unittest.TestCase):

    def test_connect_errors(self):
        for cls, code in ((ConnectTimeoutError, ErrorCodes.CONNECT_TIMEOUT),
                          (ConnectCancelledError, ErrorCodes.CONNECTION_CANCELLED),
                          (ConnectRefusedError, ErrorCodes.CONNECTION_REFUSED)):
            error = cls("failed", host="wws", port=16022)
            self.assertIsInstance(error, ConnectError)
            self.assertEqual(error.error_code, code)
            self.assertEqual(error.context['host'], "wws")
            self.assertEqual(error.context['port'], 16022)

    def test_idle_timeout(self):
        error = IdleTimeoutError("idle", timeout_seconds=30.0)
        self.assertEqual(error.context['timeout_seconds'], 30.0)
        self.assertEqual(error.context['category'], 'TIMEOUT')

    def test_transport_errors(self):
        self.assertEqual(ConnectionLostError("x").error_code, ErrorCodes.CONNECTION_LOST)
        self.assertEqual(WriteFailureError("x").error_code, ErrorCodes.WRITE_FAILED)

    def test_protocol_violation(self):
        error = ProtocolViolationError("busy")
        self.assertEqual(error.error_code, ErrorCodes.PROTOCOL_VIOLATION)
        self.assertEqual(error.context['category'], 'PROTOCOL')

    def test_configuration_error(self):
        error = ConfigurationError("bad port", setting_name="port")
        self.assertEqual(error.context['setting'], "port")


class TestWrapExternalError(unittest.TestCase):

    def test_wrap_external_error(self):
        original = TimeoutError("timed out")
        wrapped = wrap_external_error(original, "Connect failed", ConnectTimeoutError, host="wws")
        self.assertIsInstance(wrapped, ConnectTimeoutError)
        self.assertIs(wrapped.cause, original)
        self.assertEqual(wrapped.context['host'], "wws")


if __name__ == '__main__':
    unittest.main()
