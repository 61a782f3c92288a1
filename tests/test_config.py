"""
Settings and request context tests
"""

from unittest.mock import patch
import unittest

from pyresty.config import DEFAULT_MAX_BODY_SIZE, Settings
from pyresty.context import RequestCancelled, RequestContext


class SettingsTests(unittest.TestCase):
    def test_defaults(self):
        settings = Settings.from_env({})
        self.assertEqual(settings, Settings())
        self.assertEqual(settings.max_body_size, DEFAULT_MAX_BODY_SIZE)
        self.assertIsNone(settings.request_timeout)

        settings = Settings.from_env({
            'PYRESTY_MAX_BODY_SIZE': ' ',
            'PYRESTY_REQUEST_TIMEOUT': '',
        })
        self.assertEqual(settings, Settings())

    def test_values(self):
        settings = Settings.from_env({
            'PYRESTY_MAX_BODY_SIZE': '1024',
            'PYRESTY_REQUEST_TIMEOUT': '2.5',
        })
        self.assertEqual(settings, Settings(1024, 2.5))

        settings = Settings.from_env({'PYRESTY_MAX_BODY_SIZE': '0'})
        self.assertEqual(settings.max_body_size, 0)

    def test_os_environ(self):
        with patch('pyresty.config.os.environ',
            {'PYRESTY_REQUEST_TIMEOUT': '30'}):
            settings = Settings.from_env()

        self.assertEqual(settings.request_timeout, 30.0)

    def test_invalid_values(self):
        cases = [
            ({'PYRESTY_MAX_BODY_SIZE': '1k'},
                "PYRESTY_MAX_BODY_SIZE must be an integer, got '1k'"),
            ({'PYRESTY_MAX_BODY_SIZE': '-1'},
                "PYRESTY_MAX_BODY_SIZE must not be negative"),
            ({'PYRESTY_REQUEST_TIMEOUT': 'soon'},
                "PYRESTY_REQUEST_TIMEOUT must be a number, got 'soon'"),
            ({'PYRESTY_REQUEST_TIMEOUT': '0'},
                "PYRESTY_REQUEST_TIMEOUT must be positive"),
        ]

        for environ, message in cases:
            with self.subTest(environ=environ):
                with self.assertRaises(ValueError) as raised:
                    Settings.from_env(environ)

                self.assertEqual(str(raised.exception), message)


@patch('pyresty.context.time.monotonic', return_value=100.0)
class ContextTests(unittest.TestCase):
    def test_no_deadline(self, _mock_time):
        ctx = RequestContext.with_timeout(None)

        self.assertIsNone(ctx.deadline)
        self.assertIsNone(ctx.remaining())
        self.assertFalse(ctx.expired)
        self.assertFalse(ctx.cancelled)
        ctx.check()

    def test_deadline(self, mock_time):
        ctx = RequestContext.with_timeout(5)

        self.assertEqual(ctx.deadline, 105.0)
        self.assertEqual(ctx.remaining(), 5.0)
        self.assertFalse(ctx.expired)
        ctx.check()

        mock_time.return_value = 105.0
        self.assertTrue(ctx.expired)

        mock_time.return_value = 106.0
        self.assertEqual(ctx.remaining(), -1.0)
        with self.assertRaisesRegex(RequestCancelled, "Request deadline "
            "exceeded"):
            ctx.check()

    def test_cancel(self, _mock_time):
        ctx = RequestContext(200.0)
        ctx.cancel()

        self.assertTrue(ctx.cancelled)
        self.assertFalse(ctx.expired)
        with self.assertRaisesRegex(RequestCancelled, "Request cancelled"):
            ctx.check()

        self.assertEqual(repr(ctx),
            "<RequestContext deadline=200.0 cancelled=True>")
