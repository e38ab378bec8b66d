"""Unit tests for app.core.logging."""

import logging
import unittest

from app.core.logging import LOG_DATEFMT, LOG_FORMAT, configure_logging


class TestConfigureLogging(unittest.TestCase):
    def setUp(self) -> None:
        self.previous_level = logging.getLogger().level

    def tearDown(self) -> None:
        logging.getLogger().setLevel(self.previous_level)

    def test_timestamps_are_utc(self) -> None:
        configure_logging("INFO")
        record = logging.LogRecord("gatekeeper", logging.INFO, __file__, 1, "hello", None, None)
        record.created = 0.0
        formatted = logging.Formatter(LOG_FORMAT, LOG_DATEFMT).formatTime(record, LOG_DATEFMT)
        self.assertEqual(formatted, "1970-01-01T00:00:00Z")

    def test_sets_root_level(self) -> None:
        configure_logging("WARNING")
        self.assertEqual(logging.getLogger().level, logging.WARNING)


if __name__ == "__main__":
    unittest.main()
