import logging
import os
import unittest
from unittest.mock import patch

from drafthouse_schedule.config import load_config
from drafthouse_schedule.logging_utils import RunIdFilter, new_run_id, set_run_id


class ConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            cfg = load_config()
        self.assertEqual(cfg.schedule_url, "https://drafthouse.com/s/mother/v2/schedule/market/nyc")
        self.assertEqual(cfg.referer, "https://drafthouse.com/nyc")
        self.assertEqual(cfg.timezone, "America/New_York")
        self.assertEqual(cfg.excluded_theater, "Staten Island")
        self.assertEqual(cfg.recent_window_hours, 12)
        self.assertEqual(cfg.open_caption_window_days, 14)
        self.assertIsNone(cfg.request_timeout_seconds)

    def test_explicit_url_wins(self) -> None:
        env = {"SCHEDULE_URL": "http://localhost:8000/feed.json", "BASE_URL": "https://example.test/"}
        with patch.dict(os.environ, env, clear=True):
            cfg = load_config()
        self.assertEqual(cfg.schedule_url, "http://localhost:8000/feed.json")
        self.assertEqual(cfg.referer, "https://example.test/nyc")

    def test_invalid_numbers_fall_back(self) -> None:
        env = {
            "RECENT_WINDOW_HOURS": "soon",
            "OPEN_CAPTION_WINDOW_DAYS": "-3",
            "REQUEST_TIMEOUT_SECONDS": "0",
        }
        with patch.dict(os.environ, env, clear=True):
            with self.assertLogs("drafthouse_schedule.config", level="WARNING") as logs:
                cfg = load_config()
        self.assertEqual(cfg.recent_window_hours, 12)
        self.assertEqual(cfg.open_caption_window_days, 14)
        self.assertIsNone(cfg.request_timeout_seconds)
        self.assertEqual(len(logs.records), 3)


class RunIdTests(unittest.TestCase):
    def test_filter_injects_run_id(self) -> None:
        run_id = new_run_id()
        self.assertEqual(len(run_id), 8)
        set_run_id(run_id)
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        self.assertTrue(RunIdFilter().filter(record))
        self.assertEqual(record.run_id, run_id)


if __name__ == "__main__":
    unittest.main()
