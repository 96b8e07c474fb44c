"""
Tests for settings defaults and helpers (backend/billow/config.py).
"""

import sys
import os
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
import tests.support  # noqa: E402

from billow.config import Settings  # noqa: E402


class TestSettings(unittest.TestCase):

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.DEFAULT_PLAN_ID, "PLN-STARTER")
        self.assertEqual(settings.TRIAL_DAYS, 14)
        self.assertEqual(settings.RATE_LIMIT_WINDOW_SECONDS, 3600)
        self.assertTrue(settings.RATE_LIMITING_ENABLED)
        self.assertTrue(settings.FEATURE_GATE_FAIL_OPEN)
        self.assertEqual(settings.API_PREFIX, "/api")

    def test_environment_overrides(self):
        with patch.dict(os.environ, {"TRIAL_DAYS": "30", "RATE_LIMITING_ENABLED": "false"}, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.TRIAL_DAYS, 30)
        self.assertFalse(settings.RATE_LIMITING_ENABLED)

    def test_sync_database_url(self):
        settings = Settings(_env_file=None, DATABASE_URL="postgresql+asyncpg://u:p@db:5432/billow")
        self.assertEqual(settings.sync_database_url, "postgresql://u:p@db:5432/billow")

        settings = Settings(_env_file=None, DATABASE_URL="sqlite+aiosqlite:///./billow.db")
        self.assertEqual(settings.sync_database_url, "sqlite:///./billow.db")


if __name__ == '__main__':
    unittest.main()
