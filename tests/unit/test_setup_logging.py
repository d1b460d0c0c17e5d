from __future__ import annotations

import logging
import os
import unittest

from spinworks.common.logging_setup import get_logger, reset_logging, service_log_path, setup_logging

from tests._helpers import temp_env


class TestSetupLogging(unittest.TestCase):
    def setUp(self) -> None:
        # reset root handlers to reduce cross-test interference
        reset_logging()

    def tearDown(self) -> None:
        reset_logging()
        logging.getLogger().setLevel(logging.WARNING)

    def test_setup_logging_creates_service_log_file(self) -> None:
        with temp_env() as (_, env):
            setup_logging(env, service="svc_test")
            get_logger("controller").info("hello")

            p = service_log_path(env, "svc_test")
            self.assertTrue(p.exists())
            txt = p.read_text(encoding="utf-8", errors="ignore")
            self.assertIn("| INFO | svc_test | hello", txt)

            # second call is a no-op
            root = logging.getLogger()
            before = len(root.handlers)
            setup_logging(env, service="svc_test")
            self.assertEqual(len(root.handlers), before)
            reset_logging()

    def test_client_library_loggers_are_quieted(self) -> None:
        with temp_env() as (_, env):
            setup_logging(env, service="svc_quiet")
            self.assertEqual(logging.getLogger("botocore").level, logging.WARNING)
            self.assertEqual(logging.getLogger("googleapiclient.discovery_cache").level, logging.WARNING)
            reset_logging()

    def test_log_level_from_env_and_unknown_falls_back(self) -> None:
        with temp_env() as (_, env):
            os.environ["LOG_LEVEL"] = "debug"
            setup_logging(env, service="svc_debug")
            self.assertEqual(logging.getLogger().level, logging.DEBUG)
            reset_logging()

            os.environ["LOG_LEVEL"] = "chatty"
            setup_logging(env, service="svc_bad_level")
            self.assertEqual(logging.getLogger().level, logging.INFO)
            reset_logging()


if __name__ == "__main__":
    unittest.main()
