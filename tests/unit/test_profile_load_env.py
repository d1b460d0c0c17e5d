from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from spinworks.common.profile import env_file_candidates, load_profile_env


class TestProfileLoadEnv(unittest.TestCase):
    def setUp(self) -> None:
        self._old_cwd = os.getcwd()
        self._old_env = os.environ.copy()
        self._td = tempfile.TemporaryDirectory()
        os.chdir(self._td.name)
        Path("deploy").mkdir(parents=True, exist_ok=True)
        os.environ.pop("SPIN_OUTPUT_ROOT", None)
        os.environ.pop("SPIN_ENV_FILE", None)

    def tearDown(self) -> None:
        os.environ.clear()
        os.environ.update(self._old_env)
        os.chdir(self._old_cwd)
        self._td.cleanup()

    def test_load_profile_env_prefers_profile_file(self) -> None:
        (Path("deploy") / "env.test").write_text("SPIN_OUTPUT_ROOT=/from/profile\n", encoding="utf-8")
        (Path("deploy") / "env").write_text("SPIN_OUTPUT_ROOT=/from/fallback\n", encoding="utf-8")
        os.environ["SPIN_PROFILE"] = "test"

        loaded = load_profile_env()
        self.assertTrue(loaded.endswith(str(Path("deploy") / "env.test")))
        self.assertEqual(os.environ.get("SPIN_OUTPUT_ROOT"), "/from/profile")

    def test_falls_back_to_plain_env_file(self) -> None:
        (Path("deploy") / "env").write_text("SPIN_OUTPUT_ROOT=/from/fallback\n", encoding="utf-8")
        os.environ["SPIN_PROFILE"] = "prod"

        loaded = load_profile_env()
        self.assertTrue(loaded.endswith(str(Path("deploy") / "env")))
        self.assertEqual(os.environ.get("SPIN_OUTPUT_ROOT"), "/from/fallback")

    def test_existing_environment_wins(self) -> None:
        (Path("deploy") / "env.local").write_text("SPIN_OUTPUT_ROOT=/from/file\n", encoding="utf-8")
        os.environ.pop("SPIN_PROFILE", None)
        os.environ["SPIN_OUTPUT_ROOT"] = "/from/shell"

        self.assertTrue(load_profile_env().endswith("env.local"))
        self.assertEqual(os.environ["SPIN_OUTPUT_ROOT"], "/from/shell")

    def test_explicit_env_file_wins(self) -> None:
        (Path("deploy") / "env.local").write_text("SPIN_OUTPUT_ROOT=/from/profile\n", encoding="utf-8")
        Path("custom.env").write_text("SPIN_OUTPUT_ROOT=/from/custom\n", encoding="utf-8")
        os.environ["SPIN_ENV_FILE"] = "custom.env"

        self.assertEqual(load_profile_env(), "custom.env")
        self.assertEqual(os.environ["SPIN_OUTPUT_ROOT"], "/from/custom")

    def test_candidates_order(self) -> None:
        os.environ.pop("SPIN_ENV_FILE", None)
        self.assertEqual(
            env_file_candidates("prod", Path("cfg")),
            [Path("cfg") / "env.prod", Path("cfg") / "env"],
        )

    def test_no_files_returns_empty(self) -> None:
        self.assertEqual(load_profile_env(), "")


if __name__ == "__main__":
    unittest.main()
