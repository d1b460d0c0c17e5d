from __future__ import annotations

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv


ENV_DIR = Path("deploy")


def profile_name() -> str:
    return os.environ.get("SPIN_PROFILE", "").strip() or "local"


def env_file_candidates(profile: str, base: Path = ENV_DIR) -> List[Path]:
    """SPIN_ENV_FILE if set, then <base>/env.<profile>, then <base>/env."""
    explicit = os.environ.get("SPIN_ENV_FILE", "").strip()
    head = [Path(explicit)] if explicit else []
    return head + [base / f"env.{profile}", base / "env"]


def load_profile_env() -> str:
    """Load the first env file that exists. Variables already set in the shell win.

    Returns the loaded path, or "" when none was found.
    """
    for cand in env_file_candidates(profile_name()):
        if cand.is_file():
            load_dotenv(cand, override=False)
            return str(cand)
    return ""
