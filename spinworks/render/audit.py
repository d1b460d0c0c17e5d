from __future__ import annotations

import os
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List

from spinworks.common.logging_setup import get_logger


log = get_logger("audit")


# SUCCESS column
PENDING = "PENDING"
SUCCESS = "SUCCESS"
FAILED = "FAILED"

# METHOD column markers besides the strategy names
STARTING = "STARTING"
BASE_ROTATION_FAILED = "BASE_ROTATION_FAILED"
VERIFICATION_FAILED = "VERIFICATION_FAILED"
ALL_METHODS_FAILED = "ALL_METHODS_FAILED"

MAX_LINES = 1000


@dataclass
class StrategyAttempt:
    method: str
    frames_needed: int
    audio_duration: float
    track_label: str
    outcome: str = PENDING
    timestamp: datetime = field(default_factory=datetime.now)

    def to_line(self) -> str:
        # six decimals, as ffprobe reports durations
        return (
            f"[{self.timestamp.strftime('%Y-%m-%d %H:%M:%S')}] TRACK: {self.track_label} | "
            f"METHOD: {self.method} | ROTATIONS: {self.frames_needed} | "
            f"DURATION: {self.audio_duration:.6f}s | SUCCESS: {self.outcome}"
        )


class AuditLog:
    """Append-only attempt log shared by every job of a run.

    After each append the file is trimmed to the newest ``max_lines`` lines.
    Write errors are logged and never reach the caller.
    """

    def __init__(self, path: Path, *, max_lines: int = MAX_LINES):
        self.path = path
        self.max_lines = max_lines
        self._lock = threading.Lock()

    def append(self, attempt: StrategyAttempt) -> None:
        line = attempt.to_line()
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with self.path.open("a", encoding="utf-8") as f:
                    f.write(line + "\n")
                self._truncate()
            except (OSError, UnicodeError) as e:
                log.warning("audit log write failed path=%s err=%s", self.path, e)

    def _truncate(self) -> None:
        lines = self.path.read_text(encoding="utf-8").splitlines()
        if len(lines) <= self.max_lines:
            return
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp.write_text("\n".join(lines[-self.max_lines:]) + "\n", encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def tail(self, n: int = 5) -> List[str]:
        with self._lock:
            try:
                lines = self.path.read_text(encoding="utf-8").splitlines()
            except FileNotFoundError:
                return []
            except (OSError, UnicodeError) as e:
                log.warning("audit log read failed path=%s err=%s", self.path, e)
                return []
        return lines[-n:] if n > 0 else []
