from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Tuple

from spinworks.common.config import VideoSettings, load_video_settings
from spinworks.common.env import Env
from spinworks.render.resources import ResourceReport
from spinworks.render.strategies import EncodeJob, EncodeResult


@contextmanager
def temp_env() -> Iterator[Tuple[tempfile.TemporaryDirectory, Env]]:
    """Create isolated input/output roots and return (tempdir, Env)."""
    td = tempfile.TemporaryDirectory()

    # Keep original env and restore on exit.
    old = os.environ.copy()
    try:
        os.environ["SPIN_INPUT_ROOT"] = str(Path(td.name) / "input")
        os.environ["SPIN_OUTPUT_ROOT"] = str(Path(td.name) / "output")
        os.environ["SPIN_SETTINGS_PATH"] = str(Path(td.name) / "missing.yaml")
        os.environ["SPIN_LOG_DIR"] = str(Path(td.name) / "logs")

        # disable external integrations by default
        os.environ["UPLOAD_BACKEND"] = "mock"
        os.environ["SPACES_BUCKET"] = ""

        env = Env.load()
        yield td, env
    finally:
        os.environ.clear()
        os.environ.update(old)
        td.cleanup()


def make_settings(**overrides) -> VideoSettings:
    """Built-in defaults (no YAML file) with optional overrides."""
    base = load_video_settings("/nonexistent/video_settings.yaml", "youtube")
    return replace(base, **overrides)


def no_resource_warnings(_path: Path, _min_free_gb: float) -> ResourceReport:
    return ResourceReport(ok=True)


class FakeEncoder:
    """Scripted stand-in for the strategy set and base clip builder.

    ``results`` maps a method name (or "base") to True/False. Successful
    calls write a small file at the path the real ffmpeg call would write.
    """

    def __init__(self, results: Dict[str, bool]):
        self.results = results
        self.calls: List[str] = []

    def _make(self, name: str) -> Callable[[EncodeJob], EncodeResult]:
        def _run(job: EncodeJob) -> EncodeResult:
            self.calls.append(name)
            if name == "base":
                target = job.workspace.base_clip
            else:
                target = job.out_path
                if name == "concat":
                    job.workspace.concat_list.write_text("file 'x'\n", encoding="utf-8")
            if not self.results.get(name, True):
                # leave a partial file behind, like a crashed ffmpeg would
                target.write_bytes(b"partial")
                return EncodeResult(ok=False, diagnostic=f"{name} line1\n{name} line2\n{name} boom", exit_code=1)
            target.write_bytes(b"video")
            return EncodeResult(ok=True)

        return _run

    @property
    def base_builder(self) -> Callable[[EncodeJob], EncodeResult]:
        return self._make("base")

    @property
    def strategies(self) -> Dict[str, Callable[[EncodeJob], EncodeResult]]:
        return {m: self._make(m) for m in ("concat", "stream_loop", "direct")}


def make_track(root: Path, name: str = "track.mp3") -> Path:
    p = root / name
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_bytes(b"ID3fake")
    return p
