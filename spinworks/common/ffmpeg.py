from __future__ import annotations

import json
import math
import os
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


TIMEOUT_EXIT_CODE = 124


class ProbeError(RuntimeError):
    """ffprobe could not read the file or returned no usable duration."""


def run(cmd: List[str], timeout: Optional[int] = None) -> Tuple[int, str, str]:
    p = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
    try:
        out, err = p.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        p.kill()
        out, err = p.communicate()
        return TIMEOUT_EXIT_CODE, out, err + f"\ntimeout after {timeout}s"
    return p.returncode, out, err


def stderr_tail(stderr_text: str, max_lines: int = 8) -> str:
    lines = [ln for ln in stderr_text.strip().splitlines() if ln.strip()]
    if not lines:
        return ""
    return "\n".join(lines[-max_lines:])


def cpu_cores() -> int:
    return os.cpu_count() or 4


def ffprobe_json(path: Path) -> Dict[str, Any]:
    code, out, err = run(
        [
            "ffprobe",
            "-hide_banner",
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_format",
            "-show_streams",
            str(path),
        ]
    )
    if code != 0:
        raise ProbeError(f"ffprobe failed: {err.strip()}")
    try:
        return json.loads(out)
    except ValueError as e:
        raise ProbeError(f"ffprobe returned invalid json: {e}") from e


def probe_duration(path: Path) -> float:
    """Return the container duration in seconds.

    Raises ProbeError when the value is missing, "N/A", or not a finite
    non-negative number.
    """
    info = ffprobe_json(path)
    fmt = info.get("format", {})
    dur = fmt.get("duration") if isinstance(fmt, dict) else None
    if dur is None or dur == "N/A":
        raise ProbeError(f"no duration reported for {path.name}")
    try:
        value = float(dur)
    except (ValueError, TypeError) as e:
        raise ProbeError(f"non-numeric duration for {path.name}: {dur!r}") from e
    if not math.isfinite(value) or value < 0:
        raise ProbeError(f"invalid duration for {path.name}: {dur!r}")
    return value


def verify_media(path: Path) -> Tuple[bool, str]:
    """Check the file is a readable container with a video stream."""
    if not path.exists():
        return False, "output file missing"
    if path.stat().st_size == 0:
        return False, "output file is empty"

    try:
        info = ffprobe_json(path)
    except ProbeError as e:
        return False, str(e)

    streams = info.get("streams", [])
    if not isinstance(streams, list):
        return False, "ffprobe malformed streams"
    if not any(isinstance(s, dict) and s.get("codec_type") == "video" for s in streams):
        return False, "no video stream"
    return True, "ok"
