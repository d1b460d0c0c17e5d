from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

import yaml


DEFAULT_FORMATS: Dict[str, Dict[str, int]] = {
    "youtube": {"width": 1280, "height": 720},
    "instagram": {"width": 1080, "height": 1350},
}


@dataclass(frozen=True)
class VideoSettings:
    fmt: str
    width: int
    height: int

    # one full 360 degree turn every rotation_duration seconds (12 RPM at 5.0)
    rotation_duration: float
    framerate: int

    preset: str
    audio_bitrate: str
    pixel_format: str
    threads: int  # 0 -> auto

    max_concat_rotations: int
    emergency_fallback_threshold: int  # informational only

    # 0 disables the encoder timeout
    encode_timeout_sec: int


def _read_yaml(path: Path) -> Dict[str, Any]:
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def available_formats(cfg_path: str) -> List[str]:
    p = Path(cfg_path)
    data = _read_yaml(p) if p.exists() else {}
    return sorted({**DEFAULT_FORMATS, **(data.get("formats") or {})}.keys())


def load_video_settings(cfg_path: str, fmt: str = "youtube") -> VideoSettings:
    """Load settings from YAML; missing keys (or a missing file) use built-in defaults."""
    p = Path(cfg_path)
    data = _read_yaml(p) if p.exists() else {}

    rotation = data.get("rotation", {}) or {}
    video = data.get("video", {}) or {}
    thresholds = data.get("thresholds", {}) or {}
    formats = {**DEFAULT_FORMATS, **(data.get("formats") or {})}

    if fmt not in formats:
        raise ValueError(f"unknown video format: {fmt} (known: {', '.join(sorted(formats))})")
    size = formats[fmt]

    rotation_duration = float(rotation.get("duration_sec", 5.0))
    if rotation_duration <= 0:
        raise ValueError(f"rotation.duration_sec must be > 0, got {rotation_duration}")

    return VideoSettings(
        fmt=fmt,
        width=int(size["width"]),
        height=int(size["height"]),
        rotation_duration=rotation_duration,
        framerate=int(video.get("framerate", 30)),
        preset=str(video.get("preset", "ultrafast")),
        audio_bitrate=str(video.get("audio_bitrate", "320k")),
        pixel_format=str(video.get("pixel_format", "yuv420p")),
        threads=int(video.get("threads", 0)),
        max_concat_rotations=int(thresholds.get("max_concat_rotations", 150)),
        emergency_fallback_threshold=int(thresholds.get("emergency_fallback_threshold", 200)),
        encode_timeout_sec=int(thresholds.get("encode_timeout_sec", 7200)),
    )
