from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class RotationPlan:
    frames_needed: int
    angular_speed: float  # radians per second
    frame_duration: float  # seconds, equal to the configured rotation duration

    @property
    def covered_sec(self) -> float:
        return self.frames_needed * self.frame_duration


def plan_rotations(audio_duration_sec: float, rotation_duration: float) -> RotationPlan:
    """Number of base rotation clips needed to cover the audio.

    Uses floor + 1 rather than ceil, so an exact multiple still gets one
    spare rotation and zero-length audio still gets one.
    """
    if not math.isfinite(rotation_duration) or rotation_duration <= 0:
        raise ValueError(f"rotation_duration must be > 0, got {rotation_duration}")
    if not math.isfinite(audio_duration_sec) or audio_duration_sec < 0:
        raise ValueError(f"audio duration must be a finite value >= 0, got {audio_duration_sec}")

    return RotationPlan(
        frames_needed=int(math.floor(audio_duration_sec / rotation_duration)) + 1,
        angular_speed=2 * math.pi / rotation_duration,
        frame_duration=rotation_duration,
    )
