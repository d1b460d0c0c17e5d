from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional

from spinworks.common import ffmpeg as ffm
from spinworks.common.config import VideoSettings
from spinworks.render.planner import RotationPlan
from spinworks.render.workspace import JobWorkspace


METHOD_CONCAT = "concat"
METHOD_STREAM_LOOP = "stream_loop"
METHOD_DIRECT = "direct"

# exit code reported when the encoder binary cannot be started at all
LAUNCH_FAILED_EXIT_CODE = 127


@dataclass(frozen=True)
class EncodeResult:
    ok: bool
    diagnostic: str = ""
    exit_code: int = 0


@dataclass(frozen=True)
class EncodeJob:
    image: Path
    audio: Path
    plan: RotationPlan
    out_path: Path
    workspace: JobWorkspace
    settings: VideoSettings


Strategy = Callable[[EncodeJob], EncodeResult]


def _threads(settings: VideoSettings) -> str:
    return str(settings.threads if settings.threads > 0 else ffm.cpu_cores())


def _timeout(settings: VideoSettings) -> Optional[int]:
    return settings.encode_timeout_sec if settings.encode_timeout_sec > 0 else None


def spin_filter(settings: VideoSettings, plan: RotationPlan) -> str:
    """Fit the image into the frame on black, then rotate at plan.angular_speed."""
    w, h = settings.width, settings.height
    scale = f"scale={w}:{h}:force_original_aspect_ratio=decrease"
    pad = f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2:color=black"
    rotate = f"rotate={plan.angular_speed:.8f}*t:bilinear=0:fillcolor=black"
    return f"{scale},{pad},{rotate}"


def _execute(cmd: List[str], settings: VideoSettings) -> EncodeResult:
    try:
        code, _out, err = ffm.run(cmd, timeout=_timeout(settings))
    except OSError as e:
        return EncodeResult(ok=False, diagnostic=f"could not start {cmd[0]}: {e}", exit_code=LAUNCH_FAILED_EXIT_CODE)
    if code != 0:
        return EncodeResult(ok=False, diagnostic=ffm.stderr_tail(err), exit_code=code)
    return EncodeResult(ok=True)


def concat_list_text(clip: Path, count: int) -> str:
    # concat demuxer quoting: close quote, escaped quote, reopen
    quoted = str(clip).replace("'", "'\\''")
    return "".join(f"file '{quoted}'\n" for _ in range(count))


def build_base_rotation(job: EncodeJob) -> EncodeResult:
    """One rotation_duration long clip of the spinning image, shared by concat and stream_loop."""
    s = job.settings
    cmd = [
        "ffmpeg",
        "-hide_banner",
        "-threads", _threads(s),
        "-loop", "1",
        "-framerate", str(s.framerate),
        "-i", str(job.image),
        "-c:v", "libx264",
        "-preset", s.preset,
        "-tune", "stillimage",
        "-pix_fmt", s.pixel_format,
        "-vf", spin_filter(s, job.plan),
        "-t", f"{job.plan.frame_duration:g}",
        "-movflags", "+faststart",
        "-y", str(job.workspace.base_clip),
    ]
    return _execute(cmd, s)


def encode_concat(job: EncodeJob) -> EncodeResult:
    """Stream-copy the base clip frames_needed times; video bytes stay exactly as encoded."""
    s = job.settings
    concat_list = job.workspace.concat_list
    try:
        concat_list.write_text(
            concat_list_text(job.workspace.base_clip, job.plan.frames_needed),
            encoding="utf-8",
        )
    except OSError as e:
        return EncodeResult(ok=False, diagnostic=f"could not write concat list: {e}", exit_code=1)
    cmd = [
        "ffmpeg",
        "-hide_banner",
        "-threads", _threads(s),
        "-f", "concat",
        "-safe", "0",
        "-i", str(concat_list),
        "-i", str(job.audio),
        "-c:v", "copy",
        "-c:a", "aac",
        "-b:a", s.audio_bitrate,
        "-shortest",
        "-movflags", "+faststart",
        "-y", str(job.out_path),
    ]
    return _execute(cmd, s)


def encode_stream_loop(job: EncodeJob) -> EncodeResult:
    """Let ffmpeg repeat the base clip internally; re-encodes the video."""
    s = job.settings
    cmd = [
        "ffmpeg",
        "-hide_banner",
        "-threads", _threads(s),
        "-stream_loop", str(job.plan.frames_needed - 1),
        "-i", str(job.workspace.base_clip),
        "-i", str(job.audio),
        "-c:v", "libx264",
        "-preset", s.preset,
        "-pix_fmt", s.pixel_format,
        "-c:a", "aac",
        "-b:a", s.audio_bitrate,
        "-shortest",
        "-movflags", "+faststart",
        "-y", str(job.out_path),
    ]
    return _execute(cmd, s)


def encode_direct(job: EncodeJob) -> EncodeResult:
    """Render the whole track from the still image in one pass. Slowest, no intermediates."""
    s = job.settings
    cmd = [
        "ffmpeg",
        "-hide_banner",
        "-threads", _threads(s),
        "-loop", "1",
        "-framerate", str(s.framerate),
        "-i", str(job.image),
        "-i", str(job.audio),
        "-c:v", "libx264",
        "-preset", s.preset,
        "-tune", "stillimage",
        "-pix_fmt", s.pixel_format,
        "-vf", spin_filter(s, job.plan),
        "-c:a", "aac",
        "-b:a", s.audio_bitrate,
        "-shortest",
        "-movflags", "+faststart",
        "-y", str(job.out_path),
    ]
    return _execute(cmd, s)


STRATEGIES: Dict[str, Strategy] = {
    METHOD_CONCAT: encode_concat,
    METHOD_STREAM_LOOP: encode_stream_loop,
    METHOD_DIRECT: encode_direct,
}
