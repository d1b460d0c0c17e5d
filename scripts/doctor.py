from __future__ import annotations

import argparse
import os
import shutil
from pathlib import Path

from spinworks.common.config import load_video_settings
from spinworks.common.env import Env
from spinworks.common.ffmpeg import run
from spinworks.common.paths import input_root, output_root
from spinworks.common.profile import load_profile_env
from spinworks.render.resources import check_resources


def _ok(msg: str) -> None:
    print(f"[OK] {msg}")


def _warn(msg: str) -> None:
    print(f"[WARN] {msg}")


def _fail(msg: str) -> None:
    print(f"[FAIL] {msg}")
    raise SystemExit(2)


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--profile", default="local", choices=["local", "prod"])
    args = parser.parse_args()

    os.environ["SPIN_PROFILE"] = args.profile
    loaded = load_profile_env()
    if loaded:
        _ok(f"Loaded env file: {loaded}")
    else:
        _warn("No env file loaded. Create deploy/env.local or deploy/env.prod (or deploy/env).")

    env = Env.load()

    if shutil.which("ffmpeg") and shutil.which("ffprobe"):
        _ok("ffmpeg/ffprobe found")
    else:
        _fail("ffmpeg/ffprobe not found. Install ffmpeg.")

    code, out, _ = run(["ffmpeg", "-hide_banner", "-encoders"])
    if code == 0 and "libx264" in out and "aac" in out:
        _ok("libx264 and aac encoders available")
    else:
        _fail("ffmpeg build lacks libx264 or aac encoder.")

    try:
        settings = load_video_settings(env.settings_path)
        _ok(
            f"Settings: rotation={settings.rotation_duration}s fps={settings.framerate} "
            f"max_concat={settings.max_concat_rotations} timeout={settings.encode_timeout_sec}s"
        )
    except (OSError, ValueError) as e:
        _fail(f"Invalid settings file {env.settings_path}: {e}")

    if not input_root(env).exists():
        _warn(f"Input root does not exist yet: {input_root(env)}")
    else:
        _ok(f"Input root: {input_root(env)}")

    out = output_root(env)
    out.mkdir(parents=True, exist_ok=True)
    report = check_resources(out, env.min_free_gb)
    for w in report.warnings:
        _warn(w)
    if report.ok:
        _ok(f"Output root: {out} ({report.free_gb or 0:.1f}GB free)")

    if args.profile == "prod":
        if env.upload_backend != "youtube":
            _warn("Prod profile but UPLOAD_BACKEND is not 'youtube'.")
        if not Path(env.yt_client_secret_json).exists():
            _warn(f"YT client secret not found: {env.yt_client_secret_json}")
        if not Path(env.yt_token_json).exists():
            _warn(f"YT token not found: {env.yt_token_json} (run scripts/youtube_auth.py)")
        if not env.spaces_bucket:
            _warn("SPACES_BUCKET is empty; instagram packaging upload disabled.")
        elif not env.spaces_key or not env.spaces_secret:
            _warn("SPACES_KEY/SPACES_SECRET not set.")

    _ok("Doctor finished.")


if __name__ == "__main__":
    main()
