from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from spinworks.common.env import Env
from spinworks.common.logging_setup import get_logger
from spinworks.common.paths import sku_output_dir
from spinworks.integrations import spaces
from spinworks.integrations.youtube import YouTubeClient


log = get_logger("uploader")


@dataclass
class UploadSummary:
    sku: str
    playlist_id: str = ""
    video_ids: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def list_videos(sku_out: Path) -> List[Path]:
    if not sku_out.exists():
        return []
    return sorted(p for p in sku_out.glob("*.mp4") if p.is_file())


def upload_sku_to_youtube(env: Env, sku: str, *, client: Optional[YouTubeClient] = None) -> UploadSummary:
    """Upload every rendered video of a SKU and collect them in a playlist named after it."""
    sku_out = sku_output_dir(env, sku)
    if not sku_out.exists():
        raise RuntimeError(f"output directory for SKU {sku!r} not found: {sku_out}")

    summary = UploadSummary(sku=sku)
    videos = list_videos(sku_out)
    if not videos:
        log.warning("no video files found in %s, skipping upload", sku_out)
        return summary
    log.info("found %d video files to upload for sku=%s", len(videos), sku)

    if env.upload_backend == "mock":
        summary.playlist_id = f"mock-playlist-{sku}"
        summary.video_ids = [f"mock-{p.stem}" for p in videos]
        log.info("mock upload done sku=%s videos=%d", sku, len(videos))
        return summary

    yt = client or YouTubeClient(client_secret_json=env.yt_client_secret_json, token_json=env.yt_token_json)
    summary.playlist_id = yt.ensure_playlist(sku)
    log.info("playlist ready sku=%s playlist_id=%s", sku, summary.playlist_id)

    for video in videos:
        try:
            res = yt.upload_video(
                video_path=video,
                title=video.stem,
                description=f"{video.stem}\n\n{sku}",
                tags=[sku],
                privacy_status=env.yt_privacy_status,
            )
        except Exception as e:
            log.error("upload failed video=%s err=%s", video.name, e)
            summary.failed.append(video.name)
            continue

        summary.video_ids.append(res.video_id)
        log.info("uploaded %s -> %s", video.name, res.url)
        try:
            yt.add_to_playlist(playlist_id=summary.playlist_id, video_id=res.video_id)
        except Exception as e:
            log.warning("failed to add to playlist video_id=%s err=%s", res.video_id, e)

    log.info(
        "sku=%s uploaded=%d failed=%d playlist=%s",
        sku, len(summary.video_ids), len(summary.failed), summary.playlist_id,
    )
    return summary


def package_and_upload_sku(env: Env, sku: str, *, cfg: Optional[spaces.SpacesConfig] = None) -> str:
    """Zip the SKU's videos, push the archive to Spaces, always drop the local zip."""
    sku_out = sku_output_dir(env, sku)
    videos = list_videos(sku_out)
    if not videos:
        raise RuntimeError(f"no videos to package for SKU {sku!r} in {sku_out}")

    cfg = cfg or spaces.SpacesConfig.from_env(env)
    zip_path = sku_out / f"{sku}.zip"
    log.info("compressing %d videos into %s", len(videos), zip_path)
    try:
        spaces.zip_videos(videos, zip_path)
        url = spaces.upload_to_spaces(zip_path, cfg)
    finally:
        zip_path.unlink(missing_ok=True)
    log.info("uploaded %s to %s", zip_path.name, url)
    return url
