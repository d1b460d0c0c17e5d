from __future__ import annotations

import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import boto3
from botocore.client import Config as BotoConfig

from spinworks.common.env import Env


@dataclass(frozen=True)
class SpacesConfig:
    bucket: str
    region: str
    endpoint: str
    prefix: str
    access_key: str
    secret_key: str
    public_read: bool = True

    @staticmethod
    def from_env(env: Env) -> "SpacesConfig":
        return SpacesConfig(
            bucket=env.spaces_bucket,
            region=env.spaces_region,
            endpoint=env.spaces_endpoint,
            prefix=env.spaces_prefix,
            access_key=env.spaces_key,
            secret_key=env.spaces_secret,
        )


def validate_spaces_config(cfg: SpacesConfig) -> Tuple[bool, str]:
    if not cfg.bucket:
        return False, "bucket is empty"
    if not cfg.access_key or not cfg.secret_key:
        return False, "missing access/secret key"
    if not cfg.region and not cfg.endpoint:
        return False, "region and endpoint are empty"
    return True, "ok"


def _spaces_client(cfg: SpacesConfig):
    endpoint = cfg.endpoint or f"https://{cfg.region}.digitaloceanspaces.com"
    return boto3.client(
        "s3",
        region_name=cfg.region,
        endpoint_url=endpoint,
        aws_access_key_id=cfg.access_key,
        aws_secret_access_key=cfg.secret_key,
        config=BotoConfig(signature_version="s3v4"),
    )


def object_key(cfg: SpacesConfig, name: str) -> str:
    prefix = (cfg.prefix or "").strip().strip("/")
    return f"{prefix}/{name}" if prefix else name


def zip_videos(videos: List[Path], zip_path: Path) -> Path:
    """Store videos flat (no directories), like `zip -j`."""
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(zip_path, "w", compression=zipfile.ZIP_STORED) as zf:
        for v in videos:
            zf.write(v, arcname=v.name)
    return zip_path


def upload_to_spaces(file_path: Path, cfg: SpacesConfig) -> str:
    ok, msg = validate_spaces_config(cfg)
    if not ok:
        raise RuntimeError(f"spaces config invalid: {msg}")

    s3 = _spaces_client(cfg)
    key = object_key(cfg, file_path.name)
    extra = {"ACL": "public-read"} if cfg.public_read else {}
    s3.upload_file(str(file_path), cfg.bucket, key, ExtraArgs=(extra or None))
    return f"s3://{cfg.bucket}/{key}"
