import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Env:
    input_root: str
    output_root: str
    settings_path: str
    log_dir: str

    # batch knobs
    batch_workers: int
    min_free_gb: float

    upload_backend: str       # youtube | mock

    # youtube oauth
    yt_client_secret_json: str
    yt_token_json: str
    yt_privacy_status: str

    # digitalocean spaces (s3 compatible)
    spaces_bucket: str
    spaces_region: str
    spaces_endpoint: str
    spaces_prefix: str
    spaces_key: str
    spaces_secret: str

    @staticmethod
    def load() -> "Env":
        return Env(
            input_root=os.environ.get("SPIN_INPUT_ROOT", "data/input"),
            output_root=os.environ.get("SPIN_OUTPUT_ROOT", "data/output"),
            settings_path=os.environ.get("SPIN_SETTINGS_PATH", "configs/video_settings.yaml"),
            log_dir=os.environ.get("SPIN_LOG_DIR", ""),

            batch_workers=int(os.environ.get("BATCH_WORKERS", "1")),
            # free disk wanted before each SKU
            min_free_gb=float(os.environ.get("MIN_FREE_GB", "3")),

            upload_backend=os.environ.get("UPLOAD_BACKEND", "youtube"),

            yt_client_secret_json=os.environ.get("YT_CLIENT_SECRET_JSON", "configs/client_secret.json"),
            yt_token_json=os.environ.get("YT_TOKEN_JSON", "configs/token.json"),
            yt_privacy_status=os.environ.get("YT_PRIVACY_STATUS", "private"),

            spaces_bucket=os.environ.get("SPACES_BUCKET", ""),
            spaces_region=os.environ.get("SPACES_REGION", "ams3"),
            spaces_endpoint=os.environ.get("SPACES_ENDPOINT", ""),
            spaces_prefix=os.environ.get("SPACES_PREFIX", "mp4"),
            spaces_key=os.environ.get("SPACES_KEY", ""),
            spaces_secret=os.environ.get("SPACES_SECRET", ""),
        )
