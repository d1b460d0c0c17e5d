from __future__ import annotations

from pathlib import Path
from spinworks.common.env import Env
from spinworks.common.utils import safe_stem


AUDIT_LOG_FILE = "processing_log.txt"


def output_root(env: Env) -> Path:
    return Path(env.output_root).resolve()


def input_root(env: Env) -> Path:
    return Path(env.input_root).resolve()


def sku_input_dir(env: Env, sku: str) -> Path:
    return input_root(env) / sku


def sku_output_dir(env: Env, sku: str) -> Path:
    return output_root(env) / sku


def assets_dir(sku_out: Path) -> Path:
    """Derived inputs (flattened images) shared by every track of a SKU."""
    return sku_out / "_assets"


def job_workspace_dir(output_path: Path) -> Path:
    """Per-output temp directory; sits next to the output so renames stay on one filesystem."""
    return output_path.parent / f"_tmp_{safe_stem(output_path.stem)}"


def audit_log_path(env: Env) -> Path:
    return output_root(env) / AUDIT_LOG_FILE


def log_dir(env: Env) -> Path:
    if env.log_dir:
        return Path(env.log_dir).resolve()
    return output_root(env) / "logs"
