from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from spinworks.common.config import available_formats, load_video_settings
from spinworks.common.env import Env
from spinworks.common.logging_setup import get_logger, setup_logging
from spinworks.common.paths import audit_log_path, input_root, sku_input_dir, sku_output_dir
from spinworks.common.profile import load_profile_env
from spinworks.render.audit import AuditLog
from spinworks.render.controller import FallbackController
from spinworks.workers.batch import BatchSummary, run_batch
from spinworks.workers.uploader import package_and_upload_sku, upload_sku_to_youtube


log = get_logger("cli")

DESTINATION_FORMATS = {"youtube": "youtube", "instagram": "instagram"}


def detect_sku(env: Env) -> str:
    """The input root must hold exactly one SKU directory."""
    root = input_root(env)
    dirs = sorted(p for p in root.iterdir() if p.is_dir()) if root.exists() else []
    if not dirs:
        raise RuntimeError(f"no SKU directory found in {root}")
    if len(dirs) > 1:
        raise RuntimeError(f"multiple SKU directories found in {root}; keep only one at a time")
    return dirs[0].name


def build_controller(env: Env, fmt: str) -> FallbackController:
    settings = load_video_settings(env.settings_path, fmt)
    return FallbackController(settings, AuditLog(audit_log_path(env)), min_free_gb=env.min_free_gb)


def cmd_process(env: Env, sku: str, fmt: str, workers: int) -> BatchSummary:
    src = sku_input_dir(env, sku)
    if not src.is_dir():
        raise RuntimeError(f"input directory for SKU {sku!r} not found: {src}")
    controller = build_controller(env, fmt)
    return run_batch(src, sku, sku_output_dir(env, sku), controller, workers=workers)


def cmd_run(env: Env, destination: str, sku: str, workers: int) -> int:
    """Render for a destination, then hand the SKU to the matching upload step."""
    summary = cmd_process(env, sku, DESTINATION_FORMATS[destination], workers)
    if destination == "youtube":
        upload_sku_to_youtube(env, sku)
    elif env.spaces_bucket:
        package_and_upload_sku(env, sku)
    else:
        log.info("videos are ready in %s", sku_output_dir(env, sku))
    return 1 if summary.failed else 0


def build_parser(env: Env) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="spinworks", description="Spinning vinyl video pipeline")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("process", help="render videos for one SKU")
    p.add_argument("--sku", default="", help="SKU directory under the input root (auto-detected if empty)")
    p.add_argument("--format", default="youtube", choices=available_formats(env.settings_path))
    p.add_argument("--workers", type=int, default=env.batch_workers)

    r = sub.add_parser("run", help="render and publish for a destination")
    r.add_argument("destination", choices=sorted(DESTINATION_FORMATS))
    r.add_argument("--sku", default="")
    r.add_argument("--workers", type=int, default=env.batch_workers)

    u = sub.add_parser("upload", help="upload rendered videos of a SKU to YouTube")
    u.add_argument("--sku", default="")

    k = sub.add_parser("package", help="zip rendered videos of a SKU and upload to Spaces")
    k.add_argument("--sku", default="")

    t = sub.add_parser("tail-log", help="show the last processing log entries")
    t.add_argument("-n", type=int, default=20)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_profile_env()
    env = Env.load()
    args = build_parser(env).parse_args(argv)

    setup_logging(env, service=f"spinworks-{args.command}")

    if args.command == "tail-log":
        for line in AuditLog(audit_log_path(env)).tail(args.n):
            print(line)
        return 0

    try:
        sku = args.sku or detect_sku(env)
        if args.command == "process":
            summary = cmd_process(env, sku, args.format, args.workers)
            return 1 if summary.failed else 0
        if args.command == "run":
            return cmd_run(env, args.destination, sku, args.workers)
        if args.command == "upload":
            summary = upload_sku_to_youtube(env, sku)
            return 1 if summary.failed else 0
        if args.command == "package":
            package_and_upload_sku(env, sku)
            return 0
    except RuntimeError as e:
        log.error("%s", e)
        return 1
    return 2


if __name__ == "__main__":
    sys.exit(main())
