from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from spinworks.common.env import Env
from spinworks.common.paths import log_dir


_CONFIGURED_FOR: set[str] = set()

# client libraries that log every request or cache miss at INFO/DEBUG
_CHATTY_LOGGERS = (
    "googleapiclient.discovery_cache",
    "googleapiclient.http",
    "google_auth_oauthlib",
    "botocore",
    "boto3",
    "s3transfer",
    "urllib3",
    "PIL",
)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(service)s | %(message)s"


class _ServiceFilter(logging.Filter):
    def __init__(self, service: str):
        super().__init__()
        self._service = service

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        if not hasattr(record, "service"):
            record.service = self._service
        return True


def _level_from_env() -> int:
    name = os.environ.get("LOG_LEVEL", "INFO").upper().strip() or "INFO"
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def service_log_path(env: Env, service: str) -> Path:
    return log_dir(env) / f"{service}.log"


def setup_logging(env: Env, *, service: str) -> None:
    """Configure root logging once per CLI command.

    Records from every module logger (controller, batch, audit, ...) go to
    stdout and to a rotating <log_dir>/<service>.log; the per-attempt audit
    trail lives separately in processing_log.txt.
    """

    if service in _CONFIGURED_FOR:
        return

    root = logging.getLogger()
    root.setLevel(_level_from_env())
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    sh = logging.StreamHandler(sys.stdout)
    sh.setFormatter(fmt)
    sh.addFilter(_ServiceFilter(service))
    root.addHandler(sh)

    path = service_log_path(env, service)
    path.parent.mkdir(parents=True, exist_ok=True)
    fh = RotatingFileHandler(
        filename=str(path),
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    fh.setFormatter(fmt)
    fh.addFilter(_ServiceFilter(service))
    root.addHandler(fh)

    _CONFIGURED_FOR.add(service)


def reset_logging() -> None:
    """Close and drop root handlers so the next setup_logging starts clean."""
    root = logging.getLogger()
    for h in list(root.handlers):
        h.close()
        root.removeHandler(h)
    _CONFIGURED_FOR.clear()


def get_logger(service: str) -> logging.Logger:
    return logging.getLogger(service)
