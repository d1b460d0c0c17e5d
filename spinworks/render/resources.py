from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


GB = 1024 ** 3
MB = 1024 ** 2

# Roughly the 100000 free 4k-pages floor of the old vm_stat check.
DEFAULT_MIN_FREE_MEM_MB = 400


@dataclass(frozen=True)
class ResourceReport:
    ok: bool
    warnings: List[str] = field(default_factory=list)
    free_gb: Optional[float] = None
    free_mem_mb: Optional[float] = None


def _existing_ancestor(path: Path) -> Path:
    p = path
    while not p.exists() and p.parent != p:
        p = p.parent
    return p


def free_disk_gb(path: Path) -> Optional[float]:
    try:
        usage = shutil.disk_usage(str(_existing_ancestor(path)))
    except OSError:
        return None
    return usage.free / GB


def free_memory_mb() -> Optional[float]:
    """Available physical memory, or None where sysconf cannot tell."""
    try:
        pages = os.sysconf("SC_AVPHYS_PAGES")
        page_size = os.sysconf("SC_PAGE_SIZE")
    except (ValueError, OSError, AttributeError):
        return None
    if pages < 0 or page_size <= 0:
        return None
    return pages * page_size / MB


def check_resources(
    path: Path,
    min_free_gb: float,
    *,
    min_free_mem_mb: float = DEFAULT_MIN_FREE_MEM_MB,
) -> ResourceReport:
    """Advisory pre-flight check. Never raises; callers only log the warnings."""
    warnings: List[str] = []

    free_gb = free_disk_gb(path)
    if free_gb is not None and free_gb < min_free_gb:
        warnings.append(f"Low disk space: {free_gb:.1f}GB available, {min_free_gb:g}GB recommended")

    free_mem = free_memory_mb()
    if free_mem is not None and free_mem < min_free_mem_mb:
        warnings.append(f"Low memory available: {free_mem:.0f}MB free, {min_free_mem_mb:g}MB recommended")

    return ResourceReport(ok=not warnings, warnings=warnings, free_gb=free_gb, free_mem_mb=free_mem)
