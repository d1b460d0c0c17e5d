from __future__ import annotations

import shutil
from pathlib import Path
from typing import FrozenSet, List, Set

from spinworks.common.paths import job_workspace_dir


class JobWorkspace:
    """Owns every temporary file of one render job.

    The directory is named after the output file, so two jobs writing
    different outputs never share a base clip or concat list.
    """

    BASE_CLIP = "base_rotation.mp4"
    CONCAT_LIST = "concat_list.txt"
    RENDER = "render.mp4"

    def __init__(self, root: Path):
        self.root = root
        self._artifacts: Set[Path] = set()

    @classmethod
    def for_output(cls, output_path: Path) -> "JobWorkspace":
        return cls(job_workspace_dir(output_path))

    def __enter__(self) -> "JobWorkspace":
        self.root.mkdir(parents=True, exist_ok=True)
        return self

    def __exit__(self, *exc: object) -> None:
        self.cleanup()

    def path(self, name: str) -> Path:
        p = self.root / name
        self._artifacts.add(p)
        return p

    @property
    def base_clip(self) -> Path:
        return self.path(self.BASE_CLIP)

    @property
    def concat_list(self) -> Path:
        return self.path(self.CONCAT_LIST)

    @property
    def render_output(self) -> Path:
        return self.path(self.RENDER)

    @property
    def artifacts(self) -> FrozenSet[Path]:
        return frozenset(self._artifacts)

    def existing_artifacts(self) -> List[Path]:
        return sorted(p for p in self._artifacts if p.exists())

    def discard(self, p: Path) -> None:
        p.unlink(missing_ok=True)

    def cleanup(self) -> None:
        for p in self._artifacts:
            # a directory squatting on an artifact name goes with the rmtree below
            if not p.is_dir():
                p.unlink(missing_ok=True)
        self._artifacts.clear()
        if self.root.exists():
            shutil.rmtree(self.root, ignore_errors=True)
