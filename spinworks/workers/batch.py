from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from PIL import Image

from spinworks.common.logging_setup import get_logger
from spinworks.common.paths import assets_dir
from spinworks.render.controller import (
    STATUS_DONE,
    STATUS_FAILED,
    STATUS_SKIPPED,
    FallbackController,
    JobOutcome,
    ProcessingJob,
)


log = get_logger("batch")

IMAGE_EXTS = (".jpg", ".jpeg", ".png")
AUDIO_EXTS = (".mp3", ".wav", ".aif")
PREFERRED_IMAGE_SUFFIX = "1400"


@dataclass
class BatchSummary:
    sku: str
    done: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.done) + len(self.skipped) + len(self.failed)


def _files_with_ext(root: Path, exts: Sequence[str]) -> List[Path]:
    if not root.exists():
        return []
    return sorted(
        (p for p in root.rglob("*") if p.is_file() and p.suffix.lower() in exts),
        key=lambda p: str(p),
    )


def find_images(sku_dir: Path) -> List[Path]:
    """Images whose name ends in '1400' (the high-res label scans) win; otherwise all images."""
    images = _files_with_ext(sku_dir, IMAGE_EXTS)
    preferred = [p for p in images if p.stem.endswith(PREFERRED_IMAGE_SUFFIX)]
    return preferred or images


def find_audio(sku_dir: Path) -> List[Path]:
    return _files_with_ext(sku_dir, AUDIO_EXTS)


def pick_image(images: Sequence[Path], index: int, total: int) -> Path:
    # first half of the tracks (rounded up) get the A-side label, the rest the B-side
    half = (total + 1) // 2
    if len(images) >= 2 and index >= half:
        return images[1]
    return images[0]


def flatten_png(image: Path, out_dir: Path) -> Path:
    """Composite a transparent PNG onto black. Other images are returned unchanged."""
    if image.suffix.lower() != ".png":
        return image
    try:
        with Image.open(image) as im:
            if im.mode not in ("RGBA", "LA") and not (im.mode == "P" and "transparency" in im.info):
                return image
            rgba = im.convert("RGBA")
            bg = Image.new("RGB", rgba.size, (0, 0, 0))
            bg.paste(rgba, mask=rgba.getchannel("A"))
            out_dir.mkdir(parents=True, exist_ok=True)
            out = out_dir / f"{image.stem}__flat.png"
            bg.save(out, format="PNG")
    except OSError as e:
        log.warning("could not flatten %s, using it as is: %s", image.name, e)
        return image
    log.info("flattened PNG onto black: %s -> %s", image.name, out.name)
    return out


def output_path_for(audio: Path, sku_out: Path) -> Path:
    return sku_out / f"{audio.stem}.mp4"


def plan_jobs(sku_dir: Path, sku_out: Path) -> List[ProcessingJob]:
    images = find_images(sku_dir)
    if not images:
        log.warning("no suitable images found in %s, skipping", sku_dir)
        return []
    audio_files = find_audio(sku_dir)
    if not audio_files:
        log.warning("no .mp3, .wav or .aif files found in %s, skipping", sku_dir)
        return []
    log.info("found %d images and %d audio files in %s", len(images), len(audio_files), sku_dir)

    flat_dir = assets_dir(sku_out)
    usable = [flatten_png(p, flat_dir) for p in images[:2]]

    jobs: List[ProcessingJob] = []
    planned: Dict[Path, Path] = {}
    for i, audio in enumerate(audio_files):
        out = output_path_for(audio, sku_out)
        # song.mp3 and song.wav would render into the same song.mp4
        if out in planned:
            log.warning("skipping %s: %s is already rendered from %s", audio.name, out.name, planned[out].name)
            continue
        planned[out] = audio
        jobs.append(
            ProcessingJob(
                image_path=pick_image(usable, i, len(audio_files)),
                audio_path=audio,
                output_path=out,
            )
        )
    return jobs


def _run_one(controller: FallbackController, job: ProcessingJob, index: int, total: int) -> JobOutcome:
    log.info("--- processing track %d/%d: %s (image %s)", index + 1, total, job.audio_path.name, job.image_path.name)
    try:
        return controller.process(job)
    except Exception as e:
        log.exception("track crashed track=%s err=%s", job.label, e)
        return JobOutcome(status=STATUS_FAILED, reason=f"crash: {e}")


def run_batch(
    sku_dir: Path,
    sku: str,
    sku_out: Path,
    controller: FallbackController,
    *,
    workers: int = 1,
    jobs: Optional[List[ProcessingJob]] = None,
) -> BatchSummary:
    """Render every track of one SKU; a failing track never stops the rest."""
    summary = BatchSummary(sku=sku)
    sku_out.mkdir(parents=True, exist_ok=True)

    if jobs is None:
        jobs = plan_jobs(sku_dir, sku_out)
    total = len(jobs)
    if not total:
        return summary

    log.info("=== processing SKU %s (%d tracks, workers=%d) ===", sku, total, max(1, workers))
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda a: _run_one(controller, a[1], a[0], total), enumerate(jobs)))
    else:
        outcomes = [_run_one(controller, job, i, total) for i, job in enumerate(jobs)]

    for job, outcome in zip(jobs, outcomes):
        if outcome.status == STATUS_DONE:
            summary.done.append(job.label)
        elif outcome.status == STATUS_SKIPPED:
            summary.skipped.append(job.label)
        else:
            summary.failed.append(job.label)

    log.info(
        "=== SKU %s completed: done=%d skipped=%d failed=%d ===",
        sku, len(summary.done), len(summary.skipped), len(summary.failed),
    )
    return summary
