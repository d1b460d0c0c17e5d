from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from spinworks.common import ffmpeg as ffm
from spinworks.common.config import VideoSettings
from spinworks.common.logging_setup import get_logger
from spinworks.render import audit
from spinworks.render.audit import AuditLog, StrategyAttempt
from spinworks.render.planner import RotationPlan, plan_rotations
from spinworks.render.resources import ResourceReport, check_resources
from spinworks.render.strategies import (
    METHOD_CONCAT,
    METHOD_DIRECT,
    METHOD_STREAM_LOOP,
    STRATEGIES,
    EncodeJob,
    EncodeResult,
    Strategy,
    build_base_rotation,
)
from spinworks.render.workspace import JobWorkspace


log = get_logger("controller")

STATUS_DONE = "done"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"

FAILED_TAIL_LINES = 3


@dataclass(frozen=True)
class ProcessingJob:
    image_path: Path
    audio_path: Path
    output_path: Path

    @property
    def label(self) -> str:
        return self.output_path.name


@dataclass
class JobOutcome:
    status: str
    reason: str = ""
    method: Optional[str] = None
    plan: Optional[RotationPlan] = None
    audio_duration: Optional[float] = None
    attempts: List[StrategyAttempt] = field(default_factory=list)
    output_written: bool = False

    @property
    def ok(self) -> bool:
        return self.status == STATUS_DONE


def select_methods(frames_needed: int, max_concat_rotations: int) -> List[str]:
    """Cascade order. Above the ceiling concat is dropped, not just moved back."""
    if frames_needed <= max_concat_rotations:
        return [METHOD_CONCAT, METHOD_STREAM_LOOP, METHOD_DIRECT]
    return [METHOD_STREAM_LOOP, METHOD_DIRECT]


class FallbackController:
    """Runs one track through plan -> base clip -> strategy cascade -> verify.

    A strategy failure moves on to the next method. A verification failure
    after a reported success ends the job; the cascade is not re-entered.
    """

    def __init__(
        self,
        settings: VideoSettings,
        audit_log: AuditLog,
        *,
        min_free_gb: float = 3.0,
        strategies: Optional[Dict[str, Strategy]] = None,
        base_builder: Callable[[EncodeJob], EncodeResult] = build_base_rotation,
        probe: Callable[[Path], float] = ffm.probe_duration,
        verify: Callable[[Path], Tuple[bool, str]] = ffm.verify_media,
        resource_check: Callable[[Path, float], ResourceReport] = check_resources,
    ):
        self.settings = settings
        self.audit = audit_log
        self.min_free_gb = min_free_gb
        self.strategies = dict(STRATEGIES if strategies is None else strategies)
        self._base_builder = base_builder
        self._probe = probe
        self._verify = verify
        self._resource_check = resource_check

    def _begin(self, method: str, plan: RotationPlan, duration: float, label: str) -> StrategyAttempt:
        return StrategyAttempt(
            method=method,
            frames_needed=plan.frames_needed,
            audio_duration=duration,
            track_label=label,
        )

    def _finish(self, outcome: JobOutcome, attempt: StrategyAttempt, result: str) -> StrategyAttempt:
        attempt.outcome = result
        self.audit.append(attempt)
        outcome.attempts.append(attempt)
        return attempt

    def _record(
        self,
        outcome: JobOutcome,
        method: str,
        plan: RotationPlan,
        duration: float,
        label: str,
        result: str,
    ) -> StrategyAttempt:
        return self._finish(outcome, self._begin(method, plan, duration, label), result)

    @staticmethod
    def _encode(fn: Callable[[EncodeJob], EncodeResult], enc: EncodeJob) -> EncodeResult:
        # filesystem and process launch errors count as a failed attempt
        try:
            return fn(enc)
        except OSError as e:
            return EncodeResult(ok=False, diagnostic=f"{type(e).__name__}: {e}", exit_code=1)

    def process(self, job: ProcessingJob) -> JobOutcome:
        label = job.label

        if job.output_path.exists():
            log.info("video already exists, skipping: %s", label)
            return JobOutcome(status=STATUS_SKIPPED, reason="output exists")

        try:
            duration = self._probe(job.audio_path)
            plan = plan_rotations(duration, self.settings.rotation_duration)
        except (ffm.ProbeError, ValueError, TypeError) as e:
            log.warning("could not get duration for %s, skipping: %s", job.audio_path.name, e)
            return JobOutcome(status=STATUS_FAILED, reason=f"probe: {e}")

        outcome = JobOutcome(status=STATUS_FAILED, plan=plan, audio_duration=duration)
        log.info(
            "track=%s duration=%.2fs rotations=%d rotation_sec=%g",
            label, duration, plan.frames_needed, plan.frame_duration,
        )

        report = self._resource_check(job.output_path.parent, self.min_free_gb)
        for w in report.warnings:
            log.warning("%s", w)

        self._record(outcome, audit.STARTING, plan, duration, label, audit.PENDING)

        try:
            with JobWorkspace.for_output(job.output_path) as ws:
                enc = EncodeJob(
                    image=job.image_path,
                    audio=job.audio_path,
                    plan=plan,
                    out_path=ws.render_output,
                    workspace=ws,
                    settings=self.settings,
                )
                self._run(job, enc, outcome)
        finally:
            # only a file this job moved into place is ours to remove
            if outcome.output_written and not outcome.ok:
                job.output_path.unlink(missing_ok=True)
        return outcome

    def _run(self, job: ProcessingJob, enc: EncodeJob, outcome: JobOutcome) -> None:
        plan = enc.plan
        duration = outcome.audio_duration or 0.0
        label = job.label

        base = self._encode(self._base_builder, enc)
        if not base.ok:
            log.error("failed to create base rotation for %s:\n%s", label, base.diagnostic)
            self._record(outcome, audit.BASE_ROTATION_FAILED, plan, duration, label, audit.FAILED)
            outcome.reason = "base rotation failed"
            return

        methods = select_methods(plan.frames_needed, self.settings.max_concat_rotations)
        log.info("methods for %s (%d rotations): %s", label, plan.frames_needed, ", ".join(methods))

        for method in methods:
            attempt = self._begin(method, plan, duration, label)
            result = self._encode(self.strategies[method], enc)
            if not result.ok:
                self._finish(outcome, attempt, audit.FAILED)
                tail = "\n".join(result.diagnostic.splitlines()[-FAILED_TAIL_LINES:])
                log.warning("method %s failed for %s (exit=%s):\n%s", method, label, result.exit_code, tail)
                enc.workspace.discard(enc.out_path)
                continue

            self._finish(outcome, attempt, audit.SUCCESS)
            outcome.method = method

            ok, reason = self._verify(enc.out_path)
            if not ok:
                log.error("created file is corrupted: %s (%s)", label, reason)
                enc.workspace.discard(enc.out_path)
                self._record(outcome, audit.VERIFICATION_FAILED, plan, duration, label, audit.FAILED)
                outcome.reason = f"verify: {reason}"
                return

            job.output_path.parent.mkdir(parents=True, exist_ok=True)
            os.replace(enc.out_path, job.output_path)
            outcome.output_written = True
            size = job.output_path.stat().st_size
            log.info(
                "created spinning video %s method=%s rotations=%d size=%d bytes",
                label, method, plan.frames_needed, size,
            )
            outcome.status = STATUS_DONE
            outcome.reason = "ok"
            return

        log.error(
            "ALL METHODS FAILED for %s: %d rotations, %.2fs duration",
            label, plan.frames_needed, duration,
        )
        self._record(outcome, audit.ALL_METHODS_FAILED, plan, duration, label, audit.FAILED)
        outcome.reason = "all methods failed"
        recent = self.audit.tail(5)
        if recent:
            log.info("recent processing log:\n%s", "\n".join(f"    {ln}" for ln in recent))
