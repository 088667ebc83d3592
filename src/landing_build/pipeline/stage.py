from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from typing import Any, Callable

from landing_build.core import Timer, utc_now_iso

from .artifacts import BuiltFile
from .context import RunContext
from .events import EventType

StageFn = Callable[[RunContext], dict[str, Any] | None]

# Reserved keys of a stage's returned dict; everything else is an output.
WARNINGS = "_warnings"
METRICS = "_metrics"
FILES = "_files"


def format_duration_ms(ms: int) -> str:
    return f"{ms} ms" if ms < 1000 else f"{ms / 1000:.2f} s"


@dataclass(frozen=True, slots=True)
class Stage:
    stage_id: str
    fn: StageFn


@dataclass(frozen=True, slots=True)
class StageFailure:
    exc_type: str
    message: str
    traceback: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> StageFailure:
        return cls(
            exc_type=type(exc).__name__,
            message=str(exc),
            traceback="".join(traceback.format_exception(exc)),
        )


@dataclass(slots=True)
class StageResult:
    stage: str
    status: str  # "success" | "failed"
    started_at_utc: str
    duration_ms: int

    outputs: dict[str, Any] = field(default_factory=dict)
    metrics: dict[str, Any] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    files: list[BuiltFile] = field(default_factory=list)
    error: StageFailure | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def bytes_written(self) -> int:
        return sum(f.bytes for f in self.files)


def run_stage(
    ctx: RunContext, stage: Stage, *, position: str | None = None
) -> StageResult:
    """
    Run one stage. An exception turns into a failed result; whether the build
    goes on is the runner's decision.
    """
    sid = stage.stage_id
    log = ctx.stage_logger(sid)
    started = utc_now_iso()

    ctx.emit(EventType.STAGE_START, stage=sid)
    log.info("stage.start", position=position)

    timer = Timer()
    try:
        with timer:
            out = stage.fn(ctx) or {}
        if not isinstance(out, dict):
            raise TypeError(f"Stage {sid} returned {type(out).__name__}, expected dict")
    except Exception as exc:
        failure = StageFailure.from_exception(exc)
        ctx.emit(
            EventType.STAGE_FAILED,
            stage=sid,
            duration_ms=timer.elapsed_ms,
            exc_type=failure.exc_type,
            message=failure.message,
        )
        log.exception(
            "stage.failed", position=position, duration=format_duration_ms(timer.elapsed_ms)
        )
        return StageResult(
            stage=sid,
            status="failed",
            started_at_utc=started,
            duration_ms=timer.elapsed_ms,
            error=failure,
        )

    outputs = dict(out)
    result = StageResult(
        stage=sid,
        status="success",
        started_at_utc=started,
        duration_ms=timer.elapsed_ms,
        warnings=[str(w) for w in outputs.pop(WARNINGS, None) or []],
        metrics=dict(outputs.pop(METRICS, None) or {}),
        files=list(outputs.pop(FILES, None) or []),
        outputs=outputs,
    )

    for w in result.warnings:
        ctx.emit(EventType.STAGE_WARN, stage=sid, message=w)
        log.warning("stage.warning", message=w)

    ctx.emit(
        EventType.STAGE_SUCCESS,
        stage=sid,
        duration_ms=result.duration_ms,
        metrics=result.metrics,
        files=len(result.files),
    )
    log.info(
        "stage.done",
        position=position,
        duration=format_duration_ms(result.duration_ms),
        files=len(result.files),
        bytes=result.bytes_written,
        warnings=len(result.warnings),
    )
    return result
