from __future__ import annotations

import os
from collections import Counter
from pathlib import Path
from typing import Any, Sequence

from landing_build.core import (
    ILogger,
    Settings,
    Timer,
    get_logger,
    new_run_id,
    utc_now_iso,
)

from .context import RunContext
from .events import EventLog, EventType
from .report import BuildReport
from .stage import Stage, StageFn, StageResult, format_duration_ms, run_stage


class PipelineRunner:
    """
    Runs build stages in order, stopping at the first failure unless told
    otherwise. Each run gets `{run_root}/{run_id}/` holding events.jsonl and
    run_report.json.
    """

    def __init__(
        self,
        *,
        stages: Sequence[Stage],
        logger: ILogger | None = None,
        stop_on_failure: bool = True,
    ) -> None:
        counts = Counter(s.stage_id for s in stages)
        dupes = sorted(sid for sid, n in counts.items() if n > 1)
        if dupes:
            raise ValueError(f"Duplicate stage ids: {dupes}")
        self.stages = list(stages)
        self.logger = logger or get_logger("landing_build.pipeline")
        self.stop_on_failure = stop_on_failure

    @staticmethod
    def fn(stage_id: str, fn: StageFn) -> Stage:
        return Stage(stage_id=stage_id, fn=fn)

    def run(
        self,
        *,
        settings: Settings,
        run_id: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> tuple[int, Path]:
        """Returns (exit_code, path of run_report.json)."""
        rid = run_id or new_run_id()
        run_dir = Path(settings.run_root) / rid
        ctx = RunContext(
            run_id=rid,
            settings=settings,
            logger=self.logger,
            events=EventLog(run_dir / "events.jsonl", run_id=rid),
            meta=dict(meta or {}),
        )
        stage_ids = [s.stage_id for s in self.stages]

        ctx.emit(
            EventType.RUN_START,
            stages=stage_ids,
            dist_dir=str(settings.dist_dir),
            pid=os.getpid(),
            cwd=str(Path.cwd()),
            meta=ctx.meta,
        )
        self.logger.info(
            "build.start", run_id=rid, stages=stage_ids, dist_dir=str(settings.dist_dir)
        )

        started = utc_now_iso()
        results: list[StageResult] = []
        with Timer() as timer:
            for i, stage in enumerate(self.stages, start=1):
                result = run_stage(ctx, stage, position=f"{i}/{len(self.stages)}")
                results.append(result)
                if not result.ok and self.stop_on_failure:
                    self.logger.error("build.stopped", stage=stage.stage_id)
                    break

        report = BuildReport(
            run_id=rid,
            started_at_utc=started,
            finished_at_utc=utc_now_iso(),
            duration_ms=timer.elapsed_ms,
            stages=results,
            events_jsonl=str(ctx.events.path),
            meta=ctx.meta,
        )
        report_path = report.write(run_dir / "run_report.json")

        ctx.emit(EventType.RUN_FINISH, status=report.status, duration_ms=report.duration_ms)
        self.logger.info(
            "build.done",
            status=report.status,
            duration=format_duration_ms(report.duration_ms),
            warnings=len(report.warnings),
            report=str(report_path),
        )
        return report.exit_code, report_path
