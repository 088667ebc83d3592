from __future__ import annotations

from typing import Any

from landing_build.core import Settings, Timer
from landing_build.pipeline.context import RunContext
from landing_build.pipeline.events import EventType

from .codecs import BROTLI, GZIP, ZSTD, Compressor
from .runner import COMPRESS_TARGETS, compress_artifacts, summarize


def configured_compressors(settings: Settings) -> list[tuple[Compressor, int]]:
    plan: list[tuple[Compressor, int]] = [
        (BROTLI, settings.brotli_level),
        (GZIP, settings.gzip_level),
    ]
    if settings.enable_zstd:
        plan.append((ZSTD, settings.zstd_level))
    return plan


def stage_compress(ctx: RunContext) -> dict[str, Any]:
    dist = ctx.layout.dist
    plan = configured_compressors(ctx.settings)

    ctx.emit(
        EventType.COMPRESS_PLAN,
        stage="compress",
        files=list(COMPRESS_TARGETS),
        algorithms={c.name: level for c, level in plan},
    )

    with Timer() as t:
        outcomes = compress_artifacts(dist, COMPRESS_TARGETS, plan)

    summary = summarize(outcomes)
    ctx.emit(EventType.COMPRESS_FINISH, stage="compress", duration_ms=t.elapsed_ms, **summary)

    warnings: list[str] = []
    skipped = sorted({o.source.name for o in outcomes if o.status == "skipped"})
    for name in skipped:
        warnings.append(f"Skipping {name}: file not found")
    for o in outcomes:
        if o.status == "failed":
            warnings.append(f"Failed to compress {o.source.name} with {o.algorithm}: {o.error}")

    files = [
        ctx.record_file(o.output, stage="compress")
        for o in outcomes
        if o.status == "ok" and o.output is not None
    ]

    return {
        "outputs": [f.path for f in files],
        "_metrics": summary,
        "_warnings": warnings,
        "_files": files,
    }
