from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence

import structlog
from landing_build.core import atomic_write_bytes
from landing_build.core.errors import EncodeError

from .codecs import Compressor
from .models import CompressionOutcome, OutcomeStatus

log = structlog.get_logger(__name__)

COMPRESS_TARGETS: tuple[str, ...] = ("index.html", "bmarwell.asc")


def output_path(source: Path, compressor: Compressor) -> Path:
    return source.with_name(source.name + compressor.suffix)


def compress_one(
    source: Path, data: bytes, compressor: Compressor, level: int
) -> CompressionOutcome:
    out = output_path(source, compressor)
    try:
        compressed = compressor.compress(data, level)
        if compressor.decompress(compressed) != data:
            raise EncodeError(f"{compressor.name} output does not round-trip")
        atomic_write_bytes(out, compressed)
    except Exception as exc:
        log.error(
            "compress.file.failed",
            file=source.name,
            algorithm=compressor.name,
            error=str(exc),
        )
        return CompressionOutcome(
            source=source,
            algorithm=compressor.name,
            status="failed",
            original_bytes=len(data),
            error=str(exc),
        )

    outcome = CompressionOutcome(
        source=source,
        algorithm=compressor.name,
        status="ok",
        output=out,
        original_bytes=len(data),
        compressed_bytes=len(compressed),
    )
    log.info(
        "compress.file.done",
        file=out.name,
        level=level,
        before=outcome.original_bytes,
        after=outcome.compressed_bytes,
        reduction=f"{(outcome.ratio or 0) * 100:.2f}%",
    )
    return outcome


def _unprocessed(
    source: Path,
    compressors: Sequence[tuple[Compressor, int]],
    status: OutcomeStatus,
    reason: str,
) -> list[CompressionOutcome]:
    return [
        CompressionOutcome(source=source, algorithm=c.name, status=status, error=reason)
        for c, _ in compressors
    ]


def compress_artifacts(
    dist_dir: Path,
    files: Iterable[str],
    compressors: Sequence[tuple[Compressor, int]],
) -> list[CompressionOutcome]:
    """
    Write a compressed sibling for every (file, compressor) pair.

    Best effort: a missing file is skipped, an unreadable file or a codec
    failure is recorded as failed; nothing here raises.
    """
    dist_dir = Path(dist_dir)
    outcomes: list[CompressionOutcome] = []

    for name in files:
        source = dist_dir / name
        try:
            data = source.read_bytes()
        except FileNotFoundError:
            log.warning("compress.file.skip", file=name, reason="file not found")
            outcomes.extend(_unprocessed(source, compressors, "skipped", "file not found"))
            continue
        except OSError as exc:
            log.error("compress.file.unreadable", file=name, error=str(exc))
            outcomes.extend(_unprocessed(source, compressors, "failed", str(exc)))
            continue

        for compressor, level in compressors:
            outcomes.append(compress_one(source, data, compressor, level))

    return outcomes


def summarize(outcomes: Sequence[CompressionOutcome]) -> dict[str, int]:
    summary = {"ok": 0, "skipped": 0, "failed": 0}
    for o in outcomes:
        summary[o.status] += 1
    summary["bytes_in"] = sum(o.original_bytes or 0 for o in outcomes if o.status == "ok")
    summary["bytes_out"] = sum(
        o.compressed_bytes or 0 for o in outcomes if o.status == "ok"
    )
    return summary
