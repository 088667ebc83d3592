from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Any

from landing_build.core import utc_now_iso


class EventType(StrEnum):
    RUN_START = "run.start"
    RUN_FINISH = "run.finish"

    STAGE_START = "stage.start"
    STAGE_WARN = "stage.warn"
    STAGE_SUCCESS = "stage.success"
    STAGE_FAILED = "stage.failed"

    FILE_WRITTEN = "file.written"

    AVATAR_FETCHED = "avatar.fetched"
    AVATAR_OPTIMIZED = "avatar.optimized"
    AVATAR_VARIANTS = "avatar.variants"
    AVATAR_REWRITTEN = "avatar.rewritten"
    AVATAR_FALLBACK = "avatar.fallback"

    COMPRESS_PLAN = "compress.plan"
    COMPRESS_FINISH = "compress.finish"


@dataclass(frozen=True, slots=True)
class Event:
    type: str
    ts_utc: str
    run_id: str
    stage: str | None = None
    data: dict[str, Any] = field(default_factory=dict)


class EventLog:
    """Append-only jsonl record of one build."""

    def __init__(self, path: Path, *, run_id: str) -> None:
        self.path = Path(path)
        self.run_id = run_id
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(
        self, event_type: EventType | str, *, stage: str | None = None, **data: Any
    ) -> Event:
        event = Event(
            type=str(event_type),
            ts_utc=utc_now_iso(),
            run_id=self.run_id,
            stage=stage,
            data=data,
        )
        line = json.dumps(asdict(event), ensure_ascii=False, default=str)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
        return event

    def read(self) -> list[Event]:
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as f:
            return [Event(**json.loads(line)) for line in f if line.strip()]
