from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from landing_build.core import atomic_write_text

from .stage import StageResult


@dataclass(slots=True)
class BuildReport:
    """Outcome of one build, written as run_report.json next to events.jsonl."""

    run_id: str
    started_at_utc: str
    finished_at_utc: str
    duration_ms: int
    stages: list[StageResult]
    events_jsonl: str
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def status(self) -> str:
        return "success" if all(s.ok for s in self.stages) else "failed"

    @property
    def exit_code(self) -> int:
        return 0 if self.status == "success" else 1

    @property
    def warnings(self) -> list[str]:
        return [f"{s.stage}: {w}" for s in self.stages for w in s.warnings]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.update(
            status=self.status,
            warnings=self.warnings,
            files=sum(len(s.files) for s in self.stages),
            bytes_written=sum(s.bytes_written for s in self.stages),
        )
        return data

    def write(self, path: Path) -> Path:
        path = Path(path)
        text = json.dumps(self.to_dict(), ensure_ascii=False, indent=2, default=str)
        atomic_write_text(path, text + "\n")
        return path
