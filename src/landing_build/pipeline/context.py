from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from landing_build.core import ILogger, Settings, SiteLayout

from .artifacts import BuiltFile, describe
from .events import EventLog, EventType


@dataclass(slots=True)
class RunContext:
    """What a stage sees of the build: settings, paths, logger and event log."""

    run_id: str
    settings: Settings
    logger: ILogger
    events: EventLog
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def layout(self) -> SiteLayout:
        return SiteLayout(
            src=Path(self.settings.src_dir), dist=Path(self.settings.dist_dir)
        )

    def stage_logger(self, stage: str) -> ILogger:
        return self.logger.bind(stage=stage)

    def emit(
        self, event_type: EventType | str, *, stage: str | None = None, **data: Any
    ) -> None:
        # Debug only; the jsonl log is the full record.
        self.logger.debug(str(event_type), stage=stage, **data)
        self.events.append(event_type, stage=stage, **data)

    def record_file(self, path: Path, *, stage: str) -> BuiltFile:
        built = describe(path, self.layout)
        self.emit(EventType.FILE_WRITTEN, stage=stage, **asdict(built))
        return built
