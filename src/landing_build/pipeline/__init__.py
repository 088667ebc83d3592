from .artifacts import BuiltFile, describe
from .context import RunContext
from .events import EventLog, EventType
from .report import BuildReport
from .runner import PipelineRunner
from .stage import Stage, StageFn, StageResult, run_stage

__all__ = [
    "BuiltFile",
    "describe",
    "RunContext",
    "EventLog",
    "EventType",
    "BuildReport",
    "PipelineRunner",
    "Stage",
    "StageFn",
    "StageResult",
    "run_stage",
]
