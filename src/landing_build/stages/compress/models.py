from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

OutcomeStatus = Literal["ok", "skipped", "failed"]


@dataclass(frozen=True, slots=True)
class CompressionOutcome:
    """
    Result of one (file, algorithm) pair.
    """

    source: Path
    algorithm: str
    status: OutcomeStatus
    output: Path | None = None
    original_bytes: int | None = None
    compressed_bytes: int | None = None
    error: str | None = None

    @property
    def ratio(self) -> float | None:
        if not self.original_bytes or self.compressed_bytes is None:
            return None
        return 1 - self.compressed_bytes / self.original_bytes
