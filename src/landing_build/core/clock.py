from __future__ import annotations

import secrets
import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat(timespec="seconds").replace("+00:00", "Z")


def current_year() -> int:
    return utc_now().year


def monotonic_ms() -> int:
    return time.monotonic_ns() // 1_000_000


def new_run_id() -> str:
    """Build id that sorts by start time, e.g. ``20261018T101500Z-3fa2c1``."""
    return f"{utc_now():%Y%m%dT%H%M%SZ}-{secrets.token_hex(3)}"


class Timer:
    """
    Wall time of a ``with`` block:

      with Timer() as t:
          ...
      t.elapsed_ms
    """

    def __init__(self) -> None:
        self._start = 0
        self.elapsed_ms: int = 0

    def __enter__(self) -> Timer:
        self._start = monotonic_ms()
        return self

    def __exit__(self, *exc: object) -> None:
        self.elapsed_ms = monotonic_ms() - self._start
