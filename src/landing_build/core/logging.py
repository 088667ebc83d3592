from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Literal, Protocol

import structlog
from rich.logging import RichHandler
from structlog.contextvars import bind_contextvars, merge_contextvars, unbind_contextvars

LogFormat = Literal["console", "json"]

_configured = False


class ILogger(Protocol):
    def debug(self, event: str, **kw: Any) -> Any: ...
    def info(self, event: str, **kw: Any) -> Any: ...
    def warning(self, event: str, **kw: Any) -> Any: ...
    def error(self, event: str, **kw: Any) -> Any: ...
    def exception(self, event: str, **kw: Any) -> Any: ...
    def bind(self, **kw: Any) -> ILogger: ...


def _output(fmt: LogFormat) -> tuple[logging.Handler, Any]:
    if fmt == "json":
        return logging.StreamHandler(sys.stdout), structlog.processors.JSONRenderer()
    handler = RichHandler(
        markup=False, rich_tracebacks=True, show_time=False, show_path=False
    )
    return handler, structlog.processors.KeyValueRenderer(
        key_order=["event"], sort_keys=True
    )


def configure_logging(
    *, level: str = "INFO", fmt: LogFormat = "console", force: bool = False
) -> None:
    """
    Send structlog events through the stdlib root logger: rich console lines
    on a terminal, one JSON object per line for CI logs.
    """
    global _configured
    if _configured and not force:
        return

    numeric = logging.getLevelName(level.upper())
    handler, renderer = _output(fmt)
    handler.setFormatter(logging.Formatter("%(message)s"))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(numeric)

    structlog.configure(
        processors=[
            merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str = "landing_build") -> ILogger:
    return structlog.get_logger(name)


@contextmanager
def bound(**values: Any) -> Iterator[None]:
    """Attach `values` to every log line emitted inside the block."""
    bind_contextvars(**values)
    try:
        yield
    finally:
        unbind_contextvars(*values)
