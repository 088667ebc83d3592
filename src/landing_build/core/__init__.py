from .clock import Timer, current_year, monotonic_ms, new_run_id, utc_now_iso
from .config import Settings, load_settings
from .errors import BuildError, EncodeError, FileSystemError, FormatError, NetworkError
from .fs import atomic_write_bytes, atomic_write_text, copy_file, safe_unlink
from .logging import ILogger, bound, configure_logging, get_logger
from .paths import SiteLayout

__all__ = [
    "Settings",
    "load_settings",
    "SiteLayout",
    "ILogger",
    "configure_logging",
    "get_logger",
    "bound",
    "atomic_write_bytes",
    "atomic_write_text",
    "copy_file",
    "safe_unlink",
    "Timer",
    "current_year",
    "monotonic_ms",
    "new_run_id",
    "utc_now_iso",
    "BuildError",
    "NetworkError",
    "FormatError",
    "EncodeError",
    "FileSystemError",
]
