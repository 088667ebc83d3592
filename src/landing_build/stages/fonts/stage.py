from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
from landing_build.core import copy_file
from landing_build.core.errors import FileSystemError
from landing_build.pipeline.context import RunContext

log = structlog.get_logger(__name__)

# Latin subset, weights used by the stylesheet only.
FONTS_TO_COPY: tuple[str, ...] = (
    "roboto-latin-300-normal.woff2",
    "roboto-latin-400-normal.woff2",
    "roboto-latin-500-normal.woff2",
)


def copy_fonts(source_dir: Path, dest_dir: Path) -> list[Path]:
    """
    Copy every font in FONTS_TO_COPY; the first missing one raises.
    """
    copied: list[Path] = []
    for name in FONTS_TO_COPY:
        src = Path(source_dir) / name
        if not src.is_file():
            raise FileSystemError(
                f"Font missing: {src} (is @fontsource/roboto installed?)"
            )
        dst = Path(dest_dir) / name
        size = copy_file(src, dst)
        log.info("fonts.copied", file=name, bytes=size)
        copied.append(dst)
    return copied


def stage_fonts(ctx: RunContext) -> dict[str, Any]:
    layout = ctx.layout
    copied = copy_fonts(Path(ctx.settings.font_source_dir), layout.fonts())
    files = [ctx.record_file(p, stage="fonts") for p in copied]
    return {"fonts": [p.name for p in copied], "_files": files}
