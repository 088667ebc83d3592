from __future__ import annotations

from pathlib import Path
from typing import Any

import htmlmin
import structlog
from landing_build.core import atomic_write_text, copy_file, current_year
from landing_build.core.errors import FileSystemError
from landing_build.pipeline.context import RunContext

log = structlog.get_logger(__name__)

STATIC_FILES: tuple[str, ...] = (".htaccess", "robots.txt", "bmarwell.asc")

YEAR_PLACEHOLDER = "{{YEAR}}"


def render_html(source: str, *, year: int) -> str:
    """
    Fill the year placeholder and minify. Whitespace between inline elements
    and the content of pre/textarea survive; attribute quotes and character
    references are kept as written so later reference rewriting still matches.
    """
    html = source.replace(YEAR_PLACEHOLDER, str(year))
    html = htmlmin.minify(
        html,
        remove_comments=True,
        remove_empty_space=True,
        remove_optional_attribute_quotes=False,
        convert_charrefs=False,
    )
    return html.strip() + "\n"


def _read_required(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(f"Required input missing: {path} ({exc})") from exc


def stage_html(ctx: RunContext) -> dict[str, Any]:
    layout = ctx.layout
    layout.ensure_dirs()

    source = _read_required(layout.source_html())
    html = render_html(source, year=current_year())
    atomic_write_text(layout.index_html(), html)
    log.info(
        "html.index.done",
        source_bytes=len(source.encode("utf-8")),
        bytes=len(html.encode("utf-8")),
    )

    files = [ctx.record_file(layout.index_html(), stage="html")]
    for name in STATIC_FILES:
        src = layout.src / name
        if not src.is_file():
            raise FileSystemError(f"Required static file missing: {src}")
        size = copy_file(src, layout.dist / name)
        log.info("html.static.copied", file=name, bytes=size)
        files.append(ctx.record_file(layout.dist / name, stage="html"))

    return {"index_html": str(layout.index_html()), "_files": files}
