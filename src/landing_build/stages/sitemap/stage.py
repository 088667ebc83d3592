from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import structlog
from landing_build.core import atomic_write_text, utc_now_iso
from landing_build.pipeline.context import RunContext

log = structlog.get_logger(__name__)

SITEMAP_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url>
    <loc>{loc}</loc>
    <lastmod>{lastmod}</lastmod>
    <changefreq>monthly</changefreq>
    <priority>1.0</priority>
  </url>
</urlset>
"""


def git_lastmod(path: Path, *, cwd: Path | None = None) -> str | None:
    """Author date (ISO 8601) of the last commit touching `path`, if any."""
    try:
        out = subprocess.run(
            ["git", "log", "-1", "--format=%aI", "--", str(path)],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        ).stdout.strip()
    except (OSError, subprocess.CalledProcessError):
        return None
    return out or None


def render_sitemap(site_url: str, lastmod: str) -> str:
    return SITEMAP_TEMPLATE.format(loc=site_url.rstrip("/") + "/", lastmod=lastmod)


def stage_sitemap(ctx: RunContext) -> dict[str, Any]:
    layout = ctx.layout
    warnings: list[str] = []

    lastmod = git_lastmod(layout.source_html())
    if lastmod is None:
        lastmod = utc_now_iso()
        warnings.append("Could not get git lastmod, using current date")

    atomic_write_text(layout.sitemap_xml(), render_sitemap(ctx.settings.site_url, lastmod))
    log.info("sitemap.done", lastmod=lastmod)

    built = ctx.record_file(layout.sitemap_xml(), stage="sitemap")
    return {"lastmod": lastmod, "_warnings": warnings, "_files": [built]}
