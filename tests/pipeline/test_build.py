from __future__ import annotations

import gzip
import json
from pathlib import Path

import httpx
import pytest
from landing_build import cli
from landing_build.core import Settings, get_logger
from landing_build.core.errors import FileSystemError
from landing_build.pipeline.runner import PipelineRunner
from landing_build.stages import (
    stage_avatar,
    stage_compress,
    stage_fonts,
    stage_html,
    stage_sitemap,
)
from landing_build.stages.avatar import stage as avatar_stage
from landing_build.stages.avatar.fetch import make_http_client
from landing_build.stages.fonts.stage import FONTS_TO_COPY, copy_fonts
from landing_build.stages.html.stage import render_html
from landing_build.stages.sitemap.stage import render_sitemap

from ..conftest import PLACEHOLDER, TEMPLATE_HTML


def _runner(*stages) -> PipelineRunner:
    return PipelineRunner(
        stages=[PipelineRunner.fn(fn.__name__.removeprefix("stage_"), fn) for fn in stages],
        logger=get_logger("test"),
    )


def _offline(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    monkeypatch.setattr(
        avatar_stage,
        "make_http_client",
        lambda **kw: make_http_client(transport=httpx.MockTransport(handler), **kw),
    )


def test_render_html_fills_year_and_drops_comments() -> None:
    src = (
        "<!doctype html>\n<html>\n  <!-- build note -->\n  <body>\n"
        "    <pre>  keep\n  this</pre>\n"
        "    <p>&copy; {{YEAR}}</p>\n  </body>\n</html>\n"
    )

    out = render_html(src, year=2026)

    assert "build note" not in out
    assert "&copy; 2026" in out
    assert "<pre>  keep\n  this</pre>" in out
    assert "    <p>" not in out
    assert out.endswith("</html>\n")


def test_render_html_keeps_space_between_inline_links() -> None:
    out = render_html(
        "<p><a href='/a'>GitHub</a> <a href='/b'>Mastodon</a></p>", year=2026
    )

    assert "</a> <a" in out


def test_render_html_keeps_references_rewritable() -> None:
    out = render_html(TEMPLATE_HTML, year=2026)

    assert f'src="{PLACEHOLDER}"' in out
    assert 'content="460"' in out
    assert PLACEHOLDER in out.split("ld+json", 1)[1]


def test_render_sitemap() -> None:
    xml = render_sitemap("https://bmarwell.de", "2026-01-02T03:04:05+01:00")

    assert "<loc>https://bmarwell.de/</loc>" in xml
    assert "<lastmod>2026-01-02T03:04:05+01:00</lastmod>" in xml


def test_missing_font_raises(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / FONTS_TO_COPY[0]).write_bytes(b"wOF2")

    with pytest.raises(FileSystemError, match=FONTS_TO_COPY[1]):
        copy_fonts(tmp_path / "src", tmp_path / "out")


def test_full_build_survives_offline_avatar(
    settings: Settings, site_src: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    _offline(monkeypatch)
    runner = _runner(stage_html, stage_fonts, stage_sitemap, stage_avatar, stage_compress)

    exit_code, report_path = runner.run(settings=settings, run_id="full")

    assert exit_code == 0
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert [s["status"] for s in report["stages"]] == ["success"] * 5
    avatar = report["stages"][3]
    assert avatar["outputs"]["fallback"] is True
    assert any(w.startswith("avatar: Avatar unavailable") for w in report["warnings"])

    dist = Path(settings.dist_dir)
    html = (dist / "index.html").read_text(encoding="utf-8")
    assert PLACEHOLDER in html
    assert "{{YEAR}}" not in html
    assert gzip.decompress((dist / "index.html.gz").read_bytes()).decode() == html
    assert (dist / "bmarwell.asc.br").exists()
    assert (dist / "sitemap.xml").exists()
    assert sorted(p.name for p in (dist / "fonts").iterdir()) == sorted(FONTS_TO_COPY)

    compressed = {f["path"]: f for f in report["stages"][4]["files"]}
    assert compressed["index.html.br"]["encoding"] == "br"
    assert compressed["index.html.br"]["content_type"] == "text/html"
    assert report["files"] == sum(len(s["files"]) for s in report["stages"])

    events = (report_path.parent / "events.jsonl").read_text(encoding="utf-8")
    types = [json.loads(line)["type"] for line in events.splitlines()]
    assert types[0] == "run.start" and types[-1] == "run.finish"
    assert "avatar.fallback" in types


def test_missing_source_html_fails_build(settings: Settings) -> None:
    runner = _runner(stage_html, stage_compress)

    exit_code, report_path = runner.run(settings=settings, run_id="broken")

    assert exit_code == 1
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["status"] == "failed"
    assert len(report["stages"]) == 1
    assert report["stages"][0]["error"]["exc_type"] == "FileSystemError"


def test_duplicate_stage_ids_rejected() -> None:
    with pytest.raises(ValueError, match="Duplicate"):
        _runner(stage_html, stage_html)


def test_cli_compress_with_nothing_to_do(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(tmp_path)
    cli.load_settings.cache_clear()

    assert cli.main(["compress", "--dist-dir", str(tmp_path / "empty")]) == 0
    reports = list((tmp_path / "_runs").glob("*/run_report.json"))
    assert len(reports) == 1
    report = json.loads(reports[0].read_text(encoding="utf-8"))
    assert report["stages"][0]["metrics"]["skipped"] == 6
    assert report["meta"] == {"command": "compress"}
    cli.load_settings.cache_clear()


def test_cli_stage_selection_keeps_build_order() -> None:
    assert [s.stage_id for s in cli.stages_for("build")] == [
        "html",
        "fonts",
        "sitemap",
        "avatar",
        "compress",
    ]
    assert [s.stage_id for s in cli.stages_for("avatar")] == ["avatar"]
