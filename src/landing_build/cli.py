from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from landing_build.core import (
    bound,
    configure_logging,
    get_logger,
    load_settings,
    new_run_id,
)
from landing_build.pipeline.runner import PipelineRunner
from landing_build.pipeline.stage import Stage, StageFn, format_duration_ms
from landing_build.stages import (
    stage_avatar,
    stage_compress,
    stage_fonts,
    stage_html,
    stage_sitemap,
)
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()

# (stage id, stage function, help text) in build order. Compression comes last
# because it reads index.html after the avatar rewrite.
STAGES: tuple[tuple[str, StageFn, str], ...] = (
    ("html", stage_html, "Render index.html into dist/ and copy static files"),
    ("fonts", stage_fonts, "Copy the Roboto woff2 files into dist/fonts/"),
    ("sitemap", stage_sitemap, "Write dist/sitemap.xml"),
    ("avatar", stage_avatar, "Fetch, optimize and derive the avatar; patch index.html"),
    ("compress", stage_compress, "Write .br/.gz/.zst siblings for the text files"),
)


def _parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--dist-dir", type=Path, default=None, help="Output directory (default: settings)"
    )

    p = argparse.ArgumentParser(prog="landing-build")
    sub = p.add_subparsers(dest="cmd", required=True)
    sub.add_parser("build", parents=[common], help="Run every stage in order")
    for sid, _fn, help_text in STAGES:
        sub.add_parser(sid, parents=[common], help=help_text)
    return p


def _with_spinner(sid: str, fn: StageFn) -> StageFn:
    def run(ctx):
        with console.status(f"[bold]{sid}[/]", spinner="dots"):
            return fn(ctx)

    return run


def stages_for(cmd: str) -> list[Stage]:
    return [
        PipelineRunner.fn(sid, _with_spinner(sid, fn))
        for sid, fn, _help in STAGES
        if cmd in ("build", sid)
    ]


def _summary(report: dict[str, Any]) -> Table:
    tbl = Table(title=f"{report['run_id']} ({report['status']})", box=None)
    for col in ("stage", "status", "time", "files", "bytes", "warnings"):
        tbl.add_column(col, justify="left" if col in ("stage", "status") else "right")
    for s in report["stages"]:
        ok = s["status"] == "success"
        tbl.add_row(
            s["stage"],
            "[green]ok[/green]" if ok else f"[red]{s['error']['exc_type']}[/red]",
            format_duration_ms(s["duration_ms"]),
            str(len(s["files"])),
            str(sum(f["bytes"] for f in s["files"])),
            str(len(s["warnings"])),
        )
    return tbl


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)

    settings = load_settings()
    if args.dist_dir is not None:
        settings = settings.model_copy(update={"dist_dir": args.dist_dir})
    configure_logging(level=settings.log_level, fmt=settings.log_format)

    run_id = new_run_id()
    runner = PipelineRunner(
        stages=stages_for(args.cmd), logger=get_logger("landing_build")
    )
    with bound(run_id=run_id, command=args.cmd):
        exit_code, report_path = runner.run(
            settings=settings, run_id=run_id, meta={"command": args.cmd}
        )

    report = json.loads(report_path.read_text(encoding="utf-8"))
    console.print(_summary(report))
    for w in report["warnings"]:
        console.print(f"[yellow]warning[/yellow] {escape(w)}", highlight=False)
    console.print(f"report: {report_path}", highlight=False)
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
