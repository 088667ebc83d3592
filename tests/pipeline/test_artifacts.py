from __future__ import annotations

from pathlib import Path

from landing_build.core import SiteLayout
from landing_build.pipeline.artifacts import describe, file_sha256
from landing_build.pipeline.events import EventLog, EventType

ABC_SHA256 = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def _layout(tmp_path: Path) -> SiteLayout:
    return SiteLayout(src=tmp_path / "src", dist=tmp_path / "dist")


def test_file_sha256_reads_in_chunks(tmp_path: Path) -> None:
    f = tmp_path / "data.bin"
    f.write_bytes(b"abc")

    assert file_sha256(f, chunk_bytes=1) == (ABC_SHA256, 3)


def test_describe_plain_and_precompressed_files(tmp_path: Path) -> None:
    layout = _layout(tmp_path)
    (layout.dist / "fonts").mkdir(parents=True)
    font = layout.dist / "fonts" / "roboto-latin-400-normal.woff2"
    font.write_bytes(b"abc")
    sibling = layout.dist / "index.html.zst"
    sibling.write_bytes(b"\x28\xb5\x2f\xfd")

    built_font = describe(font, layout)
    built_sibling = describe(sibling, layout)

    assert built_font.path == "fonts/roboto-latin-400-normal.woff2"
    assert built_font.url == "/fonts/roboto-latin-400-normal.woff2"
    assert built_font.content_type == "font/woff2"
    assert built_font.encoding is None
    assert (built_font.bytes, built_font.sha256) == (3, ABC_SHA256)

    assert built_sibling.url == "/index.html.zst"
    assert built_sibling.content_type == "text/html"
    assert built_sibling.encoding == "zstd"


def test_describe_dotfile_has_no_content_type(tmp_path: Path) -> None:
    layout = _layout(tmp_path)
    layout.dist.mkdir(parents=True)
    (layout.dist / ".htaccess").write_text("AddEncoding br .br\n")

    assert describe(layout.dist / ".htaccess", layout).content_type is None


def test_event_log_appends_jsonl(tmp_path: Path) -> None:
    log = EventLog(tmp_path / "run" / "events.jsonl", run_id="r1")

    log.append(EventType.STAGE_START, stage="html")
    log.append(EventType.AVATAR_FETCHED, stage="avatar", bytes=42)

    events = log.read()
    assert [e.type for e in events] == ["stage.start", "avatar.fetched"]
    assert events[1].data == {"bytes": 42}
    assert {e.run_id for e in events} == {"r1"}
