from __future__ import annotations

from pathlib import Path

import pytest
from landing_build.core import Settings
from landing_build.core.errors import EncodeError
from landing_build.stages.compress.codecs import BROTLI, COMPRESSORS, GZIP, ZSTD, Compressor
from landing_build.stages.compress.runner import compress_artifacts, output_path, summarize
from landing_build.stages.compress.stage import configured_compressors

HTML = ("<!doctype html><html><body>" + "<p>hello landing page</p>" * 200 + "</body></html>").encode()


def _plan(level_override: int | None = None) -> list[tuple[Compressor, int]]:
    return [(c, level_override or c.default_level) for c in (BROTLI, GZIP, ZSTD)]


@pytest.mark.parametrize("name", sorted(COMPRESSORS))
def test_sibling_decompresses_to_original(tmp_path: Path, name: str) -> None:
    (tmp_path / "index.html").write_bytes(HTML)
    compressor = COMPRESSORS[name]

    outcomes = compress_artifacts(
        tmp_path, ["index.html"], [(compressor, compressor.default_level)]
    )

    assert [o.status for o in outcomes] == ["ok"]
    out = tmp_path / f"index.html{compressor.suffix}"
    assert outcomes[0].output == out
    assert compressor.decompress(out.read_bytes()) == HTML
    assert outcomes[0].compressed_bytes == out.stat().st_size


def test_missing_file_is_skipped_not_fatal(tmp_path: Path) -> None:
    (tmp_path / "index.html").write_bytes(HTML)

    outcomes = compress_artifacts(tmp_path, ["index.html", "bmarwell.asc"], _plan(3))

    by_status = summarize(outcomes)
    assert by_status["ok"] == 3
    assert by_status["skipped"] == 3
    assert by_status["failed"] == 0
    for suffix in (".br", ".gz", ".zst"):
        assert (tmp_path / f"index.html{suffix}").exists()
        assert not (tmp_path / f"bmarwell.asc{suffix}").exists()


def test_failing_algorithm_does_not_stop_others(tmp_path: Path) -> None:
    (tmp_path / "index.html").write_bytes(HTML)
    (tmp_path / "bmarwell.asc").write_bytes(b"key material\n" * 50)

    def explode(data: bytes, level: int) -> bytes:
        raise EncodeError("codec unavailable")

    broken = Compressor(
        name="broken", suffix=".x", default_level=1, compress=explode, decompress=bytes
    )
    plan = [(broken, 1), (GZIP, 9)]

    outcomes = compress_artifacts(tmp_path, ["index.html", "bmarwell.asc"], plan)

    assert [(o.source.name, o.algorithm, o.status) for o in outcomes] == [
        ("index.html", "broken", "failed"),
        ("index.html", "gzip", "ok"),
        ("bmarwell.asc", "broken", "failed"),
        ("bmarwell.asc", "gzip", "ok"),
    ]
    assert outcomes[0].error == "codec unavailable"
    assert not (tmp_path / "index.html.x").exists()


def test_gzip_output_is_deterministic(tmp_path: Path) -> None:
    assert GZIP.compress(HTML, 9) == GZIP.compress(HTML, 9)
    assert output_path(tmp_path / "index.html", GZIP).name == "index.html.gz"


def test_levels_come_from_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BROTLI_LEVEL", "5")
    monkeypatch.setenv("LANDING_BUILD_ENABLE_ZSTD", "false")

    plan = configured_compressors(Settings())

    assert [(c.name, level) for c, level in plan] == [("brotli", 5), ("gzip", 9)]


def test_unreadable_file_fails_with_its_own_reason(tmp_path: Path) -> None:
    (tmp_path / "index.html").mkdir()

    outcomes = compress_artifacts(tmp_path, ["index.html"], _plan())

    assert [o.status for o in outcomes] == ["failed"] * 3
    assert all(o.error and o.error != "file not found" for o in outcomes)
    assert summarize(outcomes)["skipped"] == 0
