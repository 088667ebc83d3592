from __future__ import annotations

import gzip
from dataclasses import dataclass
from typing import Callable

# Codec libraries are imported on use: a missing codec is a per-file failure
# of that one algorithm, never an import error for the build.

BROTLI_WINDOW_BITS = 24


def brotli_compress(data: bytes, level: int) -> bytes:
    import brotli

    return brotli.compress(
        data, mode=brotli.MODE_GENERIC, quality=level, lgwin=BROTLI_WINDOW_BITS
    )


def brotli_decompress(data: bytes) -> bytes:
    import brotli

    return brotli.decompress(data)


def gzip_compress(data: bytes, level: int) -> bytes:
    # mtime=0 keeps the output byte-stable across builds.
    return gzip.compress(data, compresslevel=level, mtime=0)


def gzip_decompress(data: bytes) -> bytes:
    return gzip.decompress(data)


def zstd_compress(data: bytes, level: int) -> bytes:
    import zstandard

    return zstandard.ZstdCompressor(level=level).compress(data)


def zstd_decompress(data: bytes) -> bytes:
    import zstandard

    return zstandard.ZstdDecompressor().decompress(data)


@dataclass(frozen=True, slots=True)
class Compressor:
    name: str
    suffix: str
    default_level: int
    compress: Callable[[bytes, int], bytes]
    decompress: Callable[[bytes], bytes]


BROTLI = Compressor(
    name="brotli",
    suffix=".br",
    default_level=11,
    compress=brotli_compress,
    decompress=brotli_decompress,
)
GZIP = Compressor(
    name="gzip",
    suffix=".gz",
    default_level=9,
    compress=gzip_compress,
    decompress=gzip_decompress,
)
ZSTD = Compressor(
    name="zstd",
    suffix=".zst",
    default_level=22,
    compress=zstd_compress,
    decompress=zstd_decompress,
)

COMPRESSORS: dict[str, Compressor] = {c.name: c for c in (BROTLI, GZIP, ZSTD)}
