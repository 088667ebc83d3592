from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

from landing_build.core import SiteLayout

# Precompressed siblings are served for the file without the suffix.
ENCODINGS: dict[str, str] = {".br": "br", ".gz": "gzip", ".zst": "zstd"}

CONTENT_TYPES: dict[str, str] = {
    ".html": "text/html",
    ".xml": "application/xml",
    ".txt": "text/plain",
    ".asc": "application/pgp-keys",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".webp": "image/webp",
    ".woff2": "font/woff2",
}


@dataclass(frozen=True, slots=True)
class BuiltFile:
    """A file in dist/ as the web server will serve it."""

    path: str
    url: str
    bytes: int
    sha256: str
    content_type: str | None = None
    encoding: str | None = None


def file_sha256(path: Path, *, chunk_bytes: int = 1 << 20) -> tuple[str, int]:
    """Hex digest and size of `path`, read in chunks."""
    h = hashlib.sha256()
    size = 0
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_bytes), b""):
            h.update(chunk)
            size += len(chunk)
    return h.hexdigest(), size


def describe(path: Path, layout: SiteLayout) -> BuiltFile:
    path = Path(path)
    encoding = ENCODINGS.get(path.suffix)
    served = path.with_suffix("") if encoding else path
    digest, size = file_sha256(path)
    return BuiltFile(
        path=path.relative_to(layout.dist).as_posix(),
        url=layout.url_for(path),
        bytes=size,
        sha256=digest,
        content_type=CONTENT_TYPES.get(served.suffix.lower()),
        encoding=encoding,
    )
