from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Mapping

import structlog
from landing_build.core import atomic_write_bytes
from landing_build.core.errors import EncodeError, FileSystemError, FormatError
from PIL import Image

from .classify import classify, extension_for
from .models import ImageFormat, MasterAsset, OptimizeResult

log = structlog.get_logger(__name__)

JPEG_QUALITY = 85

Encoder = Callable[[bytes], bytes]


def _color_metadata(im: Image.Image) -> dict[str, bytes]:
    """ICC profile and EXIF of the source, for whichever are present."""
    return {
        key: value
        for key in ("icc_profile", "exif")
        if (value := im.info.get(key))
    }


def encode_png(data: bytes) -> bytes:
    """Lossless re-encode at maximum zlib effort."""
    with Image.open(io.BytesIO(data)) as im:
        buf = io.BytesIO()
        im.save(
            buf, format="PNG", optimize=True, compress_level=9, **_color_metadata(im)
        )
    return buf.getvalue()


def encode_jpeg(data: bytes, *, quality: int = JPEG_QUALITY) -> bytes:
    with Image.open(io.BytesIO(data)) as im:
        metadata = _color_metadata(im)
        if im.mode not in ("RGB", "L", "CMYK"):
            im = im.convert("RGB")
        buf = io.BytesIO()
        im.save(
            buf,
            format="JPEG",
            quality=quality,
            progressive=True,
            optimize=True,
            **metadata,
        )
    return buf.getvalue()


DEFAULT_ENCODERS: Mapping[ImageFormat, Encoder] = {
    ImageFormat.PNG: encode_png,
    ImageFormat.JPEG: encode_jpeg,
}


def correct_extension(path: Path, fmt: ImageFormat) -> Path:
    """
    Rename `path` so its suffix matches `fmt` and return the new path.
    UNKNOWN keeps the current name.
    """
    ext = extension_for(fmt)
    if ext is None or path.suffix.lower() == ext:
        return path
    target = path.with_suffix(ext)
    path.replace(target)
    log.info("avatar.optimize.renamed", source=path.name, target=target.name)
    return target


def optimize(
    master_path: Path,
    *,
    encoders: Mapping[ImageFormat, Encoder] | None = None,
) -> OptimizeResult:
    """
    Recompress the stored avatar with the encoder for its detected format and
    keep the result only when it is strictly smaller than what is on disk.
    """
    encoders = DEFAULT_ENCODERS if encoders is None else encoders
    path = Path(master_path)
    try:
        original = path.read_bytes()
    except OSError as exc:
        raise FileSystemError(f"Cannot read avatar {path}: {exc}") from exc

    original_size = len(original)
    fmt = classify(original)
    log.info("avatar.optimize.format", format=fmt.value, bytes=original_size)

    path = correct_extension(path, fmt)

    encoder = encoders.get(fmt)
    if encoder is None:
        err = FormatError(f"Unrecognized image signature in {path.name}")
        log.warning("avatar.optimize.skipped", reason=str(err), file=path.name)
        master = MasterAsset(
            path=path, format=fmt, size=original_size, original_size=original_size
        )
        return OptimizeResult(
            master=master,
            applied_bytes=original_size,
            original_bytes=original_size,
            kept=False,
        )

    candidate: bytes | None
    try:
        candidate = encoder(original)
    except Exception as exc:
        err = EncodeError(f"{fmt.value} encoder failed: {exc}")
        log.warning("avatar.optimize.encode_failed", error=str(err))
        candidate = None

    kept = False
    if candidate is not None and len(candidate) < original_size:
        kept = True
        atomic_write_bytes(path, candidate)
        saved = original_size - len(candidate)
        log.info(
            "avatar.optimize.applied",
            before=original_size,
            after=len(candidate),
            saved=saved,
            ratio=f"{saved / original_size * 100:.2f}%",
        )
        size = len(candidate)
    else:
        log.info("avatar.optimize.already_optimal", bytes=original_size)
        size = original_size

    master = MasterAsset(path=path, format=fmt, size=size, original_size=original_size)
    return OptimizeResult(
        master=master,
        applied_bytes=size,
        original_bytes=original_size,
        kept=kept,
    )
