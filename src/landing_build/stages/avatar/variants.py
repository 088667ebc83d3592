from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Iterable

import structlog
from landing_build.core import atomic_write_bytes, safe_unlink
from landing_build.core.errors import EncodeError
from PIL import Image, ImageOps

from .classify import extension_for
from .models import ImageFormat, QualityAttempt, Variant, VariantSet

log = structlog.get_logger(__name__)

# Fixed catalog: not configurable.
ALTERNATE_QUALITY_LEVELS: tuple[int, ...] = (80, 75, 70, 65, 60)
VARIANT_WIDTHS: tuple[int, ...] = (200, 400)
SIZED_JPEG_QUALITY = 85
SIZED_WEBP_QUALITY = 80
WEBP_METHOD = 6

ImageEncoder = Callable[[Image.Image, int], bytes]


def encode_webp(im: Image.Image, quality: int) -> bytes:
    if im.mode not in ("RGB", "RGBA"):
        has_alpha = "A" in im.getbands() or "transparency" in im.info
        im = im.convert("RGBA" if has_alpha else "RGB")
    buf = io.BytesIO()
    im.save(buf, format="WEBP", quality=quality, method=WEBP_METHOD)
    return buf.getvalue()


def encode_jpeg(im: Image.Image, quality: int) -> bytes:
    if "A" in im.getbands() or "transparency" in im.info:
        rgba = im.convert("RGBA")
        flat = Image.new("RGB", rgba.size, (255, 255, 255))
        flat.paste(rgba, mask=rgba.getchannel("A"))
        im = flat
    elif im.mode not in ("RGB", "L"):
        im = im.convert("RGB")
    buf = io.BytesIO()
    im.save(buf, format="JPEG", quality=quality, progressive=True, optimize=True)
    return buf.getvalue()


_SIZED_ENCODERS: tuple[tuple[ImageFormat, ImageEncoder, int], ...] = (
    (ImageFormat.JPEG, encode_jpeg, SIZED_JPEG_QUALITY),
    (ImageFormat.WEBP, encode_webp, SIZED_WEBP_QUALITY),
)


def search_quality(
    encode: Callable[[int], bytes],
    levels: Iterable[int],
    limit: int,
) -> tuple[tuple[int, bytes] | None, tuple[QualityAttempt, ...]]:
    """
    Try `levels` from highest to lowest and return the first encoding that is
    strictly smaller than `limit`, together with every attempt made.

    A level whose encoder raises counts as not qualifying. Levels below the
    accepted one are never tried.
    """
    attempts: list[QualityAttempt] = []
    for quality in sorted(set(levels), reverse=True):
        try:
            data = encode(quality)
        except Exception as exc:
            attempts.append(
                QualityAttempt(quality=quality, size=None, accepted=False, error=str(exc))
            )
            continue

        if len(data) < limit:
            attempts.append(QualityAttempt(quality=quality, size=len(data), accepted=True))
            return (quality, data), tuple(attempts)
        attempts.append(QualityAttempt(quality=quality, size=len(data), accepted=False))

    return None, tuple(attempts)


def _load(path: Path) -> Image.Image:
    with Image.open(path) as im:
        im.load()
        return im.copy()


def _variant_name(stem: str, width: int | None, fmt: ImageFormat) -> str:
    ext = extension_for(fmt)
    if width is None:
        return f"{stem}{ext}"
    return f"{stem}-{width}w{ext}"


def generate_variants(
    master_path: Path,
    master_size: int,
    *,
    out_dir: Path | None = None,
    quality_levels: Iterable[int] = ALTERNATE_QUALITY_LEVELS,
    widths: Iterable[int] = VARIANT_WIDTHS,
    alternate_encoder: ImageEncoder = encode_webp,
) -> VariantSet:
    """
    Derive the WebP alternate of the master (only if some quality level beats
    `master_size`) and the square cover-cropped JPEG/WebP renditions for every
    catalog width.
    """
    master_path = Path(master_path)
    out_dir = Path(out_dir) if out_dir is not None else master_path.parent
    stem = master_path.stem

    try:
        image = _load(master_path)
    except Exception as exc:
        log.warning(
            "avatar.variants.unreadable", file=master_path.name, error=str(exc)
        )
        return VariantSet(alternate=None, sized=(), attempts=())

    alternate_path = out_dir / _variant_name(stem, None, ImageFormat.WEBP)
    accepted, attempts = search_quality(
        lambda q: alternate_encoder(image, q), quality_levels, master_size
    )

    alternate: Variant | None = None
    if accepted is not None:
        quality, data = accepted
        atomic_write_bytes(alternate_path, data)
        alternate = Variant(
            path=alternate_path,
            format=ImageFormat.WEBP,
            size=len(data),
            width=image.width,
            height=image.height,
            quality=quality,
        )
    else:
        # A previous build may have left one behind.
        safe_unlink(alternate_path)

    failed = [a for a in attempts if a.error is not None]
    log.info(
        "avatar.variants.alternate",
        master_bytes=master_size,
        accepted_quality=alternate.quality if alternate else None,
        accepted_bytes=alternate.size if alternate else None,
        tried=[a.quality for a in attempts],
        encode_failures=len(failed),
    )

    sized: list[Variant] = []
    for width in widths:
        cropped = ImageOps.fit(image, (width, width), method=Image.Resampling.LANCZOS)
        for fmt, encoder, quality in _SIZED_ENCODERS:
            path = out_dir / _variant_name(stem, width, fmt)
            try:
                data = encoder(cropped, quality)
            except Exception as exc:
                err = EncodeError(f"{path.name}: {exc}")
                log.warning("avatar.variants.encode_failed", error=str(err))
                continue
            atomic_write_bytes(path, data)
            sized.append(
                Variant(
                    path=path,
                    format=fmt,
                    size=len(data),
                    width=width,
                    height=width,
                    quality=quality,
                )
            )

    log.info(
        "avatar.variants.sized",
        files=[v.filename for v in sized],
        bytes=sum(v.size for v in sized),
    )
    return VariantSet(alternate=alternate, sized=tuple(sized), attempts=attempts)
