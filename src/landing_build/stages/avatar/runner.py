from __future__ import annotations

from pathlib import Path
from typing import Mapping

import httpx
import structlog
from landing_build.core import atomic_write_bytes, safe_unlink

from .classify import DEFAULT_EXTENSION, extension_for
from .fetch import fetch
from .models import AvatarBuild, ImageFormat
from .optimize import Encoder, optimize
from .rewrite import read_dimensions, rewrite_file
from .variants import ImageEncoder, encode_webp, generate_variants

log = structlog.get_logger(__name__)

# Formats a master can end up in; only one may exist in dist at a time.
MASTER_FORMATS: tuple[ImageFormat, ...] = (ImageFormat.PNG, ImageFormat.JPEG)


def remove_stale_masters(master_path: Path) -> list[str]:
    """Delete masters of a previous build that had a different format."""
    removed: list[str] = []
    for fmt in MASTER_FORMATS:
        other = master_path.with_suffix(extension_for(fmt) or "")
        if other != master_path and safe_unlink(other):
            removed.append(other.name)
    if removed:
        log.info("avatar.stale_master.removed", files=removed)
    return removed


def build_avatar(
    *,
    url: str,
    dist_dir: Path,
    document: Path,
    site_url: str,
    client: httpx.Client | None = None,
    encoders: Mapping[ImageFormat, Encoder] | None = None,
    alternate_encoder: ImageEncoder = encode_webp,
) -> AvatarBuild:
    """
    Fetch -> classify/optimize -> variants -> rewrite, strictly in order.

    Raises NetworkError when the download fails; nothing has been written at
    that point, so the document keeps referencing `url`.
    """
    raw = fetch(url, client=client)

    dist_dir = Path(dist_dir)
    initial = dist_dir / f"avatar{DEFAULT_EXTENSION}"
    atomic_write_bytes(initial, raw.data)
    log.info("avatar.stored", file=initial.name, bytes=raw.size)

    opt = optimize(initial, encoders=encoders)
    master = opt.master
    remove_stale_masters(master.path)

    variants = generate_variants(
        master.path, master.size, out_dir=dist_dir, alternate_encoder=alternate_encoder
    )

    try:
        dimensions: tuple[int, int] | None = read_dimensions(master.path)
    except Exception as exc:
        log.warning("avatar.dimensions.unreadable", error=str(exc))
        dimensions = None

    result = rewrite_file(
        document,
        placeholder=url,
        master_filename=master.filename,
        site_url=site_url,
        dimensions=dimensions,
        alternate=variants.alternate,
        sized_alternates=variants.sized_by_format(ImageFormat.WEBP),
    )

    return AvatarBuild(
        fetched=raw,
        master=master,
        optimize=opt,
        variants=variants,
        rewrite=result,
        dimensions=dimensions,
    )
