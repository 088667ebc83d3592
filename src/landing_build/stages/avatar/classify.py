from __future__ import annotations

from .models import ImageFormat

_SIGNATURES: tuple[tuple[bytes, ImageFormat], ...] = (
    (b"\x89\x50", ImageFormat.PNG),
    (b"\xff\xd8", ImageFormat.JPEG),
)

_EXTENSIONS: dict[ImageFormat, str] = {
    ImageFormat.PNG: ".png",
    ImageFormat.JPEG: ".jpg",
    ImageFormat.WEBP: ".webp",
}

# Filename used before the bytes are inspected, and kept for UNKNOWN.
DEFAULT_EXTENSION = ".png"


def classify(data: bytes) -> ImageFormat:
    """Detect PNG/JPEG by leading magic bytes; anything else is UNKNOWN."""
    for magic, fmt in _SIGNATURES:
        if data[: len(magic)] == magic:
            return fmt
    return ImageFormat.UNKNOWN


def extension_for(fmt: ImageFormat) -> str | None:
    return _EXTENSIONS.get(fmt)
