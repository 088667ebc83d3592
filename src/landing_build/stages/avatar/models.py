from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path


class ImageFormat(StrEnum):
    PNG = "png"
    JPEG = "jpeg"
    WEBP = "webp"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class RawAsset:
    url: str
    final_url: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class MasterAsset:
    """
    The canonical optimized avatar. `path` is the corrected on-disk location
    (after any extension fix) and is the only filename later steps may use.
    """

    path: Path
    format: ImageFormat
    size: int
    original_size: int

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class OptimizeResult:
    master: MasterAsset
    applied_bytes: int
    original_bytes: int
    kept: bool


@dataclass(frozen=True, slots=True)
class Variant:
    path: Path
    format: ImageFormat
    size: int
    width: int
    height: int
    quality: int

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass(frozen=True, slots=True)
class QualityAttempt:
    quality: int
    size: int | None
    accepted: bool
    error: str | None = None


@dataclass(frozen=True, slots=True)
class VariantSet:
    alternate: Variant | None
    sized: tuple[Variant, ...]
    attempts: tuple[QualityAttempt, ...]

    def sized_by_format(self, fmt: ImageFormat) -> list[Variant]:
        return sorted((v for v in self.sized if v.format == fmt), key=lambda v: v.width)


@dataclass(frozen=True, slots=True)
class RewriteResult:
    html: str
    replacements: int
    contexts: tuple[str, ...]

    @property
    def changed(self) -> bool:
        return self.replacements > 0


@dataclass(frozen=True, slots=True)
class AvatarBuild:
    fetched: RawAsset
    master: MasterAsset
    optimize: OptimizeResult
    variants: VariantSet
    rewrite: RewriteResult
    dimensions: tuple[int, int] | None
