from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Sequence

import structlog
from landing_build.core import atomic_write_text
from landing_build.core.errors import FileSystemError
from PIL import Image

from .models import RewriteResult, Variant

log = structlog.get_logger(__name__)


def read_dimensions(path: Path) -> tuple[int, int]:
    """Pixel size of the image on disk."""
    with Image.open(path) as im:
        return im.width, im.height


def build_srcset(alternate: Variant, sized: Sequence[Variant]) -> str:
    """
    WebP srcset from the sized renditions plus the full-size alternate. The
    full-size entry is left out when a sized rendition already has its width.
    """
    entries: list[tuple[int, str]] = [(v.width, v.filename) for v in sized]
    if alternate.width not in {w for w, _ in entries}:
        entries.append((alternate.width, alternate.filename))
    return ", ".join(f"/{name} {width}w" for width, name in sorted(entries))


_META_TAG_RE = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
_NUMERIC_CONTENT_RE = re.compile(r"(\bcontent=([\"']))\d+(\2)")


def _dimension_fixer(prop: str, value: int) -> Callable[[re.Match[str]], str]:
    """
    Replacement for one <meta> tag: if it declares `prop`, set its numeric
    content to `value`. Attribute order inside the tag does not matter.
    """
    prop_re = re.compile(r"\bproperty=([\"'])" + re.escape(prop) + r"\1")

    def fix(m: re.Match[str]) -> str:
        tag = m.group(0)
        if not prop_re.search(tag):
            return tag
        return _NUMERIC_CONTENT_RE.sub(
            lambda c: f"{c.group(1)}{value}{c.group(3)}", tag, count=1
        )

    return fix


def rewrite(
    document: str,
    *,
    placeholder: str,
    master_filename: str,
    site_url: str,
    dimensions: tuple[int, int] | None,
    alternate: Variant | None = None,
    sized_alternates: Sequence[Variant] = (),
) -> RewriteResult:
    """
    Point every avatar reference in `document` at the local files.

    Text substitution only. Running it again on its own output changes
    nothing: no placeholder is left and the dimension fields already hold the
    same values.
    """
    ph = re.escape(placeholder)
    local = f"/{master_filename}"
    absolute = f"{site_url.rstrip('/')}/{master_filename}"

    html = document
    total = 0
    contexts: list[str] = []

    def _apply(
        name: str, pattern: re.Pattern[str], repl: Callable[[re.Match[str]], str]
    ) -> None:
        nonlocal html, total
        changed = 0

        def counted(m: re.Match[str]) -> str:
            nonlocal changed
            new = repl(m)
            if new != m.group(0):
                changed += 1
            return new

        html = pattern.sub(counted, html)
        if changed:
            total += changed
            contexts.append(name)

    # The <source> element goes first so its srcset is never seen by src=.
    source_re = re.compile(
        r"<source\b[^>]*?\bsrcset=([\"'])" + ph + r"\1[^>]*>", re.IGNORECASE
    )
    if alternate is not None:
        srcset = build_srcset(alternate, sized_alternates)
        _apply(
            "source.srcset",
            source_re,
            lambda m: m.group(0).replace(placeholder, srcset, 1),
        )
    else:
        # No alternate: no WebP source-set may be offered.
        _apply("source.dropped", source_re, lambda _m: "")

    _apply(
        "img.src",
        re.compile(r"(?<![\w-])src=([\"'])" + ph + r"\1"),
        lambda m: f"src={m.group(1)}{local}{m.group(1)}",
    )
    _apply(
        "meta.content",
        re.compile(r"content=([\"'])" + ph + r"\1"),
        lambda m: f"content={m.group(1)}{absolute}{m.group(1)}",
    )
    _apply(
        "jsonld.image",
        re.compile(r"\"image\"\s*:\s*\"" + ph + r"\""),
        lambda _m: f'"image":"{absolute}"',
    )

    if dimensions is not None:
        width, height = dimensions
        for prop, value in (("og:image:width", width), ("og:image:height", height)):
            _apply(prop, _META_TAG_RE, _dimension_fixer(prop, value))

    return RewriteResult(html=html, replacements=total, contexts=tuple(contexts))


def rewrite_file(path: Path, **kwargs) -> RewriteResult:
    """
    Rewrite the document at `path` in one atomic write; untouched when no
    reference changed.
    """
    path = Path(path)
    try:
        document = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FileSystemError(f"Cannot read document {path}: {exc}") from exc

    result = rewrite(document, **kwargs)
    if not result.changed:
        log.info("avatar.rewrite.noop", file=str(path))
        return result

    atomic_write_text(path, result.html)
    log.info(
        "avatar.rewrite.done",
        file=str(path),
        replacements=result.replacements,
        contexts=list(result.contexts),
    )
    return result
