from __future__ import annotations

import io
import random
from pathlib import Path

import pytest
from landing_build.core import Settings
from PIL import Image

PLACEHOLDER = "https://github.com/bmarwell.png"

TEMPLATE_HTML = """<!doctype html>
<html lang="en">
<head>
<meta property="og:image" content="https://github.com/bmarwell.png">
<meta property="og:image:width" content="460">
<meta property="og:image:height" content="460">
<script type="application/ld+json">{"@type":"Person","image": "https://github.com/bmarwell.png"}</script>
</head>
<body>
<picture><source srcset="https://github.com/bmarwell.png" type="image/webp"><img src="https://github.com/bmarwell.png" alt="avatar" width="200" height="200"></picture>
<footer>&copy; {{YEAR}}</footer>
</body>
</html>
"""


def noise_image(size: int = 96, *, seed: int = 0, mode: str = "RGB") -> Image.Image:
    rnd = random.Random(seed)
    bands = len(mode)
    return Image.frombytes(mode, (size, size), rnd.randbytes(size * size * bands))


def image_bytes(fmt: str = "PNG", *, size: int = 96, seed: int = 0, **save: object) -> bytes:
    buf = io.BytesIO()
    noise_image(size, seed=seed).save(buf, format=fmt, **save)
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    return image_bytes("PNG")


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        src_dir=tmp_path / "site",
        dist_dir=tmp_path / "dist",
        font_source_dir=tmp_path / "fonts",
        run_root=tmp_path / "_runs",
        avatar_url=PLACEHOLDER,
        site_url="https://bmarwell.de",
    )


@pytest.fixture()
def site_src(settings: Settings) -> Path:
    src = Path(settings.src_dir)
    src.mkdir(parents=True)
    (src / "index.html").write_text(TEMPLATE_HTML, encoding="utf-8")
    (src / ".htaccess").write_text("AddEncoding br .br\n")
    (src / "robots.txt").write_text("User-agent: *\n")
    (src / "bmarwell.asc").write_text("-----BEGIN PGP PUBLIC KEY BLOCK-----\n" * 40)
    fonts = Path(settings.font_source_dir)
    fonts.mkdir(parents=True)
    for w in (300, 400, 500):
        (fonts / f"roboto-latin-{w}-normal.woff2").write_bytes(b"wOF2" + bytes(64))
    return src
