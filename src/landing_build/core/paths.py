from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class SiteLayout:
    """
    Where the build reads from and writes to:

      {src}/index.html, static files
      {dist}/index.html, avatar*, fonts/, sitemap.xml
    """

    src: Path
    dist: Path

    def source_html(self) -> Path:
        return self.src / "index.html"

    def index_html(self) -> Path:
        return self.dist / "index.html"

    def fonts(self) -> Path:
        return self.dist / "fonts"

    def sitemap_xml(self) -> Path:
        return self.dist / "sitemap.xml"

    def url_for(self, path: Path) -> str:
        """Site-relative URL of a file under dist/."""
        return "/" + Path(path).relative_to(self.dist).as_posix()

    def ensure_dirs(self) -> None:
        self.fonts().mkdir(parents=True, exist_ok=True)
