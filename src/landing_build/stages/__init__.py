from .avatar import stage_avatar
from .compress import stage_compress
from .fonts import stage_fonts
from .html import stage_html
from .sitemap import stage_sitemap

__all__ = [
    "stage_html",
    "stage_fonts",
    "stage_sitemap",
    "stage_avatar",
    "stage_compress",
]
