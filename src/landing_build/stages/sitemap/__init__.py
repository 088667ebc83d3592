from .stage import stage_sitemap

__all__ = ["stage_sitemap"]
