from .stage import stage_html

__all__ = ["stage_html"]
