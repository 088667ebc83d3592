from .stage import stage_fonts

__all__ = ["stage_fonts"]
