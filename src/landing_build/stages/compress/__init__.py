from .stage import stage_compress

__all__ = ["stage_compress"]
