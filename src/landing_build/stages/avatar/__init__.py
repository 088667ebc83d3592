from .stage import stage_avatar

__all__ = ["stage_avatar"]
