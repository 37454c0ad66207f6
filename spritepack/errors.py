from __future__ import annotations


class SpriteError(RuntimeError):
    """Base class for every error a sprite build can terminate with."""


class DecodeError(SpriteError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot decode image {path}: {reason}")
        self.path = path
        self.reason = reason


class LayoutError(SpriteError):
    pass


class CompositeError(SpriteError):
    pass


class RenderError(SpriteError):
    pass


class CacheError(SpriteError):
    """Build record store could not be read or written."""
