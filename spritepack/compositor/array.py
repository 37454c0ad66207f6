from __future__ import annotations

from typing import Sequence

import numpy as np
from PIL import Image

from spritepack.compositor.base import SourcePlacement
from spritepack.compositor.pillow import decode_size, encode_png, open_rgba
from spritepack.errors import CompositeError


def _load_rgba(path: str, width: int, height: int) -> np.ndarray:
    return np.array(open_rgba(path, (width, height)), dtype=np.uint8)


class NumpyCompositor:
    """Composes the sprite as a uint8 RGBA array by slice assignment."""

    def __init__(self, compression_level: int = 6) -> None:
        self._compression_level = compression_level

    def decode(self, path: str) -> tuple[int, int]:
        return decode_size(path)

    def composite(
        self,
        canvas_width: int,
        canvas_height: int,
        placements: Sequence[SourcePlacement],
    ) -> bytes:
        try:
            canvas = np.zeros((canvas_height, canvas_width, 4), dtype=np.uint8)
            for p in placements:
                y1, y2 = p.y, p.y + p.height
                x1, x2 = p.x, p.x + p.width
                canvas[y1:y2, x1:x2] = _load_rgba(p.path, p.width, p.height)
            return encode_png(Image.fromarray(canvas), self._compression_level)
        except Exception as exc:  # noqa: BLE001 - any backend failure aborts the build
            raise CompositeError(f"numpy composite failed: {exc}") from exc
