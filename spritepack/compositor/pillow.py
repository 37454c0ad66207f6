from __future__ import annotations

import io
from typing import Sequence

from PIL import Image

from spritepack.compositor.base import SourcePlacement
from spritepack.errors import CompositeError, DecodeError


def open_rgba(path: str, size: tuple[int, int] | None = None) -> Image.Image:
    try:
        with Image.open(path) as img:
            rgba = img.convert("RGBA")
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(path, str(exc)) from exc
    if size is not None and rgba.size != size:
        rgba = rgba.resize(size, Image.Resampling.LANCZOS)
    return rgba


def decode_size(path: str) -> tuple[int, int]:
    try:
        with Image.open(path) as img:
            width, height = img.size
            img.verify()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(path, str(exc)) from exc
    return width, height


def encode_png(image: Image.Image, compression_level: int) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG", compress_level=compression_level)
    return buf.getvalue()


class PillowCompositor:
    """Pastes sources onto a transparent RGBA canvas with `Image.paste`."""

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
            canvas = Image.new("RGBA", (canvas_width, canvas_height), (0, 0, 0, 0))
            for p in placements:
                source = open_rgba(p.path, (p.width, p.height))
                # No mask: source pixels replace the canvas, alpha included.
                canvas.paste(source, (p.x, p.y))
            return encode_png(canvas, self._compression_level)
        except Exception as exc:  # noqa: BLE001 - any backend failure aborts the build
            raise CompositeError(f"pillow composite failed: {exc}") from exc
