from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from spritepack.schemas import CompositorOptions


@dataclass(frozen=True, slots=True)
class SourcePlacement:
    path: str
    x: int
    y: int
    width: int
    height: int


class Compositor(Protocol):
    def decode(self, path: str) -> tuple[int, int]:
        """Return (width, height) of the image at `path`.

        Raises `DecodeError` when the file is unreadable or not an image.
        """

    def composite(
        self,
        canvas_width: int,
        canvas_height: int,
        placements: Sequence[SourcePlacement],
    ) -> bytes:
        """Return encoded PNG bytes with every source drawn at its placement."""


def create_compositor(options: CompositorOptions) -> Compositor:
    name = options.name.lower().strip()

    if name == "pillow":
        from spritepack.compositor.pillow import PillowCompositor  # noqa: PLC0415

        return PillowCompositor(compression_level=options.compression_level)

    if name == "numpy":
        from spritepack.compositor.array import NumpyCompositor  # noqa: PLC0415

        return NumpyCompositor(compression_level=options.compression_level)

    raise ValueError(f"unknown compositor: {options.name}")
