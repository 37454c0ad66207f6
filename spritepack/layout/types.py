from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ImageBox:
    id: str
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class Placement:
    id: str
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def overlaps(self, other: Placement) -> bool:
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )


@dataclass(frozen=True, slots=True)
class Layout:
    placements: tuple[Placement, ...]
    width: int
    height: int

    def placement_for(self, image_id: str) -> Placement:
        for placement in self.placements:
            if placement.id == image_id:
                return placement
        raise KeyError(image_id)
