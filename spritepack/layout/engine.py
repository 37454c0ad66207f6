from __future__ import annotations

import math
from typing import Callable, Sequence

from spritepack.errors import LayoutError
from spritepack.layout.types import ImageBox, Layout, Placement
from spritepack.schemas import LayoutOptions

_Rect = tuple[int, int, int, int]  # x, y, w, h


def _validate(images: Sequence[ImageBox]) -> None:
    if not images:
        raise LayoutError("cannot lay out an empty image list")
    seen: set[str] = set()
    for box in images:
        if box.width <= 0 or box.height <= 0:
            raise LayoutError(f"non-positive dimensions for {box.id}: {box.width}x{box.height}")
        if box.id in seen:
            raise LayoutError(f"duplicate image id: {box.id}")
        seen.add(box.id)


def _scale(images: Sequence[ImageBox], scaling: float) -> list[ImageBox]:
    if scaling == 1:
        return list(images)
    return [
        ImageBox(
            id=box.id,
            width=max(1, int(round(box.width * scaling))),
            height=max(1, int(round(box.height * scaling))),
        )
        for box in images
    ]


def pack_order(images: Sequence[ImageBox]) -> list[int]:
    """Indices ordered tallest first, then widest, then by input position."""
    return sorted(range(len(images)), key=lambda i: (-images[i].height, -images[i].width, i))


def _vertical(images: Sequence[ImageBox], options: LayoutOptions) -> list[Placement]:
    placements: list[Placement] = []
    y = 0
    for box in images:
        placements.append(Placement(box.id, 0, y, box.width, box.height))
        y += box.height + options.padding
    return placements


def _horizontal(images: Sequence[ImageBox], options: LayoutOptions) -> list[Placement]:
    placements: list[Placement] = []
    x = 0
    for box in images:
        placements.append(Placement(box.id, x, 0, box.width, box.height))
        x += box.width + options.padding
    return placements


def _diagonal(images: Sequence[ImageBox], options: LayoutOptions) -> list[Placement]:
    placements: list[Placement] = []
    x = y = 0
    for box in images:
        placements.append(Placement(box.id, x, y, box.width, box.height))
        x += box.width + options.padding
        y += box.height + options.padding
    return placements


def _shelf(images: Sequence[ImageBox], options: LayoutOptions) -> list[Placement]:
    max_width = options.max_width or max(box.width for box in images)
    by_index: dict[int, Placement] = {}
    x = y = row_height = 0
    for i in pack_order(images):
        box = images[i]
        if x > 0 and x + box.width > max_width:
            y += row_height + options.padding
            x = 0
            row_height = 0
        by_index[i] = Placement(box.id, x, y, box.width, box.height)
        x += box.width + options.padding
        row_height = max(row_height, box.height)
    return [by_index[i] for i in range(len(images))]


class _MaxRectsBin:
    """Best-area-fit MaxRects bin; free rectangles may overlap each other."""

    def __init__(self, width: int, height: int) -> None:
        self.free_rects: list[_Rect] = [(0, 0, width, height)]

    def place(self, w: int, h: int) -> tuple[int, int] | None:
        best: _Rect | None = None
        best_score: int | None = None
        for rect in self.free_rects:
            if w <= rect[2] and h <= rect[3]:
                score = rect[2] * rect[3] - w * h
                if best_score is None or score < best_score:
                    best_score = score
                    best = rect
        if best is None:
            return None

        used = (best[0], best[1], w, h)
        new_free: list[_Rect] = []
        for rect in self.free_rects:
            if _rects_overlap(rect, used):
                new_free.extend(_split(rect, used))
            else:
                new_free.append(rect)
        self.free_rects = _prune(new_free)
        return best[0], best[1]


def _rects_overlap(a: _Rect, b: _Rect) -> bool:
    return a[0] < b[0] + b[2] and a[0] + a[2] > b[0] and a[1] < b[1] + b[3] and a[1] + a[3] > b[1]


def _split(free: _Rect, used: _Rect) -> list[_Rect]:
    fx, fy, fw, fh = free
    ux, uy, uw, uh = used
    parts: list[_Rect] = []
    if ux > fx:
        parts.append((fx, fy, ux - fx, fh))
    if ux + uw < fx + fw:
        parts.append((ux + uw, fy, fx + fw - (ux + uw), fh))
    if uy > fy:
        parts.append((fx, fy, fw, uy - fy))
    if uy + uh < fy + fh:
        parts.append((fx, uy + uh, fw, fy + fh - (uy + uh)))
    return parts


def _contains(outer: _Rect, inner: _Rect) -> bool:
    return (
        inner[0] >= outer[0]
        and inner[1] >= outer[1]
        and inner[0] + inner[2] <= outer[0] + outer[2]
        and inner[1] + inner[3] <= outer[1] + outer[3]
    )


def _prune(rects: list[_Rect]) -> list[_Rect]:
    pruned: list[_Rect] = []
    for i, a in enumerate(rects):
        redundant = False
        for j, b in enumerate(rects):
            if i == j or not _contains(b, a):
                continue
            # Identical rectangles: keep the first occurrence only.
            if a != b or j < i:
                redundant = True
                break
        if not redundant:
            pruned.append(a)
    return pruned


def _packed(images: Sequence[ImageBox], options: LayoutOptions) -> list[Placement]:
    pad = options.padding
    order = pack_order(images)
    total_area = sum((box.width + pad) * (box.height + pad) for box in images)
    side = math.isqrt(total_area) + 1
    bin_w = max(side, max(box.width + pad for box in images))
    bin_h = max(side, max(box.height + pad for box in images))

    while True:
        packer = _MaxRectsBin(bin_w, bin_h)
        by_index: dict[int, Placement] = {}
        for i in order:
            box = images[i]
            pos = packer.place(box.width + pad, box.height + pad)
            if pos is None:
                break
            by_index[i] = Placement(box.id, pos[0], pos[1], box.width, box.height)
        else:
            return [by_index[i] for i in range(len(images))]

        if bin_w <= bin_h:
            bin_w *= 2
        else:
            bin_h *= 2


_POLICIES: dict[str, Callable[[Sequence[ImageBox], LayoutOptions], list[Placement]]] = {
    "vertical": _vertical,
    "horizontal": _horizontal,
    "diagonal": _diagonal,
    "shelf": _shelf,
    "packed": _packed,
}


def compute_layout(images: Sequence[ImageBox], options: LayoutOptions | None = None) -> Layout:
    options = options or LayoutOptions()
    _validate(images)
    try:
        arrange = _POLICIES[options.policy]
    except KeyError:
        raise LayoutError(f"unknown layout policy: {options.policy}") from None

    placements = arrange(_scale(images, options.scaling), options)
    return Layout(
        placements=tuple(placements),
        width=max(p.right for p in placements),
        height=max(p.bottom for p in placements),
    )
