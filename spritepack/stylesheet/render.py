from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Callable, Sequence

from spritepack.errors import RenderError
from spritepack.layout.types import Layout
from spritepack.schemas import StylesheetOptions
from spritepack.storage.local import safe_name


@dataclass(frozen=True, slots=True)
class SpriteEntry:
    name: str
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class LayoutData:
    images: tuple[SpriteEntry, ...]
    canvas_width: int
    canvas_height: int
    sprite_url: str


def default_sprite_url(sprite_path: str, stylesheet_path: str) -> str:
    rel = os.path.relpath(sprite_path, start=os.path.dirname(stylesheet_path))
    return Path(rel).as_posix()


def build_layout_data(
    layout: Layout,
    sources: Sequence[str],
    *,
    sprite_url: str,
) -> LayoutData:
    """Pair each placement with a CSS-safe name derived from its file stem.

    Repeated stems get a numeric suffix in input order, skipping any suffix
    already taken by another image.
    """
    entries: list[SpriteEntry] = []
    used: set[str] = set()
    for path, placement in zip(sources, layout.placements):
        base = safe_name(Path(path).stem)
        name, n = base, 1
        while name in used:
            n += 1
            name = f"{base}-{n}"
        used.add(name)
        entries.append(
            SpriteEntry(
                name=name,
                x=placement.x,
                y=placement.y,
                width=placement.width,
                height=placement.height,
            )
        )
    return LayoutData(
        images=tuple(entries),
        canvas_width=layout.width,
        canvas_height=layout.height,
        sprite_url=sprite_url,
    )


def _px(value: int, ratio: int) -> str:
    scaled = value / ratio
    if scaled == 0:
        return "0"
    return f"{scaled:g}px"


def _offset(value: int, ratio: int) -> str:
    if value == 0:
        return "0"
    return "-" + _px(value, ratio)


def _declarations(entry: SpriteEntry, data: LayoutData, ratio: int, *, with_image: bool) -> list[tuple[str, str]]:
    decls: list[tuple[str, str]] = []
    if with_image:
        decls.append(("background-image", f"url('{data.sprite_url}')"))
    decls.append(("background-position", f"{_offset(entry.x, ratio)} {_offset(entry.y, ratio)}"))
    if ratio != 1:
        decls.append(
            ("background-size", f"{_px(data.canvas_width, ratio)} {_px(data.canvas_height, ratio)}")
        )
    decls.append(("width", _px(entry.width, ratio)))
    decls.append(("height", _px(entry.height, ratio)))
    return decls


def _block(selector: str, decls: list[tuple[str, str]], *, braces: bool = True, colon: bool = True, semi: bool = True) -> str:
    sep = ": " if colon else " "
    end = ";" if semi else ""
    body = [f"    {prop}{sep}{value}{end}" for prop, value in decls]
    if braces:
        return "\n".join([f"{selector} {{", *body, "}"])
    return "\n".join([selector, *body])


def _render_css(data: LayoutData, options: StylesheetOptions) -> str:
    blocks = [
        _block(f".{options.prefix}{e.name}", _declarations(e, data, options.pixel_ratio, with_image=True))
        for e in data.images
    ]
    return "\n\n".join(blocks) + "\n"


def _render_prefixed_css(data: LayoutData, options: StylesheetOptions) -> str:
    prefix = options.prefix or "sprite"
    blocks = [_block(f".{prefix}", [("background-image", f"url('{data.sprite_url}')")])]
    for e in data.images:
        blocks.append(
            _block(f".{prefix}-{e.name}", _declarations(e, data, options.pixel_ratio, with_image=False))
        )
    return "\n\n".join(blocks) + "\n"


def _render_less(data: LayoutData, options: StylesheetOptions) -> str:
    blocks = [
        _block(f".{options.prefix}{e.name}()", _declarations(e, data, options.pixel_ratio, with_image=True))
        for e in data.images
    ]
    return "\n\n".join(blocks) + "\n"


def _render_scss(data: LayoutData, options: StylesheetOptions) -> str:
    blocks = [
        _block(f"@mixin {options.prefix}{e.name}", _declarations(e, data, options.pixel_ratio, with_image=True))
        for e in data.images
    ]
    return "\n\n".join(blocks) + "\n"


def _render_sass(data: LayoutData, options: StylesheetOptions) -> str:
    blocks = [
        _block(
            f"={options.prefix}{e.name}",
            _declarations(e, data, options.pixel_ratio, with_image=True),
            braces=False,
            semi=False,
        )
        for e in data.images
    ]
    return "\n\n".join(blocks) + "\n"


def _render_stylus(data: LayoutData, options: StylesheetOptions) -> str:
    blocks = [
        _block(
            f"{options.prefix}{e.name}()",
            _declarations(e, data, options.pixel_ratio, with_image=True),
            braces=False,
            colon=False,
            semi=False,
        )
        for e in data.images
    ]
    return "\n\n".join(blocks) + "\n"


_FORMATS: dict[str, Callable[[LayoutData, StylesheetOptions], str]] = {
    "css": _render_css,
    "prefixed-css": _render_prefixed_css,
    "less": _render_less,
    "sass": _render_sass,
    "scss": _render_scss,
    "stylus": _render_stylus,
}


class StylesheetRenderer:
    """Renders layout data as stylesheet text.

    With `options.template` set, the file is read as a `string.Template`
    applied once per image (placeholders: `$name`, `$x`, `$y`, `$width`,
    `$height`, `$offset_x`, `$offset_y`, `$prefix`, `$sprite_url`,
    `$canvas_width`, `$canvas_height`) and the results are joined by newlines.
    Otherwise the built-in `options.format` is used.
    """

    def __init__(self, options: StylesheetOptions) -> None:
        self._options = options

    def render(self, data: LayoutData) -> str:
        if self._options.template:
            return self._render_template(data)
        try:
            return _FORMATS[self._options.format](data, self._options)
        except KeyError:
            raise RenderError(f"unknown stylesheet format: {self._options.format}") from None

    def _render_template(self, data: LayoutData) -> str:
        template_path = self._options.template or ""
        try:
            template = Template(Path(template_path).read_text(encoding="utf-8"))
        except OSError as exc:
            raise RenderError(f"cannot read stylesheet template {template_path}: {exc}") from exc

        ratio = self._options.pixel_ratio
        parts: list[str] = []
        for e in data.images:
            try:
                parts.append(
                    template.substitute(
                        name=e.name,
                        prefix=self._options.prefix,
                        x=e.x,
                        y=e.y,
                        width=_px(e.width, ratio),
                        height=_px(e.height, ratio),
                        offset_x=_offset(e.x, ratio),
                        offset_y=_offset(e.y, ratio),
                        sprite_url=data.sprite_url,
                        canvas_width=_px(data.canvas_width, ratio),
                        canvas_height=_px(data.canvas_height, ratio),
                    )
                )
            except (KeyError, ValueError) as exc:
                raise RenderError(f"invalid stylesheet template {template_path}: {exc}") from exc
        return "\n".join(parts)
