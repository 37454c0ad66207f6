"""Tests for stylesheet rendering."""

from pathlib import Path

import pytest

from spritepack.errors import RenderError
from spritepack.layout.engine import compute_layout
from spritepack.layout.types import ImageBox, Layout, Placement
from spritepack.schemas import StylesheetOptions
from spritepack.stylesheet.render import (
    LayoutData,
    StylesheetRenderer,
    build_layout_data,
    default_sprite_url,
)

LAYOUT = Layout(
    placements=(
        Placement("/src/house.png", 0, 0, 200, 100),
        Placement("/src/lena.jpg", 0, 100, 64, 64),
    ),
    width=200,
    height=164,
)


@pytest.fixture
def data() -> LayoutData:
    return build_layout_data(LAYOUT, ["/src/house.png", "/src/lena.jpg"], sprite_url="../sprite.png")


def test_layout_data_names_come_from_file_stems(data: LayoutData) -> None:
    assert [e.name for e in data.images] == ["house", "lena"]
    assert (data.canvas_width, data.canvas_height) == (200, 164)


def test_repeated_stems_get_suffixes() -> None:
    layout = Layout(
        placements=(Placement("/a/icon.png", 0, 0, 1, 1), Placement("/b/icon.png", 0, 1, 1, 1)),
        width=1,
        height=2,
    )

    data = build_layout_data(layout, ["/a/icon.png", "/b/icon.png"], sprite_url="s.png")

    assert [e.name for e in data.images] == ["icon", "icon-2"]


def test_suffix_skips_names_taken_by_real_stems() -> None:
    sources = ["/a/icon.png", "/a/icon-2.png", "/b/icon.png"]
    layout = compute_layout([ImageBox(s, 10, 10) for s in sources])

    data = build_layout_data(layout, sources, sprite_url="s.png")

    names = [e.name for e in data.images]
    assert names == ["icon", "icon-2", "icon-3"]
    assert len(set(names)) == len(names)


def test_unsafe_characters_are_replaced() -> None:
    layout = Layout(placements=(Placement("/a/my icon@2x.png", 0, 0, 1, 1),), width=1, height=1)

    data = build_layout_data(layout, ["/a/my icon@2x.png"], sprite_url="s.png")

    assert data.images[0].name == "my-icon-2x"


def test_css(data: LayoutData) -> None:
    text = StylesheetRenderer(StylesheetOptions(format="css", prefix="icon-")).render(data)

    assert ".icon-lena {" in text
    assert "background-image: url('../sprite.png');" in text
    assert "background-position: 0 -100px;" in text
    assert "width: 64px;" in text
    assert text.endswith("}\n")


def test_prefixed_css(data: LayoutData) -> None:
    text = StylesheetRenderer(StylesheetOptions(format="prefixed-css", prefix="sp")).render(data)

    assert text.startswith(".sp {\n    background-image: url('../sprite.png');\n}")
    assert ".sp-house {" in text
    assert text.count("background-image") == 1


def test_stylus(data: LayoutData) -> None:
    text = StylesheetRenderer(StylesheetOptions(format="stylus")).render(data)

    assert text.splitlines()[:6] == [
        "house()",
        "    background-image url('../sprite.png')",
        "    background-position 0 0",
        "    width 200px",
        "    height 100px",
        "",
    ]


@pytest.mark.parametrize(
    "fmt,header",
    [("less", ".lena() {"), ("scss", "@mixin lena {"), ("sass", "=lena")],
)
def test_mixin_formats(data: LayoutData, fmt: str, header: str) -> None:
    text = StylesheetRenderer(StylesheetOptions(format=fmt)).render(data)

    assert header in text.splitlines()


def test_pixel_ratio_halves_dimensions(data: LayoutData) -> None:
    text = StylesheetRenderer(StylesheetOptions(format="css", pixel_ratio=2)).render(data)

    assert "background-size: 100px 82px;" in text
    assert "background-position: 0 -50px;" in text
    assert "width: 32px;" in text


def test_custom_template(data: LayoutData, tmp_path: Path) -> None:
    template = tmp_path / "sprite.tpl"
    template.write_text(".$name { background: url($sprite_url) $offset_x $offset_y; width: $width; }")

    text = StylesheetRenderer(StylesheetOptions(template=str(template))).render(data)

    assert text.splitlines() == [
        ".house { background: url(../sprite.png) 0 0; width: 200px; }",
        ".lena { background: url(../sprite.png) 0 -100px; width: 64px; }",
    ]


def test_template_with_unknown_placeholder_fails(data: LayoutData, tmp_path: Path) -> None:
    template = tmp_path / "bad.tpl"
    template.write_text("$nope")

    with pytest.raises(RenderError):
        StylesheetRenderer(StylesheetOptions(template=str(template))).render(data)


def test_missing_template_fails(data: LayoutData, tmp_path: Path) -> None:
    with pytest.raises(RenderError):
        StylesheetRenderer(StylesheetOptions(template=str(tmp_path / "missing.tpl"))).render(data)


def test_default_sprite_url_is_relative_to_stylesheet() -> None:
    assert default_sprite_url("/site/img/sprite.png", "/site/css/sprite.css") == "../img/sprite.png"
    assert default_sprite_url("/out/sprite.png", "/out/sprite.css") == "sprite.png"
