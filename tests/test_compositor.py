"""Tests for the pixel compositing backends."""

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from spritepack.compositor.array import NumpyCompositor
from spritepack.compositor.base import SourcePlacement, create_compositor
from spritepack.compositor.pillow import PillowCompositor
from spritepack.errors import CompositeError, DecodeError
from spritepack.schemas import CompositorOptions

BACKENDS = [PillowCompositor, NumpyCompositor]


def _pixels(data: bytes) -> np.ndarray:
    with Image.open(io.BytesIO(data)) as img:
        return np.array(img.convert("RGBA"))


@pytest.mark.parametrize("backend", BACKENDS)
def test_decode_returns_size(backend, make_png) -> None:
    path = make_png("a.png", 30, 12)

    assert backend().decode(path) == (30, 12)


@pytest.mark.parametrize("backend", BACKENDS)
def test_decode_rejects_non_image(backend, tmp_path: Path) -> None:
    bogus = tmp_path / "notes.png"
    bogus.write_text("not an image")

    with pytest.raises(DecodeError) as exc_info:
        backend().decode(str(bogus))
    assert exc_info.value.path == str(bogus)


@pytest.mark.parametrize("backend", BACKENDS)
def test_decode_rejects_missing_file(backend, tmp_path: Path) -> None:
    with pytest.raises(DecodeError):
        backend().decode(str(tmp_path / "missing.png"))


@pytest.mark.parametrize("backend", BACKENDS)
def test_composite_places_sources(backend, make_png) -> None:
    red = make_png("red.png", 4, 2, (255, 0, 0, 255))
    blue = make_png("blue.png", 2, 3, (0, 0, 255, 255))

    data = backend().composite(4, 5, [SourcePlacement(red, 0, 0, 4, 2), SourcePlacement(blue, 0, 2, 2, 3)])
    px = _pixels(data)

    assert px.shape == (5, 4, 4)
    assert tuple(px[0, 0]) == (255, 0, 0, 255)
    assert tuple(px[4, 1]) == (0, 0, 255, 255)
    # Uncovered area stays transparent.
    assert px[4, 3, 3] == 0


def test_backends_produce_identical_pixels(make_png) -> None:
    a = make_png("a.png", 5, 5, (10, 20, 30, 255))
    b = make_png("b.png", 3, 7, (40, 50, 60, 128))
    placements = [SourcePlacement(a, 0, 0, 5, 5), SourcePlacement(b, 5, 0, 3, 7)]

    pillow = _pixels(PillowCompositor().composite(8, 7, placements))
    array = _pixels(NumpyCompositor().composite(8, 7, placements))

    assert np.array_equal(pillow, array)


@pytest.mark.parametrize("backend", BACKENDS)
def test_composite_resizes_scaled_placements(backend, make_png) -> None:
    src = make_png("big.png", 8, 8, (0, 255, 0, 255))

    px = _pixels(backend().composite(4, 4, [SourcePlacement(src, 0, 0, 4, 4)]))

    assert px.shape == (4, 4, 4)
    assert px[2, 2, 1] >= 250
    assert px[2, 2, 0] <= 5


@pytest.mark.parametrize("backend", BACKENDS)
def test_composite_failure_is_wrapped(backend, tmp_path: Path) -> None:
    with pytest.raises(CompositeError):
        backend().composite(4, 4, [SourcePlacement(str(tmp_path / "gone.png"), 0, 0, 4, 4)])


def test_create_compositor_by_name() -> None:
    assert isinstance(create_compositor(CompositorOptions(name="pillow")), PillowCompositor)
    assert isinstance(create_compositor(CompositorOptions(name="numpy")), NumpyCompositor)
