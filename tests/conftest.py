"""
Shared pytest fixtures for the spritepack test suite.

Provides fixtures for:
- Solid-colour PNG source images written on demand
- A fingerprint store backed by a throwaway SQLite database
- A sprite builder wired to that store
"""

from collections.abc import Callable
from pathlib import Path

import pytest
from PIL import Image

from spritepack.cache.fingerprint import FingerprintStore
from spritepack.db import create_session_factory
from spritepack.pipeline.orchestrator import SpriteBuilder
from spritepack.schemas import SpriteBuildRequest

MakePng = Callable[..., str]


@pytest.fixture
def make_png(tmp_path: Path) -> MakePng:
    """Return a factory that writes a solid RGBA PNG and returns its path."""
    src_dir = tmp_path / "src"
    src_dir.mkdir(exist_ok=True)

    def _make(name: str, width: int, height: int, color: tuple[int, int, int, int] = (255, 0, 0, 255)) -> str:
        path = src_dir / name
        Image.new("RGBA", (width, height), color).save(path, format="PNG")
        return str(path)

    return _make


@pytest.fixture
def three_images(make_png: MakePng) -> list[str]:
    return [
        make_png("house.png", 200, 100, (200, 30, 30, 255)),
        make_png("lena.png", 64, 64, (30, 200, 30, 255)),
        make_png("lock.png", 64, 64, (30, 30, 200, 255)),
    ]


@pytest.fixture
def store(tmp_path: Path) -> FingerprintStore:
    return FingerprintStore(create_session_factory(f"sqlite:///{tmp_path / 'records.db'}"))


@pytest.fixture
def builder(store: FingerprintStore) -> SpriteBuilder:
    return SpriteBuilder(store, metadata_concurrency=4)


@pytest.fixture
def build_request(tmp_path: Path, three_images: list[str]) -> SpriteBuildRequest:
    out = tmp_path / "build" / "output"
    return SpriteBuildRequest(
        sources=three_images,
        sprite_path=str(out / "sprite.png"),
        stylesheet_path=str(out / "stylesheet.styl"),
        stylesheet={"format": "stylus"},
    )
