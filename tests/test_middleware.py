"""Tests for the ASGI sprite middleware."""

import os

from fastapi import FastAPI
from fastapi.testclient import TestClient

from spritepack.middleware import SpriteMiddleware
from spritepack.pipeline.orchestrator import SpriteBuilder
from spritepack.schemas import SpriteBuildRequest


def _app(builder: SpriteBuilder, build_request: SpriteBuildRequest) -> FastAPI:
    app = FastAPI()
    app.add_middleware(SpriteMiddleware, builder=builder, build_request=build_request)

    @app.get("/ping")
    def ping() -> dict[str, str]:
        return {"status": "ok"}

    return app


def test_sprite_is_built_before_first_request(builder: SpriteBuilder, build_request: SpriteBuildRequest) -> None:
    client = TestClient(_app(builder, build_request))

    response = client.get("/ping")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert os.path.exists(build_request.sprite_path)
    assert os.path.exists(build_request.stylesheet_path)


def test_unchanged_inputs_are_not_rewritten(builder: SpriteBuilder, build_request: SpriteBuildRequest) -> None:
    client = TestClient(_app(builder, build_request))
    client.get("/ping")
    past = 1_500_000_000_000_000_000
    os.utime(build_request.sprite_path, ns=(past, past))

    client.get("/ping")

    assert os.stat(build_request.sprite_path).st_mtime_ns == past


def test_deleted_sprite_is_rebuilt_on_next_request(builder: SpriteBuilder, build_request: SpriteBuildRequest) -> None:
    client = TestClient(_app(builder, build_request))
    client.get("/ping")

    os.unlink(build_request.sprite_path)
    client.get("/ping")

    assert os.path.exists(build_request.sprite_path)
