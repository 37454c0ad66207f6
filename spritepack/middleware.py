from __future__ import annotations

import logging

from fastapi import Request, Response
from fastapi.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from spritepack.pipeline.orchestrator import SpriteBuilder
from spritepack.schemas import SpriteBuildRequest

logger = logging.getLogger(__name__)


class SpriteMiddleware(BaseHTTPMiddleware):
    """Makes sure the sprite is current before each request is handled.

    Usage::

        app = FastAPI()
        app.add_middleware(SpriteMiddleware, builder=builder, build_request=request)

    Unchanged inputs cost one fingerprint check per request. Build errors
    propagate to the application's exception handling.
    """

    def __init__(self, app: ASGIApp, *, builder: SpriteBuilder, build_request: SpriteBuildRequest) -> None:
        super().__init__(app)
        self._builder = builder
        self._build_request = build_request

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        result = await run_in_threadpool(self._builder.build, self._build_request)
        if result.rebuilt:
            logger.info("regenerated %s before %s %s", result.sprite_path, request.method, request.url.path)
        return await call_next(request)
