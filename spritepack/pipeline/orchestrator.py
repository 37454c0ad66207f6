from __future__ import annotations

import enum
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from spritepack.cache.fingerprint import FingerprintStore, OutputKey, SourceSignal, compute_fingerprint
from spritepack.compositor.base import Compositor, SourcePlacement, create_compositor
from spritepack.config import Settings, settings as default_settings
from spritepack.db import create_session_factory
from spritepack.errors import CacheError, CompositeError, DecodeError, RenderError, SpriteError
from spritepack.layout.engine import compute_layout
from spritepack.layout.types import ImageBox, Layout
from spritepack.metadata import MetadataReader, stat_signal
from spritepack.schemas import CompositorOptions, SpriteBuildRequest
from spritepack.storage import local
from spritepack.stylesheet.render import StylesheetRenderer, build_layout_data, default_sprite_url

logger = logging.getLogger(__name__)


class BuildStage(str, enum.Enum):
    IDLE = "idle"
    COMPUTING_FINGERPRINT = "computing_fingerprint"
    FRESH = "fresh"
    READING_METADATA = "reading_metadata"
    COMPUTING_LAYOUT = "computing_layout"
    COMPOSITING = "compositing"
    RENDERING = "rendering"
    COMMITTING = "committing"
    DONE = "done"


ProgressCallback = Callable[[BuildStage, str | None], None]


@dataclass(slots=True)
class BuildResult:
    sprite_path: str
    stylesheet_path: str
    fingerprint: str
    rebuilt: bool
    layout: Layout | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class SpriteBuilder:
    """Builds sprite/stylesheet pairs, skipping work whose inputs are unchanged.

    One builder is created per configuration and may be shared across threads.
    Builds targeting the same (sprite path, stylesheet path) pair run one at a
    time; builds for different pairs run concurrently.
    """

    def __init__(
        self,
        store: FingerprintStore,
        *,
        metadata_concurrency: int = 8,
        compositor_factory: Callable[[CompositorOptions], Compositor] = create_compositor,
    ) -> None:
        self._store = store
        self._metadata_concurrency = metadata_concurrency
        self._compositor_factory = compositor_factory
        self._locks: dict[OutputKey, _KeyLock] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> SpriteBuilder:
        config = config or default_settings
        store = FingerprintStore(create_session_factory(config.database_url))
        return cls(store, metadata_concurrency=config.metadata_concurrency)

    @property
    def store(self) -> FingerprintStore:
        return self._store

    @contextmanager
    def _locked(self, key: OutputKey) -> Iterator[None]:
        # Entries live only while some build holds or waits on them.
        with self._locks_guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _KeyLock()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]

    def fingerprint(self, request: SpriteBuildRequest) -> str:
        sources = list(dict.fromkeys(request.sources))
        signals = [SourceSignal(p, *stat_signal(p)) for p in sources]
        options: dict[str, Any] = request.fingerprint_payload()
        template = request.stylesheet.template
        if template:
            # Editing the template must invalidate; a missing one fails later while rendering.
            try:
                options["template_signal"] = list(stat_signal(template))
            except DecodeError:
                options["template_signal"] = None
        return compute_fingerprint(signals, options)

    def build(
        self,
        request: SpriteBuildRequest,
        *,
        force: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> BuildResult:
        def _emit(stage: BuildStage, detail: str | None = None) -> None:
            logger.debug("%s: %s %s", request.sprite_path, stage.value, detail or "")
            if on_progress is not None:
                on_progress(stage, detail)

        key = request.output_key
        _emit(BuildStage.IDLE)
        with self._locked(key):
            _emit(BuildStage.COMPUTING_FINGERPRINT)
            fingerprint = self.fingerprint(request)

            if not force and self._store.is_fresh(key, fingerprint):
                logger.info("sprite %s is up to date", request.sprite_path)
                _emit(BuildStage.FRESH)
                _emit(BuildStage.DONE)
                return BuildResult(
                    sprite_path=request.sprite_path,
                    stylesheet_path=request.stylesheet_path,
                    fingerprint=fingerprint,
                    rebuilt=False,
                )

            result = self._rebuild(request, fingerprint, _emit)
            _emit(BuildStage.DONE)
            return result

    def _rebuild(
        self,
        request: SpriteBuildRequest,
        fingerprint: str,
        emit: ProgressCallback,
    ) -> BuildResult:
        sources = list(dict.fromkeys(request.sources))
        compositor = self._compositor_factory(request.compositor)

        # 1) Intrinsic sizes, read in parallel but kept in input order.
        emit(BuildStage.READING_METADATA, f"{len(sources)} image(s)")
        reader = MetadataReader(compositor, concurrency=self._metadata_concurrency)
        images = reader.read_all(sources)

        # 2) Layout.
        emit(BuildStage.COMPUTING_LAYOUT, request.layout.policy)
        layout = compute_layout(
            [ImageBox(id=img.path, width=img.width, height=img.height) for img in images],
            request.layout,
        )

        # 3) Sprite pixels.
        emit(BuildStage.COMPOSITING, f"{layout.width}x{layout.height}")
        placements = [SourcePlacement(p.id, p.x, p.y, p.width, p.height) for p in layout.placements]
        try:
            sprite_bytes = compositor.composite(layout.width, layout.height, placements)
        except SpriteError:
            raise
        except Exception as exc:  # noqa: BLE001 - third-party compositor failure
            raise CompositeError(f"compositor {request.compositor.name} failed: {exc}") from exc

        # 4) Stylesheet text.
        emit(BuildStage.RENDERING, request.stylesheet.template or request.stylesheet.format)
        sprite_url = request.stylesheet.sprite_url or default_sprite_url(
            request.sprite_path, request.stylesheet_path
        )
        data = build_layout_data(layout, sources, sprite_url=sprite_url)
        try:
            stylesheet_text = StylesheetRenderer(request.stylesheet).render(data)
        except SpriteError:
            raise
        except Exception as exc:  # noqa: BLE001 - template failure
            raise RenderError(f"stylesheet rendering failed: {exc}") from exc

        self._write_outputs(request, sprite_bytes, stylesheet_text)
        logger.info(
            "built sprite %s (%dx%d, %d image(s))",
            request.sprite_path,
            layout.width,
            layout.height,
            len(layout.placements),
        )

        # 5) Record success; a failure here only costs a rebuild next time.
        emit(BuildStage.COMMITTING, None)
        warnings: list[str] = []
        try:
            self._store.commit(request.output_key, fingerprint)
        except CacheError as exc:
            logger.warning("build succeeded but was not recorded: %s", exc)
            warnings.append(str(exc))

        return BuildResult(
            sprite_path=request.sprite_path,
            stylesheet_path=request.stylesheet_path,
            fingerprint=fingerprint,
            rebuilt=True,
            layout=layout,
            warnings=warnings,
        )

    @staticmethod
    def _write_outputs(request: SpriteBuildRequest, sprite_bytes: bytes, stylesheet_text: str) -> None:
        """Stage both artifacts before replacing either final path."""
        staged: list[str] = []
        try:
            try:
                staged.append(local.stage_bytes(request.sprite_path, sprite_bytes))
            except OSError as exc:
                raise CompositeError(f"cannot write sprite {request.sprite_path}: {exc}") from exc
            try:
                staged.append(local.stage_text(request.stylesheet_path, stylesheet_text))
            except OSError as exc:
                raise RenderError(f"cannot write stylesheet {request.stylesheet_path}: {exc}") from exc

            try:
                local.promote(staged[0], request.sprite_path)
            except OSError as exc:
                raise CompositeError(f"cannot write sprite {request.sprite_path}: {exc}") from exc
            try:
                local.promote(staged[1], request.stylesheet_path)
            except OSError as exc:
                raise RenderError(f"cannot write stylesheet {request.stylesheet_path}: {exc}") from exc
        finally:
            for path in staged:
                local.discard(path)
