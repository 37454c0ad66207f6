from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

from spritepack.compositor.base import Compositor
from spritepack.errors import DecodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SourceImage:
    path: str
    width: int
    height: int
    mtime_ns: int
    size: int


def stat_signal(path: str) -> tuple[int, int]:
    """Return (mtime_ns, size) for `path`, raising `DecodeError` if it is gone."""
    try:
        st = os.stat(path)
    except OSError as exc:
        raise DecodeError(path, exc.strerror or str(exc)) from exc
    return st.st_mtime_ns, st.st_size


class MetadataReader:
    """Reads image metadata for a single build.

    Results are memoized per path for the lifetime of the reader only, so
    duplicate sources are decoded once. Create a new reader for every build.
    """

    def __init__(self, compositor: Compositor, *, concurrency: int = 8) -> None:
        self._compositor = compositor
        self._concurrency = max(1, concurrency)
        self._cache: dict[str, SourceImage] = {}
        self._lock = threading.Lock()

    def read(self, path: str) -> SourceImage:
        with self._lock:
            cached = self._cache.get(path)
        if cached is not None:
            return cached

        mtime_ns, size = stat_signal(path)
        width, height = self._compositor.decode(path)
        image = SourceImage(path=path, width=width, height=height, mtime_ns=mtime_ns, size=size)
        with self._lock:
            self._cache.setdefault(path, image)
        return image

    def read_all(self, paths: Sequence[str]) -> list[SourceImage]:
        unique = list(dict.fromkeys(paths))
        if len(unique) <= 1 or self._concurrency == 1:
            images = [self.read(p) for p in unique]
        else:
            workers = min(self._concurrency, len(unique))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="spritepack-meta") as pool:
                # map() yields in submission order regardless of completion order.
                images = list(pool.map(self.read, unique))
        logger.debug("read metadata for %d image(s)", len(images))
        by_path = {img.path: img for img in images}
        return [by_path[p] for p in paths]
