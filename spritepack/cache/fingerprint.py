from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from spritepack import crud
from spritepack.errors import CacheError
from spritepack.schemas import BuildRecordResponse
from spritepack.storage.local import outputs_exist

logger = logging.getLogger(__name__)

FINGERPRINT_VERSION = "spritepack-fp-1"

OutputKey = tuple[str, str]


@dataclass(frozen=True, slots=True)
class SourceSignal:
    path: str
    mtime_ns: int
    size: int


def compute_fingerprint(sources: Sequence[SourceSignal], options: dict[str, Any]) -> str:
    """Digest of the ordered sources and the output-affecting options.

    Field order is fixed: version tag, source count, one line per source in
    input order, then the options serialized as canonical JSON.
    """
    h = hashlib.sha256()
    h.update(FINGERPRINT_VERSION.encode())
    h.update(b"\n")
    h.update(str(len(sources)).encode())
    h.update(b"\n")
    for src in sources:
        h.update(src.path.encode("utf-8"))
        h.update(b"\0")
        h.update(str(src.mtime_ns).encode())
        h.update(b"\0")
        h.update(str(src.size).encode())
        h.update(b"\n")
    h.update(json.dumps(options, sort_keys=True, separators=(",", ":")).encode("utf-8"))
    return h.hexdigest()


class FingerprintStore:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def lookup(self, key: OutputKey) -> BuildRecordResponse | None:
        sprite_path, stylesheet_path = key
        try:
            with self._session_factory() as db:
                record = crud.get_build_record(db, sprite_path, stylesheet_path)
                return BuildRecordResponse.model_validate(record) if record is not None else None
        except SQLAlchemyError as exc:
            raise CacheError(f"cannot read build record for {sprite_path}: {exc}") from exc

    def is_fresh(self, key: OutputKey, fingerprint: str) -> bool:
        try:
            record = self.lookup(key)
        except CacheError as exc:
            logger.warning("treating %s as stale: %s", key[0], exc)
            return False
        if record is None or record.fingerprint != fingerprint:
            return False
        # A matching record is worthless if an artifact was removed behind our back.
        return outputs_exist(*key)

    def commit(self, key: OutputKey, fingerprint: str) -> None:
        sprite_path, stylesheet_path = key
        try:
            with self._session_factory() as db:
                crud.upsert_build_record(db, sprite_path, stylesheet_path, fingerprint=fingerprint)
        except SQLAlchemyError as exc:
            raise CacheError(f"cannot write build record for {sprite_path}: {exc}") from exc

    def forget(self, key: OutputKey) -> bool:
        sprite_path, stylesheet_path = key
        try:
            with self._session_factory() as db:
                return crud.delete_build_record(db, sprite_path, stylesheet_path)
        except SQLAlchemyError as exc:
            raise CacheError(f"cannot delete build record for {sprite_path}: {exc}") from exc

    def records(self, limit: int = 20) -> list[BuildRecordResponse]:
        try:
            with self._session_factory() as db:
                return [BuildRecordResponse.model_validate(r) for r in crud.list_build_records(db, limit)]
        except SQLAlchemyError as exc:
            raise CacheError(f"cannot list build records: {exc}") from exc
