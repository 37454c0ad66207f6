from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from spritepack.models import BuildRecord


def get_build_record(db: Session, sprite_path: str, stylesheet_path: str) -> BuildRecord | None:
    stmt = select(BuildRecord).where(
        BuildRecord.sprite_path == sprite_path,
        BuildRecord.stylesheet_path == stylesheet_path,
    )
    return db.scalars(stmt).first()


def list_build_records(db: Session, limit: int = 20) -> list[BuildRecord]:
    stmt = select(BuildRecord).order_by(BuildRecord.succeeded_at.desc()).limit(limit)
    return list(db.scalars(stmt))


def upsert_build_record(
    db: Session,
    sprite_path: str,
    stylesheet_path: str,
    *,
    fingerprint: str,
    succeeded_at: datetime | None = None,
) -> BuildRecord:
    record = get_build_record(db, sprite_path, stylesheet_path)
    if record is None:
        record = BuildRecord(sprite_path=sprite_path, stylesheet_path=stylesheet_path)
    record.fingerprint = fingerprint
    record.succeeded_at = succeeded_at or datetime.now(timezone.utc)

    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def delete_build_record(db: Session, sprite_path: str, stylesheet_path: str) -> bool:
    record = get_build_record(db, sprite_path, stylesheet_path)
    if record is None:
        return False
    db.delete(record)
    db.commit()
    return True
