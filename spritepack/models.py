from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from spritepack.db import Base


class BuildRecord(Base):
    __tablename__ = "build_records"
    __table_args__ = (UniqueConstraint("sprite_path", "stylesheet_path", name="uq_output_pair"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sprite_path: Mapped[str] = mapped_column(Text, nullable=False)
    stylesheet_path: Mapped[str] = mapped_column(Text, nullable=False)
    fingerprint: Mapped[str] = mapped_column(String(64), nullable=False)
    succeeded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
