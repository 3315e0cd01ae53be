from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from contractgen.db.base_class import Base


class SequenceCounter(Base):
    """Last contract sequence handed out for an owner within a period."""

    __tablename__ = "sequence_counters"
    __table_args__ = (
        UniqueConstraint("owner_key", "period", name="uq_sequence_counter_owner_period"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_key: Mapped[str] = mapped_column(String(length=64), nullable=False)
    period: Mapped[str] = mapped_column(String(length=16), nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
