from __future__ import annotations

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import Insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from contractgen.core.exceptions import PersistenceFailure
from contractgen.models.sequence import SequenceCounter

logger = logging.getLogger(__name__)

GLOBAL_OWNER_KEY = "global"


def owner_key_for(owner: UUID | str | None) -> str:
    """Counters are keyed by text so that ownerless contracts share one row."""
    if owner is None:
        return GLOBAL_OWNER_KEY
    return str(owner)


def current_period() -> str:
    return str(datetime.now(timezone.utc).year)


def format_contract_number(period: str, value: int, *, prefix: str = "CON", padding: int = 4) -> str:
    return f"{prefix}-{period}-{str(value).zfill(padding)}"


class SequenceAllocator:
    """Hands out per-(owner, period) sequence values.

    Each allocation is a single ``INSERT ... ON CONFLICT DO UPDATE ...
    RETURNING`` statement committed in its own session, so concurrent callers
    never observe the same value and a value is consumed even when the
    caller's own transaction later fails.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def allocate(self, owner: UUID | str | None, period: str) -> int:
        key = owner_key_for(owner)
        with self._session_factory() as session:
            try:
                value = session.execute(self._upsert(session, key, period)).scalar_one()
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise PersistenceFailure(f"Sequence allocation failed: {exc}") from exc
        logger.info("Allocated sequence %s for owner=%s period=%s", value, key, period)
        return value

    @staticmethod
    def _upsert(session: Session, owner_key: str, period: str) -> Insert:
        dialect = session.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql.insert
        elif dialect == "sqlite":
            insert = sqlite.insert
        else:
            raise PersistenceFailure(f"Atomic sequence allocation unsupported on {dialect}")

        stmt = insert(SequenceCounter).values(owner_key=owner_key, period=period, count=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=[SequenceCounter.owner_key, SequenceCounter.period],
            set_={"count": SequenceCounter.count + 1},
        )
        return stmt.returning(SequenceCounter.count)
