from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from contractgen.core.config import settings
from contractgen.db.session import SessionLocal
from contractgen.models.activity import ActivityLog
from contractgen.services.documents import ArtifactStore
from contractgen.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def _uuid_or_none(value: str | None) -> UUID | None:
    return UUID(value) if value else None


@celery_app.task(name="contractgen.tasks.record_activity", ignore_result=True)
def record_activity(payload: dict[str, Any]) -> None:
    """Persist an audit event emitted by the generation engine."""
    session = SessionLocal()
    try:
        session.add(
            ActivityLog(
                user_id=_uuid_or_none(payload.get("user_id")),
                action=payload["action"],
                entity_type=payload["entity_type"],
                entity_id=_uuid_or_none(payload.get("entity_id")),
                details=payload.get("details") or {},
            )
        )
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Failed to record activity %s", payload.get("action"))
        raise
    finally:
        session.close()


@celery_app.task(name="contractgen.tasks.prune_artifacts")
def prune_artifacts(identity: str, keep: int | None = None) -> list[str]:
    """Delete superseded artifact files of one contract, newest ``keep`` survive."""
    store = ArtifactStore(settings.DOCUMENTS_DIR, prefix=settings.ARTIFACT_PREFIX)
    removed = store.prune(identity, settings.ARTIFACT_RETENTION if keep is None else keep)
    logger.info("Pruned %d artifact(s) for %s", len(removed), identity)
    return removed
