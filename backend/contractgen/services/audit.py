from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol
from uuid import UUID

from contractgen.core.logging import AUDIT_LOGGER_NAME

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)


@dataclass
class AuditEvent:
    action: str
    entity_type: str
    entity_id: UUID | None
    user_id: UUID | None
    details: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["entity_id"] = str(self.entity_id) if self.entity_id else None
        payload["user_id"] = str(self.user_id) if self.user_id else None
        return payload


class AuditSink(Protocol):
    def emit(self, event: AuditEvent) -> None:
        ...


class LoggingAuditSink:
    """Writes events to the audit logger."""

    def emit(self, event: AuditEvent) -> None:
        audit_logger.info("%s %s %s %s", event.action, event.entity_type, event.entity_id, event.details)


class CeleryAuditSink:
    """Hands events to the ``record_activity`` task."""

    def emit(self, event: AuditEvent) -> None:
        from contractgen.tasks.maintenance import record_activity

        record_activity.delay(event.to_payload())


def emit_quietly(sink: AuditSink | None, event: AuditEvent) -> None:
    """Audit emission must never fail the request that triggered it."""
    if sink is None:
        return
    try:
        sink.emit(event)
    except Exception:
        logger.warning("Dropping audit event %s for %s", event.action, event.entity_id, exc_info=True)


def build_audit_sink(backend: str) -> AuditSink:
    if backend == "celery":
        return CeleryAuditSink()
    return LoggingAuditSink()
