from __future__ import annotations

import logging
from functools import wraps
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from contractgen.core.exceptions import NotFoundFailure, PersistenceFailure
from contractgen.models.contract import Contract, DocumentVersion
from contractgen.models.template import ContractTemplate

logger = logging.getLogger(__name__)


def store_call(func):
    """Surface store rejections as PersistenceFailure after rolling the session back."""

    @wraps(func)
    def wrapper(db: Session, *args, **kwargs):
        try:
            return func(db, *args, **kwargs)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("%s failed: %s", func.__name__, exc)
            raise PersistenceFailure(str(exc)) from exc

    return wrapper


@store_call
def get_template(db: Session, template_id: UUID) -> ContractTemplate:
    stmt = (
        select(ContractTemplate)
        .options(selectinload(ContractTemplate.fields))
        .where(ContractTemplate.id == template_id)
    )
    template = db.scalar(stmt)
    if template is None:
        raise NotFoundFailure("Template", template_id)
    return template


@store_call
def list_active_templates(db: Session) -> list[ContractTemplate]:
    stmt = (
        select(ContractTemplate)
        .options(selectinload(ContractTemplate.fields))
        .where(ContractTemplate.active.is_(True))
        .order_by(ContractTemplate.created_at.desc())
    )
    return list(db.scalars(stmt))


@store_call
def get_contract(db: Session, contract_id: UUID) -> Contract:
    contract = db.get(Contract, contract_id)
    if contract is None:
        raise NotFoundFailure("Contract", contract_id)
    return contract


@store_call
def get_version(db: Session, version_id: UUID) -> DocumentVersion:
    version = db.get(DocumentVersion, version_id)
    if version is None:
        raise NotFoundFailure("Version", version_id)
    return version


@store_call
def get_current_version(db: Session, contract_id: UUID) -> DocumentVersion | None:
    stmt = select(DocumentVersion).where(
        DocumentVersion.contract_id == contract_id,
        DocumentVersion.is_current.is_(True),
    )
    return db.scalar(stmt)


@store_call
def max_version_number(db: Session, contract_id: UUID) -> int:
    stmt = select(func.max(DocumentVersion.version)).where(
        DocumentVersion.contract_id == contract_id
    )
    return db.scalar(stmt) or 0


@store_call
def clear_current_flags(db: Session, contract_id: UUID) -> None:
    db.execute(
        update(DocumentVersion)
        .where(DocumentVersion.contract_id == contract_id, DocumentVersion.is_current.is_(True))
        .values(is_current=False)
        .execution_options(synchronize_session="fetch")
    )


@store_call
def list_contract_versions(db: Session, contract_id: UUID) -> list[DocumentVersion]:
    """All versions of a contract, newest first."""
    stmt = (
        select(DocumentVersion)
        .where(DocumentVersion.contract_id == contract_id)
        .order_by(DocumentVersion.version.desc())
    )
    return list(db.scalars(stmt))
