from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contractgen.db.base_class import Base

CONTRACT_STATUSES = (
    "active",
    "terminated",
    "expired",
    "borrador",
    "revision",
    "aprobado",
    "firmado",
    "cancelado",
)


class Contract(Base):
    """A generated contract and a cache of its current version."""

    __tablename__ = "contracts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    contract_number: Mapped[str] = mapped_column(String(length=50), nullable=False, unique=True)
    template_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contract_templates.id"), nullable=False
    )
    title: Mapped[str | None] = mapped_column(Text)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    docx_path: Mapped[str | None] = mapped_column(Text)
    pdf_path: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(length=32), nullable=False, default="active")
    generated_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    owner_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    template: Mapped["ContractTemplate"] = relationship("ContractTemplate")
    versions: Mapped[list["DocumentVersion"]] = relationship(
        "DocumentVersion",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="desc(DocumentVersion.version)",
    )


class DocumentVersion(Base):
    """One entry of a contract's append-only version chain."""

    __tablename__ = "document_versions"
    __table_args__ = (
        UniqueConstraint("contract_id", "version", name="uq_document_version_number"),
        Index(
            "uq_document_versions_one_current",
            "contract_id",
            unique=True,
            postgresql_where=text("is_current"),
            sqlite_where=text("is_current"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    contract_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("contracts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    editable_content: Mapped[str | None] = mapped_column(Text)
    docx_path: Mapped[str | None] = mapped_column(Text)
    pdf_path: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    change_description: Mapped[str] = mapped_column(
        Text, nullable=False, default="Versión inicial"
    )
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    contract: Mapped[Contract] = relationship("Contract", back_populates="versions")
