from __future__ import annotations

import uuid
from pathlib import Path

import pytest
from docx import Document

from contractgen.core.config import Settings
from contractgen.core.security import Actor
from contractgen.db.base import Base
from contractgen.db.session import build_engine, build_session_factory
from contractgen.main import build_version_chain
from contractgen.models.template import ContractTemplate, TemplateField
from contractgen.services.audit import AuditEvent

PERIOD = "2025"


class RecordingAuditSink:
    def __init__(self):
        self.events: list[AuditEvent] = []

    def emit(self, event: AuditEvent) -> None:
        self.events.append(event)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'contracts.db'}",
        DOCUMENTS_DIR=str(tmp_path / "documents"),
        TEMPLATES_DIR=str(tmp_path / "templates"),
        AUDIT_BACKEND="log",
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def engine(settings: Settings):
    engine = build_engine(settings.DATABASE_URL)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def chain(settings, session_factory, audit_sink):
    chain = build_version_chain(settings, session_factory, audit_sink)
    chain.period_provider = lambda: PERIOD
    return chain


@pytest.fixture
def actor() -> Actor:
    return Actor(user_id=uuid.uuid4(), owner_id=uuid.uuid4())


def create_template(
    session_factory,
    *,
    content: str = "",
    fields: list[dict] | None = None,
    name: str = "Prestación de servicios",
    source_path: str | None = None,
) -> uuid.UUID:
    with session_factory() as session:
        template = ContractTemplate(name=name, content=content, source_path=source_path)
        for order, spec in enumerate(fields or []):
            template.fields.append(TemplateField(display_order=order, **spec))
        session.add(template)
        session.commit()
        return template.id


@pytest.fixture
def greeting_template(session_factory) -> uuid.UUID:
    return create_template(
        session_factory,
        content="Hola {{nombre}}, debes {{monto}}",
        fields=[
            {"name": "nombre", "label": "Nombre del cliente"},
            {"name": "monto", "label": "Monto a pagar"},
        ],
    )


def build_source_docx(path: Path) -> Path:
    """A Word template whose tags are split across differently formatted runs."""
    document = Document()
    document.add_heading("CONTRATO DE PRESTACIÓN DE SERVICIOS", level=1)
    paragraph = document.add_paragraph("Entre ")
    bold = paragraph.add_run("{{nom")
    bold.bold = True
    paragraph.add_run("bre}}")
    paragraph.add_run(" y la empresa, por un valor de {{ monto }}.")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Ciudad"
    table.rows[0].cells[1].text = "{{ciudad}}"
    path.parent.mkdir(parents=True, exist_ok=True)
    document.save(path)
    return path


@pytest.fixture
def source_docx(tmp_path: Path) -> Path:
    """``servicios.docx`` inside the configured templates directory."""
    return build_source_docx(tmp_path / "templates" / "servicios.docx")
