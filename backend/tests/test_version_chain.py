import threading
import time
import uuid
from pathlib import Path

import pytest
from sqlalchemy import func, select

from contractgen.core.exceptions import NotFoundFailure, PersistenceFailure, ValidationFailure
from contractgen.models import Contract, DocumentVersion, SequenceCounter
from contractgen.services.documents import BasicStrategy
from contractgen.services.versions import INITIAL_DESCRIPTION

from conftest import PERIOD, create_template

ANSWERS = {"nombre": "Ana", "monto": "100"}


def _versions(db, contract_id) -> list[DocumentVersion]:
    db.expire_all()
    stmt = (
        select(DocumentVersion)
        .where(DocumentVersion.contract_id == contract_id)
        .order_by(DocumentVersion.version)
    )
    return list(db.scalars(stmt))


def _assert_chain_is_consistent(db, contract_id) -> None:
    versions = _versions(db, contract_id)
    assert [v.version for v in versions] == list(range(1, len(versions) + 1))
    assert sum(v.is_current for v in versions) == 1


@pytest.mark.asyncio
async def test_create_initial_contract(chain, db, actor, greeting_template):
    outcome = await chain.create_initial(db, greeting_template, ANSWERS, actor)

    contract = outcome.contract
    assert contract.contract_number == f"CON-{PERIOD}-0001"
    assert contract.content == "Hola Ana, debes 100"
    assert contract.status == "active"
    assert contract.generated_by == actor.user_id
    assert contract.owner_id == actor.owner_id
    assert not outcome.degraded
    assert Path(contract.docx_path).is_file()
    assert Path(contract.pdf_path).read_bytes().startswith(b"%PDF")

    version = outcome.version
    assert version.version == 1
    assert version.is_current
    assert version.change_description == INITIAL_DESCRIPTION
    assert version.editable_content == contract.content
    assert version.docx_path == contract.docx_path
    _assert_chain_is_consistent(db, contract.id)


@pytest.mark.asyncio
async def test_numbers_increase_per_owner(chain, db, actor, greeting_template):
    first = await chain.create_initial(db, greeting_template, ANSWERS, actor)
    second = await chain.create_initial(db, greeting_template, ANSWERS, actor)

    assert first.contract.contract_number == f"CON-{PERIOD}-0001"
    assert second.contract.contract_number == f"CON-{PERIOD}-0002"


@pytest.mark.asyncio
async def test_missing_fields_create_nothing(chain, db, actor, greeting_template):
    with pytest.raises(ValidationFailure) as excinfo:
        await chain.create_initial(db, greeting_template, {"nombre": "Ana"}, actor)

    assert excinfo.value.missing_fields == ["Monto a pagar"]
    assert db.scalar(select(func.count()).select_from(Contract)) == 0
    assert db.scalar(select(func.count()).select_from(SequenceCounter)) == 0


@pytest.mark.asyncio
async def test_unknown_template(chain, db, actor):
    with pytest.raises(NotFoundFailure):
        await chain.create_initial(db, uuid.uuid4(), ANSWERS, actor)


@pytest.mark.asyncio
async def test_source_document_template(chain, db, actor, session_factory, source_docx):
    template_id = create_template(
        session_factory,
        content="",
        fields=[
            {"name": "nombre", "label": "Nombre"},
            {"name": "monto", "label": "Monto"},
            {"name": "ciudad", "label": "Ciudad", "required": False},
        ],
        source_path=source_docx.name,
    )

    outcome = await chain.create_initial(db, template_id, ANSWERS, actor)

    assert not outcome.degraded
    assert "Contrato generado desde plantilla" in outcome.contract.content
    assert Path(outcome.contract.docx_path).is_file()


@pytest.mark.asyncio
async def test_generation_failure_degrades(chain, db, actor, greeting_template, monkeypatch):
    def broken(self, request, path):
        raise RuntimeError("renderer crashed")

    monkeypatch.setattr(BasicStrategy, "write_structured", broken)
    monkeypatch.setattr(BasicStrategy, "write_paginated", broken)

    outcome = await chain.create_initial(db, greeting_template, ANSWERS, actor)

    assert outcome.degraded
    assert outcome.contract.docx_path is None and outcome.contract.pdf_path is None
    assert outcome.version.docx_path is None
    assert outcome.contract.content == "Hola Ana, debes 100"
    _assert_chain_is_consistent(db, outcome.contract.id)


@pytest.mark.asyncio
async def test_save_edit_appends_current_version(chain, db, actor, greeting_template):
    created = await chain.create_initial(db, greeting_template, ANSWERS, actor)
    contract_id = created.contract.id

    edited = await chain.save_edit(db, contract_id, "Texto editado", "Ajuste de monto", actor)

    assert edited.version.version == 2
    assert edited.version.change_description == "Ajuste de monto"
    assert edited.version.content == "Texto editado"
    assert edited.contract.content == "Texto editado"
    assert edited.contract.docx_path == edited.version.docx_path
    assert edited.contract.docx_path != created.version.docx_path

    versions = _versions(db, contract_id)
    assert [v.is_current for v in versions] == [False, True]
    _assert_chain_is_consistent(db, contract_id)


@pytest.mark.asyncio
async def test_save_edit_default_description(chain, db, actor, greeting_template):
    created = await chain.create_initial(db, greeting_template, ANSWERS, actor)

    edited = await chain.save_edit(db, created.contract.id, "v2", None, actor)

    assert edited.version.change_description == "Versión 2"


@pytest.mark.asyncio
async def test_save_edit_unknown_contract(chain, db, actor):
    with pytest.raises(NotFoundFailure):
        await chain.save_edit(db, uuid.uuid4(), "x", None, actor)


@pytest.mark.asyncio
async def test_restore_appends_copy_of_target(chain, db, actor, greeting_template):
    created = await chain.create_initial(db, greeting_template, ANSWERS, actor)
    contract_id = created.contract.id
    await chain.save_edit(db, contract_id, "Segunda", None, actor)
    await chain.save_edit(db, contract_id, "Tercera", None, actor)

    restored = await chain.restore(db, created.version.id, actor)

    assert restored.version.version == 4
    assert restored.version.content == "Hola Ana, debes 100"
    assert restored.version.change_description == "Restaurado desde versión 1"
    assert restored.contract.content == "Hola Ana, debes 100"

    versions = _versions(db, contract_id)
    assert [v.is_current for v in versions] == [False, False, False, True]
    assert versions[0].content == "Hola Ana, debes 100"
    assert versions[0].change_description == INITIAL_DESCRIPTION
    _assert_chain_is_consistent(db, contract_id)


@pytest.mark.asyncio
async def test_restore_current_version_still_appends(chain, db, actor, greeting_template):
    created = await chain.create_initial(db, greeting_template, ANSWERS, actor)

    restored = await chain.restore(db, created.version.id, actor)

    assert restored.version.version == 2
    _assert_chain_is_consistent(db, created.contract.id)


@pytest.mark.asyncio
async def test_restore_unknown_version(chain, db, actor):
    with pytest.raises(NotFoundFailure):
        await chain.restore(db, uuid.uuid4(), actor)


@pytest.mark.asyncio
async def test_list_versions_newest_first(chain, db, actor, greeting_template):
    created = await chain.create_initial(db, greeting_template, ANSWERS, actor)
    await chain.save_edit(db, created.contract.id, "v2", None, actor)

    assert [v.version for v in chain.list_versions(db, created.contract.id)] == [2, 1]

    with pytest.raises(NotFoundFailure):
        chain.list_versions(db, uuid.uuid4())


@pytest.mark.asyncio
async def test_prune_keeps_version_records(chain, db, actor, greeting_template):
    created = await chain.create_initial(db, greeting_template, ANSWERS, actor)
    contract_id = created.contract.id
    for content in ("v2", "v3"):
        await chain.save_edit(db, contract_id, content, None, actor)

    removed = chain.prune_artifacts(db, contract_id, keep=2)

    assert len(removed) == 4
    assert len(_versions(db, contract_id)) == 3


@pytest.mark.asyncio
async def test_audit_events_are_emitted(chain, db, actor, greeting_template, audit_sink):
    created = await chain.create_initial(db, greeting_template, ANSWERS, actor)
    await chain.flush_audit()
    await chain.save_edit(db, created.contract.id, "v2", None, actor)
    await chain.flush_audit()
    await chain.restore(db, created.version.id, actor)
    await chain.flush_audit()

    actions = [event.action for event in audit_sink.events]
    assert actions == ["contract_generated", "contract_edited", "contract_restored"]
    generated = audit_sink.events[0]
    assert generated.entity_id == created.contract.id
    assert generated.user_id == actor.user_id
    assert generated.details["contract_number"] == f"CON-{PERIOD}-0001"
    assert audit_sink.events[2].details == {"version": 3, "restored_from": 1}


@pytest.mark.asyncio
async def test_failing_audit_sink_does_not_fail_generation(chain, db, actor, greeting_template):
    class ExplodingSink:
        def emit(self, event):
            raise ConnectionError("broker unreachable")

    chain.audit = ExplodingSink()

    outcome = await chain.create_initial(db, greeting_template, ANSWERS, actor)
    await chain.flush_audit()

    assert outcome.contract.id is not None


@pytest.mark.asyncio
async def test_blocking_audit_sink_does_not_hold_the_request(chain, db, actor, greeting_template):
    class BlockingSink:
        def __init__(self):
            self.release = threading.Event()
            self.delivered = threading.Event()

        def emit(self, event):
            self.release.wait(timeout=10)
            self.delivered.set()

    sink = BlockingSink()
    chain.audit = sink

    started = time.monotonic()
    outcome = await chain.create_initial(db, greeting_template, ANSWERS, actor)
    elapsed = time.monotonic() - started

    assert outcome.contract.contract_number == f"CON-{PERIOD}-0001"
    assert not sink.delivered.is_set()
    assert elapsed < 10

    sink.release.set()
    await chain.flush_audit()
    assert sink.delivered.is_set()


@pytest.mark.asyncio
async def test_paginated_failure_keeps_structured_paths(chain, db, actor, greeting_template, monkeypatch):
    def broken(self, request, path):
        raise RuntimeError("pdf engine down")

    monkeypatch.setattr(BasicStrategy, "write_paginated", broken)

    created = await chain.create_initial(db, greeting_template, ANSWERS, actor)
    edited = await chain.save_edit(db, created.contract.id, "Texto editado", None, actor)
    restored = await chain.restore(db, created.version.id, actor)

    for outcome in (created, edited, restored):
        assert outcome.degraded
        assert outcome.errors == {"pdf": "pdf engine down"}
        assert outcome.version.docx_path is not None
        assert Path(outcome.version.docx_path).is_file()
        assert outcome.version.pdf_path is None

    db.expire_all()
    contract = db.get(Contract, created.contract.id)
    assert contract.docx_path == restored.version.docx_path
    assert contract.pdf_path is None
    assert [(v.docx_path is not None, v.pdf_path) for v in _versions(db, contract.id)] == [
        (True, None),
        (True, None),
        (True, None),
    ]
    _assert_chain_is_consistent(db, contract.id)


@pytest.mark.asyncio
async def test_store_errors_on_reads_become_persistence_failures(chain, db, engine, actor, greeting_template):
    created = await chain.create_initial(db, greeting_template, ANSWERS, actor)
    DocumentVersion.__table__.drop(engine)

    with pytest.raises(PersistenceFailure) as excinfo:
        chain.list_versions(db, created.contract.id)

    assert "no such table" in str(excinfo.value)
    assert not db.in_transaction()
