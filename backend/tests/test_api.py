import uuid
from io import BytesIO

import pytest
from fastapi.testclient import TestClient

from contractgen.main import create_app
from contractgen.models import Contract, ContractTemplate, DocumentVersion

from conftest import PERIOD, create_template

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@pytest.fixture
def client(settings, session_factory, audit_sink, chain):
    app = create_app(settings, session_factory, audit=audit_sink)
    app.state.version_chain = chain
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def headers(actor) -> dict[str, str]:
    return {"X-User-Id": str(actor.user_id), "X-Owner-Id": str(actor.owner_id)}


def _generate(client, headers, template_id, data=None):
    return client.post(
        "/api/v1/contracts/generate",
        json={"template_id": str(template_id), "data": data or {"nombre": "Ana", "monto": "100"}},
        headers=headers,
    )


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_requests_without_identity_are_rejected(client, greeting_template):
    response = _generate(client, {}, greeting_template)
    assert response.status_code == 401

    response = _generate(client, {"X-User-Id": "not-a-uuid"}, greeting_template)
    assert response.status_code == 401


def test_generate_contract(client, headers, greeting_template):
    response = _generate(client, headers, greeting_template)

    assert response.status_code == 201
    body = response.json()
    assert body["contract_number"] == f"CON-{PERIOD}-0001"
    assert body["version"] == 1
    assert body["content"] == "Hola Ana, debes 100"
    assert body["degraded"] is False
    assert body["docx_path"].endswith(".docx")


def test_generate_reports_missing_fields(client, headers, greeting_template):
    response = _generate(client, headers, greeting_template, {"nombre": "Ana"})

    assert response.status_code == 400
    assert response.json()["missing_fields"] == ["Monto a pagar"]


def test_generate_unknown_template(client, headers):
    response = _generate(client, headers, uuid.uuid4())
    assert response.status_code == 404


def test_edit_restore_and_history(client, headers, greeting_template):
    contract_id = _generate(client, headers, greeting_template).json()["contract_id"]

    saved = client.put(
        f"/api/v1/contracts/{contract_id}/content",
        json={"content": "Texto nuevo", "change_description": "Corrección"},
        headers=headers,
    )
    assert saved.status_code == 200
    assert saved.json()["version"] == 2

    history = client.get(f"/api/v1/contracts/{contract_id}/versions", headers=headers).json()
    assert [item["version"] for item in history] == [2, 1]
    assert [item["is_current"] for item in history] == [True, False]
    first_version_id = history[1]["id"]

    editable = client.get(f"/api/v1/versions/{first_version_id}/editable", headers=headers)
    assert editable.json()["content"] == "Hola Ana, debes 100"

    restored = client.post(f"/api/v1/versions/{first_version_id}/restore", headers=headers)
    assert restored.status_code == 200
    assert restored.json()["version"] == 3

    contract = client.get(f"/api/v1/contracts/{contract_id}", headers=headers).json()
    assert contract["content"] == "Hola Ana, debes 100"
    assert contract["current_version"]["version"] == 3


def test_empty_edit_is_rejected(client, headers, greeting_template):
    contract_id = _generate(client, headers, greeting_template).json()["contract_id"]

    response = client.put(
        f"/api/v1/contracts/{contract_id}/content", json={"content": ""}, headers=headers
    )
    assert response.status_code == 422


def test_unknown_contract_and_version(client, headers):
    missing = uuid.uuid4()
    assert client.get(f"/api/v1/contracts/{missing}", headers=headers).status_code == 404
    assert client.get(f"/api/v1/contracts/{missing}/versions", headers=headers).status_code == 404
    assert client.post(f"/api/v1/versions/{missing}/restore", headers=headers).status_code == 404
    response = client.put(
        f"/api/v1/contracts/{missing}/content", json={"content": "x"}, headers=headers
    )
    assert response.status_code == 404


def test_download_artifacts(client, headers, greeting_template):
    contract_id = _generate(client, headers, greeting_template).json()["contract_id"]

    pdf = client.get(f"/api/v1/contracts/{contract_id}/download/pdf", headers=headers)
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")
    assert f"contrato_CON-{PERIOD}-0001.pdf" in pdf.headers["content-disposition"]

    docx = client.get(f"/api/v1/contracts/{contract_id}/download/docx", headers=headers)
    assert docx.headers["content-type"] == DOCX_MEDIA_TYPE

    assert client.get(f"/api/v1/contracts/{contract_id}/download/txt", headers=headers).status_code == 422


def test_prune_artifacts(client, headers, greeting_template):
    contract_id = _generate(client, headers, greeting_template).json()["contract_id"]
    client.put(f"/api/v1/contracts/{contract_id}/content", json={"content": "v2"}, headers=headers)

    response = client.post(
        f"/api/v1/contracts/{contract_id}/artifacts/prune", json={"keep": 2}, headers=headers
    )

    assert response.status_code == 200
    assert len(response.json()["removed"]) == 2


def test_templates_listing_and_detail(client, headers, session_factory, greeting_template):
    inactive = create_template(session_factory, name="Archivada", content="x")
    with session_factory() as session:
        session.get(ContractTemplate, inactive).active = False
        session.commit()

    listing = client.get("/api/v1/templates", headers=headers).json()
    assert [item["id"] for item in listing] == [str(greeting_template)]

    detail = client.get(f"/api/v1/templates/{greeting_template}", headers=headers).json()
    assert [field["name"] for field in detail["fields"]] == ["nombre", "monto"]
    assert detail["has_source_document"] is False

    assert client.get(f"/api/v1/templates/{uuid.uuid4()}", headers=headers).status_code == 404


def test_detect_variables_from_content(client, headers):
    response = client.post(
        "/api/v1/templates/detect-variables",
        data={"content": "{{ nombre_cliente }} paga {{monto}} el {{fecha_inicio}}; {{Nombre-Cliente}}"},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["variables"] == ["{{nombre_cliente}}", "{{monto}}", "{{fecha_inicio}}"]
    assert [(f["field_label"], f["field_type"]) for f in body["fields"]] == [
        ("Nombre Cliente", "text"),
        ("Monto", "number"),
        ("Fecha Inicio", "date"),
    ]


def test_detect_variables_from_docx(client, headers, source_docx):
    response = client.post(
        "/api/v1/templates/detect-variables",
        files={"file": ("servicios.docx", source_docx.read_bytes(), DOCX_MEDIA_TYPE)},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["variables"] == ["{{nombre}}", "{{monto}}", "{{ciudad}}"]


def test_detect_variables_rejects_bad_input(client, headers):
    response = client.post(
        "/api/v1/templates/detect-variables",
        files={"file": ("roto.docx", BytesIO(b"not a zip"), DOCX_MEDIA_TYPE)},
        headers=headers,
    )
    assert response.status_code == 400

    assert client.post("/api/v1/templates/detect-variables", headers=headers).status_code == 400


def test_store_errors_on_reads_are_reported(client, headers, engine, greeting_template):
    contract_id = _generate(client, headers, greeting_template).json()["contract_id"]
    DocumentVersion.__table__.drop(engine)
    Contract.__table__.drop(engine)

    response = client.get(f"/api/v1/contracts/{contract_id}/versions", headers=headers)

    assert response.status_code == 500
    assert "no such table" in response.json()["detail"]


def test_schema_package_exports_every_response_model():
    import contractgen.schemas as schemas

    assert "VersionSavedResponse" in schemas.__all__
    assert all(hasattr(schemas, name) for name in schemas.__all__)
