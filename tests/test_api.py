# tests/test_api.py

import pytest
import httpx
from fastapi.testclient import TestClient

from checadoc.api.api_main import app, build_cpf_proxy_service, build_verification_service
from checadoc.config.settings import settings
from checadoc.database.kv_store import InMemoryKeyValueStore
from tests.mocks import FailingKeyValueStore, FakeOcrEngine, FakeRegistry, VIACEP_SE, make_form_data

# Hosts das URLs padrão das configurações
PROXY_HOST = "127.0.0.1"
VIACEP_HOST = "viacep.com.br"
RECEITAWS_HOST = "www.receitaws.com.br"
BRASILAPI_HOST = "brasilapi.com.br"

OCR_TEXT = "DECLARAÇÃO\nMaria Souza está matriculada na USP, curso de Engenharia."


def install_services(registry, store=None, ocr_engine=None):
    http_client = registry.client()
    app.state.verification_service = build_verification_service(
        settings, http_client, store if store is not None else InMemoryKeyValueStore(), ocr_engine=ocr_engine
    )
    app.state.cpf_proxy_service = build_cpf_proxy_service(settings, http_client)
    return app.state.verification_service


@pytest.fixture
def registry():
    return FakeRegistry({
        PROXY_HOST: httpx.Response(200, json={"situacao": "Regular", "nome": "MARIA SOUZA"}),
        VIACEP_HOST: httpx.Response(200, json=VIACEP_SE),
        RECEITAWS_HOST: httpx.Response(200, json={"situacao": "Regular", "nome": "MARIA SOUZA"}),
    })


@pytest.fixture
def client(registry):
    with TestClient(app) as test_client:
        install_services(registry, ocr_engine=FakeOcrEngine(text=OCR_TEXT))
        yield test_client


def form_payload(**overrides):
    return make_form_data(**overrides).model_dump()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["dependencies"]["storage"]["connected"] is True
    assert body["dependencies"]["ocr_engine"] == "configurado"


def test_check_cpf_returns_verdict_with_trace(client):
    response = client.post("/api/v1/checks/cpf", json={"cpf": "529.982.247-25"})
    assert response.status_code == 200
    body = response.json()
    assert body["is_valid"] is True
    assert body["origem_validacao"] == "proxy_primario"
    assert body["regiao_fiscal"] == "ES, RJ"
    assert [entry["level"] for entry in body["trace"]["entries"]][-1] == "ok"


def test_check_cpf_invalid_checksum(client, registry):
    response = client.post("/api/v1/checks/cpf", json={"cpf": "111.111.111-11"})
    assert response.status_code == 200
    assert response.json()["is_valid"] is False
    assert response.json()["origem_validacao"] == "checksum"
    assert registry.calls == []


def test_check_cep_includes_formatted_address(client):
    response = client.post("/api/v1/checks/cep", json={"cep": "01001-000"})
    assert response.status_code == 200
    body = response.json()
    assert body["codigo_regra"] == "VAL_CEP001"
    assert body["endereco"] == "Praça da Sé, Sé - São Paulo/SP"


def test_check_institution_text(client):
    response = client.post(
        "/api/v1/checks/institution",
        json={"texto_documento": OCR_TEXT, "instituicao_declarada": "Universidade de São Paulo"},
    )
    assert response.status_code == 200
    assert response.json() == {"found": "universidade de são paulo", "match": True, "method": "alias"}


def test_check_document_upload(client):
    response = client.post(
        "/api/v1/checks/document",
        files={"file": ("declaracao.png", b"\x89PNG fake", "image/png")},
        data={"instituicao": "Universidade de São Paulo"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["instituicao_confere"] is True
    assert body["metodo_match"] == "alias"


def test_check_document_without_engine_is_unavailable(client, registry):
    install_services(registry, ocr_engine=None)
    response = client.post(
        "/api/v1/checks/document",
        files={"file": ("declaracao.png", b"\x89PNG fake", "image/png")},
        data={"instituicao": "USP"},
    )
    assert response.status_code == 503


def test_verification_lifecycle(client):
    created = client.post("/api/v1/verifications/run", json={"form_data": form_payload()})
    assert created.status_code == 201
    record = created.json()["verification"]
    # Sem resultado de OCR o registro fica pendente
    assert record["status"] == "pendente"
    assert record["cpf_result"]["is_valid"] is True
    assert record["cep_result"]["is_valid"] is True
    record_id = record["id"]

    approved = client.post(f"/api/v1/verifications/{record_id}/approve", json={"operador": "ana.lima"})
    assert approved.status_code == 200
    assert approved.json()["verification"]["status"] == "aprovado"
    assert approved.json()["verification"]["usuario_atualizacao"] == "ana.lima"

    rejected = client.post(f"/api/v1/verifications/{record_id}/reject")
    assert rejected.json()["verification"]["status"] == "reprovado"

    in_review = client.put(f"/api/v1/verifications/{record_id}/status", json={"status": "em_analise"})
    assert in_review.status_code == 200
    assert in_review.json()["verification"]["status"] == "em_analise"

    pending = client.put(f"/api/v1/verifications/{record_id}/status", json={"status": "pendente"})
    assert pending.status_code == 422

    fetched = client.get(f"/api/v1/verifications/{record_id}")
    assert fetched.json()["verification"]["status"] == "em_analise"

    deleted = client.delete(f"/api/v1/verifications/{record_id}")
    assert deleted.status_code == 200
    assert client.get(f"/api/v1/verifications/{record_id}").status_code == 404
    assert client.delete(f"/api/v1/verifications/{record_id}").status_code == 404


def test_create_with_all_checks_is_decided_automatically(client):
    cpf = client.post("/api/v1/checks/cpf", json={"cpf": "529.982.247-25"}).json()
    cep = client.post("/api/v1/checks/cep", json={"cep": "01001000"}).json()
    ocr = client.post(
        "/api/v1/checks/document",
        files={"file": ("declaracao.png", b"\x89PNG fake", "image/png")},
        data={"instituicao": "Universidade de São Paulo"},
    ).json()

    response = client.post(
        "/api/v1/verifications",
        json={"form_data": form_payload(), "cpf_result": cpf, "cep_result": cep, "ocr_result": ocr},
    )
    assert response.status_code == 201
    assert response.json()["verification"]["status"] == "aprovado"


def test_list_search_and_stats(client):
    client.post("/api/v1/verifications", json={"form_data": form_payload()})
    other = client.post("/api/v1/verifications", json={"form_data": form_payload(nome="João Pereira", instituicao="UFRJ")}).json()
    client.post(f"/api/v1/verifications/{other['verification']['id']}/reject")

    listing = client.get("/api/v1/verifications", params={"status": "reprovado"}).json()
    assert listing["total"] == 1
    assert listing["items"][0]["form_data"]["nome"] == "João Pereira"

    searched = client.get("/api/v1/verifications", params={"search": "MARIA"}).json()
    assert [item["form_data"]["nome"] for item in searched["items"]] == ["Maria Souza"]

    stats = client.get("/api/v1/verifications/stats").json()
    assert stats["stats"]["total"] == 2
    assert stats["stats"]["por_status"]["reprovado"] == 1
    assert stats["stats"]["por_status"]["pendente"] == 1
    assert len(stats["recentes"]) == 2


def test_invalid_email_is_rejected(client):
    response = client.post("/api/v1/verifications", json={"form_data": form_payload() | {"email": "sem-arroba"}})
    assert response.status_code == 422


def test_clear_all(client):
    for _ in range(3):
        client.post("/api/v1/verifications", json={"form_data": form_payload()})
    response = client.delete("/api/v1/verifications")
    assert response.json()["removed"] == 3
    assert client.get("/api/v1/verifications").json()["total"] == 0


def test_storage_failure_surfaces_as_sync_warning(client, registry):
    store = FailingKeyValueStore(failing=True)
    install_services(registry, store=store)

    created = client.post("/api/v1/verifications", json={"form_data": form_payload()})
    assert created.status_code == 201

    retry = client.post("/api/v1/verifications/sync/retry").json()
    assert retry["succeeded"] == 0
    assert retry["remaining"][0]["operation"] == "save"
    assert retry["sync_warning"]

    sync = client.get("/api/v1/verifications/sync/status").json()
    assert sync["sync_error"]
    assert sync["failed_writes"][0]["retryable"] is True

    health = client.get("/health").json()
    assert health["status"] == "degraded"

    store.failing = False
    retry = client.post("/api/v1/verifications/sync/retry").json()
    assert retry["succeeded"] == 1
    assert retry["sync_warning"] is None


def test_cpf_proxy_endpoint(client):
    response = client.get("/cpf/529.982.247-25")
    assert response.status_code == 200
    assert response.json()["situacao"] == "Regular"

    assert client.get("/cpf/123").status_code == 400
