# tests/test_cpf_proxy_service.py

import pytest
import httpx

from checadoc.services.cpf_proxy_service import CpfProxyService
from tests.mocks import BRASILAPI_HOST, RECEITAWS_HOST, FakeRegistry, connect_error, slow_response


def make_proxy(client, timeout=0.5):
    return CpfProxyService(
        client,
        receitaws_url=f"http://{RECEITAWS_HOST}/v1/cpf/{{cpf}}",
        brasilapi_url=f"http://{BRASILAPI_HOST}/api/cpf/v1/{{cpf}}",
        timeout=timeout,
    )


@pytest.mark.asyncio
async def test_rejects_cpf_without_eleven_digits():
    registry = FakeRegistry()
    async with registry.client() as client:
        status_code, body = await make_proxy(client).lookup("123.456")

    assert status_code == 400
    assert body == {"error": "CPF deve ter 11 dígitos"}
    assert registry.calls == []


@pytest.mark.asyncio
async def test_receitaws_success_is_passed_through():
    payload = {"situacao": "Regular", "nome": "MARIA SOUZA", "cpf": "529.982.247-25"}
    registry = FakeRegistry({RECEITAWS_HOST: httpx.Response(200, json=payload)})
    async with registry.client() as client:
        status_code, body = await make_proxy(client).lookup("529.982.247-25")

    assert status_code == 200
    assert body == payload
    assert registry.calls[0].url.path == "/v1/cpf/52998224725"
    assert registry.calls[0].headers["User-Agent"] == "ChecaDoc/1.4"
    assert registry.hosts_called() == [RECEITAWS_HOST]


@pytest.mark.asyncio
async def test_receitaws_http_error_is_bad_gateway_without_fallback():
    registry = FakeRegistry({
        RECEITAWS_HOST: httpx.Response(429, json={"status": "ERROR", "message": "Too many requests"}),
        BRASILAPI_HOST: httpx.Response(200, json={"name": "MARIA SOUZA"}),
    })
    async with registry.client() as client:
        status_code, body = await make_proxy(client).lookup("52998224725")

    assert status_code == 502
    assert body["error"] == "ReceitaWS indisponível"
    assert body["status"] == 429
    assert body["detail"] == "Too many requests"
    assert registry.hosts_called() == [RECEITAWS_HOST]


@pytest.mark.asyncio
@pytest.mark.parametrize("receitaws", [connect_error(), slow_response(2.0)])
async def test_brasilapi_fallback_converts_to_receitaws_format(receitaws):
    registry = FakeRegistry({
        RECEITAWS_HOST: receitaws,
        BRASILAPI_HOST: httpx.Response(200, json={"cpf": "52998224725", "name": "MARIA SOUZA"}),
    })
    async with registry.client() as client:
        status_code, body = await make_proxy(client, timeout=0.05).lookup("52998224725")

    assert status_code == 200
    assert body == {"situacao": "Regular", "nome": "MARIA SOUZA", "cpf": "52998224725", "source": "brasilapi"}


@pytest.mark.asyncio
async def test_both_services_failing():
    registry = FakeRegistry({
        RECEITAWS_HOST: connect_error(),
        BRASILAPI_HOST: httpx.Response(404, json={"message": "CPF não encontrado"}),
    })
    async with registry.client() as client:
        status_code, body = await make_proxy(client).lookup("52998224725")

    assert status_code == 502
    assert body["error"].startswith("Ambos os serviços falharam.")
    assert "CPF não encontrado" in body["error"]
