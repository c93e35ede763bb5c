# checadoc/services/cpf_proxy_service.py

import re
import logging
from typing import Any, Dict, Tuple
import httpx
from fastapi import status

from checadoc.rules.document.cpf.checksum import mask_cpf
from checadoc.utils.http import fetch_json

logger = logging.getLogger(__name__)

SOURCE_BRASILAPI = "brasilapi"


class CpfProxyService:
    """
    Proxy de consulta de CPF: ReceitaWS primeiro, BrasilAPI como fallback quando a
    ReceitaWS não responde (timeout, falha de transporte ou corpo que não é JSON).
    A resposta segue o formato da ReceitaWS, com o campo `situacao` que o CpfResolver reconhece.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        receitaws_url: str,
        brasilapi_url: str,
        timeout: float = 10.0,
        user_agent: str = "ChecaDoc/1.4",
    ):
        self.http_client = http_client
        self.receitaws_url = receitaws_url
        self.brasilapi_url = brasilapi_url
        self.timeout = timeout
        self.headers = {"Accept": "application/json", "User-Agent": user_agent}
        logger.info("CpfProxyService inicializado.")

    async def lookup(self, cpf: str) -> Tuple[int, Dict[str, Any]]:
        """Retorna (status HTTP, corpo JSON) para o endpoint do proxy."""
        clean_cpf = re.sub(r'\D', '', str(cpf or ""))
        if len(clean_cpf) != 11:
            return status.HTTP_400_BAD_REQUEST, {"error": "CPF deve ter 11 dígitos"}

        logger.info(f"[CPF Proxy] Consultando ReceitaWS para CPF {mask_cpf(clean_cpf)}")
        primary = await fetch_json(
            self.http_client, self.receitaws_url.format(cpf=clean_cpf), timeout=self.timeout, headers=self.headers
        )

        if primary.status_code is not None and primary.is_json:
            logger.info(
                f"[CPF Proxy] ReceitaWS HTTP {primary.status_code} - situacao: "
                f"{primary.field('situacao', 'message') or 'N/A'}"
            )
            if not primary.ok:
                detail = primary.field("message", "type") or str(primary.data)
                return status.HTTP_502_BAD_GATEWAY, {
                    "error": "ReceitaWS indisponível",
                    "status": primary.status_code,
                    "detail": detail,
                }
            return status.HTTP_200_OK, primary.data

        primary_error = primary.error or f"HTTP {primary.status_code}, resposta não é JSON"
        logger.info(f"[CPF Proxy] ReceitaWS falhou: {primary_error}. Tentando BrasilAPI como fallback...")

        fallback = await fetch_json(
            self.http_client, self.brasilapi_url.format(cpf=clean_cpf), timeout=self.timeout, headers=self.headers
        )
        nome = fallback.field("name")
        if fallback.ok and fallback.is_json and nome:
            return status.HTTP_200_OK, {
                "situacao": "Regular",
                "nome": nome,
                "cpf": clean_cpf,
                "source": SOURCE_BRASILAPI,
            }

        fallback_error = fallback.error or fallback.field("message") or fallback.status_code
        logger.info(f"[CPF Proxy] BrasilAPI também falhou: {fallback_error}")
        return status.HTTP_502_BAD_GATEWAY, {
            "error": f"Ambos os serviços falharam. ReceitaWS: {primary_error}. BrasilAPI: {fallback_error}",
        }
