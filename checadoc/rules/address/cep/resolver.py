# checadoc/rules/address/cep/resolver.py

import re
import logging
from typing import Any
import httpx

from checadoc.models.results import CepResult, CepErrorCode
from checadoc.rules.base import BaseResolver
from checadoc.utils.http import fetch_json

logger = logging.getLogger(__name__)


class CepResolver(BaseResolver):
    """
    Resolvedor de Códigos de Endereçamento Postal (CEP).
    Uma única consulta à base de endereços (ViaCEP por padrão), sem cadeia de fallback:
    a base é a única fonte de verdade. "Não encontrado" e "serviço indisponível" são
    falhas distintas.
    """

    def __init__(self, http_client: httpx.AsyncClient, url_template: str, timeout: float = 8.0, user_agent: str = "ChecaDoc/1.4"):
        super().__init__(origin_name="cep_resolver", http_client=http_client, user_agent=user_agent)
        self.url_template = url_template
        self.timeout = timeout
        logger.info("CepResolver inicializado.")

    def _clean_cep(self, cep: Any) -> str:
        """Remove caracteres não numéricos do CEP."""
        if not cep:
            return ""
        return re.sub(r'\D', '', str(cep))

    async def resolve(self, cep: Any) -> CepResult:
        cleaned_cep = self._clean_cep(cep)

        if len(cleaned_cep) != 8:
            return CepResult(
                is_valid=False,
                codigo_regra=CepErrorCode.WRONG_LENGTH,
                mensagem="CEP deve ter 8 dígitos",
                origem_validacao=self.origin_name,
            )

        url = self.url_template.format(cep=cleaned_cep)
        result = await fetch_json(self.http_client, url, timeout=self.timeout, headers=self._headers())

        if result.is_json and isinstance(result.data, dict) and (result.data.get("erro") or result.data.get("error")):
            logger.info(f"CEP {cleaned_cep} não encontrado na base de endereços.")
            return CepResult(
                is_valid=False,
                codigo_regra=CepErrorCode.NOT_FOUND,
                mensagem="CEP não encontrado na base dos Correios",
                origem_validacao=self.origin_name,
            )

        if not result.ok or not result.is_json or not isinstance(result.data, dict):
            reason = result.error or f"HTTP {result.status_code}" + ("" if result.is_json else ", resposta não é JSON")
            logger.warning(f"Consulta do CEP {cleaned_cep} falhou: {reason}")
            return CepResult(
                is_valid=False,
                codigo_regra=CepErrorCode.SERVICE_UNAVAILABLE,
                mensagem="Erro ao consultar ViaCEP. Verifique sua conexão.",
                origem_validacao=self.origin_name,
            )

        return CepResult(
            is_valid=True,
            codigo_regra=CepErrorCode.FOUND,
            cep=result.field("cep") or f"{cleaned_cep[:5]}-{cleaned_cep[5:]}",
            logradouro=result.field("logradouro", "street"),
            bairro=result.field("bairro", "district"),
            localidade=result.field("localidade", "city"),
            uf=result.field("uf", "state"),
            origem_validacao=self.origin_name,
        )
