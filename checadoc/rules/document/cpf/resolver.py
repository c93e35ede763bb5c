import logging
from typing import List, Optional
import httpx
from pydantic import BaseModel

from checadoc.config.settings import RegistrySource
from checadoc.models.results import CpfResult
from checadoc.models.trace import ResolutionTrace
from checadoc.rules.base import BaseResolver
from checadoc.rules.document.cpf.checksum import (
    normalize_cpf,
    format_cpf,
    mask_cpf,
    is_valid_cpf,
    get_cpf_region,
)
from checadoc.utils.http import fetch_json

logger = logging.getLogger(__name__)

SITUACAO_REGULAR = "regular"
SITUACAO_INVALIDO = "Inválido"
SITUACAO_VALIDACAO_LOCAL = "Regular (validação local)"

ORIGEM_CHECKSUM = "checksum"
ORIGEM_LOCAL = "local"


class SourceAttempt(BaseModel):
    """Resultado de uma tentativa numa fonte. `situacao` None é falha branda: segue para a próxima."""
    source: str
    situacao: Optional[str] = None
    nome: Optional[str] = None
    detail: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.situacao is not None


class CpfResolver(BaseResolver):
    """
    Resolve o veredito de um CPF:
    1. Dígitos verificadores; se reprovar, termina sem nenhuma chamada de rede.
    2. Fontes remotas em ordem estrita, uma de cada vez, cada uma com seu timeout.
       A primeira que devolver um campo de situação reconhecível decide.
    3. Se todas falharem, veredito degradado: válido pela validação matemática.
    """

    def __init__(self, http_client: httpx.AsyncClient, sources: List[RegistrySource], user_agent: str = "ChecaDoc/1.4"):
        super().__init__(origin_name="cpf_resolver", http_client=http_client, user_agent=user_agent)
        self.sources = list(sources)
        logger.info(f"CpfResolver inicializado com {len(self.sources)} fonte(s): {[s.name for s in self.sources]}.")

    async def resolve(self, cpf: str) -> CpfResult:
        digits = normalize_cpf(cpf)
        formatted = format_cpf(digits)
        regiao = get_cpf_region(digits)
        trace = ResolutionTrace()
        trace.info(f"Iniciando consulta do CPF {mask_cpf(digits)}.")

        if not is_valid_cpf(digits):
            trace.error("CPF reprovado na validação dos dígitos verificadores. Nenhuma consulta remota realizada.")
            return CpfResult(
                is_valid=False,
                cpf=formatted,
                situacao=SITUACAO_INVALIDO,
                mensagem="CPF com dígitos verificadores inválidos. Não passa na validação matemática da Receita Federal.",
                regiao_fiscal=regiao,
                origem_validacao=ORIGEM_CHECKSUM,
                trace=trace,
            )

        trace.ok(f"Dígitos verificadores válidos. Região fiscal: {regiao}.")

        for source in self.sources:
            attempt = await self._attempt(source, digits, trace)
            if attempt.succeeded:
                return self._verdict_from_source(attempt, formatted, regiao, trace)

        trace.warn("Nenhuma fonte remota respondeu com a situação cadastral. Usando validação local.")
        return CpfResult(
            is_valid=True,
            cpf=formatted,
            situacao=SITUACAO_VALIDACAO_LOCAL,
            mensagem=(
                f"CPF válido algoritmicamente. Região fiscal: {regiao}. A consulta online à Receita Federal "
                f"não está disponível no momento; usando validação matemática dos dígitos verificadores."
            ),
            regiao_fiscal=regiao,
            origem_validacao=ORIGEM_LOCAL,
            trace=trace,
        )

    async def _attempt(self, source: RegistrySource, digits: str, trace: ResolutionTrace) -> SourceAttempt:
        url = source.url_template.format(cpf=digits)
        trace.info(f"Consultando {source.name} (timeout {source.timeout:g}s)...")

        result = await fetch_json(self.http_client, url, timeout=source.timeout, headers=self._headers())

        if result.timed_out:
            trace.warn(f"{source.name}: sem resposta em {source.timeout:g}s, tentativa cancelada.")
            return SourceAttempt(source=source.name, detail=result.error)
        if result.status_code is None:
            trace.warn(f"{source.name}: falha de transporte após {result.elapsed_ms}ms ({result.error}).")
            return SourceAttempt(source=source.name, detail=result.error)
        if not result.ok:
            detail = result.field("error", "message", "detail")
            trace.warn(f"{source.name}: HTTP {result.status_code} em {result.elapsed_ms}ms" + (f" ({detail})." if detail else "."))
            return SourceAttempt(source=source.name, detail=str(detail) if detail else f"HTTP {result.status_code}")
        if not result.is_json:
            trace.warn(f"{source.name}: HTTP {result.status_code} em {result.elapsed_ms}ms, mas a resposta não é JSON.")
            return SourceAttempt(source=source.name, detail="resposta não é JSON")

        situacao = result.field("situacao", "situation")
        if not isinstance(situacao, str):
            detail = result.field("message", "error")
            trace.warn(
                f"{source.name}: HTTP {result.status_code} em {result.elapsed_ms}ms sem campo de situação"
                + (f" ({detail})." if detail else ".")
            )
            return SourceAttempt(source=source.name, detail=str(detail) if detail else "sem campo de situação")

        nome = result.field("nome", "name")
        trace.ok(f"{source.name}: HTTP {result.status_code} em {result.elapsed_ms}ms, situação \"{situacao}\".")
        return SourceAttempt(source=source.name, situacao=situacao, nome=nome if isinstance(nome, str) else None)

    def _verdict_from_source(self, attempt: SourceAttempt, formatted: str, regiao: str, trace: ResolutionTrace) -> CpfResult:
        is_regular = attempt.situacao.strip().lower() == SITUACAO_REGULAR
        if is_regular:
            mensagem = f"CPF consultado com sucesso na Receita Federal. Contribuinte: {attempt.nome or 'N/D'}"
        else:
            mensagem = f"CPF com situação \"{attempt.situacao}\" na Receita Federal."
        return CpfResult(
            is_valid=is_regular,
            cpf=formatted,
            situacao=attempt.situacao,
            mensagem=mensagem,
            regiao_fiscal=regiao,
            nome=attempt.nome,
            origem_validacao=attempt.source,
            verificado_online=True,
            trace=trace,
        )
