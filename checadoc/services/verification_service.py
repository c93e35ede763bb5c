# checadoc/services/verification_service.py

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

from checadoc.database.repositories.verification_repository import VerificationRepository
from checadoc.models.results import CpfResult, CepResult, InstitutionMatch, OcrResult
from checadoc.models.verification import (
    FormData,
    StorageWarning,
    VerificationRecord,
    VerificationStats,
    VerificationStatus,
)
from checadoc.ocr.engine import DocumentCheck, DocumentUpload
from checadoc.rules.address.cep.resolver import CepResolver
from checadoc.rules.decision_rules import DecisionRules
from checadoc.rules.document.cpf.resolver import CpfResolver
from checadoc.rules.institution.matcher import InstitutionMatcher
from checadoc.utils.error_handlers import (
    OcrEngineUnavailableError,
    StorageError,
    VerificationNotFoundError,
)

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5
MAX_WARNINGS = 50
HEALTH_PROBE_KEY = "checadoc:health:probe"

# Chaves de falha para operações que não pertencem a um único registro
BULK_CLEAR = "__clear_all__"
BULK_LOAD = "__load__"


class VerificationService:
    """
    Serviço central: executa as checagens e mantém o ciclo de vida dos registros de verificação.

    O estado em memória é a referência da sessão. Toda escrita no armazenamento é disparada
    em segundo plano (sem bloquear a resposta ao operador); falhas viram StorageWarning,
    ficam em `warnings`/`sync_error` e podem ser reenviadas com `retry_failed_writes`.
    Escritas de um mesmo registro são aplicadas na ordem em que foram disparadas.
    """

    def __init__(
        self,
        repo: VerificationRepository,
        cpf_resolver: CpfResolver,
        cep_resolver: CepResolver,
        matcher: InstitutionMatcher,
        decision_rules: DecisionRules,
        document_check: Optional[DocumentCheck] = None,
    ):
        self.repo = repo
        self.cpf_resolver = cpf_resolver
        self.cep_resolver = cep_resolver
        self.matcher = matcher
        self.decision_rules = decision_rules
        self.document_check = document_check

        self._records: Dict[str, VerificationRecord] = {}
        self._pending: Set[asyncio.Task] = set()
        self._last_write: Dict[str, asyncio.Task] = {}
        self._failed: Dict[str, StorageWarning] = {}
        self.warnings: List[StorageWarning] = []
        self.sync_error: Optional[str] = None
        logger.info("VerificationService inicializado.")

    # --- Carga inicial ---

    async def load(self) -> int:
        """
        Carrega os registros persistidos. Falha de armazenamento não é fatal:
        a sessão segue com o que já está em memória e um sync_error.
        """
        try:
            stored = await self.repo.list_all()
        except StorageError as e:
            logger.warning(f"Erro ao carregar verificações do armazenamento. Usando dados locais. ({e})")
            self._record_failure(BULK_LOAD, "load", f"Erro ao conectar ao banco. Usando dados locais: {e}")
            return 0

        loaded = 0
        for record in stored:
            # O que já está em memória vale mais que o armazenado
            if record.id not in self._records:
                self._records[record.id] = record
                loaded += 1
        self._failed.pop(BULK_LOAD, None)
        logger.info(f"{loaded} verificação(ões) carregada(s) do armazenamento.")
        return loaded

    # --- Checagens (independentes entre si) ---

    async def check_cpf(self, cpf: str) -> CpfResult:
        return await self.cpf_resolver.resolve(cpf)

    async def check_cep(self, cep: str) -> CepResult:
        return await self.cep_resolver.resolve(cep)

    def check_institution_text(self, texto_documento: str, instituicao_declarada: str) -> InstitutionMatch:
        return self.matcher.match(texto_documento, instituicao_declarada)

    async def check_document(self, document: DocumentUpload, instituicao_declarada: str) -> OcrResult:
        if self.document_check is None:
            raise OcrEngineUnavailableError("Nenhum motor de OCR configurado.")
        return await self.document_check.run(document, instituicao_declarada)

    async def run_checks(self, form_data: FormData) -> Tuple[CpfResult, Optional[CepResult]]:
        """Executa as checagens de CPF e CEP em paralelo. Sem CEP declarado, a checagem de CEP não roda."""
        if form_data.cep:
            cpf_result, cep_result = await asyncio.gather(
                self.check_cpf(form_data.cpf), self.check_cep(form_data.cep)
            )
        else:
            cpf_result, cep_result = await self.check_cpf(form_data.cpf), None
        return cpf_result, cep_result

    # --- Ciclo de vida dos registros ---

    async def create_verification(
        self,
        form_data: FormData,
        ocr_result: Optional[OcrResult] = None,
        cep_result: Optional[CepResult] = None,
        cpf_result: Optional[CpfResult] = None,
    ) -> VerificationRecord:
        record = VerificationRecord(
            form_data=form_data,
            ocr_result=ocr_result,
            cep_result=cep_result,
            cpf_result=cpf_result,
            status=self.decision_rules.initial_status(ocr_result, cep_result, cpf_result),
        )
        self._records[record.id] = record
        logger.info(f"Verificação {record.id} criada com status '{record.status.value}'.")
        self._schedule_save(record)
        return record

    async def create_and_run(self, form_data: FormData, ocr_result: Optional[OcrResult] = None) -> VerificationRecord:
        cpf_result, cep_result = await self.run_checks(form_data)
        return await self.create_verification(form_data, ocr_result=ocr_result, cep_result=cep_result, cpf_result=cpf_result)

    async def get(self, record_id: str) -> VerificationRecord:
        record = self._records.get(record_id)
        if record is None:
            raise VerificationNotFoundError(record_id)
        return record

    async def list_verifications(
        self,
        status: Optional[VerificationStatus] = None,
        search: Optional[str] = None,
    ) -> List[VerificationRecord]:
        """Registros mais recentes primeiro, com filtro por status e busca por nome, CPF, instituição ou id."""
        term = (search or "").strip().lower()
        result = []
        for record in self._records.values():
            if status is not None and record.status != status:
                continue
            if term:
                haystack = (
                    record.form_data.nome,
                    record.form_data.cpf,
                    record.form_data.instituicao,
                    record.id,
                )
                if not any(term in field.lower() for field in haystack):
                    continue
            result.append(record)
        result.sort(key=lambda r: r.created_at, reverse=True)
        return result

    async def stats(self) -> VerificationStats:
        stats = VerificationStats(total=len(self._records))
        for record in self._records.values():
            stats.por_status[record.status] += 1
        return stats

    async def recent(self, limit: int = RECENT_LIMIT) -> List[VerificationRecord]:
        return (await self.list_verifications())[:limit]

    async def set_status(
        self,
        record_id: str,
        new_status: VerificationStatus,
        operador: Optional[str] = None,
    ) -> VerificationRecord:
        record = await self.get(record_id)
        self.decision_rules.apply_operator_decision(record, new_status, operador)
        self._schedule_save(record)
        return record

    async def approve(self, record_id: str, operador: Optional[str] = None) -> VerificationRecord:
        return await self.set_status(record_id, VerificationStatus.APPROVED, operador)

    async def reject(self, record_id: str, operador: Optional[str] = None) -> VerificationRecord:
        return await self.set_status(record_id, VerificationStatus.REJECTED, operador)

    async def delete(self, record_id: str) -> None:
        if self._records.pop(record_id, None) is None:
            raise VerificationNotFoundError(record_id)
        logger.info(f"Verificação {record_id} removida.")
        self._schedule(record_id, "delete", lambda: self.repo.delete(record_id))

    async def clear_all(self) -> int:
        count = len(self._records)
        self._records.clear()
        # Falhas de registros que não existem mais deixam de importar, e uma carga
        # pendente traria de volta o que acabou de ser limpo
        for key in [k for k, w in self._failed.items() if w.operation in ("save", "delete", "load")]:
            self._failed.pop(key)
        logger.info(f"Todas as verificações removidas ({count}).")
        # A limpeza só roda depois de todas as escritas já disparadas
        self._schedule(BULK_CLEAR, "clear_all", self._clear_stored, after=list(self._pending))
        return count

    # --- Persistência em segundo plano ---

    async def _clear_stored(self) -> int:
        # Registros vivos em memória no momento da escrita não são apagados
        return await self.repo.clear_all(keep=set(self._records))

    def _schedule_save(self, record: VerificationRecord) -> None:
        snapshot = record.model_copy(deep=True)
        self._schedule(record.id, "save", lambda: self.repo.save(snapshot))

    def _schedule(
        self,
        key: str,
        operation: str,
        write: Callable[[], Awaitable[Any]],
        after: Optional[List[asyncio.Task]] = None,
    ) -> None:
        # Cada escrita espera somente tarefas criadas antes dela
        prerequisites = list(after or [])
        for previous_key in (key, BULK_CLEAR):
            previous = self._last_write.get(previous_key)
            if previous is not None and previous not in prerequisites:
                prerequisites.append(previous)
        task = asyncio.create_task(self._run_write(key, operation, write, prerequisites))
        self._pending.add(task)
        self._last_write[key] = task
        task.add_done_callback(lambda t: self._write_done(key, t))

    def _write_done(self, key: str, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if self._last_write.get(key) is task:
            del self._last_write[key]

    async def _run_write(
        self,
        key: str,
        operation: str,
        write: Callable[[], Awaitable[Any]],
        prerequisites: Optional[List[asyncio.Task]] = None,
    ) -> bool:
        if prerequisites:
            await asyncio.wait(prerequisites)
        try:
            await write()
        except StorageError as e:
            logger.warning(f"Falha ao persistir ({operation}) {key}: {e}")
            self._record_failure(key, operation, f"Erro ao salvar {key} no banco: {e}")
            return False
        except Exception as e:
            logger.error(f"Erro inesperado ao persistir ({operation}) {key}: {e}", exc_info=True)
            self._record_failure(key, operation, f"Erro inesperado ao salvar {key}: {e}")
            return False
        self._failed.pop(key, None)
        return True

    def _record_failure(self, key: str, operation: str, message: str) -> None:
        record_id = None if key in (BULK_CLEAR, BULK_LOAD) else key
        warning = StorageWarning(record_id=record_id, operation=operation, message=message)
        self._failed[key] = warning
        self.warnings.append(warning)
        del self.warnings[:-MAX_WARNINGS]
        self.sync_error = message

    async def flush(self) -> None:
        """Aguarda todas as escritas pendentes."""
        while self._pending:
            await asyncio.wait(list(self._pending))

    @property
    def failed_writes(self) -> List[StorageWarning]:
        return list(self._failed.values())

    async def retry_failed_writes(self) -> Dict[str, Any]:
        """
        Reenvia as escritas que falharam, a partir do estado atual em memória.
        Diferente das escritas normais, aqui o chamador aguarda o resultado.
        """
        await self.flush()
        retried, succeeded = 0, 0
        for key, warning in list(self._failed.items()):
            retried += 1
            if warning.operation == "load":
                await self.load()
                ok = key not in self._failed
            elif warning.operation == "clear_all":
                ok = await self._run_write(key, "clear_all", self._clear_stored, None)
            elif warning.operation == "delete":
                ok = await self._run_write(key, "delete", lambda k=key: self.repo.delete(k), None)
            else:
                record = self._records.get(key)
                if record is None:
                    # Registro removido depois da falha: nada a regravar
                    self._failed.pop(key, None)
                    ok = True
                else:
                    ok = await self._run_write(key, "save", lambda r=record: self.repo.save(r), None)
            succeeded += int(ok)

        if not self._failed:
            self.sync_error = None
        logger.info(f"Reenvio de escritas: {succeeded}/{retried} com sucesso.")
        return {"retried": retried, "succeeded": succeeded, "remaining": self.failed_writes}

    async def storage_health(self) -> Dict[str, Any]:
        """Teste de ida e volta no armazenamento com uma chave de sonda."""
        probe = {"ok": True}
        try:
            await self.repo.store.set(HEALTH_PROBE_KEY, probe)
            connected = await self.repo.store.get(HEALTH_PROBE_KEY) == probe
            await self.repo.store.delete(HEALTH_PROBE_KEY)
            error = None if connected else "Valor lido difere do valor gravado."
        except StorageError as e:
            connected, error = False, str(e)
        return {"connected": connected, "error": error, "sync_error": self.sync_error}
