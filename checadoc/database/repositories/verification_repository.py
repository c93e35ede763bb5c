# checadoc/database/repositories/verification_repository.py

import logging
from typing import Collection, List, Optional
from pydantic import ValidationError

from checadoc.database.kv_store import KeyValueStore
from checadoc.models.verification import VerificationRecord

logger = logging.getLogger(__name__)


class VerificationRepository:
    """
    Gerencia a persistência dos registros de verificação no armazenamento chave-valor.
    Cada registro fica sob a chave `<prefixo><id>`. Erros de armazenamento sobem como StorageError.
    """
    def __init__(self, store: KeyValueStore, key_prefix: str = "checadoc:ver:"):
        self.store = store
        self.key_prefix = key_prefix
        logger.info("VerificationRepository inicializado.")

    def _key(self, record_id: str) -> str:
        return f"{self.key_prefix}{record_id}"

    async def save(self, record: VerificationRecord) -> None:
        await self.store.set(self._key(record.id), record.model_dump(mode="json"))
        logger.debug(f"Verificação {record.id} gravada.")

    async def get(self, record_id: str) -> Optional[VerificationRecord]:
        data = await self.store.get(self._key(record_id))
        if data is None:
            return None
        return VerificationRecord.model_validate(data)

    async def list_all(self) -> List[VerificationRecord]:
        """Todos os registros, mais recentes primeiro. Entradas ilegíveis são ignoradas com aviso."""
        records = []
        for key, data in await self.store.scan_by_prefix(self.key_prefix):
            try:
                records.append(VerificationRecord.model_validate(data))
            except ValidationError as e:
                logger.warning(f"Entrada '{key}' ignorada: não é um registro de verificação válido ({e.error_count()} erro(s)).")
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    async def delete(self, record_id: str) -> None:
        await self.store.delete(self._key(record_id))
        logger.debug(f"Verificação {record_id} removida do armazenamento.")

    async def clear_all(self, keep: Optional[Collection[str]] = None) -> int:
        """Remove os registros armazenados, exceto os ids em `keep`."""
        keep_keys = {self._key(record_id) for record_id in (keep or ())}
        removed = 0
        for key, _ in await self.store.scan_by_prefix(self.key_prefix):
            if key in keep_keys:
                continue
            await self.store.delete(key)
            removed += 1
        logger.info(f"{removed} verificação(ões) removida(s) do armazenamento.")
        return removed
