# checadoc/database/kv_store.py

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple
import asyncpg

from checadoc.database.manager import DatabaseManager
from checadoc.database.schema import checked_table_name
from checadoc.utils.error_handlers import StorageError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """
    Armazenamento chave-valor com valores JSON. Toda falha da camada de persistência
    chega ao chamador como StorageError.
    """

    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def scan_by_prefix(self, prefix: str) -> List[Tuple[str, Dict[str, Any]]]:
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Implementação em memória, usada em desenvolvimento e nos testes."""

    def __init__(self):
        self._data: Dict[str, str] = {}
        logger.info("InMemoryKeyValueStore inicializado.")

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        # Serializa como o backend real faria, para pegar valores não-JSON cedo
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Valor da chave '{key}' não é serializável em JSON: {e}") from e

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def scan_by_prefix(self, prefix: str) -> List[Tuple[str, Dict[str, Any]]]:
        return [(k, json.loads(v)) for k, v in sorted(self._data.items()) if k.startswith(prefix)]


def _escape_like(prefix: str) -> str:
    return prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PostgresKeyValueStore(KeyValueStore):
    """
    Armazenamento chave-valor sobre uma tabela PostgreSQL (key TEXT, value JSONB).
    """

    def __init__(self, db_manager: DatabaseManager, table: str = "kv_store"):
        self.db_manager = db_manager
        self.table = checked_table_name(table)
        logger.info(f"PostgresKeyValueStore inicializado (tabela '{self.table}').")

    async def set(self, key: str, value: Dict[str, Any]) -> None:
        upsert_sql = f"""
            INSERT INTO {self.table} (key, value, updated_at)
            VALUES ($1, $2::jsonb, CURRENT_TIMESTAMP)
            ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value, updated_at = EXCLUDED.updated_at;
        """
        try:
            payload = json.dumps(value)
            async with self.db_manager.connection() as conn:
                await conn.execute(upsert_sql, key, payload)
        except (asyncpg.exceptions.PostgresError, OSError, RuntimeError, TypeError, ValueError) as e:
            logger.error(f"Erro ao gravar a chave '{key}': {e}", exc_info=True)
            raise StorageError(f"Falha ao gravar '{key}': {e}") from e

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            async with self.db_manager.connection() as conn:
                raw = await conn.fetchval(f"SELECT value FROM {self.table} WHERE key = $1;", key)
        except (asyncpg.exceptions.PostgresError, OSError, RuntimeError) as e:
            logger.error(f"Erro ao ler a chave '{key}': {e}", exc_info=True)
            raise StorageError(f"Falha ao ler '{key}': {e}") from e
        # asyncpg devolve JSONB como string
        return json.loads(raw) if raw is not None else None

    async def delete(self, key: str) -> None:
        try:
            async with self.db_manager.connection() as conn:
                await conn.execute(f"DELETE FROM {self.table} WHERE key = $1;", key)
        except (asyncpg.exceptions.PostgresError, OSError, RuntimeError) as e:
            logger.error(f"Erro ao remover a chave '{key}': {e}", exc_info=True)
            raise StorageError(f"Falha ao remover '{key}': {e}") from e

    async def scan_by_prefix(self, prefix: str) -> List[Tuple[str, Dict[str, Any]]]:
        select_sql = f"SELECT key, value FROM {self.table} WHERE key LIKE $1 ESCAPE '\\' ORDER BY key;"
        try:
            async with self.db_manager.connection() as conn:
                rows = await conn.fetch(select_sql, _escape_like(prefix) + "%")
        except (asyncpg.exceptions.PostgresError, OSError, RuntimeError) as e:
            logger.error(f"Erro na varredura do prefixo '{prefix}': {e}", exc_info=True)
            raise StorageError(f"Falha ao listar '{prefix}*': {e}") from e
        return [(row["key"], json.loads(row["value"])) for row in rows]
