import asyncpg
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Dono do pool de conexões asyncpg. Criado no startup da aplicação e fechado no shutdown.
    """

    def __init__(self, database_url: str, min_size: int = 1, max_size: int = 10):
        self._database_url = database_url
        self._min_size = min_size
        self._max_size = max_size
        self._pool: Optional[asyncpg.Pool] = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    # Chamado uma vez no startup; reinicializar fecha o pool anterior.
    async def initialize(self):
        if self._pool is not None:
            logger.warning("DatabaseManager: Fechando pool de conexões existente antes de re-inicializar.")
            await self.close_pool()

        try:
            self._pool = await asyncpg.create_pool(
                self._database_url,
                min_size=self._min_size,
                max_size=self._max_size,
                timeout=60,
            )
            logger.info("DatabaseManager: Pool de conexões asyncpg criado com sucesso.")
        except Exception as e:
            self._pool = None
            logger.critical(f"DatabaseManager: Falha ao criar pool de conexões: {e}", exc_info=True)
            raise

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[asyncpg.Connection]:
        if self._pool is None:
            logger.error("DatabaseManager: Tentativa de obter conexão de um pool não inicializado.")
            raise RuntimeError("Pool de conexões do banco de dados não está inicializado.")
        async with self._pool.acquire() as conn:
            yield conn

    async def close_pool(self):
        if self._pool:
            logger.info("DatabaseManager: Fechando pool de conexões...")
            await self._pool.close()
            self._pool = None
            logger.info("DatabaseManager: Pool de conexões fechado.")
