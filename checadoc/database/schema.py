# checadoc/database/schema.py

import re
import logging
import asyncpg

from checadoc.database.manager import DatabaseManager

logger = logging.getLogger(__name__)

_TABLE_NAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")

CREATE_SCHEMA_SQL = """
-- Armazenamento chave-valor: uma linha por registro de verificação
CREATE TABLE IF NOT EXISTS {table} (
    key TEXT PRIMARY KEY,
    value JSONB NOT NULL,
    updated_at TIMESTAMP WITH TIME ZONE DEFAULT CURRENT_TIMESTAMP
);

-- Índice para varredura por prefixo (LIKE 'prefixo%')
CREATE INDEX IF NOT EXISTS idx_{table}_key_prefix ON {table} (key text_pattern_ops);
"""


def checked_table_name(table: str) -> str:
    """O nome da tabela entra no SQL por formatação, então só identificadores simples são aceitos."""
    if not _TABLE_NAME_PATTERN.match(table):
        raise ValueError(f"Nome de tabela inválido: '{table}'.")
    return table


async def initialize_database_schema(db_manager: DatabaseManager, table: str = "kv_store"):
    """
    Cria a tabela chave-valor se ela ainda não existir.
    """
    ddl = CREATE_SCHEMA_SQL.format(table=checked_table_name(table))
    try:
        async with db_manager.connection() as conn:
            logger.info(f"Executando DDL para criar a tabela '{table}' se não existir...")
            await conn.execute(ddl)
        logger.info("Tabela chave-valor verificada/criada com sucesso.")
    except asyncpg.exceptions.PostgresError as e:
        logger.critical(f"Erro CRÍTICO ao inicializar o banco de dados (asyncpg): {e}", exc_info=True)
        raise
