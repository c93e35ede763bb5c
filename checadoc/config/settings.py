# checadoc/config/settings.py

import os
import logging
from typing import List
from pydantic import BaseModel, ValidationError, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

if not logger.handlers:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')


class RegistrySource(BaseModel):
    """Uma fonte remota de consulta de CPF, na ordem de prioridade em que deve ser tentada."""
    name: str
    url_template: str = Field(..., description="URL com o marcador {cpf} (apenas dígitos).")
    timeout: float = Field(..., gt=0, description="Tempo máximo da tentativa, em segundos.")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=os.path.join(os.path.dirname(os.path.abspath(__file__)), '../../.env'),
        env_file_encoding='utf-8',
        extra='ignore'
    )

    LOG_LEVEL: str = "INFO"
    HTTP_USER_AGENT: str = "ChecaDoc/1.4"

    # Cascata de consulta de CPF (15s / 12s / 8s)
    CPF_PROXY_PRIMARY_URL: str = "http://127.0.0.1:8000/cpf/{cpf}"
    CPF_PROXY_PRIMARY_TIMEOUT: float = 15.0
    CPF_PROXY_SECONDARY_URL: str = ""
    CPF_PROXY_SECONDARY_TIMEOUT: float = 12.0
    CPF_DIRECT_REGISTRY_URL: str = ""
    CPF_DIRECT_REGISTRY_TIMEOUT: float = 8.0

    CEP_REGISTRY_URL: str = "https://viacep.com.br/ws/{cep}/json/"
    CEP_REGISTRY_TIMEOUT: float = 8.0

    # Fontes usadas pelo endpoint /cpf/{cpf} (proxy)
    UPSTREAM_RECEITAWS_URL: str = "https://www.receitaws.com.br/v1/cpf/{cpf}"
    UPSTREAM_BRASILAPI_URL: str = "https://brasilapi.com.br/api/cpf/v1/{cpf}"
    UPSTREAM_TIMEOUT: float = 10.0

    STORAGE_BACKEND: str = Field("memory", pattern="^(memory|postgres)$")
    DB_HOST: str = "localhost"
    DB_NAME: str = "checadoc"
    DB_USER: str = "admin"
    DB_PASSWORD: str = ""
    DB_PORT: int = 5432
    DB_POOL_MIN_CONN: int = 1
    DB_POOL_MAX_CONN: int = 10
    KV_TABLE: str = "kv_store"
    VERIFICATION_KEY_PREFIX: str = "checadoc:ver:"

    @property
    def DATABASE_URL(self) -> str:
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@"
            f"{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def cpf_sources(self) -> List[RegistrySource]:
        """Fontes de CPF habilitadas, em ordem decrescente de prioridade. URLs vazias ficam de fora."""
        candidates = [
            ("proxy_primario", self.CPF_PROXY_PRIMARY_URL, self.CPF_PROXY_PRIMARY_TIMEOUT),
            ("proxy_secundario", self.CPF_PROXY_SECONDARY_URL, self.CPF_PROXY_SECONDARY_TIMEOUT),
            ("receita_direta", self.CPF_DIRECT_REGISTRY_URL, self.CPF_DIRECT_REGISTRY_TIMEOUT),
        ]
        return [
            RegistrySource(name=name, url_template=url, timeout=timeout)
            for name, url, timeout in candidates
            if url and url.strip()
        ]


try:
    settings = Settings()
    logging.getLogger().setLevel(settings.LOG_LEVEL)
    logger.info("Configurações carregadas com sucesso do ambiente (incluindo .env se presente).")
except ValidationError as e:
    logger.critical(f"Erro de validação nas configurações: {e.errors()}. A aplicação não pode iniciar.", exc_info=True)
    raise
