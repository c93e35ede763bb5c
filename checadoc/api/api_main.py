# checadoc/api/api_main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional
import httpx
from fastapi import FastAPI

from checadoc.config.settings import settings, Settings
from checadoc.database.kv_store import KeyValueStore, InMemoryKeyValueStore, PostgresKeyValueStore
from checadoc.database.manager import DatabaseManager
from checadoc.database.repositories.verification_repository import VerificationRepository
from checadoc.database.schema import initialize_database_schema
from checadoc.ocr.engine import DocumentCheck, OcrEngine
from checadoc.rules.address.cep.resolver import CepResolver
from checadoc.rules.decision_rules import DecisionRules
from checadoc.rules.document.cpf.resolver import CpfResolver
from checadoc.rules.institution.matcher import InstitutionMatcher
from checadoc.services.cpf_proxy_service import CpfProxyService
from checadoc.services.verification_service import VerificationService
from .routers import checks, cpf_proxy, health, verifications

# Configuração de logging.
logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def build_verification_service(
    config: Settings,
    http_client: httpx.AsyncClient,
    store: KeyValueStore,
    ocr_engine: Optional[OcrEngine] = None,
) -> VerificationService:
    """Monta o VerificationService com resolvedores, matcher e regras a partir das configurações."""
    matcher = InstitutionMatcher()
    return VerificationService(
        repo=VerificationRepository(store, key_prefix=config.VERIFICATION_KEY_PREFIX),
        cpf_resolver=CpfResolver(http_client, config.cpf_sources, user_agent=config.HTTP_USER_AGENT),
        cep_resolver=CepResolver(
            http_client,
            url_template=config.CEP_REGISTRY_URL,
            timeout=config.CEP_REGISTRY_TIMEOUT,
            user_agent=config.HTTP_USER_AGENT,
        ),
        matcher=matcher,
        decision_rules=DecisionRules(),
        document_check=DocumentCheck(ocr_engine, matcher) if ocr_engine is not None else None,
    )


def build_cpf_proxy_service(config: Settings, http_client: httpx.AsyncClient) -> CpfProxyService:
    return CpfProxyService(
        http_client,
        receitaws_url=config.UPSTREAM_RECEITAWS_URL,
        brasilapi_url=config.UPSTREAM_BRASILAPI_URL,
        timeout=config.UPSTREAM_TIMEOUT,
        user_agent=config.HTTP_USER_AGENT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Iniciando processo de startup da aplicação...")
    db_manager: Optional[DatabaseManager] = None

    if settings.STORAGE_BACKEND == "postgres":
        try:
            db_manager = DatabaseManager(
                settings.DATABASE_URL,
                min_size=settings.DB_POOL_MIN_CONN,
                max_size=settings.DB_POOL_MAX_CONN,
            )
            await db_manager.initialize()
            await initialize_database_schema(db_manager, settings.KV_TABLE)
        except Exception as e:
            logger.critical(f"Falha CRÍTICA ao inicializar o banco de dados: {e}. Aplicação não pode continuar.", exc_info=True)
            if db_manager:
                await db_manager.close_pool()
            raise
        store: KeyValueStore = PostgresKeyValueStore(db_manager, table=settings.KV_TABLE)
    else:
        logger.warning("STORAGE_BACKEND=memory: os registros não sobrevivem a um reinício.")
        store = InMemoryKeyValueStore()

    http_client = httpx.AsyncClient(follow_redirects=True, timeout=None)
    app.state.db_manager = db_manager
    app.state.storage_backend = settings.STORAGE_BACKEND
    app.state.http_client = http_client
    app.state.verification_service = build_verification_service(settings, http_client, store)
    app.state.cpf_proxy_service = build_cpf_proxy_service(settings, http_client)

    await app.state.verification_service.load()
    logger.info("Startup da aplicação concluído.")

    try:
        yield
    finally:
        logger.info("Iniciando processo de shutdown da aplicação...")
        await app.state.verification_service.flush()
        await http_client.aclose()
        if db_manager:
            await db_manager.close_pool()
        logger.info("Shutdown da aplicação concluído.")


# --- Inicializa o aplicativo FastAPI ---
app = FastAPI(
    title="ChecaDoc",
    description="Verificação de matrícula: validação de CPF com consulta em cascata, consulta de CEP e conferência da instituição de ensino no documento enviado.",
    version="1.4.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)
app.include_router(health.router)
app.include_router(cpf_proxy.router)
app.include_router(checks.router)
app.include_router(verifications.router)
