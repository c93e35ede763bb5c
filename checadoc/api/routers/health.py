# checadoc/api/routers/health.py

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request

from checadoc.api.dependencies import get_verification_service
from checadoc.api.schemas.health import HealthCheckResponse
from checadoc.services.verification_service import VerificationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse, summary="Verificação de Saúde", tags=["Saúde"])
async def health_check(request: Request, service: VerificationService = Depends(get_verification_service)) -> HealthCheckResponse:
    """
    Verifica a saúde da aplicação:
    - Ida e volta de uma chave de sonda no armazenamento.
    - Última falha de sincronização.
    - Presença de um motor de OCR.
    """
    storage = await service.storage_health()
    storage["backend"] = getattr(request.app.state, "storage_backend", "desconhecido")

    if storage["connected"]:
        overall_status = "healthy"
        message = "Serviço ChecaDoc está operacional."
        logger.debug("Health Check: armazenamento OK.")
    else:
        # As checagens continuam funcionando com o estado em memória
        overall_status = "degraded"
        message = "Armazenamento indisponível. Usando dados locais."
        logger.warning(f"Health Check: falha no armazenamento: {storage['error']}")

    return HealthCheckResponse(
        status=overall_status,
        message=message,
        timestamp=datetime.now(timezone.utc),
        dependencies={
            "storage": storage,
            "ocr_engine": "configurado" if service.document_check is not None else "não configurado",
        },
    )
