# checadoc/api/dependencies.py
import logging
from fastapi import HTTPException, Request, status

from checadoc.services.cpf_proxy_service import CpfProxyService
from checadoc.services.verification_service import VerificationService

SERVICE_NOT_READY_MESSAGE = "Serviço de verificação não está pronto. Tente novamente mais tarde."

logger = logging.getLogger(__name__)


# As instâncias são criadas no lifespan da aplicação e guardadas em app.state.
def get_verification_service(request: Request) -> VerificationService:
    service = getattr(request.app.state, "verification_service", None)
    if service is None:
        logger.critical("VerificationService não inicializado no momento da requisição.")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=SERVICE_NOT_READY_MESSAGE)
    return service


def get_cpf_proxy_service(request: Request) -> CpfProxyService:
    service = getattr(request.app.state, "cpf_proxy_service", None)
    if service is None:
        logger.critical("CpfProxyService não inicializado no momento da requisição.")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=SERVICE_NOT_READY_MESSAGE)
    return service
