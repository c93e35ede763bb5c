import logging
from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class VerificationNotFoundError(LookupError):
    def __init__(self, record_id: str):
        super().__init__(f"Verificação {record_id} não encontrada.")
        self.record_id = record_id


class InvalidStatusTransitionError(ValueError):
    pass


class OcrEngineError(Exception):
    """Falha própria do motor de OCR (ex: imagem ilegível, formato não suportado)."""


class OcrEngineUnavailableError(RuntimeError):
    pass


class StorageError(Exception):
    """Falha da camada de persistência chave-valor."""


def handle_service_error(error: Exception):
    """
    Levanta uma HTTPException com base numa exceção de domínio do serviço.
    Essa função encapsula a lógica comum de tratamento de erros da API.
    """
    if isinstance(error, VerificationNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, InvalidStatusTransitionError):
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, OcrEngineUnavailableError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    logger.error(f"Erro do serviço: [Código: {status_code}] - {error}")
    raise HTTPException(status_code=status_code, detail=str(error)) from error
