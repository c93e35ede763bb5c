# checadoc/api/schemas/health.py

from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Dict, Any


class HealthCheckResponse(BaseModel):
    """
    Schema de resposta para o endpoint de verificação de saúde da API.
    Fornece um resumo do status da aplicação e do armazenamento.
    """
    status: str = Field(..., description="Status geral da aplicação ('healthy' ou 'degraded').")
    message: str = Field(..., description="Mensagem descritiva do status da aplicação.")
    timestamp: datetime = Field(..., description="Timestamp da verificação de saúde.")
    dependencies: Dict[str, Any] = Field(..., description="Status de dependências individuais (armazenamento, motor de OCR).")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "message": "Serviço ChecaDoc está operacional.",
                "timestamp": "2026-03-10T10:30:00Z",
                "dependencies": {
                    "storage": {"backend": "postgres", "connected": True, "error": None, "sync_error": None},
                    "ocr_engine": "não configurado",
                },
            }
        }
    )
