# checadoc/api/schemas/common.py

from typing import List, Optional
from pydantic import BaseModel, Field, computed_field

from checadoc.models.results import CepResult, CpfResult, OcrResult
from checadoc.models.verification import (
    FormData,
    StorageWarning,
    VerificationRecord,
    VerificationStats,
    VerificationStatus,
)


# --- Modelos de Requisição ---

class CpfCheckRequest(BaseModel):
    cpf: str = Field(..., description="CPF com ou sem pontuação.", examples=["529.982.247-25"])


class CepCheckRequest(BaseModel):
    cep: str = Field(..., description="CEP com ou sem hífen.", examples=["01001-000"])


class InstitutionCheckRequest(BaseModel):
    """Checagem de instituição a partir de um texto já extraído do documento."""
    texto_documento: str = Field(..., description="Texto extraído do documento (ex: saída de OCR).")
    instituicao_declarada: str = Field(..., description="Instituição informada no formulário.")


class VerificationCreateRequest(BaseModel):
    """
    Cria um registro com os resultados de checagem já obtidos. Checagens ausentes
    deixam o registro pendente.
    """
    form_data: FormData
    ocr_result: Optional[OcrResult] = None
    cep_result: Optional[CepResult] = None
    cpf_result: Optional[CpfResult] = None


class VerificationRunRequest(BaseModel):
    form_data: FormData
    ocr_result: Optional[OcrResult] = None


class OperatorActionRequest(BaseModel):
    operador: Optional[str] = Field(None, description="Identificação do operador que tomou a decisão.")


class StatusUpdateRequest(OperatorActionRequest):
    status: VerificationStatus


# --- Modelos de Resposta ---

class CepCheckResponse(CepResult):
    @computed_field
    @property
    def endereco(self) -> Optional[str]:
        return self.endereco_formatado


class VerificationResponse(BaseModel):
    verification: VerificationRecord
    sync_warning: Optional[str] = Field(None, description="Última falha de persistência, se houver.")


class VerificationListResponse(BaseModel):
    total: int
    items: List[VerificationRecord]
    sync_warning: Optional[str] = None


class DashboardResponse(BaseModel):
    stats: VerificationStats
    recentes: List[VerificationRecord]
    sync_warning: Optional[str] = None


class DeleteResponse(BaseModel):
    message: str
    removed: int
    sync_warning: Optional[str] = None


class SyncStatusResponse(BaseModel):
    sync_error: Optional[str] = None
    failed_writes: List[StorageWarning] = Field(default_factory=list)
    warnings: List[StorageWarning] = Field(default_factory=list)


class RetryResponse(BaseModel):
    retried: int
    succeeded: int
    remaining: List[StorageWarning] = Field(default_factory=list)
    sync_warning: Optional[str] = None
