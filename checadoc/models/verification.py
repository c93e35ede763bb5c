# checadoc/models/verification.py

import uuid
from enum import Enum
from typing import Optional, Dict
from datetime import datetime, timezone
from pydantic import BaseModel, Field, EmailStr, ConfigDict

from checadoc.models.results import CpfResult, CepResult, OcrResult


class VerificationStatus(str, Enum):
    PENDING = "pendente"
    IN_REVIEW = "em_analise"     # reservado ao fluxo manual, nunca definido automaticamente
    APPROVED = "aprovado"
    REJECTED = "reprovado"


class FormData(BaseModel):
    """Dados declarados pelo aluno no formulário de verificação."""
    nome: str = Field(..., min_length=1)
    cpf: str = Field(..., min_length=1)
    email: EmailStr
    telefone: str = ""
    instituicao: str = Field(..., min_length=1)
    curso: str = ""
    cep: str = ""
    endereco: str = ""


def generate_verification_id() -> str:
    return f"VER-{uuid.uuid4().hex[:8].upper()}"


class VerificationRecord(BaseModel):
    """
    Registro de verificação: unidade de persistência.
    Os resultados das checagens são valores embutidos, pertencem ao registro e
    não são referenciados em nenhum outro lugar.
    """
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str = Field(default_factory=generate_verification_id)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
    status: VerificationStatus = VerificationStatus.PENDING
    form_data: FormData
    ocr_result: Optional[OcrResult] = None
    cep_result: Optional[CepResult] = None
    cpf_result: Optional[CpfResult] = None
    usuario_atualizacao: Optional[str] = Field(None, description="Operador que alterou o status por último.")

    @property
    def all_checks_done(self) -> bool:
        return self.ocr_result is not None and self.cep_result is not None and self.cpf_result is not None


class StorageWarning(BaseModel):
    """Falha de persistência não fatal; o estado em memória continua valendo para a sessão."""
    record_id: Optional[str] = None
    operation: str
    message: str
    retryable: bool = True
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class VerificationStats(BaseModel):
    total: int = 0
    por_status: Dict[VerificationStatus, int] = Field(
        default_factory=lambda: {status: 0 for status in VerificationStatus}
    )
