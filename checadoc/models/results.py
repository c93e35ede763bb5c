# checadoc/models/results.py

from enum import Enum
from typing import Optional
from datetime import datetime, timezone
from pydantic import BaseModel, Field, ConfigDict

from checadoc.models.trace import ResolutionTrace


class CpfResult(BaseModel):
    """
    Veredito da resolução de um CPF.
    `origem_validacao` indica quem decidiu: o nome da fonte remota vencedora,
    "checksum" quando os dígitos verificadores reprovaram, ou "local" quando todas
    as fontes remotas falharam e o veredito foi degradado para a validação matemática.
    """
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(..., description="Veredito final.")
    cpf: str = Field(..., description="CPF formatado (000.000.000-00) ou os dígitos recebidos, se incompletos.")
    situacao: str = Field(..., description="Situação cadastral informada pela fonte ou derivada localmente.")
    mensagem: Optional[str] = Field(None, description="Mensagem explicativa para o operador.")
    regiao_fiscal: str = Field(..., description="Região fiscal derivada do 9º dígito (não autoritativa).")
    nome: Optional[str] = Field(None, description="Nome do contribuinte, quando a fonte o devolve.")
    origem_validacao: str = Field(..., description="Fonte que produziu o veredito.")
    verificado_online: bool = Field(False, description="True somente quando uma fonte remota decidiu.")
    data_consulta: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    trace: ResolutionTrace = Field(default_factory=ResolutionTrace)


class CepErrorCode(str, Enum):
    # Mesma família de códigos de regra VAL_CEPxxx
    FOUND = "VAL_CEP001"
    NOT_FOUND = "VAL_CEP002"
    WRONG_LENGTH = "VAL_CEP005"
    SERVICE_UNAVAILABLE = "VAL_CEP006"


class CepResult(BaseModel):
    """Resultado da consulta de um CEP à base de endereços."""
    is_valid: bool
    codigo_regra: CepErrorCode
    cep: Optional[str] = None
    logradouro: Optional[str] = None
    bairro: Optional[str] = None
    localidade: Optional[str] = None
    uf: Optional[str] = None
    mensagem: Optional[str] = None
    origem_validacao: str = "cep_resolver"

    @property
    def endereco_formatado(self) -> Optional[str]:
        if not self.is_valid or not self.logradouro:
            return None
        return f"{self.logradouro}, {self.bairro} - {self.localidade}/{self.uf}"


class MatchMethod(str, Enum):
    CONTAINMENT = "containment"
    ALIAS = "alias"
    WORD_OVERLAP = "word_overlap"
    KEYWORD_LINE = "keyword_line"
    NONE = "none"


class InstitutionMatch(BaseModel):
    """Resultado da comparação entre a instituição declarada e o texto do documento."""
    model_config = ConfigDict(frozen=True)

    found: Optional[str] = None
    match: bool = False
    method: MatchMethod = MatchMethod.NONE


class OcrResult(BaseModel):
    """
    Resultado da verificação do documento: texto extraído pelo OCR e o veredito
    da comparação de instituição. `erro_detalhe` preenchido significa que o motor de
    OCR falhou, o que é diferente de ter rodado sem encontrar nada.
    """
    text: str = ""
    confidence: float = Field(0, ge=0, le=100)
    instituicao_encontrada: Optional[str] = None
    instituicao_confere: bool = False
    metodo_match: MatchMethod = MatchMethod.NONE
    erro_detalhe: Optional[str] = None
