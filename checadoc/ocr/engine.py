# checadoc/ocr/engine.py

import logging
from abc import ABC, abstractmethod
from typing import Optional
from pydantic import BaseModel, Field

from checadoc.models.results import OcrResult
from checadoc.rules.institution.matcher import InstitutionMatcher
from checadoc.utils.error_handlers import OcrEngineError

logger = logging.getLogger(__name__)


class DocumentUpload(BaseModel):
    """Documento enviado pelo aluno (imagem ou PDF)."""
    filename: str
    content_type: Optional[str] = None
    content: bytes


class OcrOutput(BaseModel):
    text: str = ""
    confidence: float = Field(0, ge=0, le=100)


class OcrEngine(ABC):
    """
    Capacidade de OCR. A implementação concreta (Tesseract, serviço externo, etc.)
    é plugada na aplicação; falhas próprias do motor devem levantar OcrEngineError.
    """

    @abstractmethod
    async def recognize(self, document: DocumentUpload) -> OcrOutput:
        pass


class DocumentCheck:
    """Executa o OCR do documento e compara a instituição encontrada com a declarada."""

    def __init__(self, engine: OcrEngine, matcher: InstitutionMatcher):
        self.engine = engine
        self.matcher = matcher
        logger.info(f"DocumentCheck inicializado com o motor {engine.__class__.__name__}.")

    async def run(self, document: DocumentUpload, instituicao_declarada: str) -> OcrResult:
        try:
            output = await self.engine.recognize(document)
        except OcrEngineError as e:
            logger.warning(f"Falha no OCR do documento '{document.filename}': {e}")
            return OcrResult(text="", confidence=0, erro_detalhe=str(e) or e.__class__.__name__)

        match = self.matcher.match(output.text, instituicao_declarada)
        logger.info(
            f"OCR de '{document.filename}' concluído (confiança {output.confidence:.0f}%). "
            f"Instituição encontrada: {match.found or 'nenhuma'}; confere: {match.match}."
        )
        return OcrResult(
            text=output.text,
            confidence=output.confidence,
            instituicao_encontrada=match.found,
            instituicao_confere=match.match,
            metodo_match=match.method,
        )
