# checadoc/api/routers/checks.py
import logging
from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from checadoc.api.dependencies import get_verification_service
from checadoc.api.schemas.common import (
    CepCheckRequest,
    CepCheckResponse,
    CpfCheckRequest,
    InstitutionCheckRequest,
)
from checadoc.models.results import CpfResult, InstitutionMatch, OcrResult
from checadoc.ocr.engine import DocumentUpload
from checadoc.services.verification_service import VerificationService
from checadoc.utils.error_handlers import OcrEngineUnavailableError, handle_service_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/checks", tags=["Checagens"])


@router.post(
    "/cpf",
    response_model=CpfResult,
    status_code=status.HTTP_200_OK,
    summary="Valida um CPF",
    description="Dígitos verificadores e, se aprovados, consulta às fontes remotas em cascata. Inclui o trace da resolução.",
)
async def check_cpf_endpoint(payload: CpfCheckRequest, service: VerificationService = Depends(get_verification_service)):
    return await service.check_cpf(payload.cpf)


@router.post(
    "/cep",
    response_model=CepCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Consulta um CEP",
)
async def check_cep_endpoint(payload: CepCheckRequest, service: VerificationService = Depends(get_verification_service)):
    result = await service.check_cep(payload.cep)
    return CepCheckResponse(**result.model_dump())


@router.post(
    "/institution",
    response_model=InstitutionMatch,
    status_code=status.HTTP_200_OK,
    summary="Compara a instituição declarada com o texto de um documento",
)
async def check_institution_endpoint(payload: InstitutionCheckRequest, service: VerificationService = Depends(get_verification_service)):
    return service.check_institution_text(payload.texto_documento, payload.instituicao_declarada)


@router.post(
    "/document",
    response_model=OcrResult,
    status_code=status.HTTP_200_OK,
    summary="Executa OCR do documento e confere a instituição",
    description="Responde 503 quando nenhum motor de OCR está configurado.",
)
async def check_document_endpoint(
    file: UploadFile = File(...),
    instituicao: str = Form(...),
    service: VerificationService = Depends(get_verification_service),
):
    document = DocumentUpload(
        filename=file.filename or "documento",
        content_type=file.content_type,
        content=await file.read(),
    )
    try:
        return await service.check_document(document, instituicao)
    except OcrEngineUnavailableError as e:
        handle_service_error(e)
