# checadoc/api/routers/verifications.py
import logging
from typing import Optional
from fastapi import APIRouter, Body, Depends, Query, status

from checadoc.api.dependencies import get_verification_service
from checadoc.api.schemas.common import (
    DashboardResponse,
    DeleteResponse,
    OperatorActionRequest,
    RetryResponse,
    StatusUpdateRequest,
    SyncStatusResponse,
    VerificationCreateRequest,
    VerificationListResponse,
    VerificationResponse,
    VerificationRunRequest,
)
from checadoc.models.verification import VerificationStatus
from checadoc.services.verification_service import VerificationService
from checadoc.utils.error_handlers import (
    InvalidStatusTransitionError,
    VerificationNotFoundError,
    handle_service_error,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/verifications", tags=["Verificações"])


@router.post(
    "",
    response_model=VerificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Cria um registro de verificação",
    description="O status inicial é calculado a partir das checagens enviadas: com as três presentes, aprovado ou reprovado; senão, pendente.",
)
async def create_verification_endpoint(payload: VerificationCreateRequest, service: VerificationService = Depends(get_verification_service)):
    record = await service.create_verification(
        payload.form_data,
        ocr_result=payload.ocr_result,
        cep_result=payload.cep_result,
        cpf_result=payload.cpf_result,
    )
    return VerificationResponse(verification=record, sync_warning=service.sync_error)


@router.post(
    "/run",
    response_model=VerificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Executa as checagens de CPF e CEP e cria o registro",
)
async def run_verification_endpoint(payload: VerificationRunRequest, service: VerificationService = Depends(get_verification_service)):
    record = await service.create_and_run(payload.form_data, ocr_result=payload.ocr_result)
    return VerificationResponse(verification=record, sync_warning=service.sync_error)


@router.get(
    "",
    response_model=VerificationListResponse,
    summary="Lista as verificações",
    description="Mais recentes primeiro. `search` procura em nome, CPF, instituição e id, sem diferenciar maiúsculas.",
)
async def list_verifications_endpoint(
    status_filter: Optional[VerificationStatus] = Query(None, alias="status", description="Filtra por status."),
    search: Optional[str] = Query(None, description="Texto livre de busca."),
    service: VerificationService = Depends(get_verification_service),
):
    items = await service.list_verifications(status=status_filter, search=search)
    return VerificationListResponse(total=len(items), items=items, sync_warning=service.sync_error)


@router.get("/stats", response_model=DashboardResponse, summary="Contagem por status e as verificações mais recentes")
async def stats_endpoint(service: VerificationService = Depends(get_verification_service)):
    return DashboardResponse(
        stats=await service.stats(),
        recentes=await service.recent(),
        sync_warning=service.sync_error,
    )


@router.get("/sync/status", response_model=SyncStatusResponse, summary="Estado da sincronização com o armazenamento")
async def sync_status_endpoint(service: VerificationService = Depends(get_verification_service)):
    return SyncStatusResponse(
        sync_error=service.sync_error,
        failed_writes=service.failed_writes,
        warnings=service.warnings,
    )


@router.post("/sync/retry", response_model=RetryResponse, summary="Reenvia as escritas que falharam")
async def sync_retry_endpoint(service: VerificationService = Depends(get_verification_service)):
    outcome = await service.retry_failed_writes()
    return RetryResponse(**outcome, sync_warning=service.sync_error)


@router.get("/{record_id}", response_model=VerificationResponse, summary="Obtém uma verificação")
async def get_verification_endpoint(record_id: str, service: VerificationService = Depends(get_verification_service)):
    try:
        record = await service.get(record_id)
    except VerificationNotFoundError as e:
        handle_service_error(e)
    return VerificationResponse(verification=record, sync_warning=service.sync_error)


@router.post("/{record_id}/approve", response_model=VerificationResponse, summary="Aprova manualmente")
async def approve_endpoint(
    record_id: str,
    payload: Optional[OperatorActionRequest] = Body(None),
    service: VerificationService = Depends(get_verification_service),
):
    try:
        record = await service.approve(record_id, operador=payload.operador if payload else None)
    except VerificationNotFoundError as e:
        handle_service_error(e)
    return VerificationResponse(verification=record, sync_warning=service.sync_error)


@router.post("/{record_id}/reject", response_model=VerificationResponse, summary="Reprova manualmente")
async def reject_endpoint(
    record_id: str,
    payload: Optional[OperatorActionRequest] = Body(None),
    service: VerificationService = Depends(get_verification_service),
):
    try:
        record = await service.reject(record_id, operador=payload.operador if payload else None)
    except VerificationNotFoundError as e:
        handle_service_error(e)
    return VerificationResponse(verification=record, sync_warning=service.sync_error)


@router.put(
    "/{record_id}/status",
    response_model=VerificationResponse,
    summary="Define o status manualmente",
    description="Aceita aprovado, reprovado ou em_analise. 'pendente' é apenas o estado inicial.",
)
async def set_status_endpoint(
    record_id: str,
    payload: StatusUpdateRequest,
    service: VerificationService = Depends(get_verification_service),
):
    try:
        record = await service.set_status(record_id, payload.status, operador=payload.operador)
    except (VerificationNotFoundError, InvalidStatusTransitionError) as e:
        handle_service_error(e)
    return VerificationResponse(verification=record, sync_warning=service.sync_error)


@router.delete("/{record_id}", response_model=DeleteResponse, summary="Remove uma verificação")
async def delete_verification_endpoint(record_id: str, service: VerificationService = Depends(get_verification_service)):
    try:
        await service.delete(record_id)
    except VerificationNotFoundError as e:
        handle_service_error(e)
    return DeleteResponse(message=f"Verificação {record_id} removida.", removed=1, sync_warning=service.sync_error)


@router.delete("", response_model=DeleteResponse, summary="Remove todas as verificações")
async def clear_verifications_endpoint(service: VerificationService = Depends(get_verification_service)):
    removed = await service.clear_all()
    return DeleteResponse(message="Todas as verificações foram removidas.", removed=removed, sync_warning=service.sync_error)
