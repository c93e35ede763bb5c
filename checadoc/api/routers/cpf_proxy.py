# checadoc/api/routers/cpf_proxy.py
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from checadoc.api.dependencies import get_cpf_proxy_service
from checadoc.services.cpf_proxy_service import CpfProxyService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Proxy CPF"])


@router.get(
    "/cpf/{cpf}",
    summary="Proxy de consulta de CPF (ReceitaWS com fallback BrasilAPI)",
    description="400 se o CPF não tiver 11 dígitos; 502 quando as fontes falham. Fonte primária padrão do CpfResolver.",
)
async def cpf_proxy_endpoint(cpf: str, proxy: CpfProxyService = Depends(get_cpf_proxy_service)):
    status_code, body = await proxy.lookup(cpf)
    return JSONResponse(status_code=status_code, content=body)
