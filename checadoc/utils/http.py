# checadoc/utils/http.py

import time
import asyncio
import logging
from typing import Any, Dict, Optional
import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class FetchResult(BaseModel):
    """
    Resultado tipado de um GET remoto. Timeout, erro de transporte e corpo que não é
    JSON viram valores aqui em vez de exceções.
    """
    ok: bool
    status_code: Optional[int] = None
    data: Any = None
    is_json: bool = False
    error: Optional[str] = None
    timed_out: bool = False
    elapsed_ms: int = 0

    def field(self, *names: str) -> Optional[Any]:
        """Primeiro campo presente e não vazio do corpo JSON, entre os nomes dados."""
        if not isinstance(self.data, dict):
            return None
        for name in names:
            value = self.data.get(name)
            if value not in (None, ""):
                return value
        return None


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    timeout: float,
    headers: Optional[Dict[str, str]] = None,
) -> FetchResult:
    """
    Executa um GET limitado por `timeout` segundos. Estourado o prazo, a requisição é
    cancelada e o resultado volta com `timed_out=True`. O prazo substitui o timeout
    padrão do cliente httpx.
    """
    started = time.perf_counter()

    def elapsed() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        response = await asyncio.wait_for(client.get(url, headers=headers, timeout=timeout), timeout=timeout)
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.debug(f"GET {url} cancelado após {timeout}s.")
        return FetchResult(ok=False, error=f"timeout após {timeout:g}s", timed_out=True, elapsed_ms=elapsed())
    except httpx.HTTPError as e:
        logger.debug(f"GET {url} falhou no transporte: {e!r}")
        return FetchResult(ok=False, error=str(e) or e.__class__.__name__, elapsed_ms=elapsed())

    try:
        data = response.json()
        is_json = True
    except ValueError:
        data = {"raw": response.text[:200]}
        is_json = False

    return FetchResult(
        ok=response.is_success,
        status_code=response.status_code,
        data=data,
        is_json=is_json,
        elapsed_ms=elapsed(),
    )
