from abc import ABC, abstractmethod
from typing import Any, Dict
import httpx


class BaseResolver(ABC):
    """
    Classe base abstrata para os resolvedores que consultam fontes remotas.
    O cliente HTTP é construído fora e injetado; quem o cria é responsável por fechá-lo.
    """
    def __init__(self, origin_name: str, http_client: httpx.AsyncClient, user_agent: str = "ChecaDoc/1.4"):
        # O nome da origem do resolvedor (ex: "cpf_resolver", "cep_resolver")
        self.origin_name = origin_name
        self.http_client = http_client
        self.user_agent = user_agent

    @abstractmethod
    async def resolve(self, data: Any) -> Any:
        """
        Resolve um dado contra as fontes remotas.
        Nunca levanta exceção por falha remota: toda falha volta como resultado tipado.
        """
        pass

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", "User-Agent": self.user_agent}
