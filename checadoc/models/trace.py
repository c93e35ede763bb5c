# checadoc/models/trace.py

import logging
from enum import Enum
from typing import List
from datetime import datetime, timezone
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class TraceLevel(str, Enum):
    INFO = "info"
    OK = "ok"
    WARN = "warn"
    ERROR = "error"


_LOGGING_LEVELS = {
    TraceLevel.INFO: logging.INFO,
    TraceLevel.OK: logging.INFO,
    TraceLevel.WARN: logging.WARNING,
    TraceLevel.ERROR: logging.ERROR,
}


class TraceEntry(BaseModel):
    """Uma linha do rastro de resolução."""
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    level: TraceLevel
    message: str


class ResolutionTrace(BaseModel):
    """
    Rastro ordenado de uma resolução de CPF.
    Apenas observacional: é devolvido junto com o veredito para auditoria e nunca
    participa da decisão. Cada entrada também é espelhada no logging.
    """
    entries: List[TraceEntry] = Field(default_factory=list)

    def add(self, level: TraceLevel, message: str) -> TraceEntry:
        entry = TraceEntry(level=level, message=message)
        self.entries.append(entry)
        logger.log(_LOGGING_LEVELS[level], f"[{level.value}] {message}")
        return entry

    def info(self, message: str) -> TraceEntry:
        return self.add(TraceLevel.INFO, message)

    def ok(self, message: str) -> TraceEntry:
        return self.add(TraceLevel.OK, message)

    def warn(self, message: str) -> TraceEntry:
        return self.add(TraceLevel.WARN, message)

    def error(self, message: str) -> TraceEntry:
        return self.add(TraceLevel.ERROR, message)

    def levels(self) -> List[TraceLevel]:
        return [entry.level for entry in self.entries]
