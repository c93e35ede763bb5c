# checadoc/models/__init__.py
# Modelos Pydantic expostos pelo pacote
from .trace import TraceLevel, TraceEntry, ResolutionTrace
from .results import CpfResult, CepResult, CepErrorCode, InstitutionMatch, MatchMethod, OcrResult
from .verification import (
    VerificationStatus,
    FormData,
    VerificationRecord,
    StorageWarning,
    VerificationStats,
)

__all__ = [
    "TraceLevel",
    "TraceEntry",
    "ResolutionTrace",
    "CpfResult",
    "CepResult",
    "CepErrorCode",
    "InstitutionMatch",
    "MatchMethod",
    "OcrResult",
    "VerificationStatus",
    "FormData",
    "VerificationRecord",
    "StorageWarning",
    "VerificationStats",
]
