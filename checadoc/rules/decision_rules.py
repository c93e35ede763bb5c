# checadoc/rules/decision_rules.py
import logging
from typing import Optional
from datetime import datetime, timezone

from checadoc.models.results import CpfResult, CepResult, OcrResult
from checadoc.models.verification import VerificationRecord, VerificationStatus
from checadoc.utils.error_handlers import InvalidStatusTransitionError

logger = logging.getLogger(__name__)


class DecisionRules:
    """
    Regras de negócio que transformam os três resultados de checagem em um status.
    Status automático só na criação do registro; depois disso apenas o operador altera.
    """

    # Status que um operador pode definir manualmente. "pendente" é só estado inicial.
    OPERATOR_STATUSES = (
        VerificationStatus.APPROVED,
        VerificationStatus.REJECTED,
        VerificationStatus.IN_REVIEW,
    )

    def __init__(self):
        logger.info("DecisionRules inicializado.")

    @staticmethod
    def checks_passed(
        ocr_result: Optional[OcrResult],
        cep_result: Optional[CepResult],
        cpf_result: Optional[CpfResult],
    ) -> bool:
        return bool(
            ocr_result is not None and ocr_result.instituicao_confere
            and cep_result is not None and cep_result.is_valid
            and cpf_result is not None and cpf_result.is_valid
        )

    def initial_status(
        self,
        ocr_result: Optional[OcrResult],
        cep_result: Optional[CepResult],
        cpf_result: Optional[CpfResult],
    ) -> VerificationStatus:
        """
        Se as três checagens foram feitas: aprovado quando todas passam, senão reprovado.
        Com qualquer checagem faltando, o registro fica pendente.
        """
        if ocr_result is None or cep_result is None or cpf_result is None:
            return VerificationStatus.PENDING
        if self.checks_passed(ocr_result, cep_result, cpf_result):
            return VerificationStatus.APPROVED
        return VerificationStatus.REJECTED

    def apply_operator_decision(
        self,
        record: VerificationRecord,
        new_status: VerificationStatus,
        operador: Optional[str] = None,
    ) -> VerificationRecord:
        """
        Aplica a decisão manual do operador. Sobrepõe o resultado das checagens e
        não dispara nenhum recálculo automático.
        """
        if new_status not in self.OPERATOR_STATUSES:
            raise InvalidStatusTransitionError(
                f"Status '{VerificationStatus(new_status).value}' não pode ser definido manualmente."
            )

        previous = record.status
        record.status = VerificationStatus(new_status)
        record.updated_at = datetime.now(timezone.utc)
        record.usuario_atualizacao = operador
        logger.info(
            f"Verificação {record.id}: status alterado de '{previous.value}' para '{record.status.value}' "
            f"por {operador or 'operador não identificado'}."
        )
        return record
