"""
SCL-90 assessment service.

Orchestrates storage and scoring:
1. Save: parse answers, resolve gender, score, persist items + score together
2. Calificar: reload stored answers, rescore, persist
3. Lookup: stored assessment or the order's patient header

Scoring decisions are delegated to the pure scorer.
"""

from typing import Any

from config.logging_config import get_logger
from database.scl90_repository import ArangoScl90Repository, Operation, Scl90Repository
from models.models import PatientHeader, Scl90Submission
from models.scl90_models import ResponseSet, ScoreResult
from services.scl90_scorer import score

logger = get_logger(__name__)


class AssessmentNotFoundError(LookupError):
    """No SCL-90 assessment is stored for the order."""

    def __init__(self, orden_id: str):
        super().__init__(f"No SCL-90 assessment for order {orden_id}")
        self.orden_id = orden_id


class OrderNotFoundError(LookupError):
    """The medical order does not exist."""

    def __init__(self, orden_id: str):
        super().__init__(f"Order {orden_id} not found")
        self.orden_id = orden_id


class Scl90Service:
    """SCL-90 assessment lifecycle over a repository."""

    def __init__(self, repository: Scl90Repository):
        self.repository = repository

    def get_assessment(self, orden_id: str) -> tuple[dict[str, Any] | None, PatientHeader | None]:
        """
        Stored assessment for an order.

        Returns:
            (assessment, None) when stored, (None, patient header) when the
            order exists without an assessment.

        Raises:
            OrderNotFoundError: Neither an assessment nor the order exists.
        """
        assessment = self.repository.get_assessment(orden_id)
        if assessment is not None:
            return assessment, None

        order = self.repository.get_order(orden_id)
        if order is None:
            logger.info("SCL-90 lookup for unknown order", orden_id=orden_id)
            raise OrderNotFoundError(orden_id)

        return None, PatientHeader(
            numero_id=order.get("numeroId"),
            primer_nombre=order.get("primerNombre"),
            primer_apellido=order.get("primerApellido"),
            empresa=order.get("empresa"),
            cod_empresa=order.get("codEmpresa"),
        )

    def save_assessment(self, submission: Scl90Submission) -> tuple[dict[str, Any], Operation]:
        """
        Create or replace the answers of an assessment and rescore it.

        The score is recomputed from the full response set and written in
        the same document as the answers.
        """
        responses = ResponseSet.from_items(submission.respuestas)
        gender = self.repository.find_gender(submission.numero_id, submission.orden_id)
        result = score(responses, gender)

        document = {
            "orden_id": submission.orden_id,
            **submission.patient_fields(),
            **responses.to_items(),
            **result.to_record(),
        }
        stored, operation = self.repository.save_assessment(submission.orden_id, document)

        logger.info(
            "SCL-90 answers saved",
            orden_id=submission.orden_id,
            operacion=operation,
            answered=responses.answered_count,
            genero=result.gender.value,
        )
        return stored, operation

    def calificar(self, orden_id: str) -> ScoreResult:
        """
        Score the stored answers of an assessment and persist the result.

        Raises:
            AssessmentNotFoundError: No assessment is stored for the order.
        """
        assessment = self.repository.get_assessment(orden_id)
        if assessment is None:
            raise AssessmentNotFoundError(orden_id)

        responses = ResponseSet.from_items(assessment)
        gender = self.repository.find_gender(assessment.get("numero_id"), orden_id)
        result = score(responses, gender)

        if self.repository.update_score(orden_id, result.to_record()) is None:
            # Deleted between read and write
            raise AssessmentNotFoundError(orden_id)

        logger.info(
            "SCL-90 assessment scored",
            orden_id=orden_id,
            genero=result.gender.value,
            genero_por_defecto=result.gender_fallback,
            interpretacion=result.interpretacion(),
        )
        return result


_service_instance: Scl90Service | None = None


def get_scl90_service() -> Scl90Service:
    """Get the singleton SCL-90 service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = Scl90Service(ArangoScl90Repository())
    return _service_instance
