"""
Persistence for SCL-90 assessments and the records they depend on.

Assessments are stored one document per medical order, keyed by the
order id. Items and the derived score are always written together.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Protocol

from arango.exceptions import DocumentUpdateError

from config.config import get_settings
from config.logging_config import get_logger
from database.database import get_document, query_documents, update_document

logger = get_logger(__name__)

Operation = Literal["INSERT", "UPDATE"]

_UPSERT_AQL = """
UPSERT { _key: @key }
INSERT MERGE(@doc, { _key: @key, created_at: @now, updated_at: @now })
UPDATE MERGE(@doc, { updated_at: @now })
IN @@collection
RETURN { doc: NEW, operacion: OLD ? "UPDATE" : "INSERT" }
"""

_LATEST_FORM_GENDER_AQL = """
FOR f IN @@collection
    FILTER f.numero_id == @numero_id AND f.genero != null AND f.genero != ""
    SORT f.updated_at DESC
    LIMIT 1
    RETURN f.genero
"""


class Scl90Repository(Protocol):
    """Storage operations the assessment service depends on."""

    def get_assessment(self, orden_id: str) -> dict[str, Any] | None: ...

    def save_assessment(
        self, orden_id: str, document: dict[str, Any]
    ) -> tuple[dict[str, Any], Operation]: ...

    def update_score(
        self, orden_id: str, record: dict[str, Any]
    ) -> dict[str, Any] | None: ...

    def get_order(self, orden_id: str) -> dict[str, Any] | None: ...

    def find_gender(self, numero_id: str | None, orden_id: str) -> str | None: ...


class ArangoScl90Repository:
    """ArangoDB-backed SCL-90 repository."""

    def __init__(self):
        settings = get_settings()
        self.assessments = settings.scl90_collection
        self.orders = settings.orders_collection
        self.intake_forms = settings.intake_forms_collection

    def get_assessment(self, orden_id: str) -> dict[str, Any] | None:
        return get_document(self.assessments, orden_id)

    def save_assessment(
        self, orden_id: str, document: dict[str, Any]
    ) -> tuple[dict[str, Any], Operation]:
        """Insert or update the assessment for an order in a single statement."""
        rows = query_documents(
            _UPSERT_AQL,
            {
                "@collection": self.assessments,
                "key": orden_id,
                "doc": document,
                "now": datetime.now(timezone.utc).isoformat(),
            },
        )
        row = rows[0]
        logger.info("SCL-90 assessment saved", orden_id=orden_id, operacion=row["operacion"])
        return row["doc"], row["operacion"]

    def update_score(
        self, orden_id: str, record: dict[str, Any]
    ) -> dict[str, Any] | None:
        """
        Write score fields onto an existing assessment.

        Never creates a document: returns None when the assessment is gone.
        """
        try:
            return update_document(
                self.assessments,
                orden_id,
                {**record, "updated_at": datetime.now(timezone.utc).isoformat()},
            )
        except DocumentUpdateError as e:
            logger.warning("SCL-90 score update failed", orden_id=orden_id, error=str(e))
            return None

    def get_order(self, orden_id: str) -> dict[str, Any] | None:
        return get_document(self.orders, orden_id)

    def find_gender(self, numero_id: str | None, orden_id: str) -> str | None:
        """
        Gender of the patient behind an assessment.

        The latest intake form for the patient id wins; the order's own
        gender field is the fallback.
        """
        if numero_id:
            rows = query_documents(
                _LATEST_FORM_GENDER_AQL,
                {"@collection": self.intake_forms, "numero_id": numero_id},
            )
            if rows:
                return rows[0]

        order = self.get_order(orden_id)
        if order and order.get("genero"):
            return order["genero"]
        return None
