"""
Pydantic models for API request/response validation.

All models are explicit, documented, and enforce strict validation where
the clinic front-end allows it. Item answers stay loosely typed on the
wire and are parsed into a ResponseSet by the service layer.
"""

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from models.scl90_models import TOTAL_ITEMS

_ITEM_FIELD = re.compile(r"^item\d{1,2}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# SCL-90
# ============================================================================

class Scl90Submission(BaseModel):
    """
    SCL-90 answers for a medical order, as posted by the intake front-end.

    Item answers arrive as flat item1..item90 fields and are collected
    into `respuestas`.

    Attributes:
        orden_id: Medical order the assessment belongs to.
        numero_id: Patient identification number.
        primer_nombre: Patient first name.
        primer_apellido: Patient first surname.
        empresa: Company name.
        cod_empresa: Company code.
        respuestas: Raw answers keyed item1..item90.
    """
    orden_id: str = Field(..., min_length=1, max_length=100, description="Medical order ID")
    numero_id: str | None = Field(default=None, max_length=50, description="Patient ID number")
    primer_nombre: str | None = Field(default=None, max_length=100, description="First name")
    primer_apellido: str | None = Field(default=None, max_length=100, description="First surname")
    empresa: str | None = Field(default=None, max_length=100, description="Company")
    cod_empresa: str | None = Field(default=None, max_length=50, description="Company code")
    respuestas: dict[str, Any] = Field(
        default_factory=dict,
        description="Raw item answers (item1..item90)"
    )

    @model_validator(mode="before")
    @classmethod
    def collect_items(cls, data: Any) -> Any:
        """Move flat itemN fields into `respuestas`."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        respuestas = dict(data.get("respuestas") or {})
        for key in [k for k in data if _ITEM_FIELD.match(str(k))]:
            respuestas[key] = data.pop(key)
        data["respuestas"] = respuestas
        return data

    @field_validator("orden_id")
    @classmethod
    def validate_orden_id(cls, v: str) -> str:
        """Ensure the order id is not just whitespace."""
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("orden_id is required")
        return cleaned

    @field_validator("respuestas")
    @classmethod
    def validate_item_keys(cls, v: dict[str, Any]) -> dict[str, Any]:
        """Only item1..item90 are accepted."""
        valid = {f"item{i}" for i in range(1, TOTAL_ITEMS + 1)}
        unknown = sorted(k for k in v if k not in valid)
        if unknown:
            raise ValueError(f"Unknown SCL-90 items: {unknown}")
        return v

    def patient_fields(self) -> dict[str, str | None]:
        """Patient header fields stored with the assessment."""
        return self.model_dump(exclude={"orden_id", "respuestas"})


class PatientHeader(BaseModel):
    """Patient data copied from the medical order."""
    numero_id: str | None = Field(default=None, description="Patient ID number")
    primer_nombre: str | None = Field(default=None, description="First name")
    primer_apellido: str | None = Field(default=None, description="First surname")
    empresa: str | None = Field(default=None, description="Company")
    cod_empresa: str | None = Field(default=None, description="Company code")


class Scl90RecordResponse(BaseModel):
    """
    Stored assessment for an order.

    `data` is None when the order exists but has no assessment yet; the
    patient header is then filled from the order.
    """
    success: bool = Field(default=True, description="Request outcome")
    data: dict[str, Any] | None = Field(default=None, description="Stored assessment")
    paciente: PatientHeader | None = Field(default=None, description="Patient header")


class Scl90SaveResponse(BaseModel):
    """Result of an assessment upsert."""
    success: bool = Field(default=True, description="Request outcome")
    data: dict[str, Any] = Field(..., description="Stored assessment")
    operacion: Literal["INSERT", "UPDATE"] = Field(..., description="Write performed")


class Scl90ScoreResponse(BaseModel):
    """
    Score of an assessment.

    Attributes:
        orden_id: Medical order scored.
        resultado: Dimension averages plus IGSP, ISP and PSDI.
        interpretacion: Severity level per dimension (BAJO, MEDIO, ALTO).
        baremos: Thresholds applied per dimension.
        genero: Gender category whose norms were applied.
        genero_por_defecto: True when the gender could not be resolved.
    """
    success: bool = Field(default=True, description="Request outcome")
    orden_id: str = Field(..., description="Medical order ID")
    resultado: dict[str, float | int] = Field(..., description="Dimension averages and indices")
    interpretacion: dict[str, str] = Field(..., description="Severity per dimension")
    baremos: dict[str, dict[str, float]] = Field(..., description="Norms applied")
    genero: str = Field(..., description="Resolved gender category")
    genero_por_defecto: bool = Field(default=False, description="Gender fallback applied")


class DimensionInfo(BaseModel):
    """Reference data for one SCL-90 dimension."""
    codigo: str = Field(..., description="Dimension code")
    nombre: str = Field(..., description="Dimension name")
    items: list[int] = Field(..., description="Member item indices")
    puntuable: bool = Field(..., description="Whether the dimension is scored")


class Scl90ReferenceResponse(BaseModel):
    """Dimension membership and norm tables."""
    dimensiones: list[DimensionInfo] = Field(..., description="Dimensions")
    baremos: dict[str, dict[str, dict[str, float]]] = Field(
        ..., description="Norms per gender and dimension"
    )


# ============================================================================
# Service
# ============================================================================

class HealthStatus(str, Enum):
    """System health status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """
    Health check response for monitoring.

    Attributes:
        status: Overall system health status.
        version: Application version.
        environment: Deployment environment.
        checks: Individual component health checks.
    """
    status: HealthStatus = Field(..., description="Overall health status")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Deployment environment")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")
    checks: dict[str, bool] = Field(default_factory=dict, description="Component health checks")


class ErrorResponse(BaseModel):
    """
    Standardized error response.

    Attributes:
        error: Error type/code.
        message: Human-readable error message.
        details: Additional error details.
        request_id: Request ID for tracing.
    """
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: dict | None = Field(default=None, description="Additional details")
    request_id: str | None = Field(default=None, description="Request ID for tracing")
    timestamp: datetime = Field(default_factory=_utcnow, description="Error timestamp")
