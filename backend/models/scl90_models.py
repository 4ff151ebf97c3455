"""
Pydantic models for SCL-90 psychometric scoring.

This module defines the structured representation of an SCL-90 response
set, the normative thresholds applied to it, and the score result.
"""

import re
from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from config.logging_config import get_logger

logger = get_logger(__name__)

TOTAL_ITEMS = 90
MIN_RATING = 0
MAX_RATING = 4

Rating = Annotated[int, Field(ge=MIN_RATING, le=MAX_RATING)]

_ITEM_KEY = re.compile(r"^item(\d{1,2})$")


# ============================================================================
# Enumerations
# ============================================================================

class Dimension(str, Enum):
    """SCL-90 symptom dimensions."""
    SOM = "SOM"    # Somatización
    OBS = "OBS"    # Obsesión-Compulsión
    SI = "SI"      # Sensibilidad Interpersonal
    DEP = "DEP"    # Depresión
    ANS = "ANS"    # Ansiedad
    HOS = "HOS"    # Hostilidad
    FOB = "FOB"    # Ansiedad Fóbica
    PAR = "PAR"    # Ideación Paranoide
    PSIC = "PSIC"  # Psicoticismo
    ADI = "ADI"    # Ítems adicionales, never scored


class GlobalIndex(str, Enum):
    """Global indices computed over all 90 items."""
    IGSP = "IGSP"  # general severity: mean rating over the 90 items
    ISP = "ISP"    # positive symptom count
    PSDI = "PSDI"  # positive symptom distress: mean rating over positive items


class Gender(str, Enum):
    """Gender categories with published norms."""
    MALE = "masculino"
    FEMALE = "femenino"


class SeverityLevel(str, Enum):
    """Severity classification of a dimension against its norms."""
    LOW = "BAJO"
    MEDIUM = "MEDIO"
    HIGH = "ALTO"


# ============================================================================
# Response set
# ============================================================================

def item_key(index: int) -> str:
    """Return the persisted field name for an item index (1 -> 'item1')."""
    return f"item{index}"


def parse_rating(value: Any) -> int | None:
    """
    Parse a loosely-typed rating.

    Returns the integer rating when the value is an integer 0-4 (or its text
    form), otherwise None. Booleans are not ratings.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        rating = value
    elif isinstance(value, float) and value.is_integer():
        rating = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        rating = int(value.strip())
    else:
        return None
    if MIN_RATING <= rating <= MAX_RATING:
        return rating
    return None


class ResponseSet(BaseModel):
    """
    The 90 ordinal answers of one SCL-90 assessment.

    Ratings are keyed by item index (1-90). Absent items are stored as
    missing keys or None; the scorer reads them as 0.
    """
    # No coercion here; loosely-typed stored values go through from_items
    model_config = ConfigDict(frozen=True, strict=True)

    ratings: dict[int, Rating | None] = Field(
        default_factory=dict,
        description="Item index (1-90) to rating (0-4) or None"
    )

    @field_validator("ratings")
    @classmethod
    def validate_item_indices(cls, v: dict[int, int | None]) -> dict[int, int | None]:
        """Reject item indices outside 1-90."""
        invalid = sorted(i for i in v if not 1 <= i <= TOTAL_ITEMS)
        if invalid:
            raise ValueError(f"Item indices out of range 1-{TOTAL_ITEMS}: {invalid}")
        return v

    @classmethod
    def from_items(cls, items: Mapping[str, Any]) -> "ResponseSet":
        """
        Build a response set from 'itemN' keyed, loosely-typed values.

        Keys that are not item1..item90 are ignored. Values that are not an
        integer 0-4 are recorded as absent.
        """
        ratings: dict[int, int | None] = {}
        malformed: list[str] = []
        for key, raw in items.items():
            match = _ITEM_KEY.match(str(key))
            if not match or not 1 <= int(match.group(1)) <= TOTAL_ITEMS:
                continue
            rating = parse_rating(raw)
            if rating is None and raw not in (None, ""):
                malformed.append(key)
            ratings[int(match.group(1))] = rating

        if malformed:
            logger.debug("Malformed SCL-90 ratings read as absent", items=malformed)
        return cls(ratings=ratings)

    def rating(self, index: int) -> int:
        """Rating for an item, with absent items read as 0."""
        return self.ratings.get(index) or 0

    def to_items(self) -> dict[str, int | None]:
        """Flatten to the persisted item1..item90 layout."""
        return {item_key(i): self.ratings.get(i) for i in range(1, TOTAL_ITEMS + 1)}

    @property
    def answered_count(self) -> int:
        """Number of items with a recorded rating."""
        return sum(1 for v in self.ratings.values() if v is not None)


# ============================================================================
# Norms and results
# ============================================================================

class NormThresholds(BaseModel):
    """Percentile cutoffs for a dimension's average item score."""
    model_config = ConfigDict(frozen=True)

    pc50: float = Field(..., gt=0, lt=MAX_RATING, description="50th percentile cutoff")
    pc85: float = Field(..., gt=0, lt=MAX_RATING, description="85th percentile cutoff")

    def classify(self, value: float) -> SeverityLevel:
        """Classify an average score; both cutoffs belong to MEDIUM."""
        if value < self.pc50:
            return SeverityLevel.LOW
        if value <= self.pc85:
            return SeverityLevel.MEDIUM
        return SeverityLevel.HIGH


class GlobalIndices(BaseModel):
    """The three summary statistics over all 90 items."""
    model_config = ConfigDict(frozen=True)

    igsp: float = Field(..., ge=0, description="Mean rating over all 90 items")
    isp: int = Field(..., ge=0, le=TOTAL_ITEMS, description="Count of items rated above 0")
    psdi: float = Field(..., ge=0, description="Mean rating over positive items")


class ScoreResult(BaseModel):
    """
    Derived SCL-90 score for one assessment.

    Attributes:
        dimensions: Average item score per scored dimension.
        indices: Global indices.
        interpretation: Severity level per scored dimension.
        norms: Thresholds applied per scored dimension.
        gender: Gender category whose norms were applied.
        gender_fallback: True when the gender label could not be resolved.
    """
    model_config = ConfigDict(frozen=True)

    dimensions: dict[Dimension, float]
    indices: GlobalIndices
    interpretation: dict[Dimension, SeverityLevel]
    norms: dict[Dimension, NormThresholds]
    gender: Gender
    gender_fallback: bool = False

    def resultado(self) -> dict[str, float | int]:
        """Dimension averages plus global indices, keyed by code."""
        out: dict[str, float | int] = {d.value: v for d, v in self.dimensions.items()}
        out[GlobalIndex.IGSP.value] = self.indices.igsp
        out[GlobalIndex.ISP.value] = self.indices.isp
        out[GlobalIndex.PSDI.value] = self.indices.psdi
        return out

    def interpretacion(self) -> dict[str, str]:
        """Severity label per dimension code."""
        return {d.value: level.value for d, level in self.interpretation.items()}

    def baremos(self) -> dict[str, dict[str, float]]:
        """Thresholds applied per dimension code."""
        return {d.value: n.model_dump() for d, n in self.norms.items()}

    def to_record(self) -> dict[str, Any]:
        """Fields persisted alongside the response set."""
        return {
            "resultado": self.resultado(),
            "interpretacion": self.interpretacion(),
            "baremos": self.baremos(),
            "genero": self.gender.value,
        }
