"""
SCL-90 Scorer

Pure transform from a 90-item response set and a gender label into
dimension averages, global indices and severity levels.

Design:
1. Dimension average = sum of member ratings / member count
2. IGSP = sum of all ratings / 90, ISP = positive count, PSDI = sum / ISP
3. Each dimension is classified against the gender's (Pc50, Pc85) cutoffs

Absent or malformed ratings count as 0. Unknown genders use the masculino
norms and are logged so the fallback rate can be audited.
"""

import unicodedata
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from config.logging_config import get_logger
from models.scl90_models import (
    Gender,
    GlobalIndices,
    ResponseSet,
    ScoreResult,
    TOTAL_ITEMS,
)
from services.scl90_tables import DIMENSION_ITEMS, NORMS, SCORED_DIMENSIONS

logger = get_logger(__name__)

DEFAULT_GENDER = Gender.MALE

GENDER_SYNONYMS: dict[str, Gender] = {
    "masculino": Gender.MALE,
    "hombre": Gender.MALE,
    "male": Gender.MALE,
    "man": Gender.MALE,
    "m": Gender.MALE,
    "femenino": Gender.FEMALE,
    "mujer": Gender.FEMALE,
    "female": Gender.FEMALE,
    "woman": Gender.FEMALE,
    "f": Gender.FEMALE,
}

_TWO_PLACES = Decimal("0.01")


def round2(numerator: int, denominator: int) -> float:
    """Divide and round half-up to 2 decimals; 0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    quotient = Decimal(numerator) / Decimal(denominator)
    return float(quotient.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def _fold(label: str) -> str:
    """Lowercase, trim and strip accents."""
    decomposed = unicodedata.normalize("NFKD", label.strip().lower())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def normalize_gender(label: str | None) -> tuple[Gender, bool]:
    """
    Resolve a free-text gender label to a norm category.

    Args:
        label: Gender as captured on the intake form (e.g. "Masculino", "Mujer").

    Returns:
        (gender, fallback) - fallback is True when the label was absent or
        unrecognized and the default category was used.
    """
    if label is not None:
        gender = GENDER_SYNONYMS.get(_fold(str(label)))
        if gender is not None:
            return gender, False

    logger.warning(
        "SCL-90 gender fallback applied",
        raw_gender=label,
        resolved_gender=DEFAULT_GENDER.value,
    )
    return DEFAULT_GENDER, True


def score(
    responses: ResponseSet | Mapping[str, Any],
    gender_label: str | None,
) -> ScoreResult:
    """
    Score an SCL-90 response set.

    Args:
        responses: A ResponseSet, or raw 'item1'..'item90' values.
        gender_label: Free-text gender of the subject.

    Returns:
        ScoreResult with dimension averages, global indices, severity
        levels, the thresholds applied and the resolved gender.
    """
    if not isinstance(responses, ResponseSet):
        responses = ResponseSet.from_items(responses)

    gender, fallback = normalize_gender(gender_label)
    norms = NORMS[gender]

    dimensions = {
        dim: round2(sum(responses.rating(i) for i in DIMENSION_ITEMS[dim]), len(DIMENSION_ITEMS[dim]))
        for dim in SCORED_DIMENSIONS
    }

    ratings = [responses.rating(i) for i in range(1, TOTAL_ITEMS + 1)]
    total = sum(ratings)
    positive = sum(1 for r in ratings if r > 0)
    indices = GlobalIndices(
        igsp=round2(total, TOTAL_ITEMS),
        isp=positive,
        psdi=round2(total, positive),
    )

    interpretation = {dim: norms[dim].classify(value) for dim, value in dimensions.items()}

    logger.debug(
        "SCL-90 scored",
        gender=gender.value,
        answered=responses.answered_count,
        igsp=indices.igsp,
        isp=indices.isp,
        psdi=indices.psdi,
    )

    return ScoreResult(
        dimensions=dimensions,
        indices=indices,
        interpretation=interpretation,
        norms={dim: norms[dim] for dim in SCORED_DIMENSIONS},
        gender=gender,
        gender_fallback=fallback,
    )
