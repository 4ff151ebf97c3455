"""
SCL-90 reference tables.

Item membership per dimension (Derogatis SCL-90-R key) and the
gender-specific normative cutoffs used to interpret dimension averages.
Both tables are read-only.
"""

from types import MappingProxyType

from models.scl90_models import Dimension, Gender, NormThresholds, TOTAL_ITEMS


# ============================================================================
# Dimension membership
# ============================================================================

DIMENSION_ITEMS: MappingProxyType[Dimension, tuple[int, ...]] = MappingProxyType({
    Dimension.SOM: (1, 4, 12, 27, 40, 42, 48, 49, 52, 53, 56, 58),
    Dimension.OBS: (3, 9, 10, 28, 38, 45, 46, 51, 55, 65),
    Dimension.SI: (6, 21, 34, 36, 37, 41, 61, 69, 73),
    Dimension.DEP: (5, 14, 15, 20, 22, 26, 29, 30, 31, 32, 54, 71, 79),
    Dimension.ANS: (2, 17, 23, 33, 39, 57, 72, 78, 80, 86),
    Dimension.HOS: (11, 24, 63, 67, 74, 81),
    Dimension.FOB: (13, 25, 47, 50, 70, 75, 82),
    Dimension.PAR: (8, 18, 43, 68, 76, 83),
    Dimension.PSIC: (7, 16, 35, 62, 77, 84, 85, 87, 88, 90),
    # Additional items: enumerated for completeness, excluded from scoring
    Dimension.ADI: (19, 44, 59, 60, 64, 66, 89),
})

SCORED_DIMENSIONS: tuple[Dimension, ...] = tuple(
    d for d in DIMENSION_ITEMS if d is not Dimension.ADI
)

DIMENSION_NAMES: MappingProxyType[Dimension, str] = MappingProxyType({
    Dimension.SOM: "Somatización",
    Dimension.OBS: "Obsesión-Compulsión",
    Dimension.SI: "Sensibilidad Interpersonal",
    Dimension.DEP: "Depresión",
    Dimension.ANS: "Ansiedad",
    Dimension.HOS: "Hostilidad",
    Dimension.FOB: "Ansiedad Fóbica",
    Dimension.PAR: "Ideación Paranoide",
    Dimension.PSIC: "Psicoticismo",
    Dimension.ADI: "Ítems Adicionales",
})


# ============================================================================
# Normative cutoffs (Pc50, Pc85) on the 0-4 average item scale
# ============================================================================

def _norms(table: dict[Dimension, tuple[float, float]]) -> MappingProxyType:
    return MappingProxyType({
        dim: NormThresholds(pc50=pc50, pc85=pc85) for dim, (pc50, pc85) in table.items()
    })


NORMS: MappingProxyType[Gender, MappingProxyType[Dimension, NormThresholds]] = MappingProxyType({
    Gender.MALE: _norms({
        Dimension.SOM: (0.17, 0.67),
        Dimension.OBS: (0.40, 1.00),
        Dimension.SI: (0.22, 0.78),
        Dimension.DEP: (0.23, 0.77),
        Dimension.ANS: (0.20, 0.70),
        Dimension.HOS: (0.17, 0.67),
        Dimension.FOB: (0.14, 0.43),
        Dimension.PAR: (0.33, 1.00),
        Dimension.PSIC: (0.10, 0.50),
    }),
    Gender.FEMALE: _norms({
        Dimension.SOM: (0.42, 1.08),
        Dimension.OBS: (0.50, 1.10),
        Dimension.SI: (0.33, 1.00),
        Dimension.DEP: (0.38, 1.08),
        Dimension.ANS: (0.30, 1.00),
        Dimension.HOS: (0.17, 0.83),
        Dimension.FOB: (0.14, 0.57),
        Dimension.PAR: (0.33, 1.00),
        Dimension.PSIC: (0.10, 0.50),
    }),
})


def _check_partition() -> None:
    """The ten groups must cover items 1-90 exactly once."""
    seen = [i for items in DIMENSION_ITEMS.values() for i in items]
    if sorted(seen) != list(range(1, TOTAL_ITEMS + 1)):
        raise RuntimeError("SCL-90 dimension table does not partition items 1-90")
    for gender, table in NORMS.items():
        if set(table) != set(SCORED_DIMENSIONS):
            raise RuntimeError(f"Norm table for {gender.value} does not cover every dimension")


_check_partition()
