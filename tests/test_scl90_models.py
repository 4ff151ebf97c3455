"""Tests for SCL-90 domain models and reference tables."""

import pytest
from pydantic import ValidationError

from models.scl90_models import (
    Dimension,
    Gender,
    NormThresholds,
    ResponseSet,
    SeverityLevel,
    parse_rating,
)
from services.scl90_scorer import score
from services.scl90_tables import DIMENSION_ITEMS, NORMS, SCORED_DIMENSIONS


class TestParseRating:
    @pytest.mark.parametrize("value,expected", [
        (0, 0), (4, 4), ("2", 2), (" 3 ", 3), (1.0, 1),
    ])
    def test_valid(self, value, expected):
        assert parse_rating(value) == expected

    @pytest.mark.parametrize("value", [None, "", "x", "2.5", 5, -1, 1.5, True, "-1"])
    def test_invalid(self, value):
        assert parse_rating(value) is None


class TestResponseSet:
    def test_from_items_ignores_foreign_keys(self):
        responses = ResponseSet.from_items({
            "item1": "4",
            "item91": 2,
            "orden_id": "abc",
            "_key": "abc",
            "resultado": {"SOM": 1.0},
        })

        assert responses.ratings == {1: 4}

    def test_absent_items_read_as_zero(self):
        responses = ResponseSet.from_items({"item5": None, "item6": "n/a"})

        assert responses.rating(5) == 0
        assert responses.rating(6) == 0
        assert responses.rating(7) == 0
        assert responses.answered_count == 0

    def test_to_items_covers_all_ninety(self):
        flat = ResponseSet.from_items({"item3": 2}).to_items()

        assert len(flat) == 90
        assert flat["item3"] == 2
        assert flat["item90"] is None

    def test_strict_constructor_rejects_out_of_range(self):
        with pytest.raises(ValidationError):
            ResponseSet(ratings={1: 5})
        with pytest.raises(ValidationError):
            ResponseSet(ratings={91: 1})

    @pytest.mark.parametrize("ratings", [
        {1: True}, {1: False}, {1: "3"}, {1: 2.0}, {"2": 3},
    ])
    def test_strict_constructor_rejects_coercible_values(self, ratings):
        with pytest.raises(ValidationError):
            ResponseSet(ratings=ratings)

    def test_boolean_answer_is_never_scored_as_a_rating(self):
        with pytest.raises(ValidationError):
            ResponseSet(ratings={1: True})

        result = score(ResponseSet.from_items({"item1": True}), "masculino")

        assert result.indices.isp == 0
        assert result.indices.igsp == 0

    def test_is_immutable(self):
        responses = ResponseSet(ratings={1: 1})

        with pytest.raises(ValidationError):
            responses.ratings = {}


class TestNormThresholds:
    @pytest.mark.parametrize("value,expected", [
        (0.0, SeverityLevel.LOW),
        (0.16, SeverityLevel.LOW),
        (0.17, SeverityLevel.MEDIUM),
        (0.5, SeverityLevel.MEDIUM),
        (0.67, SeverityLevel.MEDIUM),
        (0.68, SeverityLevel.HIGH),
    ])
    def test_classify(self, value, expected):
        assert NormThresholds(pc50=0.17, pc85=0.67).classify(value) == expected


class TestTables:
    def test_dimensions_partition_items(self):
        all_items = sorted(i for group in DIMENSION_ITEMS.values() for i in group)

        assert all_items == list(range(1, 91))

    def test_item_counts(self):
        counts = {dim: len(group) for dim, group in DIMENSION_ITEMS.items()}

        assert counts[Dimension.SOM] == 12
        assert counts[Dimension.DEP] == 13
        assert counts[Dimension.ADI] == 7

    def test_nine_scored_dimensions(self):
        assert len(SCORED_DIMENSIONS) == 9
        assert Dimension.ADI not in SCORED_DIMENSIONS

    @pytest.mark.parametrize("gender", list(Gender))
    def test_norms_are_ordered_and_below_max(self, gender):
        table = NORMS[gender]

        assert set(table) == set(SCORED_DIMENSIONS)
        for norm in table.values():
            assert 0 < norm.pc50 <= norm.pc85 < 4

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            DIMENSION_ITEMS[Dimension.SOM] = (1,)
