"""
Unit Tests for the Water Damage Protocol.

Tests the IICRC classification flow:
- Seven protocol questions in asking order
- Source keywords map to clean/gray/black; unknown sources are gray
- Contamination, drying feasibility and water class thresholds
- classify_water_damage() with a fixed reference time
"""

from datetime import datetime, timedelta

import pytest

from claimscope.models.inspection import ContaminationLevel, WaterProtocolResponses, WaterSource
from claimscope.services.water_protocol import (
    assess_contamination,
    classify_water_damage,
    determine_water_class,
    get_protocol_questions,
    infer_water_source,
    is_drying_possible,
)

NOW = datetime(2026, 3, 14, 9, 0, 0)


class TestProtocolQuestions:
    """Tests for get_protocol_questions()."""

    def test_seven_steps_in_order(self):
        questions = get_protocol_questions()

        assert [q.step for q in questions] == [1, 2, 3, 4, 5, 6, 7]
        assert questions[0].field == "water_source"
        assert questions[0].examples

    def test_every_question_targets_a_response_field(self):
        fields = set(WaterProtocolResponses.model_fields)

        assert all(q.field in fields for q in get_protocol_questions())

    def test_returned_questions_are_copies(self):
        get_protocol_questions()[0].question = "changed"

        assert get_protocol_questions()[0].question != "changed"


class TestSourceInference:
    """Tests for infer_water_source()."""

    @pytest.mark.parametrize("description,expected", [
        ("Supply line break under sink", WaterSource.CLEAN),
        ("rain through roof", WaterSource.CLEAN),
        ("Washing machine overflow", WaterSource.GRAY),
        ("dishwasher leak", WaterSource.GRAY),
        ("SEWER backup", WaterSource.BLACK),
        ("toilet overflow", WaterSource.BLACK),
        ("rising flood water", WaterSource.BLACK),
        ("not sure", WaterSource.GRAY),
        ("", WaterSource.GRAY),
    ])
    def test_keywords(self, description, expected):
        assert infer_water_source(description) == expected


class TestThresholds:
    """Contamination, drying and class rules."""

    def test_black_water_is_always_high(self):
        assert assess_contamination(3, 0, False) == ContaminationLevel.HIGH

    def test_gray_water_escalates_with_time(self):
        assert assess_contamination(2, 6, False) == ContaminationLevel.LOW
        assert assess_contamination(2, 18, False) == ContaminationLevel.MEDIUM
        assert assess_contamination(2, 30, False) == ContaminationLevel.HIGH
        assert assess_contamination(2, 1, True) == ContaminationLevel.HIGH

    def test_clean_water_stays_low(self):
        assert assess_contamination(1, 100, True) == ContaminationLevel.LOW

    def test_drying_possible(self):
        assert is_drying_possible(1, 10, 200) is True
        assert is_drying_possible(3, 1, 10) is False
        assert is_drying_possible(2, 49, 10) is False
        assert is_drying_possible(1, 80, 1500) is False

    @pytest.mark.parametrize("area,drying,expected", [
        (10, True, 1),
        (24, True, 1),
        (100, True, 2),
        (301, True, 3),
        (10, False, 4),
    ])
    def test_water_class(self, area, drying, expected):
        assert determine_water_class(area, drying) == expected


class TestClassifyWaterDamage:
    """Tests for classify_water_damage()."""

    def test_clean_supply_line(self):
        responses = WaterProtocolResponses(
            water_source="supply line break",
            standing_water_start=NOW - timedelta(hours=6),
            standing_water_end=NOW,
            affected_area=120,
        )

        result = classify_water_damage(responses, now=NOW)

        assert result.category == 1
        assert result.water_class == 2
        assert result.source == WaterSource.CLEAN
        assert result.contamination_level == ContaminationLevel.LOW
        assert result.drying_possible is True
        assert result.forces_demolition is False

    def test_sewer_backup_forces_demolition(self):
        responses = WaterProtocolResponses(water_source="sewer backup", affected_area=50, notes="basement")

        result = classify_water_damage(responses, now=NOW)

        assert result.category == 3
        assert result.water_class == 4
        assert result.drying_possible is False
        assert result.notes == "basement"
        assert result.forces_demolition is True

    def test_open_ended_standing_water_uses_reference_time(self):
        responses = WaterProtocolResponses(
            water_source="washing machine",
            standing_water_start=NOW - timedelta(hours=50),
            affected_area=80,
        )

        result = classify_water_damage(responses, now=NOW)

        assert result.category == 2
        assert result.drying_possible is False
        assert result.contamination_level == ContaminationLevel.HIGH

    def test_missing_answers_default_to_zero(self):
        result = classify_water_damage(WaterProtocolResponses(water_source="dishwasher"), now=NOW)

        assert result.water_class == 1
        assert result.drying_possible is True
