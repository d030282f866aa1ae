"""Unit tests for data models - validation and defaults."""

import pytest
from datetime import date, datetime
from pydantic import ValidationError

from src.core.models import (
    BodyCompositionPoint,
    DailyMetrics,
    Phase,
    RollingAverage,
    WeekRecord,
    WeekTargets,
    WeightReading,
)


class TestWeekRecord:
    """Tests for WeekRecord model."""

    def test_defaults(self):
        """New week gets default targets, an ID and a Saturday end date."""
        week = WeekRecord(start_date=date(2024, 10, 13))

        assert week.id is not None
        assert week.end_date == date(2024, 10, 19)
        assert week.target_calories == 14000
        assert week.target_protein == 1000
        assert week.target_steps == 70000
        assert week.target_cardio == 2000
        assert week.phase == Phase.MAINTENANCE
        assert week.total_steps is None
        assert week.is_complete is False
        assert week.completed_at is None

    def test_end_before_start_rejected(self):
        """end_date earlier than start_date is rejected."""
        with pytest.raises(ValidationError):
            WeekRecord(start_date=date(2024, 10, 13), end_date=date(2024, 10, 12))

    def test_negative_total_rejected(self):
        """Totals cannot be negative."""
        with pytest.raises(ValidationError):
            WeekRecord(start_date=date(2024, 10, 13), total_steps=-1)

    def test_body_fat_out_of_range_rejected(self):
        """Body fat percentage is bounded to 0-100."""
        with pytest.raises(ValidationError):
            WeekRecord(start_date=date(2024, 10, 13), body_fat_percentage=120.0)

    def test_unknown_phase_rejected(self):
        """Phase must be cut, maintenance or bulk."""
        with pytest.raises(ValidationError):
            WeekRecord(start_date=date(2024, 10, 13), phase="recomp")

    def test_completed_week_gets_completion_time(self):
        """A complete week always has completed_at set."""
        week = WeekRecord(start_date=date(2024, 10, 13), is_complete=True)
        assert week.completed_at is not None

    def test_datetime_start_truncated(self):
        """ISO datetimes from the app are reduced to their calendar day."""
        week = WeekRecord(start_date="2024-10-13T07:00:00Z")
        assert week.start_date == date(2024, 10, 13)

    def test_targets_property(self):
        """targets bundles the four targets and the phase."""
        week = WeekRecord(start_date=date(2024, 10, 13), target_calories=12000, phase=Phase.CUT)

        targets = week.targets

        assert targets.target_calories == 12000
        assert targets.phase == Phase.CUT

    def test_document_round_trip(self):
        """Serializing to JSON and back yields an identical record."""
        week = WeekRecord(
            start_date=date(2024, 10, 13),
            total_steps=65000,
            total_calories=10234,
            average_weight=181.3,
            body_fat_percentage=18.2,
            phase=Phase.CUT,
            is_complete=True,
            completed_at=datetime(2024, 10, 20, 8, 30),
        )

        restored = WeekRecord.model_validate(week.model_dump(mode="json"))

        assert restored == week


class TestWeekTargets:
    """Tests for WeekTargets model."""

    def test_phase_defaults_to_maintenance(self):
        targets = WeekTargets(target_calories=14000, target_protein=1000, target_steps=70000, target_cardio=2000)
        assert targets.phase == Phase.MAINTENANCE

    def test_missing_target_rejected(self):
        """All four targets are required."""
        with pytest.raises(ValidationError):
            WeekTargets(target_calories=14000, target_protein=1000, target_steps=70000)


class TestWeightReading:
    """Tests for WeightReading model."""

    def test_valid_reading(self):
        """Reading defaults its source and has no composition."""
        reading = WeightReading(date=date(2024, 10, 14), weight=181.2)

        assert reading.source == "API"
        assert reading.has_composition is False

    def test_zero_weight_rejected(self):
        """Weight must be positive."""
        with pytest.raises(ValidationError):
            WeightReading(date=date(2024, 10, 14), weight=0)

    def test_composition(self):
        """A reading with muscle mass alone counts as composition data."""
        reading = WeightReading(date=date(2024, 10, 14), weight=181.2, muscle_mass_percentage=41.0)
        assert reading.has_composition is True

    def test_healthkit_datetime_truncated(self):
        """HealthKit timestamps are stored as calendar days."""
        reading = WeightReading(date="2024-10-14T06:45:12.000Z", weight=181.2)
        assert reading.date == date(2024, 10, 14)


class TestDailyMetrics:
    """Tests for DailyMetrics model."""

    def test_defaults(self):
        metrics = DailyMetrics(date=date(2024, 10, 14))

        assert metrics.steps == 0
        assert metrics.calories == 0
        assert metrics.weight is None
        assert metrics.seven_day_average_weight is None

    def test_negative_steps_rejected(self):
        with pytest.raises(ValidationError):
            DailyMetrics(date=date(2024, 10, 14), steps=-5)


class TestSerializationAliases:
    """Tests for camelCase fields served to the app."""

    def test_rolling_average_aliases(self):
        """RollingAverage serializes readingCount and isValid."""
        result = RollingAverage(average=181.5, confidence=3 / 7, reading_count=3, is_valid=True)

        data = result.model_dump(by_alias=True)

        assert data["readingCount"] == 3
        assert data["isValid"] is True

    def test_body_composition_aliases(self):
        point = BodyCompositionPoint(date=date(2024, 10, 14), body_fat_percentage=18.0, weight=181.0)

        data = point.model_dump(mode="json", by_alias=True)

        assert data == {
            "date": "2024-10-14",
            "bodyFatPercentage": 18.0,
            "muscleMassPercentage": None,
            "weight": 181.0,
        }


class TestPhase:
    """Tests for Phase enum."""

    def test_values(self):
        assert [p.value for p in Phase] == ["cut", "maintenance", "bulk"]

    def test_display_name(self):
        assert Phase.BULK.display_name == "Bulk"
