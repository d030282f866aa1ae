"""Unit tests for adherence calculations - pure functions, no mocks needed."""

from datetime import date

import pytest

from src.core.adherence import (
    average_adherence,
    calculate_adherence,
    calculate_week_adherence,
    format_adherence,
    metric_adherence,
)
from src.core.models import WeekRecord


def make_week(**kwargs) -> WeekRecord:
    return WeekRecord(start_date=date(2024, 10, 13), **kwargs)


class TestCalculateAdherence:
    """Tests for calculate_adherence."""

    def test_partial_week(self):
        """10,234 of 14,000 kcal renders as 73.1%."""
        result = calculate_adherence(10234, 14000)

        assert result == pytest.approx(73.1, abs=0.05)
        assert format_adherence(result) == "73.1%"

    def test_over_target(self):
        assert calculate_adherence(15000, 10000) == pytest.approx(150.0)

    def test_missing_actual(self):
        """No data yet is not zero adherence."""
        assert calculate_adherence(None, 14000) is None

    def test_zero_target(self):
        """A zero target is not computable rather than infinite."""
        assert calculate_adherence(500, 0) is None

    def test_missing_target(self):
        assert calculate_adherence(500, None) is None


class TestWeekAdherence:
    """Tests for metric_adherence and calculate_week_adherence."""

    def test_metric_lookup(self):
        week = make_week(total_protein=500)
        assert metric_adherence(week, "protein") == pytest.approx(50.0)

    def test_all_metrics(self):
        """Overall is the mean of calories, protein and steps."""
        week = make_week(
            total_calories=14000,
            total_protein=500,
            total_steps=70000,
            total_cardio_calories=1000,
        )

        adherence = calculate_week_adherence(week)

        assert adherence.calories == pytest.approx(100.0)
        assert adherence.protein == pytest.approx(50.0)
        assert adherence.steps == pytest.approx(100.0)
        assert adherence.cardio == pytest.approx(50.0)
        assert adherence.overall == pytest.approx(250.0 / 3)

    def test_overall_requires_core_metrics(self):
        """Overall is None when any of its three metrics is missing."""
        adherence = calculate_week_adherence(make_week(total_calories=14000, total_protein=1000))

        assert adherence.steps is None
        assert adherence.overall is None

    def test_cardio_not_part_of_overall(self):
        """Missing cardio does not block the overall figure."""
        week = make_week(total_calories=14000, total_protein=1000, total_steps=70000)
        assert calculate_week_adherence(week).overall == pytest.approx(100.0)


class TestAverageAdherence:
    """Tests for average_adherence."""

    def test_skips_weeks_without_data(self):
        weeks = [make_week(total_calories=14000), make_week(), make_week(total_calories=7000)]
        assert average_adherence(weeks, "calories") == pytest.approx(75.0)

    def test_no_data(self):
        assert average_adherence([make_week()], "calories") is None


class TestFormatAdherence:
    """Tests for format_adherence."""

    def test_one_decimal(self):
        assert format_adherence(100.0) == "100.0%"

    def test_none(self):
        assert format_adherence(None) == "N/A"
