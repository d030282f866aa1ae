"""Adherence Calculations - Pure functions for actual-vs-target percentages.

All functions are pure: same input always produces same output, no side effects.
A missing actual, a missing target or a zero target makes a metric not
computable (None), never zero or infinity.
"""

from collections.abc import Iterable

from .models import WeekAdherence, WeekRecord


# metric name -> (actual field, target field) on WeekRecord
METRIC_FIELDS = {
    "calories": ("total_calories", "target_calories"),
    "protein": ("total_protein", "target_protein"),
    "steps": ("total_steps", "target_steps"),
    "cardio": ("total_cardio_calories", "target_cardio"),
}

OVERALL_METRICS = ("calories", "protein", "steps")


def calculate_adherence(actual: float | None, target: float | None) -> float | None:
    """Calculate actual as a percentage of target.

    Args:
        actual: Achieved total, None if no data yet
        target: Target total

    Returns:
        Percentage (unrounded), or None if not computable
    """
    if actual is None or target is None or target == 0:
        return None
    return actual / target * 100


def metric_adherence(week: WeekRecord, metric: str) -> float | None:
    """Adherence of one week for one metric name (calories, protein, steps, cardio)."""
    actual_field, target_field = METRIC_FIELDS[metric]
    return calculate_adherence(getattr(week, actual_field), getattr(week, target_field))


def calculate_week_adherence(week: WeekRecord) -> WeekAdherence:
    """Calculate per-metric adherence for a week.

    The overall figure is the mean of calorie, protein and step adherence and
    is only reported when all three are computable.
    """
    values = {metric: metric_adherence(week, metric) for metric in METRIC_FIELDS}

    overall_parts = [values[m] for m in OVERALL_METRICS]
    overall = None
    if all(v is not None for v in overall_parts):
        overall = sum(overall_parts) / len(overall_parts)

    return WeekAdherence(**values, overall=overall)


def average_adherence(weeks: Iterable[WeekRecord], metric: str) -> float | None:
    """Average a metric's adherence over the weeks where it is computable.

    Returns:
        Mean percentage, or None if no week has a computable value
    """
    values = [v for v in (metric_adherence(w, metric) for w in weeks) if v is not None]
    if not values:
        return None
    return sum(values) / len(values)


def format_adherence(value: float | None) -> str:
    """Render a percentage with one decimal, e.g. '73.1%'."""
    if value is None:
        return "N/A"
    return f"{value:.1f}%"
