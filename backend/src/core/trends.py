"""Weight Trends - Pure functions for rolling averages and body metric trends.

All functions are pure: same input always produces same output, no side effects.
Readings are anything carrying a ``date`` and a ``weight``; they may be sparse,
unordered or empty.
"""

from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from .models import RollingAverage, SeriesStats, WeekRecord, WeightReading


DEFAULT_WINDOW_DAYS = 7
MIN_READINGS_FOR_AVERAGE = 3


def readings_in_window(
    readings: Iterable[WeightReading], target_date: date, window_days: int = DEFAULT_WINDOW_DAYS
) -> list[WeightReading]:
    """Select readings dated within the trailing window ending on target_date.

    Args:
        readings: Weight readings in any order
        target_date: Last day of the window (inclusive)
        window_days: Window length in days, at least 1

    Returns:
        Readings whose date is in [target_date - window_days + 1, target_date],
        sorted by date
    """
    if window_days < 1:
        raise ValueError(f"window_days must be at least 1, got {window_days}")

    window_start = target_date - timedelta(days=window_days - 1)
    selected = [r for r in readings if window_start <= r.date <= target_date]
    return sorted(selected, key=lambda r: r.date)


def calculate_rolling_average(
    readings: Iterable[WeightReading], target_date: date, window_days: int = DEFAULT_WINDOW_DAYS
) -> RollingAverage:
    """Calculate the trailing-window mean weight ending on target_date.

    Fewer than 3 readings in the window yields an invalid result: no average,
    zero confidence, but the count is still reported so callers can explain
    why there is no average.

    Args:
        readings: Weight readings (may be sparse or empty)
        target_date: Last day of the window (inclusive)
        window_days: Window length in days (default 7)

    Returns:
        RollingAverage with average, confidence, reading_count and is_valid
    """
    window = readings_in_window(readings, target_date, window_days)
    count = len(window)

    if count < MIN_READINGS_FOR_AVERAGE:
        return RollingAverage(average=None, confidence=0.0, reading_count=count, is_valid=False)

    average = sum(r.weight for r in window) / count
    # Same-day duplicates are counted, so confidence can exceed 1.0.
    confidence = count / window_days

    return RollingAverage(average=average, confidence=confidence, reading_count=count, is_valid=True)


def calculate_week_over_week_change(
    readings: Iterable[WeightReading], target_date: date, window_days: int = DEFAULT_WINDOW_DAYS
) -> float | None:
    """Difference between the current window average and the preceding window's.

    Args:
        readings: Weight readings covering both windows
        target_date: Last day of the current window
        window_days: Length of each window

    Returns:
        current - previous in lbs, or None if either window lacks a valid average
    """
    readings = list(readings)
    current = calculate_rolling_average(readings, target_date, window_days)
    previous = calculate_rolling_average(
        readings, target_date - timedelta(days=window_days), window_days
    )

    if not (current.is_valid and previous.is_valid):
        return None
    return current.average - previous.average


def confidence_level(confidence: float) -> str:
    """Bucket a confidence score into high / medium / low."""
    if confidence >= 0.7:
        return "high"
    if confidence >= 0.4:
        return "medium"
    return "low"


def summarize_series(values: Sequence[float]) -> SeriesStats | None:
    """Count, mean, range and first-to-last change of a chronological series.

    Returns:
        SeriesStats, or None for an empty series
    """
    if not values:
        return None

    return SeriesStats(
        count=len(values),
        average=sum(values) / len(values),
        minimum=min(values),
        maximum=max(values),
        change=values[-1] - values[0],
    )


def summarize_weights(readings: Sequence[WeightReading]) -> SeriesStats | None:
    """Summary statistics over the weights of chronologically ordered readings."""
    return summarize_series([r.weight for r in readings])


def _latest(readings: Sequence[WeightReading], attr: str) -> float | None:
    for reading in reversed(readings):
        value = getattr(reading, attr)
        if value is not None:
            return value
    return None


def _difference(current: float | None, previous: float | None) -> float | None:
    if current is None or previous is None:
        return None
    return current - previous


def derive_body_metrics(
    week: WeekRecord,
    readings: Iterable[WeightReading],
    previous_week: WeekRecord | None = None,
) -> WeekRecord:
    """Fill a week's missing derived body metrics from weight readings.

    Values already present on the week are kept as-is; only None fields are
    computed. The average is the 7-day rolling average ending on the week's
    last day, body composition is the latest reading inside the week, and the
    changes compare against the previous window or the previous week record.

    Args:
        week: The week to enrich
        readings: Readings covering the week and the week before it
        previous_week: The preceding week record, if any

    Returns:
        A copy of the week with derived fields filled where computable
    """
    readings = sorted(readings, key=lambda r: r.date)
    in_week = [r for r in readings if week.start_date <= r.date <= week.end_date]
    updates: dict = {}

    average_weight = week.average_weight
    if average_weight is None:
        average_weight = calculate_rolling_average(readings, week.end_date).average
        updates["average_weight"] = average_weight

    if week.week_over_week_weight_change is None:
        change = calculate_week_over_week_change(readings, week.end_date)
        if change is None and previous_week is not None:
            change = _difference(average_weight, previous_week.average_weight)
        updates["week_over_week_weight_change"] = change

    for value_field, change_field in (
        ("body_fat_percentage", "body_fat_change"),
        ("muscle_mass_percentage", "muscle_mass_change"),
    ):
        value = getattr(week, value_field)
        if value is None:
            value = _latest(in_week, value_field)
            updates[value_field] = value
        if getattr(week, change_field) is None and previous_week is not None:
            updates[change_field] = _difference(value, getattr(previous_week, value_field))

    updates = {k: v for k, v in updates.items() if v is not None}
    if not updates:
        return week
    return week.model_copy(update=updates)
