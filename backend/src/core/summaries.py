"""Text Summaries - Pure functions rendering natural-language reports.

These produce the text blocks returned by the MCP tools. Every function
answers in prose, including when there is no data to report.
"""

from collections.abc import Sequence
from datetime import date

from .adherence import average_adherence, calculate_week_adherence, format_adherence
from .models import Phase, WeekRecord, WeightReading
from .phases import (
    assess_phase_effectiveness,
    estimate_daily_surplus,
    group_weeks_by_phase,
    is_phase_aligned,
    suggest_phase,
)
from .trends import calculate_rolling_average, confidence_level, summarize_series, summarize_weights
from .weeks import days_into_week, format_week_range


RECENT_WEEKS_FOR_RECOMMENDATION = 4


# ==================== Formatting Helpers ====================


def format_weight(weight: float) -> str:
    return f"{weight:.1f} lbs"


def format_weight_change(change: float) -> str:
    """Format as '+1.2 lbs' or '-0.8 lbs'."""
    sign = "+" if change >= 0 else ""
    return f"{sign}{change:.1f} lbs"


def format_percentage_change(change: float) -> str:
    """Format as '+0.4%' or '-1.1%'."""
    sign = "+" if change >= 0 else ""
    return f"{sign}{change:.1f}%"


def _count(value: int | None) -> str:
    return "N/A" if value is None else f"{value:,}"


def _percent(value: float | None) -> str:
    return "N/A" if value is None else f"{value:.1f}%"


def _with_change(value: float | None, change: float | None) -> str:
    if value is None:
        return "N/A"
    text = f"{value:.1f}%"
    if change is not None:
        text += f" ({format_percentage_change(change)})"
    return text


# ==================== Week Reports ====================


def render_current_week(week: WeekRecord | None, today: date) -> str:
    """Progress of the in-progress week against its targets."""
    if week is None:
        return "No current week in progress. Start a new week to track metrics."

    adherence = calculate_week_adherence(week)
    lines = [
        f"Current Week (Day {days_into_week(week, today)} of 7)",
        format_week_range(week.start_date, week.end_date),
        f"Phase: {week.phase.display_name}",
        "",
        "PROGRESS:",
        f"Steps: {_count(week.total_steps)} / {week.target_steps:,} ({format_adherence(adherence.steps)})",
        f"Calories: {_count(week.total_calories)} / {week.target_calories:,} ({format_adherence(adherence.calories)})",
        f"Protein: {_count(week.total_protein)}g / {week.target_protein:,}g ({format_adherence(adherence.protein)})",
        f"Cardio: {_count(week.total_cardio_calories)} / {week.target_cardio:,} kcal ({format_adherence(adherence.cardio)})",
    ]

    if week.average_weight is not None:
        lines += ["", "CURRENT METRICS:", f"7-day avg weight: {format_weight(week.average_weight)}"]
        if week.week_over_week_weight_change is not None:
            lines.append(f"Week-over-week: {format_weight_change(week.week_over_week_weight_change)}")
        if week.body_fat_percentage is not None:
            lines.append(f"Body fat: {_with_change(week.body_fat_percentage, week.body_fat_change)}")
        if week.muscle_mass_percentage is not None:
            lines.append(f"Muscle mass: {_with_change(week.muscle_mass_percentage, week.muscle_mass_change)}")

    return "\n".join(lines)


def render_week_summary(week: WeekRecord | None, start_date: str) -> str:
    """Targets, actuals and body composition for one week."""
    if week is None:
        return f"No week found starting on {start_date}"

    adherence = calculate_week_adherence(week)

    def actual(value: int | None, unit: str, pct: float | None) -> str:
        if value is None:
            return "N/A"
        return f"{value:,}{unit} ({format_adherence(pct)})"

    average = format_weight(week.average_weight) if week.average_weight is not None else "N/A"
    change = (
        format_weight_change(week.week_over_week_weight_change)
        if week.week_over_week_weight_change is not None
        else "N/A"
    )
    if week.is_complete:
        status = f"Completed on {week.completed_at:%Y-%m-%d}"
    else:
        status = "In Progress"

    lines = [
        f"Week Summary: {week.start_date.isoformat()}",
        f"Phase: {week.phase.display_name}",
        "",
        "TARGETS:",
        f"- Calories: {week.target_calories:,} kcal",
        f"- Protein: {week.target_protein:,}g",
        f"- Steps: {week.target_steps:,}",
        f"- Cardio: {week.target_cardio:,} kcal",
        "",
        "ACTUALS:",
        f"- Calories: {actual(week.total_calories, ' kcal', adherence.calories)}",
        f"- Protein: {actual(week.total_protein, 'g', adherence.protein)}",
        f"- Steps: {actual(week.total_steps, '', adherence.steps)}",
        f"- Cardio: {actual(week.total_cardio_calories, ' kcal', adherence.cardio)}",
        "",
        "BODY COMPOSITION:",
        f"- Average Weight: {average}",
        f"- Week-over-Week Change: {change}",
        f"- Body Fat: {_with_change(week.body_fat_percentage, week.body_fat_change)}",
        f"- Muscle Mass: {_with_change(week.muscle_mass_percentage, week.muscle_mass_change)}",
        "",
        f"Status: {status}",
    ]
    return "\n".join(lines)


def render_weekly_history(weeks: Sequence[WeekRecord], offset: int = 0) -> str:
    """Compact listing of completed weeks, newest first."""
    if not weeks:
        return "No completed weeks found"

    lines = [f"Weekly History (showing {len(weeks)} weeks)", ""]

    for index, week in enumerate(weeks, start=offset + 1):
        weight = format_weight(week.average_weight) if week.average_weight is not None else "N/A lbs"
        if week.week_over_week_weight_change is not None:
            weight += f" ({format_weight_change(week.week_over_week_weight_change)})"

        lines.append(f"WEEK {index}: {week.start_date.isoformat()} ({week.phase.value})")
        lines.append(
            f"Targets: {week.target_calories:,} kcal | {week.target_protein:,}g protein | "
            f"{week.target_steps:,} steps"
        )
        lines.append(
            f"Actuals: {_count(week.total_calories)} kcal | {_count(week.total_protein)}g protein | "
            f"{_count(week.total_steps)} steps"
        )
        lines.append(f"Weight: {weight}")

        overall = calculate_week_adherence(week).overall
        if overall is not None:
            lines.append(f"Adherence: {format_adherence(overall)}")
        lines.append("")

    return "\n".join(lines).rstrip()


# ==================== Weight & Composition Reports ====================


def render_weight_trend(readings: Sequence[WeightReading], start_date: str, end_date: str) -> str:
    """Statistics and the raw readings over a date range."""
    stats = summarize_weights(readings)
    if stats is None:
        return f"No weight readings found between {start_date} and {end_date}"

    lines = [
        f"Weight Trend Analysis ({start_date} to {end_date})",
        "",
        "SUMMARY:",
        f"- Total readings: {stats.count}",
        f"- Average weight: {format_weight(stats.average)}",
        f"- Min weight: {format_weight(stats.minimum)}",
        f"- Max weight: {format_weight(stats.maximum)}",
        f"- Total change: {format_weight_change(stats.change)}",
    ]

    latest = calculate_rolling_average(readings, max(r.date for r in readings))
    if latest.is_valid:
        lines.append(
            f"- Latest 7-day average: {format_weight(latest.average)} "
            f"({confidence_level(latest.confidence)} confidence)"
        )
    lines += ["", "READINGS:"]

    for r in readings:
        line = f"{r.date.isoformat()}: {format_weight(r.weight)}"
        if r.body_fat_percentage is not None:
            line += f" | BF: {r.body_fat_percentage:.1f}%"
        if r.muscle_mass_percentage is not None:
            line += f" | MM: {r.muscle_mass_percentage:.1f}%"
        lines.append(line)

    return "\n".join(lines)


def _composition_block(title: str, values: Sequence[float]) -> list[str]:
    stats = summarize_series(values)
    if stats is None:
        return []
    return [
        f"{title}:",
        f"- Readings: {stats.count}",
        f"- Average: {stats.average:.1f}%",
        f"- Range: {stats.minimum:.1f}% - {stats.maximum:.1f}%",
        f"- Change: {format_percentage_change(stats.change)}",
        "",
    ]


def render_body_composition(readings: Sequence[WeightReading], start_date: str, end_date: str) -> str:
    """Body fat and muscle mass statistics over a date range."""
    comp = [r for r in readings if r.has_composition]
    if not comp:
        return f"No body composition data found between {start_date} and {end_date}"

    lines = [f"Body Composition Trend ({start_date} to {end_date})", ""]
    lines += _composition_block(
        "BODY FAT PERCENTAGE", [r.body_fat_percentage for r in comp if r.body_fat_percentage is not None]
    )
    lines += _composition_block(
        "MUSCLE MASS PERCENTAGE", [r.muscle_mass_percentage for r in comp if r.muscle_mass_percentage is not None]
    )

    lines.append("DETAILED READINGS:")
    for r in comp:
        parts = []
        if r.body_fat_percentage is not None:
            parts.append(f"BF {r.body_fat_percentage:.1f}%")
        if r.muscle_mass_percentage is not None:
            parts.append(f"MM {r.muscle_mass_percentage:.1f}%")
        lines.append(f"{r.date.isoformat()}: {' | '.join(parts)}")

    return "\n".join(lines)


# ==================== Phase Analysis ====================


def _tracked(weeks: Sequence[WeekRecord]) -> list[WeekRecord]:
    return [
        w for w in weeks
        if w.average_weight is not None and w.week_over_week_weight_change is not None
    ]


def _phase_block(phase: Phase, phase_weeks: list[WeekRecord]) -> list[str]:
    lines = [f"{phase.value.upper()} PHASE ({len(phase_weeks)} weeks)", "=" * 40]

    tracked = _tracked(phase_weeks)
    if not tracked:
        lines += ["Insufficient data for analysis", ""]
        return lines

    avg_change = sum(w.week_over_week_weight_change for w in tracked) / len(tracked)
    first, last = tracked[0], tracked[-1]

    lines.append(f"Average weekly weight change: {'+' if avg_change >= 0 else ''}{avg_change:.2f} lbs")
    lines.append(f"Total weight change: {format_weight_change(last.average_weight - first.average_weight)}")

    if first.body_fat_percentage is not None and last.body_fat_percentage is not None:
        change = last.body_fat_percentage - first.body_fat_percentage
        lines.append(f"Body fat change: {format_percentage_change(change)}")
    if first.muscle_mass_percentage is not None and last.muscle_mass_percentage is not None:
        change = last.muscle_mass_percentage - first.muscle_mass_percentage
        lines.append(f"Muscle mass change: {format_percentage_change(change)}")

    # Both averages cover the same weeks: those with every total recorded.
    with_data = [
        w for w in phase_weeks
        if w.total_calories is not None and w.total_protein is not None and w.total_steps is not None
    ]
    calories = average_adherence(with_data, "calories")
    protein = average_adherence(with_data, "protein")
    if calories is not None:
        lines.append(f"Average calorie adherence: {_percent(calories)}")
    if protein is not None:
        lines.append(f"Average protein adherence: {_percent(protein)}")

    lines.append("")
    if assess_phase_effectiveness(phase, avg_change):
        verdict = {
            Phase.CUT: "Effective cut (losing weight)",
            Phase.MAINTENANCE: "Effective maintenance (stable weight)",
            Phase.BULK: "Effective bulk (gaining weight)",
        }[phase]
        lines.append(f"Effectiveness: ✓ {verdict}")
    else:
        lines.append("Effectiveness: ⚠ Phase goals not met")
    lines.append("")
    return lines


def render_phase_analysis(
    weeks: Sequence[WeekRecord],
    start_date: str,
    end_date: str,
    avg_daily_surplus: float | None = None,
) -> str:
    """Per-phase effectiveness over a range plus a recommendation from recent weeks.

    Args:
        weeks: Completed weeks in the range, oldest first
        start_date: Range start, as given by the caller
        end_date: Range end, as given by the caller
        avg_daily_surplus: Measured average daily calorie balance; estimated
            from the weight trend when not supplied
    """
    if not weeks:
        return f"No weeks found between {start_date} and {end_date}"

    lines = [f"Phase Analysis ({start_date} to {end_date})", "", f"Total weeks analyzed: {len(weeks)}", ""]

    for phase, phase_weeks in group_weeks_by_phase(weeks).items():
        lines += _phase_block(phase, phase_weeks)

    recent = _tracked(weeks[-RECENT_WEEKS_FOR_RECOMMENDATION:])
    if len(recent) >= 2:
        avg_change = sum(w.week_over_week_weight_change for w in recent) / len(recent)
        surplus = avg_daily_surplus if avg_daily_surplus is not None else estimate_daily_surplus(avg_change)
        suggestion = suggest_phase(surplus, avg_change)

        lines += [
            "RECOMMENDATION:",
            f"Based on recent trends, suggested phase: {suggestion.suggested_phase.value.upper()}",
            f"Reasoning: {suggestion.reasoning}",
            f"Confidence: {suggestion.confidence * 100:.0f}%",
        ]

        current_phase = weeks[-1].phase
        if is_phase_aligned(current_phase, surplus, avg_change):
            lines.append(f"Current phase ({current_phase.value}) matches the recent trend.")
        else:
            lines.append(f"Current phase ({current_phase.value}) does not match the recent trend.")
        if avg_daily_surplus is None:
            lines.append(f"(Calorie balance estimated from weight trend: {surplus:+.0f} kcal/day)")

    return "\n".join(lines).rstrip()

