"""Phase Detection - Pure functions for cut / maintenance / bulk heuristics.

All functions are pure: same input always produces same output, no side effects.
"""

from collections.abc import Iterable

from .models import Phase, PhaseSuggestion, WeekRecord


# Exact score ties resolve to the earliest phase in this order.
PHASE_PRIORITY = (Phase.CUT, Phase.MAINTENANCE, Phase.BULK)

MAX_SCORE = 2.0
CALORIES_PER_LB = 3500


def _score_signal(
    scores: dict[Phase, float], value: float, threshold: float, borderline: float
) -> None:
    if value < -threshold:
        scores[Phase.CUT] += 1.0
    elif value > threshold:
        scores[Phase.BULK] += 1.0
    else:
        scores[Phase.MAINTENANCE] += 1.0
        if value < -borderline:
            scores[Phase.CUT] += 0.5
        elif value > borderline:
            scores[Phase.BULK] += 0.5


def describe_calorie_balance(avg_daily_surplus: float) -> str:
    if avg_daily_surplus < -200:
        return "deficit"
    if avg_daily_surplus > 200:
        return "surplus"
    return "balanced"


def describe_weight_trend(avg_weekly_weight_change: float) -> str:
    if avg_weekly_weight_change < -0.3:
        return "losing"
    if avg_weekly_weight_change > 0.3:
        return "gaining"
    return "maintaining"


def generate_reasoning(phase: Phase, avg_daily_surplus: float, avg_weekly_weight_change: float) -> str:
    """Explain a suggestion in one sentence."""
    calorie_desc = describe_calorie_balance(avg_daily_surplus)
    weight_desc = describe_weight_trend(avg_weekly_weight_change)

    if phase == Phase.CUT:
        return f"In a calorie {calorie_desc}, {weight_desc} weight. Suggests cutting phase."
    if phase == Phase.BULK:
        return f"In a calorie {calorie_desc}, {weight_desc} weight. Suggests bulking phase."
    return f"Calories {calorie_desc}, weight {weight_desc}. Suggests maintenance."


def suggest_phase(avg_daily_surplus: float, avg_weekly_weight_change: float) -> PhaseSuggestion:
    """Suggest a phase from calorie balance and weight trend.

    Each signal adds a whole point to one phase, plus half a point towards cut
    or bulk when it sits near the boundary of the maintenance band:

    - calories: below -300 is cut, above +300 is bulk, otherwise maintenance
      (+0.5 cut below -200, +0.5 bulk above +200)
    - weight: below -0.5 lb/week is cut, above +0.5 is bulk, otherwise
      maintenance (+0.5 cut below -0.3, +0.5 bulk above +0.3)

    Args:
        avg_daily_surplus: Average daily calorie surplus (negative = deficit)
        avg_weekly_weight_change: Average weekly weight change in lbs

    Returns:
        PhaseSuggestion; confidence is the winning score over the maximum of 2.0
    """
    scores = {phase: 0.0 for phase in PHASE_PRIORITY}
    _score_signal(scores, avg_daily_surplus, threshold=300, borderline=200)
    _score_signal(scores, avg_weekly_weight_change, threshold=0.5, borderline=0.3)

    # max() keeps the first of equal scores, so iteration order is the tie-break
    suggested = max(PHASE_PRIORITY, key=lambda phase: scores[phase])

    return PhaseSuggestion(
        suggested_phase=suggested,
        confidence=scores[suggested] / MAX_SCORE,
        reasoning=generate_reasoning(suggested, avg_daily_surplus, avg_weekly_weight_change),
        calorie_balance=avg_daily_surplus,
        weight_trend=avg_weekly_weight_change,
    )


def is_phase_aligned(actual_phase: Phase, avg_daily_surplus: float, avg_weekly_weight_change: float) -> bool:
    """Whether the chosen phase matches what the data suggests with better than even confidence."""
    suggestion = suggest_phase(avg_daily_surplus, avg_weekly_weight_change)
    return suggestion.suggested_phase == actual_phase and suggestion.confidence > 0.5


def estimate_daily_surplus(avg_weekly_weight_change: float) -> float:
    """Estimate the average daily calorie balance implied by a weekly weight change.

    Uses the 3500 kcal per lb rule of thumb.
    """
    return avg_weekly_weight_change * CALORIES_PER_LB / 7


def assess_phase_effectiveness(phase: Phase, avg_weekly_weight_change: float) -> bool:
    """Whether the weight trend meets the phase goal."""
    if phase == Phase.CUT:
        return avg_weekly_weight_change < -0.5
    if phase == Phase.BULK:
        return avg_weekly_weight_change > 0.5
    return abs(avg_weekly_weight_change) < 0.5


def group_weeks_by_phase(weeks: Iterable[WeekRecord]) -> dict[Phase, list[WeekRecord]]:
    """Group weeks by phase, keeping phases in first-seen order."""
    groups: dict[Phase, list[WeekRecord]] = {}
    for week in weeks:
        groups.setdefault(week.phase, []).append(week)
    return groups
